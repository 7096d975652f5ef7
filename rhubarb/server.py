"""WebSocket server: validates opening handshakes and echoes client data."""

from __future__ import annotations

import socket
import threading
from typing import Any

from rhubarb.client import (
    HandshakeError,
    accept_key,
    format_address,
    parse_address,
    parse_headers,
)
from rhubarb.log import LogLevel, log

_SUPPORTED_HTTP_VERSIONS = frozenset({"1.1", "2", "3"})


class WebSocketServer:
    """A TCP listener that serves every accepted client on its own thread."""

    def __init__(self, bind_addr: str) -> None:
        self.socket = socket.create_server(parse_address(bind_addr))
        self._closed = False

    def __enter__(self) -> "WebSocketServer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def listen(self) -> None:
        """Accept clients until the server is closed."""
        while not self._closed:
            try:
                stream, _ = self.socket.accept()
            except OSError:
                if self._closed:
                    return
                continue
            if self._closed:
                stream.close()
                return
            threading.Thread(target=_serve, args=(stream,), daemon=True).start()

    def close(self) -> None:
        """Stop accepting clients and release the listening socket."""
        if self._closed:
            return
        self._closed = True
        # Wake a thread blocked in accept() so that listen() can return.
        try:
            address = self.socket.getsockname()
            with socket.create_connection(address[:2], timeout=1):
                pass
        except OSError:
            pass
        self.socket.close()


def _serve(stream: socket.socket) -> None:
    try:
        ServerHandle(stream).handle_client()
    except (OSError, UnicodeDecodeError):
        pass
    finally:
        stream.close()


class ServerHandle:
    """One connected client, seen from the server side.

    ``stream`` is any socket-like object offering ``getpeername``,
    ``getsockname``, ``sendall``, ``recv`` and ``shutdown``.
    """

    def __init__(self, stream: Any) -> None:
        self.stream = stream

    def handle_client(self) -> None:
        """Complete the handshake, then echo everything the client sends."""
        self._log("New Client Connected", LogLevel.INFO)

        raw = self.stream.recv(4096)
        try:
            handshake = raw.decode("utf-8")
        except UnicodeDecodeError:
            self.stream.shutdown(socket.SHUT_RDWR)
            raise HandshakeError("Failed to parse handshake as utf8") from None

        hostname = format_address(self.stream.getsockname())
        try:
            key = self.validate_handshake(handshake, hostname)
        except HandshakeError as exc:
            msg = str(exc)
            self._log(f"Handshake failed - {msg}", LogLevel.WARNING)
            self.stream.sendall(f"HTTP/1.1 400 Bad Request\r\n\r\n{msg}".encode("utf-8"))
            self.stream.shutdown(socket.SHUT_RDWR)
            return

        response = (
            "HTTP/1.1 101 Switching Protocols\n"
            "Upgrade: websocket\n"
            "Connection: Upgrade\n"
            f"Sec-WebSocket-Accept: {key}"
        )
        self.stream.sendall(response.encode("utf-8"))
        self._log("Handshake complete, websocket established.", LogLevel.INFO)

        peer = format_address(self.stream.getpeername())
        while chunk := self.stream.recv(4096):
            message = chunk.decode("utf-8")
            print(f"{peer} - {message}", end="")
            try:
                self.stream.sendall(message.encode("utf-8"))
            except OSError:
                pass

    def validate_handshake(self, client_handshake: str, hostname: str) -> str:
        """Check a client's opening handshake against ``hostname``.

        Returns the Sec-WebSocket-Accept value; raises HandshakeError with the
        reason to report in a 400 response otherwise.
        """
        self._log(f"Validating client handshake\n{client_handshake}", LogLevel.DEBUG)

        lines = client_handshake.strip().split("\n")
        if not lines:
            raise HandshakeError("Handshake is not a valid HTTP request")

        request = lines[0].split()
        if not request or request[0] != "GET":
            raise HandshakeError("Handshake is not a GET Request")
        if len(request) < 2:
            raise HandshakeError("Handshake contains invalid URI resource")

        version_error = "Handshake is using an invalid HTTP version, must be HTTP/1.1 or higher"
        if len(request) < 3:
            raise HandshakeError(version_error)
        protocol, sep, version = request[2].partition("/")
        if not sep or protocol != "HTTP" or version not in _SUPPORTED_HTTP_VERSIONS:
            raise HandshakeError(version_error)

        headers = parse_headers(lines[1:])

        host = headers.get("host")
        if host is None:
            raise HandshakeError("Handshake missing Host header")
        if host.strip() != hostname:
            raise HandshakeError("Invalid hostname")

        upgrade = headers.get("upgrade")
        if upgrade is None:
            raise HandshakeError("Handshake missing Upgrade header")
        if upgrade.lower() != "websocket":
            raise HandshakeError("Requested Upgrade was not 'websocket'")

        connection = headers.get("connection")
        if connection is None:
            raise HandshakeError("Handshake missing Connection header")
        if connection.lower() != "upgrade":
            raise HandshakeError("Requested Connection was not 'upgrade'")

        version_header = headers.get("sec-websocket-version")
        if version_header is None:
            raise HandshakeError("Handshake missing Sec-WebSocket-Version header")
        if version_header != "13":
            raise HandshakeError("Requested Sec-WebSocket-Version was not '13'")

        key = headers.get("sec-websocket-key")
        if key is None:
            raise HandshakeError("Handshake missing Sec-WebSocket-Key header")
        key = key.strip()
        if len(key) != 24:
            raise HandshakeError("Invalid Sec-WebSocket-Key")

        return accept_key(key)

    def _log(self, msg: str, level: LogLevel) -> None:
        log(f"{format_address(self.stream.getpeername())} - {msg}", level)