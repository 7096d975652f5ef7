"""WebSocket client: opening handshake and raw data exchange."""

from __future__ import annotations

import base64
import hashlib
import os
import socket
from typing import Any

from rhubarb.log import LogLevel, log

_MAGIC_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

HARDCODED_HANDSHAKE = (
    "GET /ws HTTP/1.1\n"
    "Host: 127.0.0.1:4024\n"
    "Upgrade: websocket\n"
    "Connection: Upgrade\n"
    "Sec-WebSocket-Key: dGhlIHNhbXBsZSBub25jZQ==\n"
    "Sec-WebSocket-Protocol: rhubarb\n"
    "Sec-WebSocket-Version: 13\n"
)


class HandshakeError(OSError):
    """The opening handshake was malformed or rejected."""


def accept_key(key: str) -> str:
    """Return the Sec-WebSocket-Accept value that answers ``key``."""
    digest = hashlib.sha1((key + _MAGIC_GUID).encode()).digest()
    return base64.b64encode(digest).decode("ascii")


def make_key() -> str:
    """Return a fresh Sec-WebSocket-Key: base64 of a random 16-byte nonce."""
    return base64.b64encode(os.urandom(16)).decode("ascii")


def format_address(addr: Any) -> str:
    """Render a socket address tuple as ``host:port`` (``[host]:port`` for IPv6)."""
    host, port = addr[0], addr[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def parse_address(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[host]:port``) into a host and an integer port."""
    host, sep, port = addr.rpartition(":")
    if not sep or not host:
        raise ValueError(f"invalid socket address {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"invalid socket address {addr!r}") from None


def parse_headers(lines: Any) -> dict[str, str]:
    """Collect ``name: value`` lines into a dict keyed by lower-cased name."""
    headers: dict[str, str] = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip().lower()] = value.strip()
    return headers


class WebSocketClient:
    """A client speaking over a connected stream socket.

    ``stream`` is any socket-like object offering ``getpeername``, ``sendall``,
    ``recv``, ``shutdown`` and ``close``.
    """

    def __init__(self, stream: Any) -> None:
        self.stream = stream

    @classmethod
    def connect(cls, bind_addr: str) -> "WebSocketClient":
        """Open a TCP connection to ``host:port``."""
        return cls(socket.create_connection(parse_address(bind_addr)))

    def __enter__(self) -> "WebSocketClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def send(self, data: bytes) -> None:
        """Write all of ``data`` to the stream."""
        self.stream.sendall(data)

    def recv(self) -> None:
        """Print and echo back everything received until the peer closes."""
        while chunk := self.stream.recv(4096):
            message = chunk.decode("utf-8")
            print(message, end="")
            try:
                self.stream.sendall(message.encode("utf-8"))
            except OSError:
                pass

    def perform_handshake(self, path: str) -> None:
        """Send the opening handshake for ``path`` and validate the reply."""
        self._log("Performing Handshake", LogLevel.INFO)
        request, key = self.create_handshake_request(path)
        self.send(request.encode("utf-8"))

        raw = self.stream.recv(4096)
        try:
            response = raw.decode("utf-8")
        except UnicodeDecodeError:
            self.stream.shutdown(socket.SHUT_RDWR)
            raise HandshakeError("Failed to parse handshake as utf8") from None

        try:
            self.validate_server_handshake(response, key)
        except HandshakeError:
            self.stream.shutdown(socket.SHUT_RDWR)
            raise

    def validate_server_handshake(self, server_response: str, key: str) -> str:
        """Check the server's reply to a handshake sent with ``key``.

        Returns the accepted key; raises HandshakeError on any problem.
        """
        self._log(f"Validating client handshake\n{server_response}", LogLevel.DEBUG)

        lines = server_response.strip().split("\n")
        if not lines:
            raise HandshakeError("Handshake is not a valid HTTP response")

        status = lines[0].split()
        if len(status) < 2:
            raise HandshakeError("Missing response code")
        if status[1] != "101":
            raise HandshakeError(f"Invalid response code {status[1]}")

        headers = parse_headers(lines[1:])

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

        given = headers.get("sec-websocket-accept")
        if given is None:
            raise HandshakeError("Handshake missing Sec-WebSocket-Accept header")

        expected = accept_key(key)
        if given.strip() != expected:
            raise HandshakeError("Server key invalid")
        return expected

    def create_handshake_request(self, path: str) -> tuple[str, str]:
        """Build the handshake request for ``path``; return it with its key."""
        key = make_key()
        host = format_address(self.stream.getpeername())
        request = (
            f"GET {path} HTTP/1.1\n"
            f"Host: {host}\n"
            "Upgrade: websocket\n"
            "Connection: Upgrade\n"
            f"Sec-WebSocket-Key: {key}\n"
            "Sec-WebSocket-Protocol: rhubarb\n"
            "Sec-WebSocket-Version: 13\n"
            "\n"
        )
        return request, key

    def close(self) -> None:
        """Shut down and close the stream."""
        try:
            self.stream.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.stream.close()

    def _log(self, msg: str, level: LogLevel) -> None:
        log(f"{format_address(self.stream.getpeername())} - {msg}", level)