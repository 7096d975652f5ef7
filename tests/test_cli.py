import io
import socket
import threading

import pytest

from rhubarb import cli
from rhubarb.client import HandshakeError
from rhubarb.server import ServerHandle


def _listener():
    sock = socket.create_server(("127.0.0.1", 0))
    return sock, sock.getsockname()[1]


def test_no_arguments_is_an_error():
    with pytest.raises(SystemExit) as info:
        cli.main([])
    assert str(info.value) == "Must give arg as 'client' or 'server'"


def test_unknown_mode_is_an_error():
    with pytest.raises(SystemExit) as info:
        cli.main(["proxy"])
    assert str(info.value) == "Must give arg as 'client' or 'server'"


def test_client_sends_stdin_lines(monkeypatch, capsys):
    sock, port = _listener()
    errors = []

    def serve():
        conn, _ = sock.accept()
        conn.settimeout(5)
        try:
            ServerHandle(conn).handle_client()
        except Exception as exc:  # recorded for the assertion below
            errors.append(exc)
        finally:
            conn.close()
            sock.close()

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    monkeypatch.setattr("sys.stdin", io.StringIO("hello\n"))

    result = cli.main(["CLIENT", f"127.0.0.1:{port}"])
    thread.join(timeout=5)

    assert result == 0
    assert not thread.is_alive()
    assert errors == []
    assert f"127.0.0.1:" in capsys.readouterr().out


def test_client_echoed_output_contains_sent_line(monkeypatch, capsys):
    sock, port = _listener()
    received = []

    def serve():
        conn, _ = sock.accept()
        conn.settimeout(5)
        try:
            ServerHandle(conn).handle_client()
        finally:
            conn.close()
            sock.close()
        received.append(True)

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    monkeypatch.setattr("sys.stdin", io.StringIO("line one\n"))

    cli.main(["client", f"127.0.0.1:{port}"])
    thread.join(timeout=5)

    out = capsys.readouterr().out
    assert received == [True]
    assert "line one" in out


def test_client_rejected_handshake_raises(monkeypatch):
    sock, port = _listener()

    def serve():
        conn, _ = sock.accept()
        with conn:
            conn.recv(4096)
            conn.sendall(b"HTTP/1.1 400 Bad Request\r\n\r\nInvalid hostname")
        sock.close()

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    monkeypatch.setattr("sys.stdin", io.StringIO(""))

    with pytest.raises(HandshakeError) as info:
        cli.main(["client", f"127.0.0.1:{port}"])
    thread.join(timeout=5)
    assert str(info.value) == "Invalid response code 400"