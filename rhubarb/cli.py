"""Command-line entry point: run as a WebSocket server or client."""

from __future__ import annotations

import sys

from rhubarb.client import WebSocketClient
from rhubarb.server import WebSocketServer

DEFAULT_ADDRESS = "127.0.0.1:4024"
_USAGE = "Must give arg as 'client' or 'server'"


def main(argv: list[str] | None = None) -> int:
    """Run ``server`` or ``client [host:port]``; the client sends stdin lines."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        raise SystemExit(_USAGE)
    mode = args[0].lower()

    if mode == "server":
        with WebSocketServer(DEFAULT_ADDRESS) as server:
            server.listen()
        return 0

    if mode == "client":
        address = args[1] if len(args) > 1 else DEFAULT_ADDRESS
        with WebSocketClient.connect(address) as client:
            client.perform_handshake("/ws")
            for line in sys.stdin:
                try:
                    client.send(line.encode("utf-8"))
                except OSError:
                    pass
        return 0

    raise SystemExit(_USAGE)


if __name__ == "__main__":
    sys.exit(main())