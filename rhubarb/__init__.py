"""A small WebSocket handshake server and client that exchange raw text."""

__version__ = "0.1.0"