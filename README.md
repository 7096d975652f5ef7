# rhubarb

rhubarb is a small WebSocket toy. It implements the opening handshake from
RFC 6455 on both the server side and the client side. After the handshake it
passes raw text over the connection.

## Installing

```
pip install .
```

## Running a server

```
rhubarb server
```

The server listens on `127.0.0.1:4024` and serves each client on its own thread.
It checks each client's handshake in this order:

1. the request line: `GET`, a path, and `HTTP/1.1`, `HTTP/2` or `HTTP/3`
2. `Host`, which must match the server's own address
3. `Upgrade: websocket`
4. `Connection: Upgrade`
5. `Sec-WebSocket-Version: 13`
6. `Sec-WebSocket-Key`, which must be 24 characters long

If the handshake is valid, the server replies `101 Switching Protocols` with the
matching `Sec-WebSocket-Accept` value. From then on it prints everything the
client sends, prefixed with the client's address, and echoes it back. If the
handshake is not valid, the server replies `400 Bad Request` with the reason as
the body and shuts the connection down.

## Running a client

```
rhubarb client [HOST:PORT]
```

The address defaults to `127.0.0.1:4024`. The client sends a handshake for the
path `/ws` with a fresh random key. It then checks the server's reply: status
`101`, `Upgrade`, `Connection` and `Sec-WebSocket-Accept`. After that it sends
each line read from standard input to the server until standard input ends. A
rejected handshake ends the command with an error.

## Using it as a library

```python
from rhubarb.client import WebSocketClient

with WebSocketClient.connect("127.0.0.1:4024") as client:
    client.perform_handshake("/ws")
    client.send(b"hello\n")
```

`WebSocketClient.recv()` prints everything the client receives and echoes it back
until the peer closes the connection.

`rhubarb.client.make_key()` returns a new random `Sec-WebSocket-Key`.
`rhubarb.client.accept_key(key)` returns the `Sec-WebSocket-Accept` value that
answers that key.

You can check a server-side handshake without a socket. `ServerHandle` only
needs a stream object that has a `getpeername()` method:

```python
from rhubarb.server import ServerHandle

handle = ServerHandle(stream)
accept = handle.validate_handshake(request_text, "127.0.0.1:4024")
```

`validate_handshake` returns the accept value. If the request is rejected, it
raises `rhubarb.client.HandshakeError` with the reason as its message.
`WebSocketClient.validate_server_handshake` does the same for a server's reply.

A `WebSocketServer(bind_addr)` can also be run directly with `listen()`, and
`close()` stops it. Both the server and the client work as context managers.

Messages are written to standard output as `[INFO]: ...`, `[DEBUG]: ...` and so
on. Errors go to standard error.

## What it does not do

After the handshake, data goes over the connection as plain text. It is not
WebSocket-framed: there is no framing, masking, ping/pong or close frames. The
server does not negotiate subprotocols or extensions. The client command sends
lines but does not display what the server echoes back.

## Tests

```
pip install .[test]
pytest
```