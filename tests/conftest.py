"""
Pytest fixtures shared by the handshake, client and server tests.
"""
import io

import pytest

from app.common import framing
from app.server import AuthServer
from app.storage.store import MemorySecretStore


class DuplexStream:
    """In-memory stand-in for socket.makefile("rwb"): scripted input, captured output."""

    def __init__(self, incoming: bytes = b""):
        self.incoming = io.BytesIO(incoming)
        self.outgoing = io.BytesIO()

    def read(self, n=-1):
        return self.incoming.read(n)

    def write(self, data):
        return self.outgoing.write(data)

    def flush(self):
        pass

    def unread(self) -> int:
        return len(self.incoming.getvalue()) - self.incoming.tell()

    def sent(self):
        buf = io.BytesIO(self.outgoing.getvalue())
        messages = []
        while buf.tell() < len(buf.getvalue()):
            messages.append(framing.decode(buf))
        return messages


def frames(*messages) -> bytes:
    return b"".join(framing.encode(m) for m in messages)


@pytest.fixture
def duplex():
    def make(*messages, trailer: bytes = b""):
        return DuplexStream(frames(*messages) + trailer)

    return make


@pytest.fixture
def store():
    return MemorySecretStore({"alice": "wonderland", "bob": "builder"})


@pytest.fixture
def auth_server(store):
    servers = []

    def make(**kwargs):
        kwargs.setdefault("read_timeout", 5.0)
        server = AuthServer(store, host="127.0.0.1", port=0, **kwargs)
        server.start()
        servers.append(server)
        return server

    yield make

    for server in servers:
        server.stop()
