from __future__ import annotations

import asyncio
import socket

import pytest

from ipc.protocol import Opcode, decode_frame, encode_frame
from soundcloud_rpc.core import TransportChannel
from soundcloud_rpc.features import Track
from soundcloud_rpc.main import run_client

READY = (Opcode.FRAME, {"cmd": "DISPATCH", "evt": "READY", "data": {"v": 1}})


class RecordingChannel:
    """Answers the handshake with READY and logs every write and release."""

    def __init__(self, events):
        self.events = events
        self.inbox = bytearray(encode_frame(*READY))
        self.sent = []
        self.close_calls = 0

    def connect(self):
        return "fake-endpoint"

    def read_exact(self, size):
        data = bytes(self.inbox[:size])
        del self.inbox[:size]
        return data

    def write_all(self, data):
        opcode, payload = decode_frame(data)
        self.sent.append((opcode, payload))
        self.events.append(f"write:{opcode.name}")

    def close(self):
        self.close_calls += 1
        self.events.append("channel.close")


class IdleSource:
    def __init__(self, events, track=None):
        self.events = events
        self.track = track
        self.closed = False

    async def fetch_latest(self):
        return self.track

    async def close(self):
        self.closed = True
        self.events.append("source.close")


def test_shutdown_closes_source_then_link_then_channel():
    events = []
    channel = RecordingChannel(events)
    source = IdleSource(events)

    async def scenario():
        stop = asyncio.Event()
        stop.set()
        await run_client(channel=channel, source=source, stop=stop)

    asyncio.run(scenario())

    assert source.closed
    assert channel.sent[-1] == (Opcode.CLOSE, {})
    assert channel.close_calls == 1
    assert events[-3:] == ["source.close", "write:CLOSE", "channel.close"]


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="needs Unix socket pairs")
def test_shutdown_completes_while_an_update_awaits_a_reply():
    client, host = socket.socketpair()
    host.sendall(encode_frame(*READY))
    channel = TransportChannel(connector=lambda endpoint, timeout: client, endpoints=["pair"])
    source = IdleSource([], track=Track("Song", "Artist", None, "https://soundcloud.com/a/s"))

    async def scenario():
        stop = asyncio.Event()
        client_task = asyncio.create_task(run_client(channel=channel, source=source, stop=stop))
        received = b""
        # the host never answers SET_ACTIVITY, leaving the update blocked on its reply
        while b"SET_ACTIVITY" not in received:
            received += await asyncio.wait_for(asyncio.to_thread(host.recv, 4096), 5)
        stop.set()
        await asyncio.wait_for(client_task, 5)

    asyncio.run(scenario())

    host.settimeout(2)
    rest = b""
    while True:
        chunk = host.recv(4096)
        if not chunk:
            break
        rest += chunk
    assert rest.endswith(encode_frame(Opcode.CLOSE, {}))
    assert source.closed
    assert not channel.connected
    host.close()
