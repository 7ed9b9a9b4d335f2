"""Shared fixtures for gamelink tests: a loopback game server and listeners."""

import asyncio
from typing import Any

import pytest

from gamelink import (
    Packet,
    PacketCodec,
    RemoteClientConnection,
    SessionConfig,
)


class FakeServer(asyncio.DatagramProtocol):
    """UDP peer on 127.0.0.1 that records frames and can reply."""

    def __init__(self) -> None:
        self.frames: asyncio.Queue[bytes] = asyncio.Queue()
        self.transport: asyncio.DatagramTransport | None = None
        self.peer: tuple[str, int] | None = None
        self.codec = PacketCodec()

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data: bytes, addr: tuple[str, int]):
        self.peer = addr
        self.frames.put_nowait(data)

    @property
    def port(self) -> int:
        assert self.transport is not None
        return self.transport.get_extra_info("sockname")[1]

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    async def next_frame(self, timeout: float = 2.0) -> bytes:
        return await asyncio.wait_for(self.frames.get(), timeout)

    async def next_packet(self, shape: type, timeout: float = 2.0) -> tuple[int, Any]:
        tag, raw = self.codec.decode(await self.next_frame(timeout))
        return tag, self.codec.decode_payload(shape, raw)

    async def assert_silent(self, delay: float = 0.2) -> None:
        await asyncio.sleep(delay)
        assert self.frames.empty(), "unexpected frame from client"

    def send_raw(self, data: bytes) -> None:
        assert self.transport is not None and self.peer is not None
        self.transport.sendto(data, self.peer)

    def send(self, packet: Packet) -> None:
        self.send_raw(self.codec.encode_packet(packet))


class RecordingListener:
    """Listener that keeps every forwarded packet."""

    def __init__(self) -> None:
        self.packets: list[Packet] = []
        self._queue: asyncio.Queue[Packet] = asyncio.Queue()

    def on_packet_received(self, packet: Packet) -> None:
        self.packets.append(packet)
        self._queue.put_nowait(packet)

    async def next_packet(self, timeout: float = 2.0) -> Packet:
        return await asyncio.wait_for(self._queue.get(), timeout)


FAST = SessionConfig(read_timeout=0.05, shutdown_timeout=1.0)


@pytest.fixture
async def server():
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        FakeServer, local_addr=("127.0.0.1", 0)
    )
    yield protocol
    transport.close()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
async def connection(server: FakeServer, listener: RecordingListener):
    """An open connection whose connection request the server already consumed."""
    conn = RemoteClientConnection(config=FAST)
    conn.set_listener(listener)
    await conn.open(server.address, {"name": "hero"})
    await server.next_frame()
    yield conn
    if conn.active:
        await conn.close()
