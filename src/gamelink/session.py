"""Client-side UDP session with a remote game server.

``RemoteClientConnection`` owns one datagram transport. ``open`` resolves the
server, starts the receive loop and sends the connection request; ``close``
sends the disconnect request and tears the transport down. Inbound frames are
decoded and routed through a ``DispatchTable``; malformed or unknown frames
are logged and dropped so a misbehaving peer cannot stop the session.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import socket
from collections.abc import Callable
from typing import Any

from gamelink.codec import PacketCodec
from gamelink.config import SessionConfig
from gamelink.dispatch import DispatchTable, default_table
from gamelink.errors import (
    ConnectError,
    CorruptFrameError,
    PayloadDecodeError,
    SendError,
    UnknownPacketTypeError,
)
from gamelink.listener import ClientListener, ConnectionType
from gamelink.packets import (
    Packet,
    create_player_connection_request_packet,
    create_player_disconnect_request_packet,
    new_connection_id,
    packet_type_name,
)

logger = logging.getLogger(__name__)

# Queued by connection_lost so a waiting receive loop re-checks its flag.
_WAKE = object()


def parse_address(address: str, default_port: int) -> tuple[str, int]:
    """Split ``host[:port]``, filling in *default_port*.

    IPv6 literals need brackets when a port is given (``[::1]:6669``).

    Examples
    --------
    >>> parse_address("example.com", 6669)
    ('example.com', 6669)
    >>> parse_address("10.0.0.2:7000", 6669)
    ('10.0.0.2', 7000)
    >>> parse_address("[::1]:7000", 6669)
    ('::1', 7000)
    """
    address = address.strip()
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep:
            raise ConnectError(f"Malformed address: {address!r}")
        port_str = rest.removeprefix(":") if rest else ""
    elif address.count(":") == 1:
        host, port_str = address.split(":")
    else:
        host, port_str = address, ""

    if not host:
        raise ConnectError(f"Malformed address: {address!r}")
    if not port_str:
        return host, default_port
    try:
        port = int(port_str)
    except ValueError:
        raise ConnectError(f"Invalid port in address: {address!r}") from None
    if not (0 < port <= 0xFFFF):
        raise ConnectError(f"Port out of range in address: {address!r}")
    return host, port


class _ServerProtocol(asyncio.DatagramProtocol):
    """Feeds datagrams and socket errors into the receive loop's inbox."""

    def __init__(self, inbox: asyncio.Queue[Any]) -> None:
        self._inbox = inbox

    def _put(self, item: Any) -> None:
        try:
            self._inbox.put_nowait(item)
        except asyncio.QueueFull:
            logger.warning("Receive queue full, dropping datagram")

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self._put(data)

    def error_received(self, exc: Exception) -> None:
        self._put(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            logger.error("UDP connection lost: %s", exc)
        self._put(_WAKE)


class RemoteClientConnection:
    """Connection from a game client to a remote server over UDP.

    The connection is created inert with a fresh id. ``open`` makes it
    active; ``close`` makes it inactive for good.

    Parameters
    ----------
    config : SessionConfig | None
        Session tuning. Defaults to ``SessionConfig()``.
    codec : PacketCodec | None
        Frame codec. Defaults to a JSON codec.
    dispatch : DispatchTable | None
        Inbound routes. Defaults to ``default_table()``.
    id_factory : Callable[[], str] | None
        Connection id generator. Defaults to a random UUID4.

    Examples
    --------
    >>> conn = RemoteClientConnection()
    >>> conn.set_listener(my_game_client)
    >>> await conn.open("127.0.0.1", load_player_state("hero.json"))
    >>> await conn.send(create_ping_packet())
    >>> await conn.close()
    """

    def __init__(
        self,
        *,
        config: SessionConfig | None = None,
        codec: PacketCodec | None = None,
        dispatch: DispatchTable | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._config = config or SessionConfig()
        self._codec = codec or PacketCodec()
        self._dispatch = dispatch or default_table()
        self._id = (id_factory or new_connection_id)()
        self._listener: ClientListener | None = None
        self._active = asyncio.Event()
        self._closed = False
        self._opening = False
        self._transport: asyncio.DatagramTransport | None = None
        self._remote_address: tuple[str, int] | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._write_lock = asyncio.Lock()
        self._inbox: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._config.inbox_capacity)

    @property
    def id(self) -> str:
        return self._id

    def get_id(self) -> str:
        return self._id

    @property
    def connection_type(self) -> ConnectionType:
        return ConnectionType.LAN_CLIENT

    @property
    def active(self) -> bool:
        return self._active.is_set()

    @property
    def remote_address(self) -> tuple[str, int] | None:
        return self._remote_address

    def set_listener(self, listener: ClientListener) -> None:
        self._listener = listener

    async def __aenter__(self) -> RemoteClientConnection:
        return self

    async def __aexit__(self, *exc: object) -> None:
        if self._transport is not None:
            await self.close()

    async def open(self, address: str, state: dict[str, Any] | None = None) -> None:
        """Connect to the server at *address* and request to join.

        Raises
        ------
        ConnectError
            If the connection is already open or closed, or the address
            cannot be resolved or bound. The connection stays inactive.
        SendError, EmptySerializationError
            If the connection request cannot be sent. The connection stays
            active unless ``close_on_handshake_failure`` is set.
        """
        if self._closed:
            raise ConnectError("Connection is closed")
        if self._transport is not None or self._opening:
            raise ConnectError("Connection is already open")

        host, port = parse_address(address, self._config.default_port)
        self._opening = True
        try:
            transport = await self._connect(host, port)
        finally:
            self._opening = False
        if self._closed:
            transport.close()
            raise ConnectError("Connection was closed while opening")

        try:
            self._transport = transport
            self._remote_address = (host, port)
            self._active.set()
            self._receive_task = asyncio.create_task(
                self._receive_loop(), name=f"gamelink-receive-{self._id}"
            )
        except BaseException:
            self._active.clear()
            self._transport = None
            transport.close()
            raise

        logger.info("Connected to server at %s:%d", host, port)

        try:
            await self.send(create_player_connection_request_packet(self._id, state))
        except Exception:
            logger.error("Error sending connection request to server")
            if self._config.close_on_handshake_failure:
                self._active.clear()
                self._closed = True
                await self._shutdown()
            raise

    async def _connect(self, host: str, port: int) -> asyncio.DatagramTransport:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        except (OSError, UnicodeError) as e:
            raise ConnectError(f"Cannot resolve {host}:{port}: {e}") from e
        if not infos:
            raise ConnectError(f"Cannot resolve {host}:{port}")
        family, _, _, _, remote = infos[0]

        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _ServerProtocol(self._inbox),
                remote_addr=remote,
                family=family,
            )
        except OSError as e:
            raise ConnectError(f"Cannot open UDP socket to {host}:{port}: {e}") from e
        return transport

    async def close(self) -> None:
        """Tell the server this client is leaving and stop the session.

        ``active`` is false as soon as this is called. A second call does
        nothing.

        Raises
        ------
        SendError, EmptySerializationError
            If the disconnect request cannot be sent. The session is torn
            down regardless.
        """
        self._active.clear()
        self._closed = True
        if self._transport is None:
            return
        try:
            await self.send(create_player_disconnect_request_packet(self._id))
        finally:
            await self._shutdown()

    async def send(self, packet: Packet) -> None:
        """Encode *packet* and write it as one datagram.

        Raises
        ------
        SendError
            If the connection is not open or the write fails.
        EmptySerializationError
            If the payload encodes to an empty body.
        """
        frame = self._codec.encode_packet(packet)
        async with self._write_lock:
            transport = self._transport
            if transport is None or transport.is_closing():
                raise SendError(f"Cannot send {packet.name}: connection is not open")
            try:
                transport.sendto(frame)
            except OSError as e:
                raise SendError(f"Error sending {packet.name} packet: {e}") from e
        logger.debug("Sent %s", packet.name, **self._fields(tag=packet.packet_type, size=len(frame)))

    async def forward(self, packet: Packet) -> None:
        """Pass *packet* to the listener; failures are logged."""
        listener = self._listener
        if listener is None:
            logger.warning("No listener set, dropping %s packet", packet.name, **self._fields())
            return
        try:
            result = listener.on_packet_received(packet)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("Error processing packet %s: %s", packet.name, e, **self._fields())

    async def _shutdown(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()

        task, self._receive_task = self._receive_task, None
        if task is None or task is asyncio.current_task():
            return
        done, _ = await asyncio.wait({task}, timeout=self._config.shutdown_timeout)
        if not done:
            logger.warning("Receive loop did not stop in time, cancelling it")
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        elif not task.cancelled() and (exc := task.exception()) is not None:
            logger.error("Receive loop failed", exc_info=exc, **self._fields())

    async def _receive_loop(self) -> None:
        max_size = self._config.receive_buffer_size
        while self._active.is_set():
            try:
                item = await asyncio.wait_for(self._inbox.get(), self._config.read_timeout)
            except TimeoutError:
                continue

            if item is _WAKE:
                continue
            if isinstance(item, Exception):
                logger.warning("Socket error: %s", item)
                continue
            if not item:
                continue
            if len(item) > max_size:
                logger.warning(
                    "Dropping oversized datagram", **self._fields(size=len(item), limit=max_size)
                )
                continue

            try:
                await self._handle_datagram(item)
            except Exception:
                logger.exception("Error processing datagram", **self._fields(size=len(item)))

        logger.debug("Receive loop stopped")

    def _fields(self, **extra: Any) -> dict[str, Any]:
        return {"extra": {"fields": {"conn": self._id, **extra}}}

    async def _handle_datagram(self, data: bytes) -> None:
        try:
            packet_type, raw = self._codec.decode(data)
        except CorruptFrameError as e:
            logger.warning("Dropping corrupt datagram: %s", e, **self._fields(size=len(data)))
            return

        try:
            route, packet = self._dispatch.resolve(packet_type, raw, self._codec)
        except UnknownPacketTypeError:
            logger.warning(
                "Unknown packet type %d", packet_type, **self._fields(tag=packet_type, size=len(data))
            )
            return
        except PayloadDecodeError as e:
            logger.warning(
                "Error unmarshalling %s packet: %s",
                packet_type_name(packet_type),
                e,
                **self._fields(tag=packet_type, size=len(data)),
            )
            return

        logger.debug("Received %s", packet.name, **self._fields(tag=packet_type, size=len(data)))
        try:
            await route.handler(self, packet)
        except Exception:
            logger.exception("Error handling %s packet", packet.name, **self._fields(tag=packet_type))
