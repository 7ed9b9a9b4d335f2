"""Dispatch table: routes decoded frames by packet tag.

Each tag maps to a ``Route`` holding the payload shape and an async handler.
Handlers receive a ``ReceiveContext`` (implemented by the connection session)
and the decoded ``Packet``.

Default routes:

- ``GENERATE_MAP``, ``MOVE_PLAYER``, ``UPDATE_SERVER_INFO``, ``ADD_PLAYER``:
  forwarded to the client listener.
- ``PING``: answered with a ``PONG`` carrying the connection id, never
  forwarded.
- ``PLAYER_DISCONNECTION_NOTIFICATION``: logged.

Any other tag is unknown.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Protocol, TypeAlias

from gamelink.codec import PacketCodec
from gamelink.errors import EmptySerializationError, SendError, UnknownPacketTypeError
from gamelink.packets import Packet, PacketType, create_pong_packet, shape_for

logger = logging.getLogger(__name__)


class ReceiveContext(Protocol):
    """What a route handler may do in response to a packet."""

    @property
    def id(self) -> str: ...

    async def send(self, packet: Packet) -> None: ...

    async def forward(self, packet: Packet) -> None: ...


Handler: TypeAlias = Callable[[ReceiveContext, Packet], Awaitable[None]]


@dataclass(frozen=True)
class Route:
    shape: type
    handler: Handler


async def forward_to_listener(ctx: ReceiveContext, packet: Packet) -> None:
    await ctx.forward(packet)


async def reply_with_pong(ctx: ReceiveContext, packet: Packet) -> None:
    try:
        await ctx.send(create_pong_packet(ctx.id))
    except (SendError, EmptySerializationError) as e:
        logger.error("Error responding to server ping: %s", e)


async def log_disconnect(ctx: ReceiveContext, packet: Packet) -> None:
    logger.info("Received disconnect: %s", packet.payload.id)


class DispatchTable:
    """Registry of routes keyed by packet tag.

    Examples
    --------
    >>> table = default_table()
    >>> table.lookup(PacketType.PING).handler is reply_with_pong
    True
    >>> table.lookup(250) is None
    True
    """

    def __init__(self) -> None:
        self._routes: dict[int, Route] = {}

    def register(
        self, packet_type: int, handler: Handler, *, shape: type | None = None
    ) -> None:
        """Route *packet_type* to *handler*.

        The shape defaults to the payload class registered for the tag.

        Raises
        ------
        ValueError
            If no shape is given and none is registered for the tag.
        """
        resolved = shape or shape_for(packet_type)
        if resolved is None:
            raise ValueError(f"No payload shape registered for tag {packet_type}")
        self._routes[packet_type] = Route(resolved, handler)

    def lookup(self, packet_type: int) -> Route | None:
        return self._routes.get(packet_type)

    def tags(self) -> Iterator[int]:
        return iter(sorted(self._routes))

    def __contains__(self, packet_type: int) -> bool:
        return packet_type in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def resolve(self, packet_type: int, raw: bytes, codec: PacketCodec) -> tuple[Route, Packet]:
        """Decode *raw* into the shape routed for *packet_type*.

        Raises
        ------
        UnknownPacketTypeError
            If the tag has no route.
        PayloadDecodeError
            If the body does not match the routed shape.
        """
        route = self._routes.get(packet_type)
        if route is None:
            raise UnknownPacketTypeError(packet_type)
        payload = codec.decode_payload(route.shape, raw)
        return route, Packet(packet_type, payload)


def default_table() -> DispatchTable:
    table = DispatchTable()
    for packet_type in (
        PacketType.GENERATE_MAP,
        PacketType.MOVE_PLAYER,
        PacketType.UPDATE_SERVER_INFO,
        PacketType.ADD_PLAYER,
    ):
        table.register(packet_type, forward_to_listener)
    table.register(PacketType.PING, reply_with_pong)
    table.register(PacketType.PLAYER_DISCONNECTION_NOTIFICATION, log_disconnect)
    return table
