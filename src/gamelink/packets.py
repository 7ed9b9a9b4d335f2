"""Packet types and payload shapes.

Every payload is a frozen, slotted dataclass registered against its one-byte
tag with the ``@payload`` decorator:

    @payload(PacketType.PING)
    class PingPacket:
        ts: str

Field names are translated to camelCase on the wire unless a field carries an
explicit name through ``wire_field``.
"""

from __future__ import annotations

import uuid
from dataclasses import MISSING, dataclass, field, is_dataclass
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any, TypeVar

T = TypeVar("T")


class PacketType(IntEnum):
    """One-byte packet discriminator.

    Tags 8-255 are reserved. The disconnect request sent by the client and
    the disconnect notification sent by the server share tag 5.
    """

    UPDATE_SERVER_INFO = 0
    GENERATE_MAP = 1
    ADD_PLAYER = 2
    MOVE_PLAYER = 3
    PLAYER_CONNECTION_REQUEST = 4
    PLAYER_DISCONNECTION_NOTIFICATION = 5
    PLAYER_DISCONNECT_REQUEST = 5
    PING = 6
    PONG = 7


def packet_type_name(tag: int) -> str:
    """Return a readable name for *tag*, known or not."""
    try:
        return PacketType(tag).name
    except ValueError:
        return f"UNKNOWN({tag})"


# =============================================================================
# Shape registry
# =============================================================================

_SHAPES: dict[int, type] = {}
_SHAPE_TO_TAG: dict[type, int] = {}


def wire_field(name: str, *, default: Any = MISSING) -> Any:
    """Declare a dataclass field whose wire key is *name*."""
    if default is MISSING:
        return field(metadata={"wire": name})
    return field(default=default, metadata={"wire": name})


def payload(tag: int):
    """Register a class as the payload shape for *tag*.

    Applies ``@dataclass(frozen=True, slots=True)`` when the class is not
    already a dataclass.

    Raises:
        ValueError: If *tag* is out of range or already registered.
    """
    if not (0x00 <= tag <= 0xFF):
        raise ValueError(f"tag must be 0x00-0xFF, got {tag}")

    if tag in _SHAPES:
        raise ValueError(f"tag {tag} already registered to {_SHAPES[tag].__name__}")

    def decorator(cls: type[T]) -> type[T]:
        if not is_dataclass(cls):
            cls = dataclass(frozen=True, slots=True)(cls)
        _SHAPES[tag] = cls
        _SHAPE_TO_TAG[cls] = tag
        return cls

    return decorator


def shape_for(tag: int) -> type | None:
    """Return the payload class registered for *tag*, if any."""
    return _SHAPES.get(tag)


def tag_for(cls: type) -> int | None:
    """Return the tag a payload class is registered under, if any."""
    return _SHAPE_TO_TAG.get(cls)


def registered_shapes() -> dict[int, type]:
    return _SHAPES.copy()


# =============================================================================
# Payload shapes
# =============================================================================


@payload(PacketType.UPDATE_SERVER_INFO)
class UpdateServerInfoPacket:
    seed: int
    player_id: str


@payload(PacketType.GENERATE_MAP)
class GenerateMapPacket:
    region_type: int


@payload(PacketType.ADD_PLAYER)
class AddPlayerPacket:
    id: str
    name: str
    x: int
    y: int
    hero_type: int = wire_field("hero")
    equipment: dict[str, Any] | None = None
    stats: dict[str, Any] | None = wire_field("heroStats", default=None)


@payload(PacketType.MOVE_PLAYER)
class MovePlayerPacket:
    player_id: str
    start_x: float
    start_y: float
    dest_x: float
    dest_y: float


@payload(PacketType.PLAYER_CONNECTION_REQUEST)
class PlayerConnectionRequestPacket:
    id: str
    player_state: dict[str, Any] | None = wire_field("gameState", default=None)


@payload(PacketType.PLAYER_DISCONNECT_REQUEST)
class PlayerDisconnectRequestPacket:
    id: str
    player_state: dict[str, Any] | None = wire_field("gameState", default=None)


@payload(PacketType.PING)
class PingPacket:
    ts: str


@payload(PacketType.PONG)
class PongPacket:
    id: str
    ts: str


@dataclass(frozen=True)
class Packet:
    """A typed application packet: tag plus payload.

    Inbound packets always carry the registered dataclass for their tag;
    outbound packets may carry a plain mapping instead. *label* overrides
    the logged name where two packet kinds share a tag.
    """

    packet_type: int
    payload: Any
    label: str | None = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.label or packet_type_name(self.packet_type)


def new_connection_id() -> str:
    return str(uuid.uuid4())


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


# =============================================================================
# Factories
# =============================================================================


def create_player_connection_request_packet(
    connection_id: str, player_state: dict[str, Any] | None
) -> Packet:
    return Packet(
        PacketType.PLAYER_CONNECTION_REQUEST,
        PlayerConnectionRequestPacket(id=connection_id, player_state=player_state),
    )


def create_player_disconnect_request_packet(connection_id: str) -> Packet:
    return Packet(
        PacketType.PLAYER_DISCONNECT_REQUEST,
        PlayerDisconnectRequestPacket(id=connection_id),
        label="PLAYER_DISCONNECT_REQUEST",
    )


def create_ping_packet() -> Packet:
    return Packet(PacketType.PING, PingPacket(ts=_timestamp()))


def create_pong_packet(connection_id: str) -> Packet:
    return Packet(PacketType.PONG, PongPacket(id=connection_id, ts=_timestamp()))


def create_update_server_info_packet(seed: int, player_id: str) -> Packet:
    return Packet(
        PacketType.UPDATE_SERVER_INFO,
        UpdateServerInfoPacket(seed=seed, player_id=player_id),
    )


def create_generate_map_packet(region_type: int) -> Packet:
    return Packet(PacketType.GENERATE_MAP, GenerateMapPacket(region_type=region_type))


def create_add_player_packet(
    player_id: str,
    name: str,
    x: int,
    y: int,
    hero_type: int,
    equipment: dict[str, Any] | None = None,
    stats: dict[str, Any] | None = None,
) -> Packet:
    return Packet(
        PacketType.ADD_PLAYER,
        AddPlayerPacket(
            id=player_id,
            name=name,
            x=x,
            y=y,
            hero_type=hero_type,
            equipment=equipment,
            stats=stats,
        ),
    )


def create_move_player_packet(
    player_id: str, start_x: float, start_y: float, dest_x: float, dest_y: float
) -> Packet:
    return Packet(
        PacketType.MOVE_PLAYER,
        MovePlayerPacket(
            player_id=player_id,
            start_x=start_x,
            start_y=start_y,
            dest_x=dest_x,
            dest_y=dest_y,
        ),
    )
