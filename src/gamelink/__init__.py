"""gamelink - asyncio UDP session between a game client and a remote server."""

from gamelink.codec import PacketCodec
from gamelink.config import (
    CodecConfig,
    GamelinkConfig,
    LoggingConfig,
    SessionConfig,
    discover_config,
    load_config,
)
from gamelink.dispatch import DispatchTable, ReceiveContext, Route, default_table
from gamelink.errors import (
    CodecError,
    ConnectError,
    CorruptFrameError,
    EmptySerializationError,
    GamelinkError,
    PayloadDecodeError,
    SendError,
    UnknownPacketTypeError,
)
from gamelink.listener import ClientListener, ConnectionType
from gamelink.packets import (
    AddPlayerPacket,
    GenerateMapPacket,
    MovePlayerPacket,
    Packet,
    PacketType,
    PingPacket,
    PlayerConnectionRequestPacket,
    PlayerDisconnectRequestPacket,
    PongPacket,
    UpdateServerInfoPacket,
    create_add_player_packet,
    create_generate_map_packet,
    create_move_player_packet,
    create_ping_packet,
    create_player_connection_request_packet,
    create_player_disconnect_request_packet,
    create_pong_packet,
    create_update_server_info_packet,
)
from gamelink.serialization import BodySerializer, JsonSerializer, MsgpackSerializer
from gamelink.session import RemoteClientConnection, parse_address
from gamelink.state import load_player_state

__all__ = [
    # Session
    "RemoteClientConnection",
    "parse_address",
    "ClientListener",
    "ConnectionType",
    # Packets
    "Packet",
    "PacketType",
    "AddPlayerPacket",
    "GenerateMapPacket",
    "MovePlayerPacket",
    "PingPacket",
    "PlayerConnectionRequestPacket",
    "PlayerDisconnectRequestPacket",
    "PongPacket",
    "UpdateServerInfoPacket",
    "create_add_player_packet",
    "create_generate_map_packet",
    "create_move_player_packet",
    "create_ping_packet",
    "create_player_connection_request_packet",
    "create_player_disconnect_request_packet",
    "create_pong_packet",
    "create_update_server_info_packet",
    # Codec
    "PacketCodec",
    "BodySerializer",
    "JsonSerializer",
    "MsgpackSerializer",
    # Dispatch
    "DispatchTable",
    "ReceiveContext",
    "Route",
    "default_table",
    # Config
    "CodecConfig",
    "GamelinkConfig",
    "LoggingConfig",
    "SessionConfig",
    "discover_config",
    "load_config",
    # State
    "load_player_state",
    # Errors
    "GamelinkError",
    "ConnectError",
    "SendError",
    "CodecError",
    "EmptySerializationError",
    "CorruptFrameError",
    "PayloadDecodeError",
    "UnknownPacketTypeError",
]
