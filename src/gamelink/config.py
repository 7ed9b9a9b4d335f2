"""TOML-based configuration for gamelink.

Provides ``load_config`` / ``discover_config`` for loading ``gamelink.toml``
into frozen dataclasses for the session, codec and logging settings.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, TypeAlias

from gamelink.codec import DEFAULT_COMPRESSION_LEVEL, DEFAULT_MAX_PAYLOAD_SIZE, PacketCodec
from gamelink.serialization import SerializerKind, serializer_for

__all__ = [
    "CodecConfig",
    "GamelinkConfig",
    "LogFormatterKind",
    "LogLevelName",
    "LoggingConfig",
    "SessionConfig",
    "discover_config",
    "load_config",
]

CONFIG_FILENAME = "gamelink.toml"

LogLevelName: TypeAlias = Literal["debug", "info", "warn", "error", "off"]
LogFormatterKind: TypeAlias = Literal["verbose", "compact", "minimal"]


@dataclass(frozen=True)
class SessionConfig:
    """Connection session tuning.

    Parameters
    ----------
    default_port : int
        Port appended to addresses that name none.
    receive_buffer_size : int
        Largest accepted inbound datagram; bigger ones are dropped.
    read_timeout : float
        Seconds the receive loop waits for a datagram before re-checking
        whether the connection is still active.
    shutdown_timeout : float
        Seconds ``close`` waits for the receive loop before cancelling it.
    inbox_capacity : int
        Datagrams buffered between the socket and the receive loop.
    close_on_handshake_failure : bool
        Tear the connection down when the connection request cannot be sent.

    Examples
    --------
    >>> SessionConfig(default_port=7000).default_port
    7000
    """

    default_port: int = 6669
    receive_buffer_size: int = 4096
    read_timeout: float = 0.5
    shutdown_timeout: float = 2.0
    inbox_capacity: int = 1024
    close_on_handshake_failure: bool = False

    def __post_init__(self) -> None:
        if not (0 < self.default_port <= 0xFFFF):
            raise ValueError(f"default_port must be 1-65535, got {self.default_port}")
        if self.receive_buffer_size <= 0:
            raise ValueError("receive_buffer_size must be positive")
        if self.read_timeout <= 0 or self.shutdown_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if self.inbox_capacity <= 0:
            raise ValueError("inbox_capacity must be positive")


@dataclass(frozen=True)
class CodecConfig:
    """Frame encoding settings.

    Parameters
    ----------
    serializer : SerializerKind
        Body format: ``"json"`` (what game servers speak) or ``"msgpack"``.
    compression_level : int
        gzip level, 0-9.
    max_payload_size : int
        Largest decompressed body accepted from the wire.
    """

    serializer: SerializerKind = "json"
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE

    def __post_init__(self) -> None:
        if self.serializer not in ("json", "msgpack"):
            raise ValueError(f"Unknown serializer: {self.serializer!r}")
        if not (0 <= self.compression_level <= 9):
            raise ValueError(f"compression_level must be 0-9, got {self.compression_level}")
        if self.max_payload_size <= 0:
            raise ValueError("max_payload_size must be positive")

    def build(self) -> PacketCodec:
        return PacketCodec(
            serializer_for(self.serializer),
            compression_level=self.compression_level,
            max_payload_size=self.max_payload_size,
        )


@dataclass(frozen=True)
class LoggingConfig:
    level: LogLevelName = "info"
    formatter: LogFormatterKind = "verbose"
    colors: bool = True

    def __post_init__(self) -> None:
        if self.level not in ("debug", "info", "warn", "error", "off"):
            raise ValueError(f"Unknown log level: {self.level!r}")
        if self.formatter not in ("verbose", "compact", "minimal"):
            raise ValueError(f"Unknown log formatter: {self.formatter!r}")


@dataclass(frozen=True)
class GamelinkConfig:
    session: SessionConfig = field(default_factory=SessionConfig)
    codec: CodecConfig = field(default_factory=CodecConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``gamelink.toml``.

    Examples
    --------
    >>> discover_config(Path("/my/project"))
    PosixPath('/my/project/gamelink.toml')
    """
    current = start or Path.cwd()
    current = current.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> GamelinkConfig:
    """Load a ``GamelinkConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``gamelink.toml`` by walking up from
    the current working directory. Returns the defaults if no file is found.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    ValueError
        If a setting is out of range.
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return GamelinkConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    return GamelinkConfig(
        session=SessionConfig(**raw.get("session", {})),
        codec=CodecConfig(**raw.get("codec", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
    )
