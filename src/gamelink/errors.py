"""Exception taxonomy for gamelink.

Outbound failures (``ConnectError``, ``SendError``, ``EmptySerializationError``)
are raised to the caller. Inbound failures (``CorruptFrameError``,
``PayloadDecodeError``, ``UnknownPacketTypeError``) are raised by the codec and
dispatch table but the receive loop logs them and drops the datagram.
"""

from __future__ import annotations


class GamelinkError(Exception):
    """Base class for every error raised by gamelink."""


class ConnectError(GamelinkError):
    """Address resolution or socket setup failed during ``open``."""


class SendError(GamelinkError):
    """A datagram could not be written to the transport."""


class CodecError(GamelinkError):
    """Base class for frame encoding and decoding failures."""


class EmptySerializationError(CodecError):
    """A payload serialized or compressed to zero bytes."""


class CorruptFrameError(CodecError):
    """An inbound frame is truncated or its body cannot be decompressed."""


class PayloadDecodeError(CodecError):
    """A decompressed body does not match the shape registered for its tag."""


class UnknownPacketTypeError(CodecError):
    """A frame carries a tag with no registered route."""

    def __init__(self, tag: int) -> None:
        super().__init__(f"Unknown packet type {tag}")
        self.tag = tag
