"""Wire codec for gamelink packets.

Wire format per datagram: ``[tag:1][gzip(body)]``

- ``tag`` is the ``PacketType`` of the payload.
- ``body`` is the payload serialized by the configured ``BodySerializer``
  (compact JSON by default) and gzip-compressed.

There is no length prefix and no version field; datagram boundaries frame the
packet.

Usage:
    codec = PacketCodec()
    frame = codec.encode(PacketType.PONG, PongPacket(id="abc", ts="..."))
    tag, raw = codec.decode(frame)
    pong = codec.decode_payload(PongPacket, raw)
"""

from __future__ import annotations

import gzip
import zlib
from typing import Any, TypeVar

from gamelink.errors import CorruptFrameError, EmptySerializationError
from gamelink.packets import Packet, packet_type_name
from gamelink.serialization import BodySerializer, JsonSerializer, from_wire, to_wire

# gzip container, maximum window
_GZIP_WBITS = 16 + zlib.MAX_WBITS

T = TypeVar("T")

DEFAULT_COMPRESSION_LEVEL = 9
DEFAULT_MAX_PAYLOAD_SIZE = 1 << 20


class PacketCodec:
    """Encodes payloads into frames and decodes frames back.

    Parameters
    ----------
    serializer : BodySerializer | None
        Body serializer. Defaults to ``JsonSerializer``.
    compression_level : int
        gzip level, 0-9. Defaults to 9.
    max_payload_size : int
        Upper bound on a decompressed body; larger bodies are corrupt.

    Examples
    --------
    >>> codec = PacketCodec()
    >>> frame = codec.encode(6, {"ts": "now"})
    >>> codec.decode(frame)
    (6, b'{"ts":"now"}')
    """

    def __init__(
        self,
        serializer: BodySerializer | None = None,
        *,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        max_payload_size: int = DEFAULT_MAX_PAYLOAD_SIZE,
    ) -> None:
        if not (0 <= compression_level <= 9):
            raise ValueError(f"compression_level must be 0-9, got {compression_level}")
        if max_payload_size <= 0:
            raise ValueError("max_payload_size must be positive")
        self._serializer = serializer or JsonSerializer()
        self._compression_level = compression_level
        self._max_payload_size = max_payload_size

    @property
    def serializer(self) -> BodySerializer:
        return self._serializer

    def encode(self, packet_type: int, payload: Any) -> bytes:
        """Serialize, compress and tag a payload.

        Raises
        ------
        ValueError
            If *packet_type* does not fit in one byte.
        EmptySerializationError
            If the payload serializes or compresses to nothing.
        """
        if not (0 <= packet_type <= 0xFF):
            raise ValueError(f"packet_type must be 0-255, got {packet_type}")

        data = self._serializer.serialize(to_wire(payload))
        if not data:
            raise EmptySerializationError(
                f"Attempted to send empty {packet_type_name(packet_type)} packet body"
            )

        body = gzip.compress(data, compresslevel=self._compression_level)
        if not body:
            raise EmptySerializationError(
                f"{packet_type_name(packet_type)} packet body compressed to zero bytes"
            )

        return bytes([packet_type]) + body

    def encode_packet(self, packet: Packet) -> bytes:
        return self.encode(packet.packet_type, packet.payload)

    def decode(self, frame: bytes) -> tuple[int, bytes]:
        """Split a frame into its tag and decompressed body.

        The payload shape is not validated here.

        Raises
        ------
        CorruptFrameError
            If the body is missing, truncated, not gzip, empty once
            decompressed, or larger than ``max_payload_size``.
        """
        if len(frame) < 2:
            raise CorruptFrameError("Frame has no body")

        packet_type = frame[0]
        decompressor = zlib.decompressobj(_GZIP_WBITS)
        try:
            data = decompressor.decompress(frame[1:], self._max_payload_size + 1)
        except zlib.error as e:
            raise CorruptFrameError(
                f"Cannot decompress {packet_type_name(packet_type)} packet: {e}"
            ) from e

        if len(data) > self._max_payload_size:
            raise CorruptFrameError(
                f"{packet_type_name(packet_type)} packet exceeds {self._max_payload_size} bytes"
            )
        if not decompressor.eof:
            raise CorruptFrameError(
                f"Truncated {packet_type_name(packet_type)} packet body"
            )
        if not data:
            raise CorruptFrameError(
                f"Empty {packet_type_name(packet_type)} packet received"
            )

        return packet_type, data

    def decode_payload(self, shape: type[T], raw: bytes) -> T:
        """Deserialize *raw* strictly into *shape*.

        Raises
        ------
        PayloadDecodeError
            If the body is not valid for the serializer or does not match
            *shape*.
        """
        return from_wire(shape, self._serializer.deserialize(raw))
