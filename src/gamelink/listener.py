"""Collaborator interfaces consumed by the connection session."""

from __future__ import annotations

from collections.abc import Awaitable
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gamelink.packets import Packet


class ConnectionType(Enum):
    """How a game client is attached to its server."""

    LOCAL = "local"
    LAN_SERVER = "lan_server"
    LAN_CLIENT = "lan_client"


@runtime_checkable
class ClientListener(Protocol):
    """Sink for packets the receive loop forwards to the game client.

    ``on_packet_received`` runs on the receive loop, so it must not block
    for long: every later datagram waits behind it. It may be a plain method
    or a coroutine. Raising signals a forwarding failure, which is logged.

    Examples
    --------
    >>> class Printer:
    ...     def on_packet_received(self, packet):
    ...         print(packet.name)
    >>> isinstance(Printer(), ClientListener)
    True
    """

    def on_packet_received(self, packet: Packet) -> Awaitable[None] | None: ...
