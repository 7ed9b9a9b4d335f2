import dataclasses
import uuid

import pytest

from gamelink import (
    GenerateMapPacket,
    Packet,
    PacketType,
    PingPacket,
    PlayerConnectionRequestPacket,
    PlayerDisconnectRequestPacket,
    PongPacket,
    create_ping_packet,
    create_player_connection_request_packet,
    create_player_disconnect_request_packet,
    create_pong_packet,
)
from gamelink.packets import (
    new_connection_id,
    packet_type_name,
    payload,
    registered_shapes,
    shape_for,
    tag_for,
)


class TestPacketType:
    def test_wire_values(self):
        assert [t.value for t in PacketType] == [0, 1, 2, 3, 4, 5, 6, 7]

    def test_disconnect_request_shares_notification_tag(self):
        assert PacketType.PLAYER_DISCONNECT_REQUEST is PacketType.PLAYER_DISCONNECTION_NOTIFICATION
        assert PacketType.PLAYER_DISCONNECT_REQUEST == 5

    def test_names(self):
        assert packet_type_name(6) == "PING"
        assert packet_type_name(250) == "UNKNOWN(250)"


class TestRegistry:
    def test_every_type_has_one_shape(self):
        shapes = registered_shapes()
        assert set(shapes) == {t.value for t in PacketType}
        assert shape_for(PacketType.PING) is PingPacket
        assert shape_for(PacketType.PLAYER_DISCONNECTION_NOTIFICATION) is PlayerDisconnectRequestPacket
        assert shape_for(250) is None

    def test_reverse_lookup(self):
        assert tag_for(GenerateMapPacket) == PacketType.GENERATE_MAP
        assert tag_for(dict) is None

    def test_shapes_are_frozen(self):
        ping = PingPacket(ts="now")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ping.ts = "later"  # type: ignore[misc]

    def test_duplicate_tag_rejected(self):
        with pytest.raises(ValueError, match="already registered"):
            payload(PacketType.PING)

    @pytest.mark.parametrize("tag", [-1, 256])
    def test_tag_out_of_range(self, tag):
        with pytest.raises(ValueError):
            payload(tag)


class TestFactories:
    def test_connection_request(self):
        packet = create_player_connection_request_packet("abc", {"act": 1})
        assert packet.packet_type == PacketType.PLAYER_CONNECTION_REQUEST
        assert packet.payload == PlayerConnectionRequestPacket(id="abc", player_state={"act": 1})
        assert packet.name == "PLAYER_CONNECTION_REQUEST"

    def test_disconnect_request(self):
        packet = create_player_disconnect_request_packet("abc")
        assert packet.packet_type == PacketType.PLAYER_DISCONNECT_REQUEST
        assert packet.payload.id == "abc"
        assert packet.payload.player_state is None
        assert packet.name == "PLAYER_DISCONNECT_REQUEST"

    def test_inbound_tag_5_is_a_notification(self):
        packet = Packet(PacketType.PLAYER_DISCONNECTION_NOTIFICATION, PlayerDisconnectRequestPacket(id="x"))
        assert packet.name == "PLAYER_DISCONNECTION_NOTIFICATION"
        assert packet == create_player_disconnect_request_packet("x")

    def test_pong_carries_id_and_timestamp(self):
        packet = create_pong_packet("abc")
        assert isinstance(packet.payload, PongPacket)
        assert packet.payload.id == "abc"
        assert packet.payload.ts

    def test_ping(self):
        assert create_ping_packet().packet_type == PacketType.PING


def test_connection_ids_are_uuids():
    first, second = new_connection_id(), new_connection_id()
    assert first != second
    assert str(uuid.UUID(first)) == first
