import dataclasses
from typing import Any

import pytest

from gamelink import (
    AddPlayerPacket,
    JsonSerializer,
    MovePlayerPacket,
    MsgpackSerializer,
    PayloadDecodeError,
    PlayerConnectionRequestPacket,
    UpdateServerInfoPacket,
)
from gamelink.serialization import from_wire, serializer_for, to_wire, wire_name


@dataclasses.dataclass(frozen=True)
class Inventory:
    owner: str
    slots: list[int]
    notes: Any = None


class TestWireNames:
    def test_camel_case(self):
        names = [wire_name(f) for f in dataclasses.fields(MovePlayerPacket)]
        assert names == ["playerId", "startX", "startY", "destX", "destY"]

    def test_explicit_names(self):
        names = [wire_name(f) for f in dataclasses.fields(AddPlayerPacket)]
        assert names == ["id", "name", "x", "y", "hero", "equipment", "heroStats"]

    def test_game_state(self):
        wire = to_wire(PlayerConnectionRequestPacket(id="a", player_state={"act": 2}))
        assert wire == {"id": "a", "gameState": {"act": 2}}


class TestToWire:
    def test_nested(self):
        assert to_wire({"a": (1, 2), "b": [Inventory("x", [1])]}) == {
            "a": [1, 2],
            "b": [{"owner": "x", "slots": [1], "notes": None}],
        }

    def test_rejects_unknown_values(self):
        with pytest.raises(TypeError):
            to_wire({"when": object()})


class TestFromWire:
    def test_valid(self):
        move = from_wire(
            MovePlayerPacket,
            {"playerId": "p", "startX": 1, "startY": 2.5, "destX": 3, "destY": 4},
        )
        assert move == MovePlayerPacket("p", 1.0, 2.5, 3.0, 4.0)
        assert isinstance(move.start_x, float)

    def test_defaults_fill_missing_optional_fields(self):
        player = from_wire(AddPlayerPacket, {"id": "p", "name": "n", "x": 1, "y": 2, "hero": 3})
        assert player.equipment is None
        assert player.stats is None

    def test_extra_keys_ignored(self):
        info = from_wire(UpdateServerInfoPacket, {"seed": 1, "playerId": "p", "motd": "hi"})
        assert info == UpdateServerInfoPacket(1, "p")

    def test_null_optional(self):
        req = from_wire(PlayerConnectionRequestPacket, {"id": "p", "gameState": None})
        assert req.player_state is None

    def test_any_and_list(self):
        inv = from_wire(Inventory, {"owner": "o", "slots": [1, 2], "notes": {"k": [1]}})
        assert inv == Inventory("o", [1, 2], {"k": [1]})

    @pytest.mark.parametrize(
        "value",
        [
            [],
            "text",
            None,
            {"seed": 1},
            {"seed": "1", "playerId": "p"},
            {"seed": True, "playerId": "p"},
            {"seed": 1.5, "playerId": "p"},
            {"seed": 1, "playerId": 7},
        ],
    )
    def test_mismatches(self, value):
        with pytest.raises(PayloadDecodeError):
            from_wire(UpdateServerInfoPacket, value)

    def test_bad_list_item(self):
        with pytest.raises(PayloadDecodeError):
            from_wire(Inventory, {"owner": "o", "slots": [1, "two"]})

    def test_optional_object_rejects_scalar(self):
        with pytest.raises(PayloadDecodeError):
            from_wire(PlayerConnectionRequestPacket, {"id": "p", "gameState": 5})


class TestSerializers:
    def test_json_compact(self):
        assert JsonSerializer().serialize({"a": 1, "b": [1, 2]}) == b'{"a":1,"b":[1,2]}'

    def test_json_invalid(self):
        with pytest.raises(PayloadDecodeError):
            JsonSerializer().deserialize(b"{oops")

    def test_json_invalid_utf8(self):
        with pytest.raises(PayloadDecodeError):
            JsonSerializer().deserialize(b"\xff\xfe")

    @pytest.mark.parametrize(
        "body",
        [b"[" * 100_000, b'{"regionType":' + b"9" * 5000 + b"}"],
        ids=["deep-nesting", "huge-int"],
    )
    def test_json_hostile_bodies(self, body):
        with pytest.raises(PayloadDecodeError):
            JsonSerializer().deserialize(body)

    def test_msgpack_roundtrip(self):
        s = MsgpackSerializer()
        obj = {"items": [1, 2, 3], "nested": {"a": "b"}}
        assert s.deserialize(s.serialize(obj)) == obj

    def test_msgpack_invalid(self):
        with pytest.raises(PayloadDecodeError):
            MsgpackSerializer().deserialize(b"\x92\x01")

    def test_serializer_for(self):
        assert isinstance(serializer_for("json"), JsonSerializer)
        assert isinstance(serializer_for("msgpack"), MsgpackSerializer)
        with pytest.raises(ValueError):
            serializer_for("pickle")  # type: ignore[arg-type]
