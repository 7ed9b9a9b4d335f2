import asyncio
import json
from pathlib import Path

import pytest

from gamelink import (
    PacketType,
    PlayerConnectionRequestPacket,
    RemoteClientConnection,
    SendError,
    create_generate_map_packet,
)
from gamelink.__main__ import build_parser, run
from gamelink.config import GamelinkConfig, SessionConfig

from .conftest import FakeServer

FAST_CONFIG = GamelinkConfig(session=SessionConfig(read_timeout=0.05))


def test_parser():
    args = build_parser().parse_args(
        ["10.0.0.5:7000", "--save", "hero.json", "--duration", "2.5", "--log-level", "debug"]
    )
    assert args.address == "10.0.0.5:7000"
    assert args.save == Path("hero.json")
    assert args.duration == 2.5
    assert args.log_level == "debug"
    assert args.config is None


def test_parser_rejects_unknown_level():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["host", "--log-level", "trace"])


async def test_run_unresolvable(capsys: pytest.CaptureFixture[str]):
    assert await run("256.256.256.256:1", None, 0.1, FAST_CONFIG) == 1
    assert "Cannot connect" in capsys.readouterr().err


async def test_run_prints_forwarded_packets(
    server: FakeServer, tmp_path: Path, capsys: pytest.CaptureFixture[str]
):
    save = tmp_path / "hero.json"
    save.write_text(json.dumps({"heroName": "Aidan"}))

    task = asyncio.create_task(run(server.address, save, 0.5, FAST_CONFIG))
    tag, request = await server.next_packet(PlayerConnectionRequestPacket)
    assert tag == PacketType.PLAYER_CONNECTION_REQUEST
    assert request.player_state == {"heroName": "Aidan"}

    server.send(create_generate_map_packet(2))
    assert await task == 0

    out = capsys.readouterr().out
    assert "GENERATE_MAP {'regionType': 2}" in out
    disconnect = await server.next_frame()
    assert disconnect[0] == PacketType.PLAYER_DISCONNECT_REQUEST


async def test_run_exits_when_handshake_tears_down(
    server: FakeServer, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
):
    async def failing_send(self, packet):
        raise SendError("socket gone")

    monkeypatch.setattr(RemoteClientConnection, "send", failing_send)
    config = GamelinkConfig(
        session=SessionConfig(read_timeout=0.05, close_on_handshake_failure=True)
    )

    assert await asyncio.wait_for(run(server.address, None, 30.0, config), 2.0) == 1
    err = capsys.readouterr().err
    assert "Connection request failed: socket gone" in err
    assert "Connected as" not in err
