"""Command line client: connect to a server and print what it sends.

    gamelink 192.168.1.20 --save ~/saves/hero.json --duration 30
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import sys
from pathlib import Path

from gamelink import logger as log
from gamelink.config import GamelinkConfig, load_config
from gamelink.errors import ConnectError, GamelinkError
from gamelink.packets import Packet
from gamelink.serialization import to_wire
from gamelink.session import RemoteClientConnection
from gamelink.state import load_player_state


class PrintingListener:
    def on_packet_received(self, packet: Packet) -> None:
        print(f"{packet.name} {to_wire(packet.payload)}", flush=True)


async def run(address: str, save: Path | None, duration: float | None, config: GamelinkConfig) -> int:
    state = load_player_state(save) if save is not None else None

    conn = RemoteClientConnection(config=config.session, codec=config.codec.build())
    conn.set_listener(PrintingListener())
    try:
        await conn.open(address, state)
    except ConnectError as e:
        print(f"Cannot connect to {address}: {e}", file=sys.stderr)
        return 1
    except GamelinkError as e:
        print(f"Connection request failed: {e}", file=sys.stderr)
        if not conn.active:
            return 1

    print(f"Connected as {conn.id}", file=sys.stderr)
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        await conn.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gamelink", description=__doc__.splitlines()[0])
    parser.add_argument("address", help="server address, host[:port]")
    parser.add_argument("--save", type=Path, help="player save file sent with the connection request")
    parser.add_argument("--config", type=Path, help="path to gamelink.toml")
    parser.add_argument("--log-level", choices=["debug", "info", "warn", "error", "off"])
    parser.add_argument("--duration", type=float, help="seconds to stay connected")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    log.configure(
        log.Level.parse(args.log_level or config.logging.level),
        log.formatter_named(config.logging.formatter),
        colors=config.logging.colors and sys.stderr.isatty(),
    )

    with contextlib.suppress(KeyboardInterrupt):
        return asyncio.run(run(args.address, args.save, args.duration, config))
    return 0


if __name__ == "__main__":
    sys.exit(main())
