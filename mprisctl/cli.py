#!/usr/bin/env python3
# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
mpris-ctl — manage D-Bus MPRIS2 players.

    mpris-ctl toggle                      # the player that was playing last
    mpris-ctl --player spotify next       # every player whose name contains "spotify"
    mpris-ctl --all-players pause
    mpris-ctl metadata xesam:title

Without --player / --all-players the target comes from mpris-ctl-daemon's
last active players; when the daemon is not running, every playing player,
else the active one, else the first one.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field

from .lib.channel import fetch_last_active
from .lib.config import socket_path
from .lib.errors import MprisCtlError, ProtocolError, TransportError
from .lib.registry import ControlAction, PlaybackStatus, PlayerRegistry, create_player_registry

logger = logging.getLogger("mpris-ctl")

NO_PLAYERS_MESSAGE = "No players matching the criteria found."

CONTROL_COMMANDS = {
    "play": ControlAction.PLAY,
    "pause": ControlAction.PAUSE,
    "toggle": ControlAction.TOGGLE,
    "prev": ControlAction.PREVIOUS,
    "next": ControlAction.NEXT,
}


@dataclass
class PlayerSelector:
    all_players: bool = False
    players: list[str] = field(default_factory=list)


# ── Player selection ──

async def daemon_active_players(registry: PlayerRegistry, path: str) -> list:
    """Live handles for the daemon's last active players, in enumeration order."""
    names = await fetch_last_active(path)
    if not names:
        return []
    return [h for h in registry.enumerate() if registry.identity(h) in names]


async def select_players(registry: PlayerRegistry, selector: PlayerSelector, path: str) -> list:
    if selector.all_players:
        return registry.enumerate()

    if selector.players:
        wanted = [name.lower() for name in selector.players]
        return [
            h for h in registry.enumerate()
            if any(name in registry.identity(h).lower() for name in wanted)
        ]

    try:
        players = await daemon_active_players(registry, path)
    except (TransportError, ProtocolError) as e:
        logger.debug("Daemon not usable, inspecting players directly: %s", e)
        players = []
    if players:
        return players

    players = [
        h for h in registry.enumerate()
        if registry.playback_status(h) == PlaybackStatus.PLAYING
    ]
    if not players:
        fallback = registry.find_active()
        if fallback is None:
            fallback = registry.find_first()
        if fallback is not None:
            players.append(fallback)
    return players


# ── Output formatting ──

def short_name(identity: str) -> str:
    """Last word of the identity, lowercased: "Mozilla Firefox" -> "firefox"."""
    return identity.split(" ")[-1].lower()


def format_value(value) -> str:
    if isinstance(value, bool):
        return "-"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return " ".join(value)
    return "-"


def metadata_lines(identity: str, metadata: dict, search_key: str | None = None) -> list[str]:
    lines = []
    for key in sorted(metadata):
        value = metadata[key]
        if search_key is not None:
            if search_key in key:
                lines.append(value if isinstance(value, str) else "-")
                break
        else:
            lines.append(f"{short_name(identity)} {key} {format_value(value)}")
    return lines


# ── Commands ──

def run_command(registry: PlayerRegistry, args: argparse.Namespace, players: list) -> None:
    if args.command in CONTROL_COMMANDS:
        action = CONTROL_COMMANDS[args.command]
        for player in players:
            registry.control(player, action)
    elif args.command == "status":
        print(registry.playback_status(players[0]).value)
    elif args.command == "metadata":
        for player in players:
            for line in metadata_lines(registry.identity(player), registry.metadata(player), args.key):
                print(line)
    elif args.command == "list":
        for player in players:
            print(json.dumps(registry.identity(player), ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mpris-ctl", description="Manage dbus mpris2 players")
    parser.add_argument("--all-players", action="store_true", help="Target every player")
    parser.add_argument("--player", action="append", default=[], metavar="NAME",
                        help="Target players whose name contains NAME (repeatable)")
    parser.add_argument("-s", "--socket", help="mpris-ctl-daemon socket path")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("play", help="Send play media command")
    sub.add_parser("pause", help="Send pause media command")
    sub.add_parser("toggle", help="Send play if paused, else send pause")
    sub.add_parser("prev", help="Switch to previous media/song")
    sub.add_parser("next", help="Switch to next media/song")
    metadata = sub.add_parser("metadata", help="Obtain metadata of the currently playing media")
    metadata.add_argument("key", nargs="?",
                          help="Key of the metadata to obtain, else all information will be obtained.")
    sub.add_parser("status", help="Obtain status of the currently active player")
    sub.add_parser("list", help="List all available players")
    return parser


def main(argv=None, registry: PlayerRegistry | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING,
        format="[%(asctime)s] %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    selector = PlayerSelector(all_players=args.all_players, players=args.player)
    try:
        registry = registry or create_player_registry()
        players = asyncio.run(select_players(registry, selector, socket_path(args.socket)))
        if not players:
            print(NO_PLAYERS_MESSAGE)
            return 0
        run_command(registry, args, players)
    except (MprisCtlError, ValueError) as e:
        print(f"mpris-ctl: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
