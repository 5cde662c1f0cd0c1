# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
PlayerRegistry — the interface every session backend must implement.

A registry enumerates the media sessions on the desktop and lets callers
read and control them.  Calls are blocking (D-Bus round-trips), so the
daemon runs them in a worker thread; the CLI calls them directly.

Handles are opaque to callers: whatever ``enumerate()`` returns is passed
back into the other methods unchanged.  A failure on one handle never
invalidates the others.

Usage:
    from mprisctl.lib.registry import create_player_registry

    registry = create_player_registry()
    for handle in registry.enumerate():
        print(registry.identity(handle), registry.playback_status(handle))
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from .config import cfg
from .errors import SessionError

logger = logging.getLogger(__name__)

MetadataValue = str | list[str] | int | float


class PlaybackStatus(str, Enum):
    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"


class ControlAction(str, Enum):
    PLAY = "play"
    PAUSE = "pause"
    TOGGLE = "toggle"
    NEXT = "next"
    PREVIOUS = "previous"


class PlayerRegistry(ABC):
    """Interface every session backend must implement."""

    @abstractmethod
    def enumerate(self) -> list:
        """Return a handle per session.  Raises RegistryUnavailable."""

    @abstractmethod
    def identity(self, handle) -> str: ...

    @abstractmethod
    def playback_status(self, handle) -> PlaybackStatus: ...

    @abstractmethod
    def control(self, handle, action: ControlAction) -> None: ...

    @abstractmethod
    def metadata(self, handle) -> dict[str, MetadataValue]: ...

    # -- Optional: override in backends with a cheaper notion of "active" --

    def find_active(self):
        """Return the first Playing session, else the first Paused one, else None.

        Sessions that fail to report a status are skipped.
        """
        paused = None
        for handle in self.enumerate():
            try:
                status = self.playback_status(handle)
            except SessionError as e:
                logger.debug("Skipping session while looking for active player: %s", e)
                continue
            if status == PlaybackStatus.PLAYING:
                return handle
            if status == PlaybackStatus.PAUSED and paused is None:
                paused = handle
        return paused

    def find_first(self):
        handles = self.enumerate()
        return handles[0] if handles else None


def create_player_registry(kind: str | None = None) -> PlayerRegistry:
    """Create the registry backend named by *kind* or config ``registry.type``.

    Supported types:
      - ``mpris`` – MPRIS2 players on the D-Bus session bus (default)
    """
    kind = (kind or cfg("registry", "type", default="mpris")).lower()
    if kind == "mpris":
        from ..players.mpris import MprisRegistry
        return MprisRegistry()
    raise ValueError(f"Unknown registry type '{kind}'")
