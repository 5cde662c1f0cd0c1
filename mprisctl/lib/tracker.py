# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
ActiveSetTracker — the daemon's "last known active players".

The active set is the most recent non-empty list of Playing identities, in
enumeration order.  It is only ever replaced wholesale, and an empty poll
never erases it: a stale answer is more useful to the CLI than none.

One instance is created by the daemon and handed to the monitor (writer),
the channel server and the status app (readers).  The lock is held only for
the tuple swap or the copy out, never across an await.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Iterable

from .registry import PlaybackStatus


@dataclass(frozen=True)
class RefreshOutcome:
    players: tuple[str, ...]
    replaced: bool
    errors: tuple[Exception, ...] = field(default=())
    registry_unavailable: bool = False


class ActiveSetTracker:

    def __init__(self):
        self._lock = threading.Lock()
        self._players: tuple[str, ...] = ()
        self.refreshes = 0
        self.replacements = 0
        self.last_refresh: float | None = None

    def refresh(self, candidates: Iterable[tuple[str, PlaybackStatus]]) -> RefreshOutcome:
        """Replace the active set with the Playing candidates, if there are any."""
        playing = tuple(
            identity for identity, status in candidates
            if status == PlaybackStatus.PLAYING
        )
        with self._lock:
            self.refreshes += 1
            self.last_refresh = time.monotonic()
            if playing:
                self._players = playing
                self.replacements += 1
            current = self._players
        return RefreshOutcome(players=current, replaced=bool(playing))

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self._players)
