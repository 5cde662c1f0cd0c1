# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
MPRIS2 registry — media players on the D-Bus session bus.

Every bus name starting with ``org.mpris.MediaPlayer2.`` is one session.
The object at ``/org/mpris/MediaPlayer2`` exposes both the root interface
(Identity) and the Player interface (PlaybackStatus, Metadata, Play, ...);
pydbus merges them into a single proxy.

pydbus talks to the bus through PyGObject.  Both are imported on first
connect so the rest of mpris-ctl can be imported (and tested) without them.
"""

import logging
from dataclasses import dataclass, field

from ..lib.errors import ControlError, RegistryUnavailable, SessionError
from ..lib.registry import ControlAction, MetadataValue, PlaybackStatus, PlayerRegistry

logger = logging.getLogger(__name__)

MPRIS_PREFIX = "org.mpris.MediaPlayer2."
MPRIS_PATH = "/org/mpris/MediaPlayer2"

_CONTROL_METHODS = {
    ControlAction.PLAY: "Play",
    ControlAction.PAUSE: "Pause",
    ControlAction.TOGGLE: "PlayPause",
    ControlAction.NEXT: "Next",
    ControlAction.PREVIOUS: "Previous",
}


@dataclass
class MprisSession:
    bus_name: str
    proxy: object = field(repr=False)


class MprisRegistry(PlayerRegistry):
    """Session registry backed by the D-Bus session bus."""

    def __init__(self, bus=None):
        self._bus = bus
        # Bus names whose introspection failed on the last enumerate
        self._unreachable: set[str] = set()

    def _connect(self):
        if self._bus is None:
            try:
                from pydbus import SessionBus
                self._bus = SessionBus()
            except Exception as e:
                raise RegistryUnavailable(f"Could not connect to the D-Bus session bus: {e}") from e
        return self._bus

    def enumerate(self) -> list[MprisSession]:
        bus = self._connect()
        try:
            names = [n for n in bus.get(".DBus").ListNames() if n.startswith(MPRIS_PREFIX)]
        except Exception as e:
            # Drop the connection so the next call reconnects (bus restart, logout)
            self._bus = None
            raise RegistryUnavailable(f"Could not list bus names: {e}") from e

        sessions = []
        unreachable = set()
        for name in sorted(names):
            try:
                sessions.append(MprisSession(name, bus.get(name, MPRIS_PATH)))
            except Exception as e:
                unreachable.add(name)
                # Warn once per failure streak; a player quitting mid-poll lands here too
                if name in self._unreachable:
                    logger.debug("Skipping %s: %s", name, e)
                else:
                    logger.warning("Skipping %s, introspection failed: %s", name, e)
        self._unreachable = unreachable
        return sessions

    def identity(self, handle: MprisSession) -> str:
        try:
            return str(handle.proxy.Identity)
        except Exception as e:
            raise SessionError(handle.bus_name, f"could not read Identity: {e}") from e

    def playback_status(self, handle: MprisSession) -> PlaybackStatus:
        try:
            raw = handle.proxy.PlaybackStatus
        except Exception as e:
            raise SessionError(handle.bus_name, f"could not read PlaybackStatus: {e}") from e
        try:
            return PlaybackStatus(raw)
        except ValueError:
            raise SessionError(handle.bus_name, f"unexpected PlaybackStatus {raw!r}") from None

    def control(self, handle: MprisSession, action: ControlAction) -> None:
        method = _CONTROL_METHODS[ControlAction(action)]
        try:
            getattr(handle.proxy, method)()
        except Exception as e:
            raise ControlError(handle.bus_name, f"{method} failed: {e}") from e
        logger.debug("%s -> %s", handle.bus_name, method)

    def metadata(self, handle: MprisSession) -> dict[str, MetadataValue]:
        try:
            return dict(handle.proxy.Metadata)
        except Exception as e:
            raise SessionError(handle.bus_name, f"could not read Metadata: {e}") from e
