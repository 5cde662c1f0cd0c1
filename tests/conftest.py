"""Shared fixtures: an in-memory player registry standing in for D-Bus."""

import threading
from dataclasses import dataclass, field

import pytest

from mprisctl.lib import config
from mprisctl.lib.errors import ControlError, RegistryUnavailable, SessionError
from mprisctl.lib.registry import ControlAction, PlaybackStatus, PlayerRegistry


@dataclass
class FakeSession:
    name: str
    status: PlaybackStatus = PlaybackStatus.STOPPED
    metadata: dict = field(default_factory=dict)
    broken: bool = False

    @property
    def bus_name(self) -> str:
        return "org.mpris.MediaPlayer2." + self.name.lower().replace(" ", "_")


class FakeRegistry(PlayerRegistry):

    def __init__(self, *sessions: FakeSession):
        self.sessions = list(sessions)
        self.unavailable = False
        self.block: threading.Event | None = None
        self.controls: list[tuple[str, ControlAction]] = []

    def set(self, *sessions: FakeSession):
        self.sessions = list(sessions)

    def enumerate(self) -> list:
        if self.block is not None:
            self.block.wait(5)
        if self.unavailable:
            raise RegistryUnavailable("session bus is gone")
        return list(self.sessions)

    def identity(self, handle: FakeSession) -> str:
        if handle.broken:
            raise SessionError(handle.bus_name, "no Identity")
        return handle.name

    def playback_status(self, handle: FakeSession) -> PlaybackStatus:
        if handle.broken:
            raise SessionError(handle.bus_name, "no PlaybackStatus")
        return handle.status

    def control(self, handle: FakeSession, action: ControlAction) -> None:
        if handle.broken:
            raise ControlError(handle.bus_name, f"{action.value} failed")
        self.controls.append((handle.name, action))

    def metadata(self, handle: FakeSession) -> dict:
        return dict(handle.metadata)


def playing(name, **kwargs) -> FakeSession:
    return FakeSession(name, PlaybackStatus.PLAYING, **kwargs)


def paused(name, **kwargs) -> FakeSession:
    return FakeSession(name, PlaybackStatus.PAUSED, **kwargs)


def stopped(name, **kwargs) -> FakeSession:
    return FakeSession(name, PlaybackStatus.STOPPED, **kwargs)


@pytest.fixture(autouse=True)
def empty_config(monkeypatch):
    """Never pick up a config.json or socket override from the machine running the tests."""
    monkeypatch.setattr(config, "_config", {})
    monkeypatch.delenv(config.SOCKET_ENV, raising=False)
    monkeypatch.delenv("NOTIFY_SOCKET", raising=False)
    monkeypatch.delenv("WATCHDOG_USEC", raising=False)


@pytest.fixture
def socket_file(tmp_path):
    return str(tmp_path / "ctl.sock")
