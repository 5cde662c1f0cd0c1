"""Tests for the systemd notify helpers."""

import asyncio
import os
import socket

import pytest

from mprisctl.lib import watchdog
from mprisctl.lib.watchdog import sd_notify, watchdog_interval, watchdog_loop


@pytest.fixture
def notify_socket(tmp_path, monkeypatch):
    path = str(tmp_path / "notify")
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
    sock.bind(path)
    sock.settimeout(1.0)
    monkeypatch.setenv("NOTIFY_SOCKET", path)
    yield sock
    sock.close()


def test_no_notify_socket_is_a_noop():
    assert sd_notify("READY=1") is False


def test_message_is_delivered(notify_socket):
    assert sd_notify("READY=1") is True
    assert notify_socket.recv(64) == b"READY=1"


def test_abstract_namespace_address(monkeypatch):
    name = f"mpris-ctl-test-{os.getpid()}"
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
    sock.bind("\0" + name)
    sock.settimeout(1.0)
    try:
        monkeypatch.setenv("NOTIFY_SOCKET", "@" + name)
        assert sd_notify("WATCHDOG=1") is True
        assert sock.recv(64) == b"WATCHDOG=1"
    finally:
        sock.close()


def test_unreachable_socket_reports_failure(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTIFY_SOCKET", str(tmp_path / "gone"))
    assert sd_notify("READY=1") is False


@pytest.mark.parametrize("usec, expected", [
    (None, watchdog.DEFAULT_INTERVAL),
    ("30000000", 15.0),
    ("100", 0.5),
    ("soon", watchdog.DEFAULT_INTERVAL),
])
def test_interval_is_half_the_systemd_timeout(monkeypatch, usec, expected):
    if usec is not None:
        monkeypatch.setenv("WATCHDOG_USEC", usec)
    assert watchdog_interval() == expected


@pytest.mark.asyncio
async def test_loop_sends_ready_then_heartbeats(notify_socket):
    notify_socket.setblocking(False)
    task = asyncio.create_task(watchdog_loop(interval=0.01))
    await asyncio.sleep(0.1)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    messages = []
    while True:
        try:
            messages.append(notify_socket.recv(64))
        except BlockingIOError:
            break
    assert messages[0] == b"READY=1"
    assert messages.count(b"WATCHDOG=1") >= 2
