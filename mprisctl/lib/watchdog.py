# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Systemd notify/watchdog heartbeat for the daemon.

Sends READY=1 once, then WATCHDOG=1 at regular intervals, to the systemd
notify socket.  Silently no-ops when NOTIFY_SOCKET is unset (running from a
terminal or under a plain user session).

Usage:
    from mprisctl.lib.watchdog import watchdog_loop
    asyncio.create_task(watchdog_loop())
"""

import asyncio
import logging
import os
import socket

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 20.0


def sd_notify(msg: str) -> bool:
    """Send a notification message to the systemd notify socket.

    Returns True when a datagram was sent.
    """
    addr = os.environ.get("NOTIFY_SOCKET")
    if not addr:
        return False
    if addr[0] == "@":
        addr = "\0" + addr[1:]
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
    try:
        sock.sendto(msg.encode(), addr)
    except OSError as e:
        logger.debug("sd_notify(%s) failed: %s", msg.split("\n", 1)[0], e)
        return False
    finally:
        sock.close()
    return True


def watchdog_interval() -> float:
    """Half of $WATCHDOG_USEC when systemd set one, else DEFAULT_INTERVAL."""
    usec = os.environ.get("WATCHDOG_USEC")
    try:
        return max(int(usec) / 2_000_000, 0.5) if usec else DEFAULT_INTERVAL
    except ValueError:
        logger.warning("Ignoring malformed WATCHDOG_USEC=%r", usec)
        return DEFAULT_INTERVAL


async def watchdog_loop(interval: float | None = None):
    """Send WATCHDOG=1 every *interval* seconds.  Call as asyncio.create_task().

    Also sends READY=1 on first invocation so systemd knows the daemon
    has finished startup (requires Type=notify in the unit file).
    """
    interval = interval or watchdog_interval()
    sd_notify("READY=1")
    logger.info("Watchdog started (interval=%.1fs)", interval)
    while True:
        sd_notify("WATCHDOG=1")
        await asyncio.sleep(interval)
