# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Optional HTTP status endpoint for the daemon (loopback only).

  GET /health  — liveness probe
  GET /status  — tracker, monitor and channel counters

Disabled unless ``status.port`` is configured or --status-port is given.
"""

import logging
import time

from aiohttp import web

from .channel import ChannelServer
from .monitor import ActivePlayerMonitor
from .tracker import ActiveSetTracker

logger = logging.getLogger(__name__)

TRACKER_KEY = web.AppKey("tracker", ActiveSetTracker)
MONITOR_KEY = web.AppKey("monitor", ActivePlayerMonitor)
CHANNEL_KEY = web.AppKey("channel", ChannelServer)


async def handle_health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def handle_status(request: web.Request) -> web.Response:
    """GET /status — current active players and daemon counters."""
    tracker = request.app[TRACKER_KEY]
    monitor = request.app[MONITOR_KEY]
    channel = request.app[CHANNEL_KEY]
    last = tracker.last_refresh
    return web.json_response({
        "players": tracker.snapshot(),
        "refreshes": tracker.refreshes,
        "replacements": tracker.replacements,
        "last_refresh_age": round(time.monotonic() - last, 3) if last is not None else None,
        "registry_available": monitor.registry_available,
        "last_error": monitor.last_error,
        "clients": channel.clients,
        "connections": channel.connections,
        "socket": channel.path,
    })


def create_status_app(tracker: ActiveSetTracker, monitor: ActivePlayerMonitor,
                      channel: ChannelServer) -> web.Application:
    app = web.Application()
    app[TRACKER_KEY] = tracker
    app[MONITOR_KEY] = monitor
    app[CHANNEL_KEY] = channel
    app.router.add_get("/health", handle_health)
    app.router.add_get("/status", handle_status)
    return app


async def start_status_server(app: web.Application, host: str, port: int) -> web.AppRunner:
    runner = web.AppRunner(app, access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("Status endpoint on http://%s:%d/status", host, port)
    return runner
