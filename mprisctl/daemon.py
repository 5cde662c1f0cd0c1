#!/usr/bin/env python3
# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
mpris-ctl active-player daemon (mpris-ctl-daemon)

Polls the MPRIS players on the session bus every 250 ms and remembers which
ones were playing last.  mpris-ctl asks it over a Unix socket when the user
gives no --player, so "pause" still reaches the player that was playing a
moment ago even after it stopped.

  socket  /tmp/mpris-ctl.sock   framed JSON, see lib/protocol.py
  status  http://127.0.0.1:<status.port>/status   (only when configured)
"""

import argparse
import asyncio
import logging
import signal
import sys

from aiohttp import web

from .lib.channel import ChannelServer
from .lib.config import cfg, load_config, socket_path
from .lib.errors import DaemonAlreadyRunning, RegistryUnavailable
from .lib.monitor import DEFAULT_INTERVAL, DEFAULT_TIMEOUT, ActivePlayerMonitor
from .lib.protocol import DEFAULT_MAX_FRAME_BYTES
from .lib.registry import PlayerRegistry, create_player_registry
from .lib.status import create_status_app, start_status_server
from .lib.tracker import ActiveSetTracker
from .lib.watchdog import sd_notify, watchdog_loop

logger = logging.getLogger("mpris-ctl-daemon")


class ActivePlayerDaemon:

    def __init__(self, registry: PlayerRegistry, path: str,
                 interval: float = DEFAULT_INTERVAL, timeout: float = DEFAULT_TIMEOUT,
                 max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES,
                 status_host: str = "127.0.0.1", status_port: int | None = None):
        self.tracker = ActiveSetTracker()
        self.monitor = ActivePlayerMonitor(registry, self.tracker, interval=interval, timeout=timeout)
        self.channel = ChannelServer(self.tracker, path, max_frame_bytes=max_frame_bytes)
        self.status_host = status_host
        self.status_port = status_port
        self.stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        self._status_runner: web.AppRunner | None = None
        self.failed = False

    def _spawn(self, coro, name: str):
        task = asyncio.create_task(coro, name=name)
        task.add_done_callback(self._on_task_done)
        self._tasks.append(task)

    def _on_task_done(self, task: asyncio.Task):
        if task.cancelled() or task.exception() is None:
            return
        logger.error("Task %s crashed — stopping", task.get_name(), exc_info=task.exception())
        self.failed = True
        self.stop_event.set()

    async def start(self):
        await self.channel.start()
        self._spawn(self.monitor.run(self.stop_event), "monitor")
        if self.status_port is not None:
            app = create_status_app(self.tracker, self.monitor, self.channel)
            self._status_runner = await start_status_server(app, self.status_host, self.status_port)
        self._spawn(watchdog_loop(), "watchdog")

    async def run(self) -> bool:
        """Convenience entry-point: start + wait for signal + stop.

        Returns False when a component task crashed.
        """
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.stop_event.set)
        try:
            await self.start()
            await self.stop_event.wait()
            logger.info("Shutting down")
        finally:
            await self.shutdown()
        return not self.failed

    async def shutdown(self):
        self.stop_event.set()
        sd_notify("STOPPING=1")
        await self.channel.stop()
        if self._status_runner:
            await self._status_runner.cleanup()
            self._status_runner = None
        for task in self._tasks:
            if not task.done():
                task.cancel()
        # Crashes were already logged by _on_task_done
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def _positive(name: str, value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a positive number, got {value!r}") from None
    if not number > 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return number


def _positive_float(text: str) -> float:
    try:
        return _positive("--interval", text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mpris-ctl-daemon",
        description="Remember the last active MPRIS players for mpris-ctl")
    parser.add_argument("-c", "--config", help="JSON config file")
    parser.add_argument("-s", "--socket", help="Unix socket path")
    parser.add_argument("--interval", type=_positive_float, help="Seconds between polls")
    parser.add_argument("--status-port", type=int, help="Serve GET /status on this local port")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    load_config(args.config)
    level = "DEBUG" if args.verbose else str(cfg("log", "level", default="INFO")).upper()
    if not isinstance(logging.getLevelName(level), int):
        sys.exit(f"mpris-ctl-daemon: unknown log level '{level}'")
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        interval = args.interval or _positive(
            "poll.interval", cfg("poll", "interval", default=DEFAULT_INTERVAL))
        timeout = _positive("poll.timeout", cfg("poll", "timeout", default=DEFAULT_TIMEOUT))
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(1)

    try:
        registry = create_player_registry()
    except (ValueError, RegistryUnavailable) as e:
        logger.error("%s", e)
        sys.exit(1)

    daemon = ActivePlayerDaemon(
        registry,
        socket_path(args.socket),
        interval=interval,
        timeout=timeout,
        max_frame_bytes=int(cfg("socket", "max_frame_bytes", default=DEFAULT_MAX_FRAME_BYTES)),
        status_host=cfg("status", "host", default="127.0.0.1"),
        status_port=args.status_port or _optional_int(cfg("status", "port")),
    )
    try:
        ok = asyncio.run(daemon.run())
    except DaemonAlreadyRunning as e:
        logger.error("%s", e)
        sys.exit(1)
    except OSError as e:
        logger.error("Could not start: %s", e)
        sys.exit(1)
    logger.info("Done.")
    if not ok:
        sys.exit(1)


def _optional_int(value) -> int | None:
    return int(value) if value is not None else None


if __name__ == "__main__":
    main()
