# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
ActivePlayerMonitor — the polling loop that feeds ActiveSetTracker.

Every tick enumerates the sessions, reads identity and playback status of
each one in a worker thread, and hands the result to the tracker.  A session
that fails is logged and left out; the others still count.  When the
registry cannot be reached at all, or the tick runs past its timeout, the
tick is skipped and retried on the next interval.
"""

import asyncio
import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor

from .errors import RegistryUnavailable, SessionError
from .registry import PlaybackStatus, PlayerRegistry
from .tracker import ActiveSetTracker, RefreshOutcome

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.25
DEFAULT_TIMEOUT = 2.0


class ActivePlayerMonitor:

    def __init__(self, registry: PlayerRegistry, tracker: ActiveSetTracker,
                 interval: float = DEFAULT_INTERVAL, timeout: float = DEFAULT_TIMEOUT):
        self.registry = registry
        self.tracker = tracker
        self.interval = interval
        self.timeout = timeout
        self.registry_available: bool | None = None
        self.last_error: str | None = None
        # Blocking D-Bus calls; a hung call holds one worker until it returns
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="mpris-poll")

    def _collect(self) -> tuple[list[tuple[str, PlaybackStatus]], list[SessionError]]:
        """Enumerate and read every session.  Runs in the executor."""
        candidates = []
        errors = []
        for handle in self.registry.enumerate():
            try:
                candidates.append(
                    (self.registry.identity(handle), self.registry.playback_status(handle)))
            except SessionError as e:
                errors.append(e)
        if errors and not candidates:
            raise RegistryUnavailable(
                f"all {len(errors)} sessions failed; first error: {errors[0]}")
        return candidates, errors

    async def tick(self) -> RefreshOutcome:
        loop = asyncio.get_running_loop()
        try:
            candidates, errors = await asyncio.wait_for(
                loop.run_in_executor(self._executor, self._collect), self.timeout)
        except asyncio.TimeoutError:
            return self._unavailable(
                RegistryUnavailable(f"registry did not answer within {self.timeout:.1f}s"))
        except RegistryUnavailable as e:
            return self._unavailable(e)

        for error in errors:
            logger.warning("Could not read player %s", error)
        outcome = self.tracker.refresh(candidates)
        if self.registry_available is False:
            logger.info("Registry reachable again")
        self.registry_available = True
        self.last_error = str(errors[0]) if errors else None
        if outcome.replaced:
            logger.debug("Active players: %s", ", ".join(outcome.players))
        return dataclasses.replace(outcome, errors=tuple(errors))

    def _unavailable(self, error: RegistryUnavailable) -> RefreshOutcome:
        message = str(error)
        # Once per outage at WARNING; repeats of the same error only at DEBUG
        if self.registry_available is not False or message != self.last_error:
            logger.warning("Registry unavailable: %s", message)
        else:
            logger.debug("Registry still unavailable: %s", message)
        self.registry_available = False
        self.last_error = message
        return RefreshOutcome(
            players=tuple(self.tracker.snapshot()), replaced=False,
            errors=(error,), registry_unavailable=True)

    async def run(self, stop_event: asyncio.Event):
        """Tick every interval until *stop_event* is set."""
        loop = asyncio.get_running_loop()
        logger.info("Polling players every %.0f ms", self.interval * 1000)
        next_tick = loop.time()
        try:
            while not stop_event.is_set():
                try:
                    await self.tick()
                except Exception:
                    logger.exception("Unexpected error while polling players")
                next_tick += self.interval
                delay = next_tick - loop.time()
                if delay < 0:
                    # Fell behind (slow registry) — restart the schedule from now
                    next_tick = loop.time()
                    delay = 0
                try:
                    await asyncio.wait_for(stop_event.wait(), delay)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._executor.shutdown(wait=False, cancel_futures=True)
            logger.info("Player polling stopped")
