# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Local channel between mpris-ctl and the daemon (Unix domain socket).

Server side — ChannelServer:

    server = ChannelServer(tracker, "/tmp/mpris-ctl.sock")
    await server.start()
    ...
    await server.stop()

Every accepted connection gets its own task and may send any number of
requests; each one is answered in order until the peer hangs up.  A frame
that cannot be read or decoded ends that connection only.

Client side — fetch_last_active():

    players = await fetch_last_active("/tmp/mpris-ctl.sock")

raises TransportError when the daemon cannot be reached and ProtocolError
when it answers with something unreadable.
"""

import asyncio
import errno
import itertools
import logging
import os
import stat

from .errors import DaemonAlreadyRunning, ProtocolError, TransportError
from .protocol import (
    DEFAULT_MAX_FRAME_BYTES, GetLastActive, NoneResponse, Players, Request, Response,
    decode_request, decode_response, encode_request, encode_response, read_frame, write_frame,
)
from .tracker import ActiveSetTracker

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 2.0
CLIENT_TIMEOUT = 1.0


class ChannelServer:

    def __init__(self, tracker: ActiveSetTracker, path: str,
                 max_frame_bytes: int = DEFAULT_MAX_FRAME_BYTES):
        self.tracker = tracker
        self.path = path
        self.max_frame_bytes = max_frame_bytes
        self.connections = 0
        self._server: asyncio.AbstractServer | None = None
        self._clients: dict[int, asyncio.StreamWriter] = {}
        self._ids = itertools.count(1)

    @property
    def clients(self) -> int:
        return len(self._clients)

    # ── Lifecycle ──

    async def start(self):
        await self._remove_stale_socket()
        self._server = await asyncio.start_unix_server(self._handle_client, path=self.path)
        os.chmod(self.path, 0o600)
        logger.info("Listening on %s", self.path)

    async def stop(self):
        if self._server is None:
            return
        self._server.close()
        for writer in list(self._clients.values()):
            writer.close()
        await self._server.wait_closed()
        self._server = None
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        logger.info("Channel on %s closed", self.path)

    async def _remove_stale_socket(self):
        """Clear a leftover socket file, refusing to steal one a live daemon owns."""
        try:
            mode = os.stat(self.path).st_mode
        except FileNotFoundError:
            return
        if not stat.S_ISSOCK(mode):
            raise OSError(errno.EEXIST, f"{self.path} exists and is not a socket")

        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(self.path), PROBE_TIMEOUT)
        except (ConnectionRefusedError, FileNotFoundError, asyncio.TimeoutError) as e:
            logger.warning("Removing stale socket %s (%s)", self.path, type(e).__name__)
            try:
                os.unlink(self.path)
            except FileNotFoundError:
                pass
            return
        writer.close()
        await writer.wait_closed()
        raise DaemonAlreadyRunning(f"a daemon is already listening on {self.path}")

    # ── Per-connection protocol loop ──

    def dispatch(self, request: Request) -> Response:
        if isinstance(request, GetLastActive):
            return Players(self.tracker.snapshot())
        logger.info("Answering unknown request %r with None", getattr(request, "tag", request))
        return NoneResponse()

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        conn_id = next(self._ids)
        self.connections += 1
        self._clients[conn_id] = writer
        logger.debug("Client #%d connected (%d open)", conn_id, len(self._clients))
        try:
            while True:
                try:
                    payload = await read_frame(reader, self.max_frame_bytes)
                except (asyncio.IncompleteReadError, OSError) as e:
                    logger.warning("Could not read from client #%d: %s", conn_id, e)
                    break
                except ProtocolError as e:
                    logger.warning("Dropping client #%d: %s", conn_id, e)
                    break
                if payload is None:
                    break

                try:
                    request = decode_request(payload)
                except ProtocolError as e:
                    logger.warning("Could not parse the frame from client #%d: %s", conn_id, e)
                    break

                response = self.dispatch(request)
                try:
                    await write_frame(writer, encode_response(response))
                except OSError as e:
                    logger.warning("Could not send to client #%d: %s", conn_id, e)
                    break
        finally:
            self._clients.pop(conn_id, None)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
            logger.debug("Client #%d disconnected (%d open)", conn_id, len(self._clients))


# ── Client ──

async def request(path: str, message: Request, timeout: float = CLIENT_TIMEOUT) -> Response:
    """Send one request to the daemon at *path* and return its response."""
    try:
        reader, writer = await asyncio.wait_for(asyncio.open_unix_connection(path), timeout)
    except (OSError, asyncio.TimeoutError) as e:
        raise TransportError(f"could not connect to {path}: {e}") from e
    try:
        await asyncio.wait_for(write_frame(writer, encode_request(message)), timeout)
        payload = await asyncio.wait_for(read_frame(reader), timeout)
    except (OSError, asyncio.IncompleteReadError, asyncio.TimeoutError) as e:
        raise TransportError(f"could not talk to {path}: {e}") from e
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
    if payload is None:
        raise TransportError(f"{path} closed the connection without answering")
    return decode_response(payload)


async def fetch_last_active(path: str, timeout: float = CLIENT_TIMEOUT) -> list[str]:
    """Ask the daemon for the last known active players ([] when it has none)."""
    response = await request(path, GetLastActive(), timeout)
    if isinstance(response, Players):
        return list(response.players)
    return []
