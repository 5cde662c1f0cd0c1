# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Error types shared by the daemon, the channel and the CLI.

Registry errors (RegistryUnavailable, SessionError, ControlError) come from
a PlayerRegistry backend.  Channel errors (TransportError, ProtocolError)
come from the framed socket protocol.  The daemon absorbs all of them at
their own boundary; the CLI lets registry errors abort the command.
"""


class MprisCtlError(Exception):
    """Base class for every error raised by mpris-ctl."""


class RegistryUnavailable(MprisCtlError):
    """The session-enumeration service cannot be reached at all."""


class SessionError(MprisCtlError):
    """One session could not report its identity, status or metadata."""

    def __init__(self, bus_name: str, message: str):
        super().__init__(f"{bus_name}: {message}")
        self.bus_name = bus_name


class ControlError(MprisCtlError):
    """A playback command was rejected by, or could not reach, a session."""

    def __init__(self, bus_name: str, message: str):
        super().__init__(f"{bus_name}: {message}")
        self.bus_name = bus_name


class TransportError(MprisCtlError):
    """Connect, read or write failure on the local channel."""


class ProtocolError(MprisCtlError):
    """Oversized frame or undecodable payload."""


class DaemonAlreadyRunning(MprisCtlError):
    """A live daemon already answers on the socket path."""
