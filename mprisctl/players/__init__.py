"""
Players — registry backends for desktop media sessions.

A backend does NOT play anything.  It finds the media sessions on the
desktop (a browser tab, a music app, a video player) and lets the daemon and
the CLI read their identity, playback status and metadata, and send them
play/pause/next/previous.

Current backends:
  mpris.py  — MPRIS2 players on the D-Bus session bus (via pydbus)
"""
