"""mpris-ctl — control MPRIS media players, with a daemon that remembers the last active ones."""

__version__ = "0.1.0"
