"""Shared plumbing for mpris-ctl and mpris-ctl-daemon."""
