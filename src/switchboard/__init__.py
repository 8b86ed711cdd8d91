"""Switchboard — keyword-routed delegation across specialist handlers."""

__version__ = "0.1.0"
