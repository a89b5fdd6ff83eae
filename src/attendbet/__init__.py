"""Attendance bet tracker - ledger, storage, API and CLI."""

__version__ = "0.1.0"
