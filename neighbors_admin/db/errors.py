"""Errors raised by the persistence layer."""

from __future__ import annotations


class PersistenceError(RuntimeError):
    """Raised when a Supabase query fails; the original client error is chained."""


class DatabaseNotConfiguredError(RuntimeError):
    """Raised when the Supabase URL or the key for a client handle is missing."""
