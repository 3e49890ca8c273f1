"""Store error taxonomy."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for every error raised by the chat store."""


class InvalidInput(StoreError, ValueError):
    pass


class DuplicatePhone(StoreError):
    pass


class DuplicateContact(StoreError):
    pass


class NotFound(StoreError):
    pass


class PersistenceFailure(StoreError):
    """The store document could not be read from or written to disk."""
