"""Exceptions raised by the shared token cache."""

from __future__ import annotations


class TokenCacheError(Exception):
    """Base class for all token cache errors."""


class PersistenceUnavailable(TokenCacheError):
    """No usable OS secret store exists on this host.

    Raised while constructing the cache factory. Callers must not fall back to
    unprotected storage.
    """


class MigrationFailure(TokenCacheError):
    """The one-time migration blob could not be loaded.

    Never propagated; it is only logged. ``reason`` is one of
    ``"malformed data"``, ``"I/O failure"`` or ``"unexpected"``.
    """

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class StoreError(TokenCacheError):
    """A secret store operation failed."""


class StoreReadFailure(StoreError):
    pass


class StoreWriteFailure(StoreError):
    pass


class ClearFailure(StoreError):
    """Clearing the persisted cache failed. Surfaced to the caller of clear."""
