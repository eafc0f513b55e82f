"""Bridge between an in-memory cache's hooks and the persisted blob."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from identity.cache._protocols import NotifyingTokenCache, TokenCacheNotificationArgs
from identity.cache.internal.secret_store import SecretStore

log = logging.getLogger(__name__)


class CacheNotificationBridge:
    """Loads the persisted blob before reads and persists it after writes.

    Both handlers may fire any number of times per operation. Failures never
    reach the hosting client: a broken store leaves the in-memory cache usable
    for the current process, only durability is lost.

    Writes replace the whole blob. Two processes writing concurrently are
    last-writer-wins; the loser's update survives only in its own memory.
    """

    def __init__(self, store: SecretStore, on_cache_written: Optional[Callable[[bytes], None]] = None) -> None:
        self.store = store
        self._on_cache_written = on_cache_written

    def before_read(self, args: TokenCacheNotificationArgs) -> None:
        try:
            data = self.store.read_all()
            if data is None:
                log.debug("No persisted token cache at %s yet", self.store.path)
                return
            args.cache.deserialize(data)
        except Exception:
            log.warning(
                "Failed to load persisted token cache from %s, continuing without it", self.store.path, exc_info=True
            )

    def before_write(self, args: TokenCacheNotificationArgs) -> None:
        if not args.has_state_changed:
            return
        try:
            data = args.cache.serialize()
            self.store.write_all(data)
        except Exception:
            log.warning("Failed to persist token cache to %s", self.store.path, exc_info=True)
            return
        if self._on_cache_written is not None:
            try:
                self._on_cache_written(data)
            except Exception:
                log.warning("on_cache_written callback failed", exc_info=True)

    def install(self, cache: NotifyingTokenCache) -> None:
        cache.set_before_access(self.before_read)
        cache.set_before_write(self.before_write)
