"""Registrar wiring in-memory token caches to the shared persisted cache."""

from __future__ import annotations

import logging
import threading
import weakref
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional, Union

from identity.cache import DEFAULT_CLIENT_ID
from identity.cache._protocols import NotifyingTokenCache
from identity.cache.bridge import CacheNotificationBridge
from identity.cache.descriptor import SecretStoreDescriptor, build_descriptor
from identity.cache.errors import ClearFailure
from identity.cache.internal.secret_store import STORE_KINDS, open_store
from identity.cache.internal.verify import verify_persistence
from identity.cache.location import CacheLocation
from identity.cache.migration import MigrationCoordinator
from identity.cache.settings import NO_MIGRATION, CacheMigrationSettings, MigrationPolicy, NoMigration

if TYPE_CHECKING:
    import os
    from typing import Self

    from identity.cache.config import CacheConfig

log = logging.getLogger(__name__)


class TokenCacheRegistrar(ABC):
    @abstractmethod
    def register_cache(self, cache: NotifyingTokenCache) -> None:
        """Attach persistence to an in-memory token cache."""

    @abstractmethod
    def clear_cache(self) -> None:
        """Remove the persisted cache and empty the attached in-memory caches."""


class SharedTokenCacheClientFactory(TokenCacheRegistrar):
    """Shares one persisted token cache between all processes of the user.

    The secret store is verified in the constructor, which raises
    PersistenceUnavailable when the host has no usable OS secret store.

    With a CacheMigrationSettings policy, the first registered cache loads the
    migration blob on its first access, before the persisted cache takes over.
    The blob is consumed once per factory; caches registered later start
    directly with the persisted cache.

    Example:
        legacy = CacheMigrationSettings.from_file("~/.cache/identity-cache/tokens.json")
        factory = SharedTokenCacheClientFactory(legacy)
        cache = InMemoryTokenCache()
        factory.register_cache(cache)
    """

    def __init__(
        self,
        migration: MigrationPolicy = NO_MIGRATION,
        *,
        client_id: str = DEFAULT_CLIENT_ID,
        location: Optional[Union[str, os.PathLike, CacheLocation]] = None,
        store_kind: str = "keyring",
        on_cache_written: Optional[Callable[[bytes], None]] = None,
    ):
        """
        Args:
            migration: NO_MIGRATION, or the serialized cache to migrate on first access.
            client_id: Application identifier the persisted cache is bound to.
            location: Cache file path. Defaults to ~/.IdentityService/msal.cache.
            store_kind: "keyring" (encrypted, default) or "file" (unencrypted, explicit opt-in).
            on_cache_written: Called with the serialized cache after every successful write.
        """
        if not isinstance(migration, (NoMigration, CacheMigrationSettings)):
            raise TypeError(f"Unsupported migration policy: {type(migration)}")
        if store_kind not in STORE_KINDS:
            raise ValueError(f"Unknown store kind: {store_kind}, expected one of {', '.join(STORE_KINDS)}")

        self.client_id = client_id
        self.location = CacheLocation.of(location)
        self.store_kind = store_kind
        if store_kind == "file":
            log.warning("Token cache at %s is stored unencrypted", self.location.path)

        verify_persistence(self.location, store_kind)

        self._migration: MigrationPolicy = migration
        self._on_cache_written = on_cache_written
        self._caches: weakref.WeakSet = weakref.WeakSet()
        self.migration_coordinator: Optional[MigrationCoordinator] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CacheConfig, migration: MigrationPolicy = NO_MIGRATION, **kwargs) -> Self:
        """Create a factory from a loaded CacheConfig.

        Args:
            config: Configuration, see identity.cache.config.load_cache_config.
            migration: Migration policy, as for the constructor.
            **kwargs: Additional arguments passed to the constructor (e.g. on_cache_written).
        """
        kwargs.setdefault("client_id", config.client_id)
        kwargs.setdefault("store_kind", config.store_kind)
        kwargs["location"] = config.cache_path
        return cls(migration, **kwargs)

    @property
    def descriptor(self) -> SecretStoreDescriptor:
        return build_descriptor(self.client_id, self.location)

    def open_store(self):
        return open_store(self.descriptor, self.store_kind)

    def register_cache(self, cache: NotifyingTokenCache) -> None:
        bridge = CacheNotificationBridge(self.open_store(), self._on_cache_written)
        with self._lock:
            migration, self._migration = self._migration, NO_MIGRATION
            self._caches.add(cache)
        if isinstance(migration, CacheMigrationSettings):
            self.migration_coordinator = MigrationCoordinator(migration, bridge)
            self.migration_coordinator.install(cache)
            log.debug("Registered token cache with pending %s migration", migration.format)
        else:
            bridge.install(cache)
            log.debug("Registered token cache at %s", self.location.path)

    def clear_cache(self) -> None:
        error = None
        try:
            self.open_store().clear()
            log.debug("Cleared shared token cache at %s", self.location.path)
        except Exception as e:
            log.error("Failed to clear shared token cache at %s: %s", self.location.path, e)
            error = e

        for cache in list(self._caches):
            try:
                cache.clear()
            except Exception:
                log.warning("Failed to clear in-memory token cache", exc_info=True)

        if error is not None:
            raise ClearFailure(f"Failed to clear shared token cache at {self.location.path}: {error}") from error
