"""One-time migration of a serialized cache into the in-memory cache.

The coordinator is installed as the before-access handler. The first event
loads the migration blob, then installs the persistent bridge in its place
whatever the outcome and merges the persisted cache on top, so the first write
keeps entries saved by other processes. Later events go straight to the bridge.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Optional

from identity.cache._protocols import NotifyingTokenCache, TokenCacheNotificationArgs
from identity.cache.bridge import CacheNotificationBridge
from identity.cache.errors import MigrationFailure
from identity.cache.settings import CacheFormat, CacheMigrationSettings

log = logging.getLogger(__name__)


class MigrationState(enum.Enum):
    PENDING = "pending"
    MIGRATING = "migrating"
    DONE = "done"


def classify_migration_error(error: BaseException) -> str:
    # UnicodeDecodeError and JSONDecodeError are both ValueErrors
    if isinstance(error, (ValueError, TypeError, KeyError)):
        return "malformed data"
    if isinstance(error, OSError):
        return "I/O failure"
    return "unexpected"


def deserialize_migration_data(cache: NotifyingTokenCache, settings: CacheMigrationSettings) -> bool:
    """Load ``settings.data`` into ``cache``. Returns False for unknown formats."""
    if settings.format is CacheFormat.LEGACY:
        cache.deserialize_legacy(settings.data)
        return True
    if settings.format is CacheFormat.CURRENT:
        cache.deserialize(settings.data)
        return True
    log.debug("Unknown cache format %r, nothing to migrate", settings.format)
    return False


class MigrationCoordinator:
    def __init__(self, settings: CacheMigrationSettings, bridge: CacheNotificationBridge) -> None:
        self._settings: Optional[CacheMigrationSettings] = settings
        self._bridge = bridge
        self._state = MigrationState.PENDING
        self._lock = threading.Lock()
        self.failure: Optional[MigrationFailure] = None

    @property
    def state(self) -> MigrationState:
        return self._state

    def install(self, cache: NotifyingTokenCache) -> None:
        cache.set_before_access(self.before_read)

    def before_read(self, args: TokenCacheNotificationArgs) -> None:
        with self._lock:
            if self._state is MigrationState.PENDING:
                self._state = MigrationState.MIGRATING
                settings, self._settings = self._settings, None
                try:
                    if deserialize_migration_data(args.cache, settings):
                        log.info("Migrated %s token cache into the shared cache", settings.format.value)
                except Exception as e:
                    self.failure = MigrationFailure(f"Failed to migrate token cache: {e}", classify_migration_error(e))
                    log.info(
                        "Exception caught trying to migrate token cache (%s): %s", self.failure.reason, self.failure
                    )
                finally:
                    self._bridge.install(args.cache)
                    self._bridge.before_read(args)
                    self._state = MigrationState.DONE
                return
        # the handler was captured before the swap, so hand the event to the bridge
        self._bridge.before_read(args)
