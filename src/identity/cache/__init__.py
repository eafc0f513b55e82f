import logging
import os
from logging import NullHandler
from pathlib import Path

logging.getLogger(__name__).addHandler(NullHandler())

__version__ = "0.1.0"

DEFAULT_CLIENT_ID = "1950a258-227b-4e31-a9cf-717495945fc2"

DEFAULT_CACHE_PATH = Path.home() / ".IdentityService" / "msal.cache"

DEFAULT_CONFIG_FILE_PATH = (
    Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "identity-cache" / "config.json"
)

DEFAULT_LEGACY_CACHE_PATH = (
    Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache")) / "identity-cache" / "tokens.json"
)

from identity.cache.errors import (  # noqa: E402
    ClearFailure,
    MigrationFailure,
    PersistenceUnavailable,
    StoreError,
    StoreReadFailure,
    StoreWriteFailure,
    TokenCacheError,
)
from identity.cache.factory import SharedTokenCacheClientFactory, TokenCacheRegistrar  # noqa: E402
from identity.cache.location import CacheLocation  # noqa: E402
from identity.cache.memory import InMemoryTokenCache  # noqa: E402
from identity.cache.settings import NO_MIGRATION, CacheFormat, CacheMigrationSettings, NoMigration  # noqa: E402

__all__ = [
    "CacheFormat",
    "CacheLocation",
    "CacheMigrationSettings",
    "ClearFailure",
    "InMemoryTokenCache",
    "MigrationFailure",
    "NO_MIGRATION",
    "NoMigration",
    "PersistenceUnavailable",
    "SharedTokenCacheClientFactory",
    "StoreError",
    "StoreReadFailure",
    "StoreWriteFailure",
    "TokenCacheError",
    "TokenCacheRegistrar",
]
