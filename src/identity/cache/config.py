import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from identity.cache import DEFAULT_CACHE_PATH, DEFAULT_CLIENT_ID, DEFAULT_CONFIG_FILE_PATH
from identity.cache.internal.secret_store import STORE_KINDS
from identity.cache.location import CACHE_PATH_ENV

STORE_KIND_ENV = "IDENTITY_CACHE_STORE"
CLIENT_ID_ENV = "IDENTITY_CACHE_CLIENT_ID"


@dataclass
class CacheConfig:
    cache_path: Path = field(default_factory=lambda: DEFAULT_CACHE_PATH)
    client_id: str = DEFAULT_CLIENT_ID
    store_kind: str = "keyring"
    legacy_cache_path: Optional[Path] = None


def _expand(path: Optional[str]) -> Optional[Path]:
    return Path(path).expanduser() if path else None


def load_cache_config(path: Union[str, os.PathLike] = DEFAULT_CONFIG_FILE_PATH) -> CacheConfig:
    """Load config from JSON file, then apply environment overrides.

    Returns the default config if the file doesn't exist.

    Resolution order (later wins):
    1. Built-in defaults
    2. Keys from the config file (cache_path, client_id, store, legacy_cache_path)
    3. IDENTITY_CACHE_PATH, IDENTITY_CACHE_CLIENT_ID, IDENTITY_CACHE_STORE
    """
    config = CacheConfig()

    expanded = Path(path).expanduser()
    if expanded.exists():
        data = json.loads(expanded.read_text())
        if not isinstance(data, dict):
            raise ValueError(f"Could not json dict from {path}")
        config.cache_path = _expand(data.get("cache_path")) or config.cache_path
        config.client_id = data.get("client_id") or config.client_id
        config.store_kind = data.get("store") or config.store_kind
        config.legacy_cache_path = _expand(data.get("legacy_cache_path"))

    config.cache_path = _expand(os.getenv(CACHE_PATH_ENV)) or config.cache_path
    config.client_id = os.getenv(CLIENT_ID_ENV) or config.client_id
    config.store_kind = os.getenv(STORE_KIND_ENV) or config.store_kind

    if config.store_kind not in STORE_KINDS:
        raise ValueError(f"Unknown store kind: {config.store_kind}, expected one of {', '.join(STORE_KINDS)}")
    return config
