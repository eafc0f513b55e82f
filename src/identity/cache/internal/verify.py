"""Fail-fast check that the secret store works on this host."""

from __future__ import annotations

import logging
import secrets

from identity.cache.descriptor import persistence_check_descriptor
from identity.cache.errors import PersistenceUnavailable
from identity.cache.internal.secret_store import open_store
from identity.cache.location import CacheLocation

log = logging.getLogger(__name__)


def verify_persistence(location: CacheLocation, kind: str = "keyring") -> None:
    """Write, read back and clear a sample secret next to the cache.

    Raises PersistenceUnavailable if any step fails. Creates the cache
    directory as a side effect.
    """
    descriptor = persistence_check_descriptor(location)
    store = open_store(descriptor, kind)
    sample = secrets.token_bytes(32)
    try:
        store.write_all(sample)
        read_back = store.read_all()
    except Exception as e:
        raise PersistenceUnavailable(f"Persistence check failed in {location.directory}: {e}") from e
    finally:
        try:
            store.clear()
        except Exception:
            log.debug("Failed to clear persistence check secret", exc_info=True)
    if read_back != sample:
        raise PersistenceUnavailable(
            f"Persistence check failed in {location.directory}: data read back differs from data written"
        )
    log.debug("Persistence check passed for %s (store=%s)", location.directory, kind)
