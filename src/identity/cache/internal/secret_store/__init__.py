"""Secret stores holding the persisted token cache.

Opening a keyring store resolves the keyring backend, which may involve a
handshake with the OS secret service. That handshake always runs on a
dedicated worker thread joined by the caller, so calling ``open_store`` never
drives the handshake from the caller's own event loop.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

from identity.cache.descriptor import SecretStoreDescriptor
from identity.cache.errors import PersistenceUnavailable
from identity.cache.internal.secret_store._base import SecretStore
from identity.cache.internal.secret_store._file import FileSecretStore
from identity.cache.internal.secret_store._keyring import KeyringSecretStore

log = logging.getLogger(__name__)

STORE_KINDS = ("keyring", "file")

_UNUSABLE_BACKENDS = ("fail", "null")


def _is_unusable(backend) -> bool:
    names = f"{type(backend).__module__}.{type(backend).__name__}".lower()
    return any(name in names for name in _UNUSABLE_BACKENDS)


def _resolve_keyring():
    """Return the keyring module once a usable backend is found."""
    try:
        import keyring

        backend = keyring.get_keyring()
    except Exception as e:
        raise PersistenceUnavailable(f"Could not initialize the system keyring: {e}") from e
    if _is_unusable(backend):
        raise PersistenceUnavailable(
            f"No usable keyring backend available (got {type(backend).__name__}). "
            "Install and unlock an OS secret store (Keychain, Secret Service, Credential Locker)."
        )
    log.debug("Using keyring backend %s", type(backend).__name__)
    return keyring


def _in_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def resolve_keyring():
    if _in_event_loop():
        log.debug("Opening secret store from a running event loop, handshake runs on a worker thread")
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="secret-store-open") as pool:
        return pool.submit(_resolve_keyring).result()


def open_store(descriptor: SecretStoreDescriptor, kind: str = "keyring") -> SecretStore:
    """Return a SecretStore for the given kind.

    Kinds:
      keyring – encrypted file, key in the system keyring (default)
      file    – owner-only unencrypted file, explicit opt-in
    """
    if kind == "keyring":
        return KeyringSecretStore(descriptor, resolve_keyring())
    if kind == "file":
        return FileSecretStore(descriptor)
    raise ValueError(f"Unknown store kind: {kind}, expected one of {', '.join(STORE_KINDS)}")


__all__ = ["SecretStore", "KeyringSecretStore", "FileSecretStore", "open_store", "resolve_keyring", "STORE_KINDS"]
