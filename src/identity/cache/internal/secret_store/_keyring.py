from __future__ import annotations

import logging
import sys
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from identity.cache.descriptor import SecretStoreDescriptor
from identity.cache.errors import StoreError, StoreReadFailure, StoreWriteFailure
from identity.cache.internal.secret_store._base import SecretStore, read_file, write_file_atomically

log = logging.getLogger(__name__)


class KeyringSecretStore(SecretStore):
    """Cache file encrypted with a key held in the system keyring.

    The blob itself stays on disk (Fernet ciphertext), the keyring only holds
    the key, addressed by the descriptor's platform-specific names.
    """

    def __init__(self, descriptor: SecretStoreDescriptor, keyring_module, platform: str = sys.platform) -> None:
        super().__init__(descriptor)
        self._keyring = keyring_module
        self.service, self.username = descriptor.keyring_address(platform)

    def _load_key(self) -> Optional[bytes]:
        stored = self._keyring.get_password(self.service, self.username)
        if stored is None:
            return None
        return stored.encode("ascii")

    def _load_or_create_key(self) -> bytes:
        key = self._load_key()
        if key is not None:
            return key
        key = Fernet.generate_key()
        self._keyring.set_password(self.service, self.username, key.decode("ascii"))
        log.debug("Created token cache key in keyring (service=%s)", self.service)
        # another process may have stored its key first
        return self._load_key() or key

    def read_all(self) -> Optional[bytes]:
        try:
            ciphertext = read_file(self.path)
        except OSError as e:
            raise StoreReadFailure(f"Failed to read token cache file {self.path}: {e}") from e
        if ciphertext is None:
            return None
        try:
            key = self._load_key()
        except Exception as e:
            raise StoreReadFailure(f"Failed to load token cache key from keyring: {e}") from e
        if key is None:
            raise StoreReadFailure(f"Token cache file {self.path} exists but its key is missing from the keyring")
        try:
            return Fernet(key).decrypt(ciphertext)
        except (InvalidToken, ValueError) as e:
            raise StoreReadFailure(f"Token cache file {self.path} could not be decrypted") from e

    def write_all(self, data: bytes) -> None:
        try:
            key = self._load_or_create_key()
        except Exception as e:
            raise StoreWriteFailure(f"Failed to store token cache key in keyring: {e}") from e
        try:
            write_file_atomically(self.path, Fernet(key).encrypt(data))
        except (OSError, ValueError) as e:
            raise StoreWriteFailure(f"Failed to write token cache file {self.path}: {e}") from e
        log.debug("Saved encrypted token cache to %s", self.path)

    def clear(self) -> None:
        failures = []
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            failures.append(f"file {self.path}: {e}")
        try:
            if self._keyring.get_password(self.service, self.username) is not None:
                self._keyring.delete_password(self.service, self.username)
        except Exception as e:
            failures.append(f"keyring entry {self.service}: {e}")
        if failures:
            raise StoreError("Failed to clear token cache: " + "; ".join(failures))
        log.debug("Cleared token cache file and keyring entry (service=%s)", self.service)
