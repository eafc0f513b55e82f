from __future__ import annotations

import logging
from typing import Optional

from identity.cache.errors import StoreError, StoreReadFailure, StoreWriteFailure
from identity.cache.internal.secret_store._base import SecretStore, read_file, write_file_atomically

log = logging.getLogger(__name__)


class FileSecretStore(SecretStore):
    """Unencrypted cache file readable by the owner only.

    Only used when explicitly requested; it is never a fallback for a missing
    keyring.
    """

    def read_all(self) -> Optional[bytes]:
        try:
            return read_file(self.path)
        except OSError as e:
            raise StoreReadFailure(f"Failed to read token cache file {self.path}: {e}") from e

    def write_all(self, data: bytes) -> None:
        try:
            write_file_atomically(self.path, data)
            log.debug("Saved token cache to file %s", self.path)
        except OSError as e:
            raise StoreWriteFailure(f"Failed to write token cache file {self.path}: {e}") from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
            log.debug("Cleared token cache file %s", self.path)
        except OSError as e:
            raise StoreError(f"Failed to remove token cache file {self.path}: {e}") from e
