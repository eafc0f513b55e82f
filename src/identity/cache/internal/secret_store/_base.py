from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from identity.cache.descriptor import SecretStoreDescriptor

log = logging.getLogger(__name__)

FILE_MODE = 0o600
DIRECTORY_MODE = 0o700


def write_file_atomically(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` in one step, readable by the owner only."""
    path.parent.mkdir(parents=True, exist_ok=True, mode=DIRECTORY_MODE)
    tmp = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def read_file(path: Path) -> Optional[bytes]:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


class SecretStore(ABC):
    """Handle on the persisted cache blob for one descriptor.

    ``write_all`` replaces the whole blob; concurrent writers in other
    processes are last-writer-wins, nothing is merged.
    """

    def __init__(self, descriptor: SecretStoreDescriptor) -> None:
        self.descriptor = descriptor

    @property
    def path(self) -> Path:
        return self.descriptor.location.path

    @abstractmethod
    def read_all(self) -> Optional[bytes]:
        """Return the stored blob, or None when nothing was persisted yet.

        Raises StoreReadFailure when the artifact exists but cannot be read.
        """

    @abstractmethod
    def write_all(self, data: bytes) -> None:
        """Persist ``data``. Raises StoreWriteFailure."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the file and any OS secret entry. Raises StoreError.

        Clearing an empty store is not an error.
        """
