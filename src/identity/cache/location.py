from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from identity.cache import DEFAULT_CACHE_PATH

CACHE_PATH_ENV = "IDENTITY_CACHE_PATH"


@dataclass(frozen=True)
class CacheLocation:
    """Where the shared cache artifact lives.

    Every cooperating process must resolve the same path, so the default is
    derived from the user's home directory only.
    """

    path: Path

    @property
    def directory(self) -> Path:
        return self.path.parent

    @property
    def filename(self) -> str:
        return self.path.name

    def sibling(self, filename: str) -> CacheLocation:
        return CacheLocation(self.directory / filename)

    @classmethod
    def default(cls) -> CacheLocation:
        """The per-user location, resolved once per process."""
        return _default_location()

    @classmethod
    def of(cls, path: Optional[Union[str, os.PathLike, CacheLocation]]) -> CacheLocation:
        if path is None:
            return cls.default()
        if isinstance(path, CacheLocation):
            return path
        return cls(Path(path).expanduser())


@functools.lru_cache(maxsize=None)
def _default_location() -> CacheLocation:
    override = os.environ.get(CACHE_PATH_ENV)
    if override:
        return CacheLocation(Path(override).expanduser())
    return CacheLocation(DEFAULT_CACHE_PATH)
