from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union


class CacheFormat(enum.Enum):
    LEGACY = "legacy"
    CURRENT = "current"


@dataclass(frozen=True)
class CacheMigrationSettings:
    """A serialized cache to load into the in-memory cache before its first use.

    ``format`` is normally a :class:`CacheFormat`; any other value is accepted
    and treated as nothing to migrate.
    """

    format: CacheFormat
    data: bytes = field(repr=False)

    @classmethod
    def from_file(
        cls, path: Union[str, os.PathLike], format: CacheFormat = CacheFormat.LEGACY
    ) -> CacheMigrationSettings:
        try:
            data = Path(path).expanduser().read_bytes()
        except FileNotFoundError:
            raise FileNotFoundError(f"Could not find cache file to migrate at {path}") from None
        return cls(format=format, data=data)


class NoMigration:
    """Policy for factories that start directly with the persistent cache."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_MIGRATION"


NO_MIGRATION = NoMigration()

MigrationPolicy = Union[NoMigration, CacheMigrationSettings]
