from __future__ import annotations

import argparse
import sys

from identity.cache import DEFAULT_LEGACY_CACHE_PATH
from identity.cache.config import load_cache_config
from identity.cache.factory import SharedTokenCacheClientFactory
from identity.cache.memory import InMemoryTokenCache
from identity.cache.settings import CacheFormat, CacheMigrationSettings

COMMAND = "migrate"


def register_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        COMMAND,
        help="Load a serialized token cache into the shared cache",
    )
    parser.add_argument(
        "file",
        nargs="?",
        metavar="FILE",
        help="Cache file to migrate (default: legacy_cache_path from the config file, "
        f"else {DEFAULT_LEGACY_CACHE_PATH})",
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in CacheFormat],
        default=CacheFormat.LEGACY.value,
        help="Format of FILE (default: legacy)",
    )
    return parser


def run(parsed: argparse.Namespace) -> int:
    try:
        config = load_cache_config(parsed.config)
        path = parsed.file or config.legacy_cache_path or DEFAULT_LEGACY_CACHE_PATH
        settings = CacheMigrationSettings.from_file(path, CacheFormat(parsed.format))
        factory = SharedTokenCacheClientFactory.from_config(config, settings)

        cache = InMemoryTokenCache()
        factory.register_cache(cache)
        cache.entries()  # first access runs the migration
        failure = factory.migration_coordinator.failure
        if failure is not None:
            print(f"Error: could not migrate {path}: {failure.reason}: {failure}", file=sys.stderr)
            return 1
        cache.flush()
        print(f"Shared token cache at {factory.location.path} now holds {len(cache)} token(s)")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
