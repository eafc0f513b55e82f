from __future__ import annotations

import argparse
import sys

from identity.cache.config import load_cache_config
from identity.cache.factory import SharedTokenCacheClientFactory

COMMAND = "clear"


def register_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    return subparsers.add_parser(
        COMMAND,
        help="Remove the shared token cache file and its keyring entry",
    )


def run(parsed: argparse.Namespace) -> int:
    try:
        config = load_cache_config(parsed.config)
        factory = SharedTokenCacheClientFactory.from_config(config)
        factory.clear_cache()
        print(f"Token cache cleared at {factory.location.path}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
