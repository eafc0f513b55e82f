from __future__ import annotations

import argparse
import json
import sys

from identity.cache.config import load_cache_config
from identity.cache.errors import PersistenceUnavailable
from identity.cache.factory import SharedTokenCacheClientFactory

COMMAND = "status"


def register_parser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    return subparsers.add_parser(
        COMMAND,
        help="Verify the OS secret store and show where the shared token cache lives",
    )


def run(parsed: argparse.Namespace) -> int:
    try:
        config = load_cache_config(parsed.config)
        factory = SharedTokenCacheClientFactory.from_config(config)
        data = factory.open_store().read_all()
        status = {
            "cachePath": str(factory.location.path),
            "store": factory.store_kind,
            "clientId": factory.client_id,
            "persisted": data is not None,
        }
        print(json.dumps(status, indent=2))
        return 0
    except PersistenceUnavailable as e:
        print(f"Error: persistence unavailable: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
