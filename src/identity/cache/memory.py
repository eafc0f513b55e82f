"""Thread-safe in-memory token cache with serialization hooks."""

from __future__ import annotations

import logging
import threading
import time
from typing import Dict, Optional

from identity.cache._protocols import NotificationHandler, TokenCacheNotificationArgs
from identity.cache.codec import CurrentFormatCodec, LegacyFormatCodec

log = logging.getLogger(__name__)

# Tokens are considered expired this many seconds before their actual expiry,
# to avoid using a token that expires mid-request.
EXPIRY_MARGIN_SECONDS = 30


def is_valid(token: dict) -> bool:
    expires_at = token.get("expires_at")
    if expires_at is None:
        return False
    return time.time() < (expires_at - EXPIRY_MARGIN_SECONDS)


class InMemoryTokenCache:
    """Token entries keyed by string, held for the lifetime of one client.

    Lookups fire the before-access hook. Mutations fire before-access, apply
    the change, then fire before-write with ``has_state_changed=True``.
    ``serialize``/``deserialize``/``clear`` never fire hooks, so handlers may
    call them freely.
    """

    def __init__(self, tokens: Optional[Dict[str, dict]] = None) -> None:
        self._tokens: Dict[str, dict] = dict(tokens or {})
        self._lock = threading.RLock()
        self._handler_lock = threading.Lock()
        self._before_access: Optional[NotificationHandler] = None
        self._before_write: Optional[NotificationHandler] = None
        self.has_state_changed = False

    def set_before_access(self, handler: Optional[NotificationHandler]) -> None:
        with self._handler_lock:
            self._before_access = handler

    def set_before_write(self, handler: Optional[NotificationHandler]) -> None:
        with self._handler_lock:
            self._before_write = handler

    @property
    def before_access(self) -> Optional[NotificationHandler]:
        return self._before_access

    @property
    def before_write(self) -> Optional[NotificationHandler]:
        return self._before_write

    def _fire(self, handler: Optional[NotificationHandler], has_state_changed: bool = False) -> None:
        if handler is not None:
            handler(TokenCacheNotificationArgs(cache=self, has_state_changed=has_state_changed))

    def find(self, key: str) -> Optional[dict]:
        """Return a non-expired token for ``key``, or None."""
        with self._lock:
            self._fire(self._before_access)
            token = self._tokens.get(key)
            if token is None:
                return None
            if not is_valid(token):
                log.debug("Cached token expired or missing expires_at, ignoring (key=%s)", key)
                return None
            return dict(token)

    def entries(self) -> Dict[str, dict]:
        with self._lock:
            self._fire(self._before_access)
            return {k: dict(v) for k, v in self._tokens.items()}

    def add(self, key: str, token: dict) -> None:
        with self._lock:
            self._fire(self._before_access)
            self._tokens[key] = dict(token)
            self.has_state_changed = True
            self._fire(self._before_write, has_state_changed=True)

    def remove(self, key: str) -> None:
        with self._lock:
            self._fire(self._before_access)
            if self._tokens.pop(key, None) is None:
                return
            self.has_state_changed = True
            self._fire(self._before_write, has_state_changed=True)

    def flush(self) -> None:
        """Fire the hooks as for a mutation, so the current content gets persisted."""
        with self._lock:
            self._fire(self._before_access)
            self.has_state_changed = True
            self._fire(self._before_write, has_state_changed=True)

    def clear(self) -> None:
        """Drop every entry from memory. Nothing is persisted."""
        with self._lock:
            self._tokens.clear()
            self.has_state_changed = False

    def serialize(self) -> bytes:
        with self._lock:
            data = CurrentFormatCodec.encode(self._tokens)
            self.has_state_changed = False
            return data

    def deserialize(self, data: bytes) -> None:
        """Merge a current-format blob into the cache."""
        tokens = CurrentFormatCodec.decode(data)
        with self._lock:
            self._tokens.update(tokens)

    def deserialize_legacy(self, data: bytes) -> None:
        """Merge a legacy-format blob into the cache."""
        tokens = LegacyFormatCodec.decode(data)
        with self._lock:
            self._tokens.update(tokens)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
