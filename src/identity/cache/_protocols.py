"""Protocol definitions for token caches that expose serialization hooks."""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class TokenCacheNotificationArgs:
    """Passed to hook handlers. ``cache`` is the cache firing the event."""

    cache: "NotifyingTokenCache"
    has_state_changed: bool = False


NotificationHandler = Callable[[TokenCacheNotificationArgs], None]


@runtime_checkable
class NotifyingTokenCache(Protocol):
    """Protocol for in-memory token caches with before-access/before-write hooks.

    Replacing a handler must be a single atomic swap: an event fired
    concurrently sees either the old or the new handler.
    """

    def set_before_access(self, handler: Optional[NotificationHandler]) -> None:
        raise NotImplementedError

    def set_before_write(self, handler: Optional[NotificationHandler]) -> None:
        raise NotImplementedError

    def serialize(self) -> bytes:
        raise NotImplementedError

    def deserialize(self, data: bytes) -> None:
        raise NotImplementedError

    def deserialize_legacy(self, data: bytes) -> None:
        raise NotImplementedError

    def clear(self) -> Any:
        raise NotImplementedError
