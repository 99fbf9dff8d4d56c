"""
Process-local lock store.

Used for single-instance deployments (LOCK_STORE_BACKEND=memory) and tests.
Operations never await between check and write, so each one is atomic within
the event loop.
"""

import time
from typing import Callable

from src.service.seat_lock.app.interface.i_lock_store import ILockStore
from src.service.seat_lock.domain.seat_lock_entity import holder_of


class InMemoryLockStore(ILockStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def _live_value(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self.clock():
            del self._entries[key]
            return None
        return value

    def _is_holder(self, key: str, holder_user_id: int) -> bool:
        value = self._live_value(key)
        return value is not None and holder_of(value) == str(holder_user_id)

    async def set_if_absent(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        if self._live_value(key) is not None:
            return False
        self._entries[key] = (value, self.clock() + ttl_seconds)
        return True

    async def get(self, *, key: str) -> str | None:
        return self._live_value(key)

    async def get_many(self, *, keys: list[str]) -> list[str | None]:
        return [self._live_value(key) for key in keys]

    async def refresh_if_holder(self, *, key: str, holder_user_id: int, ttl_seconds: int) -> bool:
        if not self._is_holder(key, holder_user_id):
            return False
        value, _ = self._entries[key]
        self._entries[key] = (value, self.clock() + ttl_seconds)
        return True

    async def delete(self, *, key: str) -> bool:
        return self._live_value(key) is not None and self._entries.pop(key, None) is not None

    async def delete_if_holder(self, *, key: str, holder_user_id: int) -> bool:
        if not self._is_holder(key, holder_user_id):
            return False
        del self._entries[key]
        return True

    async def scan(self, *, prefix: str) -> dict[str, str]:
        result: dict[str, str] = {}
        for key in [k for k in self._entries if k.startswith(prefix)]:
            if (value := self._live_value(key)) is not None:
                result[key] = value
        return result

    async def purge_expired(self) -> int:
        now = self.clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def ttl_remaining(self, key: str) -> float | None:
        """Seconds until ``key`` expires, None when absent"""
        if self._live_value(key) is None:
            return None
        return self._entries[key][1] - self.clock()
