"""
Test doubles for the lock store
"""

from unittest.mock import MagicMock

from src.platform.metrics.seat_booking_metrics import SeatBookingMetrics
from src.service.seat_lock.app.interface.i_lock_store import ILockStore, LockStoreUnavailableError
from src.service.seat_lock.driven_adapter.state.in_memory_lock_store import InMemoryLockStore


class ManualMonotonicClock:
    """Stands in for time.monotonic; only moves when told to"""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class UnavailableLockStore(ILockStore):
    """Every call fails as if Kvrocks were down"""

    def __init__(self) -> None:
        self.calls = 0

    def _fail(self) -> None:
        self.calls += 1
        raise LockStoreUnavailableError('connection refused')

    async def set_if_absent(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        self._fail()
        return False

    async def get(self, *, key: str) -> str | None:
        self._fail()
        return None

    async def get_many(self, *, keys: list[str]) -> list[str | None]:
        self._fail()
        return []

    async def refresh_if_holder(self, *, key: str, holder_user_id: int, ttl_seconds: int) -> bool:
        self._fail()
        return False

    async def delete(self, *, key: str) -> bool:
        self._fail()
        return False

    async def delete_if_holder(self, *, key: str, holder_user_id: int) -> bool:
        self._fail()
        return False

    async def scan(self, *, prefix: str) -> dict[str, str]:
        self._fail()
        return {}

    async def purge_expired(self) -> int:
        self._fail()
        return 0


class FailAfterLockStore(InMemoryLockStore):
    """Behaves normally for ``healthy_writes`` set_if_absent calls, then goes down"""

    def __init__(self, healthy_writes: int) -> None:
        super().__init__()
        self.healthy_writes = healthy_writes

    async def set_if_absent(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        if self.healthy_writes <= 0:
            raise LockStoreUnavailableError('connection reset')
        self.healthy_writes -= 1
        return await super().set_if_absent(key=key, value=value, ttl_seconds=ttl_seconds)


def mock_metrics() -> MagicMock:
    return MagicMock(spec=SeatBookingMetrics)
