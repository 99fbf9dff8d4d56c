"""
Periodic sweep

- Expire pending bookings older than PENDING_BOOKING_TIMEOUT_MINUTES
- Purge expired entries from lock stores that do not evict on their own

Started from the application lifespan inside an anyio task group.
"""

import anyio
from anyio.abc import TaskStatus

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.expire_pending_bookings_use_case import (
    ExpirePendingBookingsUseCase,
)
from src.service.seat_lock.app.interface.i_lock_store import ILockStore, LockStoreUnavailableError


class CleanupWorker:
    def __init__(
        self,
        expire_pending_bookings_use_case: ExpirePendingBookingsUseCase,
        lock_store: ILockStore,
        interval_seconds: int = 1800,
    ) -> None:
        self.expire_pending_bookings_use_case = expire_pending_bookings_use_case
        self.lock_store = lock_store
        self.interval_seconds = interval_seconds

    async def run_once(self) -> tuple[int, int]:
        """
        Returns:
            (expired bookings, purged locks)
        """
        expired = 0
        purged = 0
        try:
            expired = await self.expire_pending_bookings_use_case.execute()
        except Exception as e:
            # One bad sweep must not stop the loop; the next one retries
            Logger.base.exception(f'❌ [SWEEP] Pending booking expiry failed: {e}')

        try:
            purged = await self.lock_store.purge_expired()
        except LockStoreUnavailableError as e:
            Logger.base.warning(f'⚠️ [SWEEP] Lock purge skipped: {e.message}')

        Logger.base.info(f'🧹 [SWEEP] expired={expired} bookings, purged={purged} locks')
        return expired, purged

    async def run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        Logger.base.info(f'🧹 [SWEEP] Worker started, interval={self.interval_seconds}s')
        task_status.started()
        while True:
            await self.run_once()
            await anyio.sleep(self.interval_seconds)
