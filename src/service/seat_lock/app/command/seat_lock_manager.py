"""
Seat Lock Manager - short-lived exclusive seat holds before payment

Flow (acquire):
1. For each requested seat, in request order: atomic set-if-absent with TTL
2. Key already present → same holder refreshes TTL, other holder is contested
3. Any contested seat → release only the seats this call created, report the contested ones
4. Lock store unreachable → bypass, the persisted overlap check guards the booking;
   an outage after a contested seat still fails the batch

Store failures never leave this class; they degrade to "no locking" instead.
"""

from datetime import datetime, timezone
from enum import StrEnum
import time
from typing import Callable

from opentelemetry import trace
from opentelemetry.trace import Span

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.seat_booking_metrics import SeatBookingMetrics
from src.service.seat_lock.app.dto.acquire_result import AcquireResult
from src.service.seat_lock.app.interface.i_lock_store import ILockStore, LockStoreUnavailableError
from src.service.seat_lock.domain.seat_lock_entity import SeatLock, seat_lock_key
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


# A lock can expire between the failed set and the follow-up read; one retry covers it
_CLAIM_ATTEMPTS = 2


class ClaimOutcome(StrEnum):
    ACQUIRED = 'acquired'
    REFRESHED = 'refreshed'
    CONTESTED = 'contested'


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SeatLockManager:
    def __init__(
        self,
        lock_store: ILockStore,
        metrics: SeatBookingMetrics,
        lock_ttl_seconds: int = 600,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.lock_store = lock_store
        self.metrics = metrics
        self.lock_ttl_seconds = lock_ttl_seconds
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def acquire(
        self, *, showtime_id: int, seats: list[SeatCoordinate], user_id: int
    ) -> AcquireResult:
        if not seats:
            raise DomainError('At least one seat is required')

        # Duplicates collapse, first occurrence keeps its position
        ordered_seats = list(dict.fromkeys(seats))
        started = time.perf_counter()

        with self.tracer.start_as_current_span(
            'use_case.acquire_seat_locks',
            attributes={
                'showtime.id': showtime_id,
                'user.id': user_id,
                'seat.count': len(ordered_seats),
            },
        ) as span:
            newly_acquired: list[SeatCoordinate] = []
            refreshed: list[SeatCoordinate] = []
            contested: list[SeatCoordinate] = []

            try:
                for seat in ordered_seats:
                    outcome = await self._claim(showtime_id=showtime_id, seat=seat, user_id=user_id)
                    if outcome == ClaimOutcome.ACQUIRED:
                        newly_acquired.append(seat)
                    elif outcome == ClaimOutcome.REFRESHED:
                        refreshed.append(seat)
                    else:
                        contested.append(seat)
            except LockStoreUnavailableError as e:
                self.metrics.record_lock_store_failure(operation='acquire')
                if contested:
                    # A live foreign hold was already seen, so the batch cannot succeed
                    Logger.base.warning(
                        f'⚠️ [SEAT-LOCK] Lock store failed after contention on showtime '
                        f'{showtime_id}: {e.message}'
                    )
                    return await self._reject_contested(
                        span=span,
                        showtime_id=showtime_id,
                        user_id=user_id,
                        contested=contested,
                        newly_acquired=newly_acquired,
                        started=started,
                    )
                Logger.base.warning(
                    f'⚠️ [SEAT-LOCK] Lock store unavailable, bypassing locks for '
                    f'showtime {showtime_id}: {e.message}'
                )
                span.set_attribute('seat_lock.bypassed', True)
                self.metrics.record_acquire(
                    result='bypassed', duration=time.perf_counter() - started
                )
                return AcquireResult.bypassed(
                    seats=ordered_seats,
                    newly_acquired_seats=newly_acquired,
                    expires_in_seconds=self.lock_ttl_seconds,
                )

            if contested:
                return await self._reject_contested(
                    span=span,
                    showtime_id=showtime_id,
                    user_id=user_id,
                    contested=contested,
                    newly_acquired=newly_acquired,
                    started=started,
                )

            self.metrics.record_seats(operation='acquired', count=len(newly_acquired))
            self.metrics.record_seats(operation='refreshed', count=len(refreshed))
            self.metrics.record_acquire(result='success', duration=time.perf_counter() - started)
            Logger.base.info(
                f'🔒 [SEAT-LOCK] Showtime {showtime_id}: user {user_id} holds '
                f'{len(ordered_seats)} seats ({len(newly_acquired)} new, {len(refreshed)} refreshed)'
            )
            return AcquireResult.held(
                seats=ordered_seats,
                newly_acquired_seats=newly_acquired,
                expires_in_seconds=self.lock_ttl_seconds,
            )

    async def _reject_contested(
        self,
        *,
        span: Span,
        showtime_id: int,
        user_id: int,
        contested: list[SeatCoordinate],
        newly_acquired: list[SeatCoordinate],
        started: float,
    ) -> AcquireResult:
        await self._compensate(showtime_id=showtime_id, seats=newly_acquired, user_id=user_id)
        Logger.base.info(
            f'🔒 [SEAT-LOCK] Showtime {showtime_id}: user {user_id} contested on '
            f'{[s.label for s in contested]}, rolled back {len(newly_acquired)} new locks'
        )
        span.set_attribute('seat_lock.contested_count', len(contested))
        self.metrics.record_acquire(result='contested', duration=time.perf_counter() - started)
        return AcquireResult.contested(
            contested_seats=contested, expires_in_seconds=self.lock_ttl_seconds
        )

    async def _claim(self, *, showtime_id: int, seat: SeatCoordinate, user_id: int) -> ClaimOutcome:
        lock = SeatLock(
            showtime_id=showtime_id,
            seat=seat,
            holder_user_id=user_id,
            acquired_at=self.clock(),
        )
        for _ in range(_CLAIM_ATTEMPTS):
            if await self.lock_store.set_if_absent(
                key=lock.key, value=lock.to_payload(), ttl_seconds=self.lock_ttl_seconds
            ):
                return ClaimOutcome.ACQUIRED
            if await self.lock_store.refresh_if_holder(
                key=lock.key, holder_user_id=user_id, ttl_seconds=self.lock_ttl_seconds
            ):
                return ClaimOutcome.REFRESHED
            if await self.lock_store.get(key=lock.key) is not None:
                return ClaimOutcome.CONTESTED
        return ClaimOutcome.CONTESTED

    async def _compensate(
        self, *, showtime_id: int, seats: list[SeatCoordinate], user_id: int
    ) -> None:
        if not seats:
            return
        released = await self.release(showtime_id=showtime_id, seats=seats, user_id=user_id)
        self.metrics.record_seats(operation='compensated', count=len(released))

    @Logger.io
    async def release(
        self,
        *,
        showtime_id: int,
        seats: list[SeatCoordinate],
        user_id: int | None = None,
    ) -> list[SeatCoordinate]:
        """
        Delete seat locks. With ``user_id`` only that user's locks go; without it the
        release is forced. Releasing a seat that is not locked is a no-op.

        Returns:
            Seats whose lock this call actually deleted
        """
        released: list[SeatCoordinate] = []
        try:
            for seat in dict.fromkeys(seats):
                key = seat_lock_key(showtime_id=showtime_id, seat=seat)
                if user_id is None:
                    deleted = await self.lock_store.delete(key=key)
                else:
                    deleted = await self.lock_store.delete_if_holder(
                        key=key, holder_user_id=user_id
                    )
                if deleted:
                    released.append(seat)
        except LockStoreUnavailableError as e:
            # Unreleased locks still expire on their own TTL
            Logger.base.warning(
                f'⚠️ [SEAT-LOCK] Release skipped for showtime {showtime_id}: {e.message}'
            )
            self.metrics.record_lock_store_failure(operation='release')
            return released

        self.metrics.record_seats(operation='released', count=len(released))
        if released:
            Logger.base.info(
                f'🔓 [SEAT-LOCK] Showtime {showtime_id}: released {[s.label for s in released]}'
                f'{"" if user_id is not None else " (forced)"}'
            )
        return released

    @Logger.io
    async def extend(
        self, *, showtime_id: int, seats: list[SeatCoordinate], user_id: int
    ) -> list[SeatCoordinate]:
        """
        Reset the TTL of seats the caller still holds; other seats are skipped.

        Returns:
            Seats whose TTL was refreshed
        """
        extended: list[SeatCoordinate] = []
        try:
            for seat in dict.fromkeys(seats):
                if await self.lock_store.refresh_if_holder(
                    key=seat_lock_key(showtime_id=showtime_id, seat=seat),
                    holder_user_id=user_id,
                    ttl_seconds=self.lock_ttl_seconds,
                ):
                    extended.append(seat)
        except LockStoreUnavailableError as e:
            Logger.base.warning(
                f'⚠️ [SEAT-LOCK] Extend skipped for showtime {showtime_id}: {e.message}'
            )
            self.metrics.record_lock_store_failure(operation='extend')
            return extended

        self.metrics.record_seats(operation='refreshed', count=len(extended))
        return extended
