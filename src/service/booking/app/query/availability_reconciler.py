"""
Availability Reconciler - one answer to "can this seat be taken right now"

Sources, highest priority first:
1. Pending/paid bookings (persisted truth) → booked
2. Live seat locks (advisory) → locked
3. Otherwise → available

Pure read. When the lock store is down, locks are ignored (fail-open) and the
result says so; booked state is always applied.
"""

from typing import Optional

from opentelemetry import trace

from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto import (
    SeatCheckResult,
    SeatMap,
    SeatState,
    SeatStatus,
    SeatUnavailability,
    UnavailableReason,
)
from src.service.booking.app.interface import IBookingQueryRepo, IShowtimeQueryRepo
from src.service.seat_lock.app.interface.i_lock_store import LockStoreUnavailableError
from src.service.seat_lock.app.query.seat_lock_query import SeatLockQuery
from src.service.seat_lock.domain.seat_lock_entity import SeatLock
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class AvailabilityReconciler:
    def __init__(
        self,
        showtime_query_repo: IShowtimeQueryRepo,
        booking_query_repo: IBookingQueryRepo,
        seat_lock_query: SeatLockQuery,
    ) -> None:
        self.showtime_query_repo = showtime_query_repo
        self.booking_query_repo = booking_query_repo
        self.seat_lock_query = seat_lock_query
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def get_seat_map(self, *, showtime_id: int, viewer_id: Optional[int] = None) -> SeatMap:
        with self.tracer.start_as_current_span(
            'query.get_seat_map', attributes={'showtime.id': showtime_id}
        ):
            showtime = await self.showtime_query_repo.get_by_id(showtime_id=showtime_id)
            if showtime is None:
                raise NotFoundError(f'Showtime {showtime_id} not found')

            booked = await self.booking_query_repo.list_active_seats(showtime_id=showtime_id)
            locks: dict[SeatCoordinate, SeatLock] = {}
            lock_state_known = True
            try:
                locks = {
                    lock.seat: lock
                    for lock in await self.seat_lock_query.list_showtime_locks(
                        showtime_id=showtime_id
                    )
                }
            except LockStoreUnavailableError as e:
                lock_state_known = False
                Logger.base.warning(
                    f'⚠️ [AVAILABILITY] Lock state unknown for showtime {showtime_id}, '
                    f'showing unlocked: {e.message}'
                )

            # Without a published layout the map is whatever is booked or held
            known_seats = set(showtime.iter_seats()) | {
                seat for seat in booked | set(locks) if showtime.has_seat(seat)
            }
            seats = [
                self._status_of(seat=seat, booked=booked, locks=locks, viewer_id=viewer_id)
                for seat in sorted(known_seats)
            ]
            return SeatMap(
                showtime_id=showtime_id,
                seats=seats,
                available_seats=showtime.available_seats,
                lock_state_known=lock_state_known,
            )

    @Logger.io
    async def check_requested_seats(
        self,
        *,
        showtime_id: int,
        seats: list[SeatCoordinate],
        user_id: Optional[int] = None,
    ) -> SeatCheckResult:
        """
        Pre-flight check before acquiring locks. Seats locked by ``user_id`` itself
        count as available to that user.
        """
        booked = await self.booking_query_repo.list_active_seats(showtime_id=showtime_id)
        locks: dict[SeatCoordinate, SeatLock] = {}
        lock_state_known = True
        try:
            locks = await self.seat_lock_query.get_locks(showtime_id=showtime_id, seats=seats)
        except LockStoreUnavailableError as e:
            lock_state_known = False
            Logger.base.warning(
                f'⚠️ [AVAILABILITY] Lock state unknown for showtime {showtime_id}: {e.message}'
            )

        unavailable: list[SeatUnavailability] = []
        for seat in dict.fromkeys(seats):
            status = self._status_of(seat=seat, booked=booked, locks=locks, viewer_id=user_id)
            if status.state == SeatState.BOOKED:
                unavailable.append(SeatUnavailability(seat=seat, reason=UnavailableReason.BOOKED))
            elif status.state == SeatState.LOCKED and not status.held_by_viewer:
                unavailable.append(SeatUnavailability(seat=seat, reason=UnavailableReason.LOCKED))

        return SeatCheckResult(
            available=not unavailable,
            unavailable_seats=unavailable,
            lock_state_known=lock_state_known,
        )

    @staticmethod
    def _status_of(
        *,
        seat: SeatCoordinate,
        booked: set[SeatCoordinate],
        locks: dict[SeatCoordinate, SeatLock],
        viewer_id: Optional[int],
    ) -> SeatStatus:
        if seat in booked:
            return SeatStatus(seat=seat, state=SeatState.BOOKED)
        lock = locks.get(seat)
        if lock is not None:
            return SeatStatus(
                seat=seat,
                state=SeatState.LOCKED,
                held_by_viewer=viewer_id is not None and lock.is_held_by(viewer_id),
            )
        return SeatStatus(seat=seat, state=SeatState.AVAILABLE)
