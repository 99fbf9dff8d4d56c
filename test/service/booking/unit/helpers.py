"""
Test helpers for booking unit tests

In-memory implementations of the booking ports. ``InMemoryBookingStore`` keeps the
same rules the PostgreSQL repository enforces inside its transactions (overlap
check, inventory check, conditional status update, counter adjustment), so use
cases can be exercised end to end without a database.
"""

from datetime import datetime, timedelta
from typing import Optional

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import DataIntegrityError, NotFoundError
from src.service.booking.app.command.apply_payment_outcome_use_case import (
    ApplyPaymentOutcomeUseCase,
)
from src.service.booking.app.command.booking_transitioner import BookingTransitioner
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import (
    CreateBookingUseCase,
    RequestedSeat,
)
from src.service.booking.app.command.expire_pending_bookings_use_case import (
    ExpirePendingBookingsUseCase,
)
from src.service.booking.app.interface import (
    BookingStatusConflictError,
    IBookingBroadcaster,
    IBookingCommandRepo,
    IBookingQueryRepo,
    INotificationDispatcher,
    IShowtimeQueryRepo,
    InsufficientSeatsError,
    SeatAlreadyBookedError,
)
from src.service.booking.app.query.availability_reconciler import AvailabilityReconciler
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.domain.domain_event.booking_events import (
    BookingBroadcast,
    BookingNotification,
)
from src.service.booking.domain.entity.booking_entity import Booking, PaymentStatus
from src.service.booking.domain.entity.showtime_entity import Showtime
from src.service.seat_lock.app.command.seat_lock_manager import SeatLockManager
from src.service.seat_lock.app.interface.i_lock_store import ILockStore
from src.service.seat_lock.app.query.seat_lock_query import SeatLockQuery
from src.service.seat_lock.driven_adapter.state.in_memory_lock_store import InMemoryLockStore
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate
from test.service.seat_lock.unit.helpers import mock_metrics


class ManualClock:
    """UTC clock for use cases; only moves when told to"""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


def seat(label: str) -> SeatCoordinate:
    return SeatCoordinate.from_label(label)


def seats(*labels: str) -> list[SeatCoordinate]:
    return [seat(label) for label in labels]


def requested(*labels: str, price: Optional[int] = None) -> list[RequestedSeat]:
    return [RequestedSeat(seat=s, price=price) for s in seats(*labels)]


def make_showtime(
    *,
    id: int = 1,
    start_time: datetime,
    price: int = 250,
    capacity: int = 10,
    available_seats: Optional[int] = None,
    seat_layout: Optional[dict[str, int]] = None,
) -> Showtime:
    return Showtime(
        id=id,
        start_time=start_time,
        price=price,
        capacity=capacity,
        available_seats=capacity if available_seats is None else available_seats,
        seat_layout={'A': 5, 'B': 5} if seat_layout is None else seat_layout,
    )


class InMemoryBookingStore(IBookingCommandRepo):
    def __init__(self, *showtimes: Showtime) -> None:
        self.showtimes: dict[int, Showtime] = {s.id: s for s in showtimes}
        self.bookings: dict[UUID, Booking] = {}

    def showtime(self, showtime_id: int) -> Showtime:
        return self.showtimes[showtime_id]

    def active_seats(self, showtime_id: int) -> set[SeatCoordinate]:
        return {
            coordinate
            for booking in self.bookings.values()
            if booking.showtime_id == showtime_id and booking.is_active
            for coordinate in booking.seat_coordinates
        }

    def reserved_count(self, showtime_id: int) -> int:
        return len(self.active_seats(showtime_id))

    # ---- command ----
    async def create(self, *, booking: Booking) -> Booking:
        showtime = self.showtimes.get(booking.showtime_id)
        if showtime is None:
            raise NotFoundError(f'Showtime {booking.showtime_id} not found')

        taken = self.active_seats(booking.showtime_id)
        overlap = [c for c in booking.seat_coordinates if c in taken]
        if overlap:
            raise SeatAlreadyBookedError(seats=sorted(overlap))
        if showtime.available_seats < booking.seat_count:
            raise InsufficientSeatsError(
                requested=booking.seat_count, available=showtime.available_seats
            )

        self.bookings[booking.id] = booking
        showtime.available_seats -= booking.seat_count
        return booking

    async def transition(self, *, current: Booking, updated: Booking) -> Booking:
        stored = self.bookings.get(current.id)
        if stored is None or stored.payment_status != current.payment_status:
            raise BookingStatusConflictError(
                booking_id=current.id, expected_status=current.payment_status
            )

        returned = stored.seats_returned_by(updated.payment_status)
        if returned:
            showtime = self.showtimes.get(stored.showtime_id)
            if showtime is None:
                raise DataIntegrityError(f'Showtime {stored.showtime_id} missing')
            if showtime.available_seats + returned > showtime.capacity:
                raise DataIntegrityError('available_seats would exceed capacity')
            showtime.available_seats += returned

        self.bookings[updated.id] = updated
        return updated

    def pending_created_before(self, cutoff: datetime, limit: int) -> list[Booking]:
        pending = [
            b
            for b in self.bookings.values()
            if b.payment_status == PaymentStatus.PENDING
            and b.booking_date is not None
            and b.booking_date < cutoff
        ]
        return sorted(pending, key=lambda b: b.booking_date)[:limit]


class ShowtimeView(IShowtimeQueryRepo):
    def __init__(self, store: InMemoryBookingStore) -> None:
        self.store = store

    async def get_by_id(self, *, showtime_id: int) -> Showtime | None:
        showtime = self.store.showtimes.get(showtime_id)
        return None if showtime is None else attrs.evolve(showtime)


class BookingView(IBookingQueryRepo):
    def __init__(self, store: InMemoryBookingStore) -> None:
        self.store = store

    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        return self.store.bookings.get(booking_id)

    async def list_active_seats(self, *, showtime_id: int) -> set[SeatCoordinate]:
        return self.store.active_seats(showtime_id)

    async def list_pending_created_before(
        self, *, cutoff: datetime, limit: int = 100
    ) -> list[Booking]:
        return self.store.pending_created_before(cutoff, limit)


class RecordingNotificationDispatcher(INotificationDispatcher):
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[BookingNotification] = []

    async def dispatch(self, *, notification: BookingNotification) -> None:
        if self.fail:
            raise ConnectionError('notification service down')
        self.sent.append(notification)


class RecordingBroadcaster(IBookingBroadcaster):
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.events: list[BookingBroadcast] = []

    async def broadcast(self, *, event: BookingBroadcast) -> None:
        if self.fail:
            raise ConnectionError('pubsub down')
        self.events.append(event)


class BookingSystem:
    """
    All booking use cases wired against in-memory fakes

    Example:
        ```python
        system = BookingSystem(make_showtime(start_time=...), clock=clock)
        result = await system.create_booking.execute(...)
        assert system.store.showtime(1).available_seats == 8
        ```
    """

    def __init__(
        self,
        *showtimes: Showtime,
        clock: ManualClock,
        lock_store: Optional[ILockStore] = None,
        notification_dispatcher: Optional[RecordingNotificationDispatcher] = None,
        broadcaster: Optional[RecordingBroadcaster] = None,
    ) -> None:
        self.clock = clock
        self.store = InMemoryBookingStore(*showtimes)
        self.showtime_repo = ShowtimeView(self.store)
        self.booking_query_repo = BookingView(self.store)
        self.lock_store = lock_store if lock_store is not None else InMemoryLockStore()
        self.notifications = notification_dispatcher or RecordingNotificationDispatcher()
        self.broadcaster = broadcaster or RecordingBroadcaster()
        self.metrics = mock_metrics()

        self.seat_lock_manager = SeatLockManager(
            lock_store=self.lock_store, metrics=self.metrics, clock=clock
        )
        self.seat_lock_query = SeatLockQuery(lock_store=self.lock_store)
        self.transitioner = BookingTransitioner(
            booking_command_repo=self.store,
            seat_lock_manager=self.seat_lock_manager,
            notification_dispatcher=self.notifications,
            booking_broadcaster=self.broadcaster,
            metrics=self.metrics,
        )
        self.create_booking = CreateBookingUseCase(
            showtime_query_repo=self.showtime_repo,
            booking_command_repo=self.store,
            seat_lock_manager=self.seat_lock_manager,
            booking_transitioner=self.transitioner,
            metrics=self.metrics,
            clock=clock,
        )
        self.apply_payment_outcome = ApplyPaymentOutcomeUseCase(
            booking_query_repo=self.booking_query_repo,
            booking_transitioner=self.transitioner,
            clock=clock,
        )
        self.cancel_booking = CancelBookingUseCase(
            booking_query_repo=self.booking_query_repo,
            showtime_query_repo=self.showtime_repo,
            booking_transitioner=self.transitioner,
            clock=clock,
        )
        self.expire_pending_bookings = ExpirePendingBookingsUseCase(
            booking_query_repo=self.booking_query_repo,
            booking_transitioner=self.transitioner,
            clock=clock,
        )
        self.get_booking = GetBookingUseCase(booking_query_repo=self.booking_query_repo)
        self.reconciler = AvailabilityReconciler(
            showtime_query_repo=self.showtime_repo,
            booking_query_repo=self.booking_query_repo,
            seat_lock_query=self.seat_lock_query,
        )

    def assert_capacity_conserved(self, showtime_id: int = 1) -> None:
        showtime = self.store.showtime(showtime_id)
        assert showtime.available_seats == showtime.capacity - self.store.reserved_count(
            showtime_id
        )
