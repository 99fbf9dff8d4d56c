from datetime import datetime, timezone
from typing import Callable, Optional

import attrs
from opentelemetry import trace
import uuid_utils

from src.platform.exception.exceptions import DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.seat_booking_metrics import SeatBookingMetrics
from src.service.booking.app.command.booking_transitioner import BookingTransitioner
from src.service.booking.app.dto import (
    BookingErrorCode,
    BookingResult,
    SeatUnavailability,
    UnavailableReason,
)
from src.service.booking.app.interface import (
    IBookingCommandRepo,
    IShowtimeQueryRepo,
    InsufficientSeatsError,
    SeatAlreadyBookedError,
)
from src.service.booking.domain.domain_event.booking_events import creation_events
from src.service.booking.domain.entity.booking_entity import (
    Booking,
    BookingSeat,
    PaymentMethod,
    PaymentStatus,
)
from src.service.booking.domain.entity.showtime_entity import Showtime
from src.service.seat_lock.app.command.seat_lock_manager import SeatLockManager
from src.service.seat_lock.app.dto.acquire_result import AcquireResult
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


@attrs.define(frozen=True)
class RequestedSeat:
    seat: SeatCoordinate
    price: Optional[int] = None  # Falls back to the showtime price


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CreateBookingUseCase:
    """
    Create booking use case - hold → durable booking

    Flow:
    1. Showtime must exist and not have started
    2. Cheap inventory pre-check against ``available_seats``
    3. Acquire seat locks (all-or-nothing, renews the caller's own holds)
    4. Persist: overlap re-check + inventory decrement in one transaction
    5. Created as paid → release locks now; pending keeps them until payment
       A failed persist releases only the locks this request created
    6. Booking confirmation notification + NEW_BOOKING / BOOKING_PAID broadcast

    Seat contention and business rules come back as a rejected BookingResult so
    callers can tell "seat just went" from "showtime started" from "sold out".
    """

    def __init__(
        self,
        showtime_query_repo: IShowtimeQueryRepo,
        booking_command_repo: IBookingCommandRepo,
        seat_lock_manager: SeatLockManager,
        booking_transitioner: BookingTransitioner,
        metrics: SeatBookingMetrics,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.showtime_query_repo = showtime_query_repo
        self.booking_command_repo = booking_command_repo
        self.seat_lock_manager = seat_lock_manager
        self.booking_transitioner = booking_transitioner
        self.metrics = metrics
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self,
        *,
        showtime_id: int,
        seats: list[RequestedSeat],
        user_id: int,
        payment_method: PaymentMethod,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
    ) -> BookingResult:
        with self.tracer.start_as_current_span(
            'use_case.create_booking',
            attributes={
                'showtime.id': showtime_id,
                'user.id': user_id,
                'seat.count': len(seats),
                'booking.initial_status': payment_status.value,
            },
        ):
            showtime = await self.showtime_query_repo.get_by_id(showtime_id=showtime_id)
            if showtime is None:
                raise NotFoundError(f'Showtime {showtime_id} not found')

            now = self.clock()
            if showtime.has_started(now=now):
                return self._reject(
                    error_code=BookingErrorCode.SHOWTIME_IN_PAST,
                    message='Cannot book seats for a showtime that has already started',
                )

            # Entity validation first so a malformed request never takes locks
            booking = Booking.create(
                id=uuid_utils.uuid7(),
                user_id=user_id,
                showtime_id=showtime_id,
                seats=self._price_seats(showtime=showtime, seats=seats),
                payment_method=payment_method,
                payment_status=payment_status,
                now=now,
            )

            if showtime.available_seats < booking.seat_count:
                return self._reject(
                    error_code=BookingErrorCode.INSUFFICIENT_INVENTORY,
                    message=f'Only {showtime.available_seats} seats left, '
                    f'{booking.seat_count} requested',
                )

            acquire_result = await self.seat_lock_manager.acquire(
                showtime_id=showtime_id, seats=booking.seat_coordinates, user_id=user_id
            )
            if not acquire_result.success:
                return self._reject(
                    error_code=BookingErrorCode.SEAT_UNAVAILABLE,
                    message='Some seats are currently held by another user',
                    unavailable_seats=[
                        SeatUnavailability(seat=seat, reason=UnavailableReason.LOCKED)
                        for seat in acquire_result.contested_seats
                    ],
                )

            try:
                booking = await self.booking_command_repo.create(booking=booking)
            except SeatAlreadyBookedError as e:
                await self._release_new_locks(booking=booking, acquire_result=acquire_result)
                return self._reject(
                    error_code=BookingErrorCode.SEAT_UNAVAILABLE,
                    message=e.message,
                    unavailable_seats=[
                        SeatUnavailability(seat=seat, reason=UnavailableReason.BOOKED)
                        for seat in e.seats
                    ],
                )
            except InsufficientSeatsError as e:
                await self._release_new_locks(booking=booking, acquire_result=acquire_result)
                return self._reject(
                    error_code=BookingErrorCode.INSUFFICIENT_INVENTORY, message=e.message
                )
            except Exception:
                await self._release_new_locks(booking=booking, acquire_result=acquire_result)
                raise

            Logger.base.info(
                f'🎟️ [FINALIZER] Booking {booking.id} created as {booking.payment_status}: '
                f'user {user_id}, showtime {showtime_id}, seats '
                f'{[seat.label for seat in booking.seat_coordinates]}, total {booking.total_amount}'
            )
            self.metrics.record_booking_creation(result='created')

            if booking.payment_status == PaymentStatus.PAID:
                await self.booking_transitioner.release_locks(booking=booking)

            notification, broadcast = creation_events(booking)
            await self.booking_transitioner.emit(notification=notification, broadcast=broadcast)

            return BookingResult.created(
                booking=booking, locking_bypassed=acquire_result.locking_bypassed
            )

    async def _release_new_locks(self, *, booking: Booking, acquire_result: AcquireResult) -> None:
        # Holds the user took before this request stay with the user
        if not acquire_result.newly_acquired_seats:
            return
        await self.seat_lock_manager.release(
            showtime_id=booking.showtime_id,
            seats=acquire_result.newly_acquired_seats,
            user_id=booking.user_id,
        )

    @staticmethod
    def _price_seats(*, showtime: Showtime, seats: list[RequestedSeat]) -> list[BookingSeat]:
        priced: list[BookingSeat] = []
        for requested in seats:
            if not showtime.has_seat(requested.seat):
                raise DomainError(
                    f'Seat {requested.seat.label} does not exist for showtime {showtime.id}'
                )
            priced.append(
                BookingSeat(
                    row=requested.seat.row,
                    seat_number=requested.seat.seat_number,
                    price=showtime.price if requested.price is None else requested.price,
                )
            )
        return priced

    def _reject(
        self,
        *,
        error_code: BookingErrorCode,
        message: str,
        unavailable_seats: Optional[list[SeatUnavailability]] = None,
    ) -> BookingResult:
        self.metrics.record_booking_creation(result=error_code.value)
        Logger.base.info(f'🚫 [FINALIZER] Booking rejected ({error_code}): {message}')
        return BookingResult.rejected(
            error_code=error_code, message=message, unavailable_seats=unavailable_seats
        )
