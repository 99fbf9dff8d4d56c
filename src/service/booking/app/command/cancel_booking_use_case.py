from datetime import datetime, timezone
from typing import Callable, Optional

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import DataIntegrityError, ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.booking_transitioner import BookingTransitioner
from src.service.booking.app.dto import CancellationResult
from src.service.booking.app.interface import IBookingQueryRepo, IShowtimeQueryRepo
from src.service.booking.domain.entity.booking_entity import (
    CancellationWindowClosedError,
    PaymentStatus,
)
from src.service.booking.domain.refund_policy import calculate_refund_amount, refund_percentage


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CancelBookingUseCase:
    """
    Cancel a booking while the showtime is still far enough away

    Flow:
    1. Load booking and its showtime
    2. Quote the refund tier (paid bookings only; nothing was charged otherwise)
    3. Domain cancel: rejects cancelled/refunded bookings and closed windows
    4. Persist + return seats + release locks + notify/broadcast
    """

    def __init__(
        self,
        booking_query_repo: IBookingQueryRepo,
        showtime_query_repo: IShowtimeQueryRepo,
        booking_transitioner: BookingTransitioner,
        cancellation_cutoff_hours: float = 2.0,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.booking_query_repo = booking_query_repo
        self.showtime_query_repo = showtime_query_repo
        self.booking_transitioner = booking_transitioner
        self.cancellation_cutoff_hours = cancellation_cutoff_hours
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(
        self, *, booking_id: UUID, user_id: Optional[int] = None
    ) -> CancellationResult:
        with self.tracer.start_as_current_span(
            'use_case.cancel_booking', attributes={'booking.id': str(booking_id)}
        ):
            booking = await self.booking_query_repo.get_by_id(booking_id=booking_id)
            if booking is None:
                raise NotFoundError(f'Booking {booking_id} not found')
            if user_id is not None and booking.user_id != user_id:
                raise ForbiddenError('Booking belongs to another user')

            showtime = await self.showtime_query_repo.get_by_id(showtime_id=booking.showtime_id)
            if showtime is None:
                raise DataIntegrityError(
                    f'Booking {booking_id} references missing showtime {booking.showtime_id}'
                )

            now = self.clock()
            try:
                updated = booking.cancel(
                    showtime_start=showtime.start_time,
                    now=now,
                    cutoff_hours=self.cancellation_cutoff_hours,
                )
            except CancellationWindowClosedError as e:
                Logger.base.info(f'🚫 [FINALIZER] Cancel rejected for {booking_id}: {e.message}')
                return CancellationResult.too_late(message=e.message)

            percentage, refund_amount = 0, 0
            if booking.payment_status == PaymentStatus.PAID:
                hours_left = showtime.hours_until_start(now=now)
                percentage = refund_percentage(hours_until_showtime=hours_left)
                refund_amount = calculate_refund_amount(
                    total_amount=booking.total_amount, hours_until_showtime=hours_left
                )

            cancelled = await self.booking_transitioner.apply(current=booking, updated=updated)
            Logger.base.info(
                f'💸 [FINALIZER] Booking {booking_id} cancelled, refund {percentage}% '
                f'= {refund_amount}'
            )
            return CancellationResult.cancelled(
                booking=cancelled, refund_percentage=percentage, refund_amount=refund_amount
            )
