from datetime import datetime, timezone
from enum import StrEnum
from typing import Callable

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.booking_transitioner import BookingTransitioner
from src.service.booking.app.interface import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking, PaymentStatus


class PaymentOutcome(StrEnum):
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    REFUNDED = 'refunded'


_TARGET_STATUS = {
    PaymentOutcome.SUCCEEDED: PaymentStatus.PAID,
    PaymentOutcome.FAILED: PaymentStatus.FAILED,
    PaymentOutcome.REFUNDED: PaymentStatus.REFUNDED,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApplyPaymentOutcomeUseCase:
    """
    Apply a payment gateway result to a booking

    - succeeded: pending → paid, seat locks released
    - failed: pending/paid → failed, seats back to the pool, locks released
    - refunded: paid → refunded, seats back to the pool

    Gateways redeliver webhooks, so an outcome matching the current status is a
    no-op that returns the booking unchanged and emits nothing.
    """

    def __init__(
        self,
        booking_query_repo: IBookingQueryRepo,
        booking_transitioner: BookingTransitioner,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.booking_query_repo = booking_query_repo
        self.booking_transitioner = booking_transitioner
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, booking_id: UUID, outcome: PaymentOutcome) -> Booking:
        with self.tracer.start_as_current_span(
            'use_case.apply_payment_outcome',
            attributes={'booking.id': str(booking_id), 'payment.outcome': outcome.value},
        ):
            booking = await self.booking_query_repo.get_by_id(booking_id=booking_id)
            if booking is None:
                raise NotFoundError(f'Booking {booking_id} not found')

            target_status = _TARGET_STATUS[outcome]
            if booking.payment_status == target_status:
                Logger.base.info(
                    f'🔁 [FINALIZER] Booking {booking_id} already {target_status}, '
                    f'ignoring duplicate {outcome}'
                )
                return booking

            now = self.clock()
            if outcome == PaymentOutcome.SUCCEEDED:
                updated = booking.mark_as_paid(now=now)
            elif outcome == PaymentOutcome.FAILED:
                updated = booking.mark_as_failed(now=now)
            else:
                updated = booking.mark_as_refunded(now=now)

            return await self.booking_transitioner.apply(current=booking, updated=updated)
