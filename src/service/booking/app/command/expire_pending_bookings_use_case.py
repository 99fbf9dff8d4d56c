from datetime import datetime, timedelta, timezone
from typing import Callable

from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.booking_transitioner import BookingTransitioner
from src.service.booking.app.interface import BookingStatusConflictError, IBookingQueryRepo


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExpirePendingBookingsUseCase:
    """
    Fail pending bookings whose payment never arrived

    Capacity is reserved at creation, so an abandoned pending booking would hold
    seats forever. Each expired booking goes through the normal pending → failed
    transition (seats returned, locks released, events emitted).
    """

    def __init__(
        self,
        booking_query_repo: IBookingQueryRepo,
        booking_transitioner: BookingTransitioner,
        pending_timeout_minutes: int = 15,
        batch_size: int = 100,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.booking_query_repo = booking_query_repo
        self.booking_transitioner = booking_transitioner
        self.pending_timeout_minutes = pending_timeout_minutes
        self.batch_size = batch_size
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self) -> int:
        now = self.clock()
        cutoff = now - timedelta(minutes=self.pending_timeout_minutes)
        with self.tracer.start_as_current_span(
            'use_case.expire_pending_bookings', attributes={'cutoff': cutoff.isoformat()}
        ):
            stale = await self.booking_query_repo.list_pending_created_before(
                cutoff=cutoff, limit=self.batch_size
            )
            expired = 0
            for booking in stale:
                try:
                    await self.booking_transitioner.apply(
                        current=booking, updated=booking.mark_as_failed(now=now)
                    )
                except BookingStatusConflictError:
                    # Paid or cancelled since it was listed
                    Logger.base.info(f'⏭️ [EXPIRY] Booking {booking.id} changed, skipped')
                    continue
                expired += 1

            if expired:
                Logger.base.info(f'⌛ [EXPIRY] Expired {expired} pending bookings')
            return expired
