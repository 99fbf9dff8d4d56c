"""
Booking Transitioner - the common tail of every booking status change

Flow:
1. Persist the status change (capacity adjusted in the same transaction)
2. Release seat locks when the booking is finalized (paid, failed, cancelled)
3. Emit one notification and one broadcast, fire-and-forget
"""

from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.seat_booking_metrics import SeatBookingMetrics
from src.service.booking.app.interface import (
    IBookingBroadcaster,
    IBookingCommandRepo,
    INotificationDispatcher,
)
from src.service.booking.domain.domain_event.booking_events import (
    BookingBroadcast,
    BookingNotification,
    transition_events,
)
from src.service.booking.domain.entity.booking_entity import Booking, PaymentStatus
from src.service.seat_lock.app.command.seat_lock_manager import SeatLockManager


LOCK_RELEASING_STATUSES = frozenset(
    {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
)


class BookingTransitioner:
    def __init__(
        self,
        booking_command_repo: IBookingCommandRepo,
        seat_lock_manager: SeatLockManager,
        notification_dispatcher: INotificationDispatcher,
        booking_broadcaster: IBookingBroadcaster,
        metrics: SeatBookingMetrics,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.seat_lock_manager = seat_lock_manager
        self.notification_dispatcher = notification_dispatcher
        self.booking_broadcaster = booking_broadcaster
        self.metrics = metrics
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def apply(self, *, current: Booking, updated: Booking) -> Booking:
        with self.tracer.start_as_current_span(
            'booking.transition',
            attributes={
                'booking.id': str(current.id),
                'booking.from_status': current.payment_status.value,
                'booking.to_status': updated.payment_status.value,
            },
        ):
            persisted = await self.booking_command_repo.transition(current=current, updated=updated)
            self.metrics.record_transition(
                from_status=current.payment_status.value,
                to_status=persisted.payment_status.value,
            )
            Logger.base.info(
                f'🎟️ [FINALIZER] Booking {persisted.id}: '
                f'{current.payment_status} → {persisted.payment_status}'
                f' (seats returned: {current.seats_returned_by(persisted.payment_status)})'
            )

            if persisted.payment_status in LOCK_RELEASING_STATUSES:
                await self.release_locks(booking=persisted)

            notification, broadcast = transition_events(persisted)
            await self.emit(notification=notification, broadcast=broadcast)
            return persisted

    async def release_locks(self, *, booking: Booking) -> None:
        # Locks belong to the booking's user; other users' holds stay untouched
        await self.seat_lock_manager.release(
            showtime_id=booking.showtime_id,
            seats=booking.seat_coordinates,
            user_id=booking.user_id,
        )

    async def emit(
        self, *, notification: BookingNotification, broadcast: BookingBroadcast
    ) -> None:
        """Deliver both side effects; a failure is logged and never undoes the booking"""
        try:
            await self.notification_dispatcher.dispatch(notification=notification)
        except Exception as e:
            self.metrics.record_side_effect_failure(channel='notification')
            Logger.base.warning(
                f'⚠️ [FINALIZER] Notification {notification.kind} for booking '
                f'{notification.booking.id} not delivered: {e}'
            )

        try:
            await self.booking_broadcaster.broadcast(event=broadcast)
        except Exception as e:
            self.metrics.record_side_effect_failure(channel='broadcast')
            Logger.base.warning(
                f'⚠️ [FINALIZER] Broadcast {broadcast.type} for booking '
                f'{broadcast.booking.id} not delivered: {e}'
            )
