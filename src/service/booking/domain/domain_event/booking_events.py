"""
Outbound booking events.

Every booking transition emits exactly one notification and one broadcast;
TRANSITION_EVENTS is the single mapping from resulting status to both.
"""

from enum import StrEnum

import attrs

from src.service.booking.domain.entity.booking_entity import Booking, PaymentStatus


class NotificationKind(StrEnum):
    BOOKING_CONFIRMATION = 'booking_confirmation'
    PAYMENT_CONFIRMATION = 'payment_confirmation'
    CANCELLATION = 'cancellation'
    PAYMENT_FAILED = 'payment_failed'
    REFUND = 'refund'


class BroadcastType(StrEnum):
    NEW_BOOKING = 'NEW_BOOKING'
    BOOKING_PAID = 'BOOKING_PAID'
    BOOKING_CANCELLED = 'BOOKING_CANCELLED'
    BOOKING_FAILED = 'BOOKING_FAILED'
    BOOKING_REFUNDED = 'BOOKING_REFUNDED'


TRANSITION_EVENTS: dict[PaymentStatus, tuple[NotificationKind, BroadcastType]] = {
    PaymentStatus.PAID: (NotificationKind.PAYMENT_CONFIRMATION, BroadcastType.BOOKING_PAID),
    PaymentStatus.FAILED: (NotificationKind.PAYMENT_FAILED, BroadcastType.BOOKING_FAILED),
    PaymentStatus.CANCELLED: (NotificationKind.CANCELLATION, BroadcastType.BOOKING_CANCELLED),
    PaymentStatus.REFUNDED: (NotificationKind.REFUND, BroadcastType.BOOKING_REFUNDED),
}


@attrs.define(frozen=True)
class BookingNotification:
    kind: NotificationKind
    booking: Booking

    @property
    def user_id(self) -> int:
        return self.booking.user_id

    def to_dict(self) -> dict:
        return {'kind': self.kind.value, 'user_id': self.user_id, 'booking': self.booking.to_dict()}


@attrs.define(frozen=True)
class BookingBroadcast:
    type: BroadcastType
    booking: Booking

    def to_dict(self) -> dict:
        return {'type': self.type.value, 'data': self.booking.to_dict()}


def creation_events(booking: Booking) -> tuple[BookingNotification, BookingBroadcast]:
    broadcast_type = (
        BroadcastType.BOOKING_PAID
        if booking.payment_status == PaymentStatus.PAID
        else BroadcastType.NEW_BOOKING
    )
    return (
        BookingNotification(kind=NotificationKind.BOOKING_CONFIRMATION, booking=booking),
        BookingBroadcast(type=broadcast_type, booking=booking),
    )


def transition_events(booking: Booking) -> tuple[BookingNotification, BookingBroadcast]:
    kind, broadcast_type = TRANSITION_EVENTS[booking.payment_status]
    return (
        BookingNotification(kind=kind, booking=booking),
        BookingBroadcast(type=broadcast_type, booking=booking),
    )
