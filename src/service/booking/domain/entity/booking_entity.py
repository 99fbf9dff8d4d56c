from datetime import datetime
from enum import StrEnum
from typing import List, Optional

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class PaymentStatus(StrEnum):
    PENDING = 'pending'
    PAID = 'paid'
    FAILED = 'failed'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'


class PaymentMethod(StrEnum):
    CREDIT_CARD = 'credit_card'
    DEBIT_CARD = 'debit_card'
    NET_BANKING = 'net_banking'
    UPI = 'upi'
    WALLET = 'wallet'


# Bookings in these statuses own their seats and count against capacity
ACTIVE_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PAID})

ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset(
        {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
    ),
    PaymentStatus.PAID: frozenset(
        {PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.REFUNDED}
    ),
    PaymentStatus.FAILED: frozenset({PaymentStatus.CANCELLED}),
    PaymentStatus.CANCELLED: frozenset(),
    PaymentStatus.REFUNDED: frozenset(),
}


class CancellationWindowClosedError(DomainError):
    def __init__(self, *, hours_until_showtime: float, cutoff_hours: float) -> None:
        self.hours_until_showtime = hours_until_showtime
        super().__init__(
            f'Booking can no longer be cancelled: showtime starts in '
            f'{max(hours_until_showtime, 0):.1f}h, cancellation closes {cutoff_hours:g}h before'
        )


@attrs.define(frozen=True)
class BookingSeat:
    row: str
    seat_number: int
    price: int

    @property
    def coordinate(self) -> SeatCoordinate:
        return SeatCoordinate(row=self.row, seat_number=self.seat_number)

    def to_dict(self) -> dict:
        return {'row': self.row, 'seat_number': self.seat_number, 'price': self.price}


@attrs.define
class Booking:
    id: UUID
    user_id: int
    showtime_id: int
    seats: List[BookingSeat]
    total_amount: int
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    booking_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        user_id: int,
        showtime_id: int,
        seats: List[BookingSeat],
        payment_method: PaymentMethod,
        now: datetime,
        payment_status: PaymentStatus = PaymentStatus.PENDING,
    ) -> 'Booking':
        if not seats:
            raise DomainError('A booking needs at least one seat')
        coordinates = [seat.coordinate for seat in seats]
        if len(set(coordinates)) != len(coordinates):
            raise DomainError('A seat can only appear once per booking')
        if any(seat.price < 0 for seat in seats):
            raise DomainError('Seat price cannot be negative')
        if payment_status not in ACTIVE_STATUSES:
            raise DomainError(f'A booking cannot be created as {payment_status}')

        return cls(
            id=id,
            user_id=user_id,
            showtime_id=showtime_id,
            seats=list(seats),
            total_amount=sum(seat.price for seat in seats),
            payment_method=payment_method,
            payment_status=payment_status,
            booking_date=now,
            updated_at=now,
        )

    @property
    def seat_coordinates(self) -> list[SeatCoordinate]:
        return [seat.coordinate for seat in self.seats]

    @property
    def seat_count(self) -> int:
        return len(self.seats)

    @property
    def is_active(self) -> bool:
        return self.payment_status in ACTIVE_STATUSES

    def seats_returned_by(self, new_status: PaymentStatus) -> int:
        """Capacity handed back when moving from the current status to ``new_status``"""
        if self.is_active and new_status not in ACTIVE_STATUSES:
            return self.seat_count
        return 0

    def _transition_to(
        self, new_status: PaymentStatus, *, now: datetime, **changes
    ) -> 'Booking':
        if new_status not in ALLOWED_TRANSITIONS[self.payment_status]:
            raise DomainError(
                f'Booking {self.id} cannot move from {self.payment_status} to {new_status}'
            )
        return attrs.evolve(
            self, payment_status=new_status, updated_at=now, **changes
        )

    @Logger.io
    def mark_as_paid(self, *, now: datetime) -> 'Booking':
        return self._transition_to(PaymentStatus.PAID, now=now)

    @Logger.io
    def mark_as_failed(self, *, now: datetime) -> 'Booking':
        return self._transition_to(PaymentStatus.FAILED, now=now)

    @Logger.io
    def mark_as_refunded(self, *, now: datetime) -> 'Booking':
        return self._transition_to(PaymentStatus.REFUNDED, now=now)

    @Logger.io
    def cancel(self, *, showtime_start: datetime, now: datetime, cutoff_hours: float) -> 'Booking':
        """
        Cancel the booking while the cancellation window is open

        Raises:
            DomainError: Booking is already cancelled or refunded
            CancellationWindowClosedError: Showtime starts within ``cutoff_hours``
        """
        if self.payment_status in (PaymentStatus.CANCELLED, PaymentStatus.REFUNDED):
            raise DomainError(f'Booking is already {self.payment_status}')

        hours_until_showtime = (showtime_start - now).total_seconds() / 3600
        if hours_until_showtime < cutoff_hours:
            raise CancellationWindowClosedError(
                hours_until_showtime=hours_until_showtime, cutoff_hours=cutoff_hours
            )
        return self._transition_to(PaymentStatus.CANCELLED, now=now, cancelled_at=now)

    def to_dict(self) -> dict:
        return {
            'id': str(self.id),
            'user_id': self.user_id,
            'showtime_id': self.showtime_id,
            'seats': [seat.to_dict() for seat in self.seats],
            'total_amount': self.total_amount,
            'payment_method': self.payment_method.value,
            'payment_status': self.payment_status.value,
            'booking_date': self.booking_date.isoformat() if self.booking_date else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
        }
