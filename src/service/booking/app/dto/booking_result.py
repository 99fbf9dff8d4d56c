from enum import StrEnum
from typing import Optional

import attrs

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class BookingErrorCode(StrEnum):
    SEAT_UNAVAILABLE = 'seat_unavailable'
    SHOWTIME_IN_PAST = 'showtime_in_past'
    INSUFFICIENT_INVENTORY = 'insufficient_inventory'
    TOO_LATE_TO_CANCEL = 'too_late_to_cancel'


class UnavailableReason(StrEnum):
    BOOKED = 'booked'
    LOCKED = 'locked'


@attrs.define(frozen=True)
class SeatUnavailability:
    seat: SeatCoordinate
    reason: UnavailableReason


@attrs.define(frozen=True)
class BookingResult:
    """Outcome of booking creation; expected rejections are values, not exceptions"""

    success: bool
    booking: Optional[Booking] = None
    error_code: Optional[BookingErrorCode] = None
    message: str = ''
    unavailable_seats: list[SeatUnavailability] = attrs.field(factory=list)
    locking_bypassed: bool = False

    @classmethod
    def created(cls, *, booking: Booking, locking_bypassed: bool = False) -> 'BookingResult':
        return cls(success=True, booking=booking, locking_bypassed=locking_bypassed)

    @classmethod
    def rejected(
        cls,
        *,
        error_code: BookingErrorCode,
        message: str,
        unavailable_seats: Optional[list[SeatUnavailability]] = None,
    ) -> 'BookingResult':
        return cls(
            success=False,
            error_code=error_code,
            message=message,
            unavailable_seats=unavailable_seats or [],
        )


@attrs.define(frozen=True)
class CancellationResult:
    success: bool
    booking: Optional[Booking] = None
    refund_percentage: int = 0
    refund_amount: int = 0
    error_code: Optional[BookingErrorCode] = None
    message: str = ''

    @classmethod
    def cancelled(
        cls, *, booking: Booking, refund_percentage: int, refund_amount: int
    ) -> 'CancellationResult':
        return cls(
            success=True,
            booking=booking,
            refund_percentage=refund_percentage,
            refund_amount=refund_amount,
        )

    @classmethod
    def too_late(cls, *, message: str) -> 'CancellationResult':
        return cls(success=False, error_code=BookingErrorCode.TOO_LATE_TO_CANCEL, message=message)
