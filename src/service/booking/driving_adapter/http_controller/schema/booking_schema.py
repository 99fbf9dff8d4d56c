from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.booking.app.dto import SeatUnavailability
from src.service.booking.domain.entity.booking_entity import (
    Booking,
    PaymentMethod,
    PaymentStatus,
)
from src.service.seat_lock.driving_adapter.http_controller.schema.seat_lock_schema import (
    SeatSchema,
)


class BookingSeatSchema(SeatSchema):
    price: Optional[int] = Field(default=None, ge=0)


class BookingCreateRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'showtime_id': 1,
                'user_id': 42,
                'seats': [{'row': 'A', 'seat_number': 1, 'price': 250}],
                'payment_method': 'upi',
            }
        }
    )

    showtime_id: int
    user_id: int
    seats: List[BookingSeatSchema] = Field(min_length=1)
    payment_method: PaymentMethod
    payment_status: Literal['pending', 'paid'] = 'pending'


class BookingResponse(BaseModel):
    id: UtilsUUID7
    user_id: int
    showtime_id: int
    seats: List[BookingSeatSchema]
    total_amount: int
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    booking_date: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    locking_bypassed: bool = False

    @classmethod
    def from_entity(cls, booking: Booking, *, locking_bypassed: bool = False) -> 'BookingResponse':
        return cls(
            id=booking.id,
            user_id=booking.user_id,
            showtime_id=booking.showtime_id,
            seats=[
                BookingSeatSchema(row=s.row, seat_number=s.seat_number, price=s.price)
                for s in booking.seats
            ],
            total_amount=booking.total_amount,
            payment_method=booking.payment_method,
            payment_status=booking.payment_status,
            booking_date=booking.booking_date,
            cancelled_at=booking.cancelled_at,
            locking_bypassed=locking_bypassed,
        )


class UnavailableSeatSchema(BaseModel):
    seat: SeatSchema
    reason: Literal['booked', 'locked']

    @classmethod
    def from_dto(cls, item: SeatUnavailability) -> 'UnavailableSeatSchema':
        return cls(seat=SeatSchema.from_coordinate(item.seat), reason=item.reason.value)


class BookingRejectionResponse(BaseModel):
    error_code: str
    message: str
    unavailable_seats: List[UnavailableSeatSchema] = []


class PaymentOutcomeRequest(BaseModel):
    outcome: Literal['succeeded', 'failed', 'refunded']


class CancelBookingRequest(BaseModel):
    user_id: Optional[int] = None


class CancellationResponse(BaseModel):
    booking: BookingResponse
    refund_percentage: int
    refund_amount: int
