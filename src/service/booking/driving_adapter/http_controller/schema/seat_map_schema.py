from typing import List, Literal

from pydantic import BaseModel, Field

from src.service.booking.app.dto import SeatCheckResult, SeatMap
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    UnavailableSeatSchema,
)
from src.service.seat_lock.driving_adapter.http_controller.schema.seat_lock_schema import (
    SeatSchema,
)


class SeatStatusSchema(BaseModel):
    row: str
    seat_number: int
    state: Literal['available', 'locked', 'booked']
    held_by_viewer: bool = False


class SeatMapResponse(BaseModel):
    showtime_id: int
    available_seats: int
    lock_state_known: bool
    seats: List[SeatStatusSchema]

    @classmethod
    def from_dto(cls, seat_map: SeatMap) -> 'SeatMapResponse':
        return cls(
            showtime_id=seat_map.showtime_id,
            available_seats=seat_map.available_seats,
            lock_state_known=seat_map.lock_state_known,
            seats=[
                SeatStatusSchema(
                    row=status.seat.row,
                    seat_number=status.seat.seat_number,
                    state=status.state.value,
                    held_by_viewer=status.held_by_viewer,
                )
                for status in seat_map.seats
            ],
        )


class SeatCheckRequest(BaseModel):
    seats: List[SeatSchema] = Field(min_length=1)
    user_id: int | None = None


class SeatCheckResponse(BaseModel):
    available: bool
    lock_state_known: bool
    unavailable_seats: List[UnavailableSeatSchema] = []

    @classmethod
    def from_dto(cls, result: SeatCheckResult) -> 'SeatCheckResponse':
        return cls(
            available=result.available,
            lock_state_known=result.lock_state_known,
            unavailable_seats=[UnavailableSeatSchema.from_dto(u) for u in result.unavailable_seats],
        )
