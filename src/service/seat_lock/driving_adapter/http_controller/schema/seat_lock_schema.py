from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class SeatSchema(BaseModel):
    row: str = Field(min_length=1, max_length=8, pattern=r'^[^-:]+$')
    seat_number: int = Field(gt=0)

    def to_coordinate(self) -> SeatCoordinate:
        return SeatCoordinate(row=self.row, seat_number=self.seat_number)

    @classmethod
    def from_coordinate(cls, seat: SeatCoordinate) -> 'SeatSchema':
        return cls(row=seat.row, seat_number=seat.seat_number)


class SeatHoldRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'showtime_id': 1,
                'user_id': 42,
                'seats': [{'row': 'A', 'seat_number': 1}, {'row': 'A', 'seat_number': 2}],
            }
        }
    )

    showtime_id: int
    user_id: int
    seats: List[SeatSchema] = Field(min_length=1)


class SeatReleaseRequest(BaseModel):
    showtime_id: int
    seats: List[SeatSchema] = Field(min_length=1)
    user_id: Optional[int] = None  # Omitted → forced release


class AcquireResponse(BaseModel):
    success: bool
    locked_seats: List[SeatSchema] = []
    contested_seats: List[SeatSchema] = []
    expires_in_seconds: int
    locking_bypassed: bool = False


class SeatListResponse(BaseModel):
    seats: List[SeatSchema]


class SeatLockResponse(BaseModel):
    seat: SeatSchema
    holder_user_id: int
    acquired_at: datetime
