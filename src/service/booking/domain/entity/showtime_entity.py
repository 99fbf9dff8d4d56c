from datetime import datetime
from typing import Dict, Iterator

import attrs

from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


@attrs.define
class Showtime:
    """
    One screening. ``available_seats`` is owned by the booking write path and always
    equals capacity minus the seats of pending and paid bookings.
    """

    id: int
    start_time: datetime
    price: int
    capacity: int
    available_seats: int
    seat_layout: Dict[str, int] = attrs.field(factory=dict)  # row -> seats in that row

    def has_started(self, *, now: datetime) -> bool:
        return self.start_time <= now

    def hours_until_start(self, *, now: datetime) -> float:
        return (self.start_time - now).total_seconds() / 3600

    def iter_seats(self) -> Iterator[SeatCoordinate]:
        for row, seat_count in self.seat_layout.items():
            for seat_number in range(1, seat_count + 1):
                yield SeatCoordinate(row=row, seat_number=seat_number)

    def has_seat(self, seat: SeatCoordinate) -> bool:
        # An empty layout means the showtime does not publish a seat plan
        if not self.seat_layout:
            return True
        return 1 <= seat.seat_number <= self.seat_layout.get(seat.row, 0)
