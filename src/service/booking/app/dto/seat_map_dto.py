from enum import StrEnum

import attrs

from src.service.booking.app.dto.booking_result import SeatUnavailability
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class SeatState(StrEnum):
    AVAILABLE = 'available'
    LOCKED = 'locked'
    BOOKED = 'booked'


@attrs.define(frozen=True)
class SeatStatus:
    seat: SeatCoordinate
    state: SeatState
    held_by_viewer: bool = False


@attrs.define(frozen=True)
class SeatMap:
    showtime_id: int
    seats: list[SeatStatus]
    available_seats: int
    # False when the lock store was unreachable and locks were ignored
    lock_state_known: bool = True

    def count(self, state: SeatState) -> int:
        return sum(1 for status in self.seats if status.state == state)


@attrs.define(frozen=True)
class SeatCheckResult:
    available: bool
    unavailable_seats: list[SeatUnavailability] = attrs.field(factory=list)
    lock_state_known: bool = True
