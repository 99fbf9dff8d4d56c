"""
Booking Command Repository Interface

Every write keeps ``showtime.available_seats`` in step with booking statuses inside
one persisted-store transaction.
"""

from abc import ABC, abstractmethod

from src.platform.exception.exceptions import ConflictError, DomainError
from src.service.booking.domain.entity.booking_entity import Booking, PaymentStatus
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class SeatAlreadyBookedError(ConflictError):
    """Seats already belong to a pending or paid booking of the same showtime"""

    def __init__(self, *, seats: list[SeatCoordinate]) -> None:
        self.seats = seats
        super().__init__(f'Seats already booked: {", ".join(seat.label for seat in seats)}')


class InsufficientSeatsError(DomainError):
    def __init__(self, *, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f'Only {available} seats left, {requested} requested')


class BookingStatusConflictError(ConflictError):
    """The stored status changed underneath the caller"""

    def __init__(self, *, booking_id: object, expected_status: PaymentStatus) -> None:
        self.expected_status = expected_status
        super().__init__(f'Booking {booking_id} is no longer {expected_status}')


class IBookingCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, booking: Booking) -> Booking:
        """
        Persist a new pending or paid booking and reserve its seats

        In one transaction: lock the showtime row, re-check seat overlap against
        pending/paid bookings, check remaining inventory, insert, decrement
        ``available_seats``.

        Raises:
            NotFoundError: Showtime does not exist
            SeatAlreadyBookedError: Overlap with a pending or paid booking
            InsufficientSeatsError: Not enough seats left
        """
        pass

    @abstractmethod
    async def transition(self, *, current: Booking, updated: Booking) -> Booking:
        """
        Persist a status change from ``current.payment_status`` to ``updated.payment_status``

        The update only applies while the stored status still equals
        ``current.payment_status``. Seats leave the active set and go back to
        ``available_seats`` when the booking stops being pending or paid.

        Raises:
            BookingStatusConflictError: Stored status differs from ``current``
            DataIntegrityError: Counter would leave [0, capacity] or showtime is missing
        """
        pass
