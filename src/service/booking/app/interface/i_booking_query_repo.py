from abc import ABC, abstractmethod
from datetime import datetime

from uuid_utils import UUID

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class IBookingQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        pass

    @abstractmethod
    async def list_active_seats(self, *, showtime_id: int) -> set[SeatCoordinate]:
        """Seats held by pending or paid bookings of the showtime"""
        pass

    @abstractmethod
    async def list_pending_created_before(
        self, *, cutoff: datetime, limit: int = 100
    ) -> list[Booking]:
        """Oldest-first pending bookings created before ``cutoff``"""
        pass
