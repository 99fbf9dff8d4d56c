from abc import ABC, abstractmethod

from src.service.booking.domain.entity.showtime_entity import Showtime


class IShowtimeQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, showtime_id: int) -> Showtime | None:
        pass
