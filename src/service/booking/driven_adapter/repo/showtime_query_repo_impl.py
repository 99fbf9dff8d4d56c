import orjson

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface import IShowtimeQueryRepo
from src.service.booking.domain.entity.showtime_entity import Showtime


class ShowtimeQueryRepoImpl(IShowtimeQueryRepo):
    @Logger.io
    async def get_by_id(self, *, showtime_id: int) -> Showtime | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, start_time, price, capacity, available_seats, seat_layout
                FROM showtime
                WHERE id = $1
                """,
                showtime_id,
            )
        if row is None:
            return None

        layout = row['seat_layout']
        if isinstance(layout, (str, bytes)):
            layout = orjson.loads(layout)
        return Showtime(
            id=row['id'],
            start_time=row['start_time'],
            price=row['price'],
            capacity=row['capacity'],
            available_seats=row['available_seats'],
            seat_layout={str(r): int(count) for r, count in layout.items()},
        )
