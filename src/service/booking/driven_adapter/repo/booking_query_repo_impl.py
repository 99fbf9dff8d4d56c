from datetime import datetime

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.driven_adapter.repo.booking_row_mapper import (
    BOOKING_SELECT,
    row_to_booking,
)
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class BookingQueryRepoImpl(IBookingQueryRepo):
    def __init__(self) -> None:
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'{BOOKING_SELECT} WHERE b.id = $1 GROUP BY b.id',
                booking_id,
            )
        return row_to_booking(row) if row is not None else None

    @Logger.io(truncate_content=True)
    async def list_active_seats(self, *, showtime_id: int) -> set[SeatCoordinate]:
        with self.tracer.start_as_current_span(
            'repo.list_active_seats', attributes={'showtime.id': showtime_id}
        ):
            async with (await get_asyncpg_pool()).acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT seat_row, seat_number
                    FROM booking_seat
                    WHERE showtime_id = $1 AND active
                    """,
                    showtime_id,
                )
            return {SeatCoordinate(row=r['seat_row'], seat_number=r['seat_number']) for r in rows}

    @Logger.io
    async def list_pending_created_before(
        self, *, cutoff: datetime, limit: int = 100
    ) -> list[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                {BOOKING_SELECT}
                WHERE b.payment_status = 'pending' AND b.booking_date < $1
                GROUP BY b.id
                ORDER BY b.booking_date
                LIMIT $2
                """,
                cutoff,
                limit,
            )
        return [row_to_booking(row) for row in rows]
