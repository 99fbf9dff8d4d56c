"""
Booking Command Repository Implementation (PostgreSQL / asyncpg)

Booking rows and ``showtime.available_seats`` only change together, inside one
transaction that holds the showtime row lock.
"""

import asyncpg
from opentelemetry import trace

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.exception.exceptions import DataIntegrityError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface import (
    BookingStatusConflictError,
    IBookingCommandRepo,
    InsufficientSeatsError,
    SeatAlreadyBookedError,
)
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class BookingCommandRepoImpl(IBookingCommandRepo):
    def __init__(self) -> None:
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def create(self, *, booking: Booking) -> Booking:
        with self.tracer.start_as_current_span(
            'repo.create_booking',
            attributes={
                'booking.id': str(booking.id),
                'showtime.id': booking.showtime_id,
                'seat.count': booking.seat_count,
            },
        ):
            rows = [seat.row for seat in booking.seats]
            numbers = [seat.seat_number for seat in booking.seats]
            prices = [seat.price for seat in booking.seats]

            try:
                async with (await get_asyncpg_pool()).acquire() as conn:
                    async with conn.transaction():
                        # Serializes every booking write of this showtime
                        showtime = await conn.fetchrow(
                            'SELECT available_seats FROM showtime WHERE id = $1 FOR UPDATE',
                            booking.showtime_id,
                        )
                        if showtime is None:
                            raise NotFoundError(f'Showtime {booking.showtime_id} not found')

                        overlapping = await conn.fetch(
                            """
                            SELECT bs.seat_row, bs.seat_number
                            FROM booking_seat bs
                            JOIN unnest($2::text[], $3::int[]) AS req(seat_row, seat_number)
                              ON bs.seat_row = req.seat_row AND bs.seat_number = req.seat_number
                            WHERE bs.showtime_id = $1 AND bs.active
                            """,
                            booking.showtime_id,
                            rows,
                            numbers,
                        )
                        if overlapping:
                            raise SeatAlreadyBookedError(
                                seats=[
                                    SeatCoordinate(row=r['seat_row'], seat_number=r['seat_number'])
                                    for r in overlapping
                                ]
                            )

                        if showtime['available_seats'] < booking.seat_count:
                            raise InsufficientSeatsError(
                                requested=booking.seat_count,
                                available=showtime['available_seats'],
                            )

                        await conn.execute(
                            """
                            INSERT INTO booking (
                                id, user_id, showtime_id, total_amount, payment_method,
                                payment_status, booking_date, updated_at, cancelled_at
                            )
                            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                            """,
                            booking.id,
                            booking.user_id,
                            booking.showtime_id,
                            booking.total_amount,
                            booking.payment_method.value,
                            booking.payment_status.value,
                            booking.booking_date,
                            booking.updated_at,
                            booking.cancelled_at,
                        )
                        await conn.execute(
                            """
                            INSERT INTO booking_seat (
                                booking_id, showtime_id, seat_row, seat_number, price, active
                            )
                            SELECT $1, $2, seat_row, seat_number, price, TRUE
                            FROM unnest($3::text[], $4::int[], $5::int[])
                                AS s(seat_row, seat_number, price)
                            """,
                            booking.id,
                            booking.showtime_id,
                            rows,
                            numbers,
                            prices,
                        )
                        await conn.execute(
                            'UPDATE showtime SET available_seats = available_seats - $2 '
                            'WHERE id = $1',
                            booking.showtime_id,
                            booking.seat_count,
                        )
            except asyncpg.UniqueViolationError as e:
                raise SeatAlreadyBookedError(seats=booking.seat_coordinates) from e
            except asyncpg.CheckViolationError as e:
                raise DataIntegrityError(
                    f'Booking {booking.id} would break a showtime invariant: {e}'
                ) from e

            return booking

    @Logger.io
    async def transition(self, *, current: Booking, updated: Booking) -> Booking:
        seats_returned = current.seats_returned_by(updated.payment_status)
        with self.tracer.start_as_current_span(
            'repo.transition_booking',
            attributes={
                'booking.id': str(current.id),
                'booking.from_status': current.payment_status.value,
                'booking.to_status': updated.payment_status.value,
                'seat.returned': seats_returned,
            },
        ):
            try:
                async with (await get_asyncpg_pool()).acquire() as conn:
                    async with conn.transaction():
                        row = await conn.fetchrow(
                            """
                            UPDATE booking
                            SET payment_status = $2, updated_at = $3, cancelled_at = $4
                            WHERE id = $1 AND payment_status = $5
                            RETURNING id
                            """,
                            current.id,
                            updated.payment_status.value,
                            updated.updated_at,
                            updated.cancelled_at,
                            current.payment_status.value,
                        )
                        if row is None:
                            raise BookingStatusConflictError(
                                booking_id=current.id, expected_status=current.payment_status
                            )

                        if seats_returned:
                            await conn.execute(
                                'UPDATE booking_seat SET active = FALSE WHERE booking_id = $1',
                                current.id,
                            )
                            counter = await conn.fetchrow(
                                """
                                UPDATE showtime
                                SET available_seats = available_seats + $2
                                WHERE id = $1
                                RETURNING available_seats
                                """,
                                current.showtime_id,
                                seats_returned,
                            )
                            if counter is None:
                                raise DataIntegrityError(
                                    f'Booking {current.id} references missing showtime '
                                    f'{current.showtime_id}'
                                )
            except asyncpg.CheckViolationError as e:
                # available_seats would exceed capacity: the counter and bookings disagree
                raise DataIntegrityError(
                    f'Returning {seats_returned} seats for booking {current.id} '
                    f'breaks showtime {current.showtime_id} capacity: {e}'
                ) from e

            return updated
