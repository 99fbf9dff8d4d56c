"""Row ↔ entity mapping shared by the asyncpg booking repositories"""

from typing import Any, Mapping

import orjson

from src.service.booking.domain.entity.booking_entity import (
    Booking,
    BookingSeat,
    PaymentMethod,
    PaymentStatus,
)


# Each row carries its seats as a JSON array built in SQL
BOOKING_SELECT = """
    SELECT
        b.id, b.user_id, b.showtime_id, b.total_amount, b.payment_method,
        b.payment_status, b.booking_date, b.updated_at, b.cancelled_at,
        COALESCE(
            json_agg(
                json_build_object('row', s.seat_row, 'seat_number', s.seat_number, 'price', s.price)
                ORDER BY s.seat_row, s.seat_number
            ) FILTER (WHERE s.booking_id IS NOT NULL),
            '[]'
        ) AS seats
    FROM booking b
    LEFT JOIN booking_seat s ON s.booking_id = b.id
"""


def row_to_booking(row: Mapping[str, Any]) -> Booking:
    seats = row['seats']
    if isinstance(seats, (str, bytes)):
        seats = orjson.loads(seats)
    return Booking(
        id=row['id'],
        user_id=row['user_id'],
        showtime_id=row['showtime_id'],
        seats=[
            BookingSeat(row=seat['row'], seat_number=seat['seat_number'], price=seat['price'])
            for seat in seats
        ],
        total_amount=row['total_amount'],
        payment_method=PaymentMethod(row['payment_method']),
        payment_status=PaymentStatus(row['payment_status']),
        booking_date=row['booking_date'],
        updated_at=row['updated_at'],
        cancelled_at=row['cancelled_at'],
    )
