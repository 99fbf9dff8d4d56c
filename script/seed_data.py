#!/usr/bin/env python3
"""
Showtime Seed Script

Creates a few upcoming showtimes with a row/seat layout. Size comes from the
SEATS environment variable (rows of 10 seats, default 100).
"""

import asyncio
from datetime import datetime, timedelta, timezone
import os
import string

import asyncpg
import orjson

from src.platform.config.core_setting import settings


SEATS_PER_ROW = 10

# (title, hours from now, price)
SHOWTIMES = [
    ('Matinee', 3, 250),
    ('Evening', 14, 300),
    ('Tomorrow Night', 30, 320),
]


def _build_layout(total_seats: int) -> dict[str, int]:
    layout: dict[str, int] = {}
    remaining = total_seats
    for row in string.ascii_uppercase:
        if remaining <= 0:
            break
        layout[row] = min(SEATS_PER_ROW, remaining)
        remaining -= layout[row]
    return layout


async def seed_showtimes(total_seats: int) -> list[int]:
    layout = _build_layout(total_seats)
    capacity = sum(layout.values())
    now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)

    conn = await asyncpg.connect(settings.DATABASE_URL)
    try:
        ids = []
        for title, hours_ahead, price in SHOWTIMES:
            showtime_id = await conn.fetchval(
                """
                INSERT INTO showtime (movie_title, start_time, price, capacity,
                                      available_seats, seat_layout)
                VALUES ($1, $2, $3, $4, $4, $5::jsonb)
                RETURNING id
                """,
                title,
                now + timedelta(hours=hours_ahead),
                price,
                capacity,
                orjson.dumps(layout).decode(),
            )
            print(f'   🎬 Showtime {showtime_id}: {title} (+{hours_ahead}h, {capacity} seats)')
            ids.append(showtime_id)
        return ids
    finally:
        await conn.close()


async def main() -> None:
    total_seats = int(os.getenv('SEATS', '100'))
    print(f'🌱 Seeding showtimes with {total_seats} seats each...')
    await seed_showtimes(total_seats)
    print('✅ Seed completed!')


if __name__ == '__main__':
    asyncio.run(main())
