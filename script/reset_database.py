#!/usr/bin/env python3
"""
Database Reset Script
Reset PostgreSQL database structure

Features:
1. Drop & Recreate Database - completely wipe the database
2. Apply schema.sql - create showtime / booking / booking_seat
3. Flush Kvrocks - clear seat locks and the notification queue

Notes:
- This script only resets database structure, does not seed test data
- To seed showtimes, run `python -m script.seed_data`
"""

import asyncio

import asyncpg
import redis.asyncio as aioredis

from src.platform.config.core_setting import settings
from src.platform.constant.path import SCHEMA_SQL_PATH


DB_WAIT_SECONDS = 1


def _admin_dsn() -> str:
    return (
        f'postgresql://{settings.POSTGRES_USER}:{settings.POSTGRES_PASSWORD.get_secret_value()}'
        f'@{settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/postgres'
    )


async def _drop_and_create_db(db_name: str) -> None:
    """Drop and recreate database"""
    conn = await asyncpg.connect(_admin_dsn())
    try:
        await conn.execute(
            'SELECT pg_terminate_backend(pid) FROM pg_stat_activity '
            'WHERE datname = $1 AND pid <> pg_backend_pid()',
            db_name,
        )
        await conn.execute(f'DROP DATABASE IF EXISTS "{db_name}"')
        print(f"   ✅ Database '{db_name}' dropped")

        await asyncio.sleep(DB_WAIT_SECONDS)

        await conn.execute(f'CREATE DATABASE "{db_name}"')
        print(f"   ✅ Database '{db_name}' created")
    finally:
        await conn.close()


async def _apply_schema() -> None:
    print(f'   🔄 Applying {SCHEMA_SQL_PATH.name}...')
    conn = await asyncpg.connect(settings.DATABASE_URL)
    try:
        await conn.execute(SCHEMA_SQL_PATH.read_text())
        table_count = await conn.fetchval(
            "SELECT count(*) FROM information_schema.tables WHERE table_schema = 'public'"
        )
    finally:
        await conn.close()
    print(f'   ✅ Schema applied ({table_count} tables)')


async def drop_and_recreate_database() -> None:
    """Completely drop and recreate database"""
    print(f'Server: {settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}')
    print(f'Database name: {settings.POSTGRES_DB}')

    try:
        print('🗑️ Dropping database...')
        await _drop_and_create_db(settings.POSTGRES_DB)

        print('🏗️ Creating schema...')
        await _apply_schema()
        print('Database recreation completed!')

    except Exception as e:
        print(f'❌ Failed to recreate database: {e}')
        raise


async def flush_kvrocks() -> None:
    """Flush all Kvrocks data"""
    try:
        print('🗑️  Flushing Kvrocks...')

        client = await aioredis.from_url(
            f'redis://{settings.KVROCKS_HOST}:{settings.KVROCKS_PORT}/{settings.KVROCKS_DB}',
            password=settings.KVROCKS_PASSWORD if settings.KVROCKS_PASSWORD else None,
            decode_responses=True,
        )

        await client.flushdb()
        await client.aclose()

        print('✅ Kvrocks flushed successfully!')

    except Exception as e:
        print(f'⚠️  Failed to flush Kvrocks (non-critical): {e}')
        print('    Kvrocks may not be running, continuing anyway...')


async def main() -> None:
    print('🔄 Starting database reset...')
    print('=' * 50)

    try:
        await drop_and_recreate_database()
        print()

        await flush_kvrocks()
        print()

        print('=' * 50)
        print('✅ Database reset completed!')
        print('💡 To seed showtimes, run: python -m script.seed_data')

    except Exception as e:
        print(f'❌ Reset failed: {e}')
        raise SystemExit(1) from e


if __name__ == '__main__':
    asyncio.run(main())
