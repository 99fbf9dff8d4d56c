import asyncio

import asyncpg
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# One pool per event loop; asyncpg connections cannot cross loops
asyncpg_pools: dict[int, asyncpg.Pool] = {}


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode uuid columns into uuid_utils.UUID so ids stay UUID7-aware"""

    def _uuid_decoder(value: bytes) -> UUID:
        return UUID(bytes=value)

    def _uuid_encoder(value: UUID) -> bytes:
        return value.bytes

    await conn.set_type_codec(
        'uuid',
        encoder=_uuid_encoder,
        decoder=_uuid_decoder,
        schema='pg_catalog',
        format='binary',
    )


async def get_asyncpg_pool() -> asyncpg.Pool:
    current_loop = asyncio.get_running_loop()
    loop_id = id(current_loop)

    if loop_id in asyncpg_pools:
        return asyncpg_pools[loop_id]

    pool = await asyncpg.create_pool(
        settings.DATABASE_URL,
        min_size=settings.ASYNCPG_POOL_MIN_SIZE,
        max_size=settings.ASYNCPG_POOL_MAX_SIZE,
        command_timeout=settings.ASYNCPG_POOL_COMMAND_TIMEOUT,
        max_inactive_connection_lifetime=settings.ASYNCPG_POOL_MAX_INACTIVE_LIFETIME,
        timeout=settings.ASYNCPG_POOL_TIMEOUT,
        max_queries=settings.ASYNCPG_POOL_MAX_QUERIES,
        loop=current_loop,
        init=_init_connection,
    )
    asyncpg_pools[loop_id] = pool
    Logger.base.info(
        f'📊 [POOL] Created asyncpg pool (min={pool.get_min_size()}, max={pool.get_max_size()})'
    )
    return pool


async def warmup_asyncpg_pool() -> int:
    """Acquire MIN_SIZE connections once so the first requests do not pay the handshake"""
    pool = await get_asyncpg_pool()
    connections: list[asyncpg.Connection] = []
    try:
        for i in range(settings.ASYNCPG_POOL_MIN_SIZE):
            try:
                connections.append(await pool.acquire(timeout=5.0))
            except asyncio.TimeoutError:
                Logger.base.warning(f'⚠️ [POOL] Warmup timeout at {i + 1} connections')
                break
    finally:
        for conn in connections:
            await pool.release(conn)

    Logger.base.info(f'🔥 [POOL] Warmup completed: {len(connections)} connections ready')
    return len(connections)


async def close_all_asyncpg_pools() -> None:
    for loop_id, pool in list(asyncpg_pools.items()):
        try:
            await pool.close()
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            Logger.base.warning(f'⚠️ [POOL] Failed to close pool for loop {loop_id}: {e}')
    asyncpg_pools.clear()
