"""
Production FastAPI Application

Seat lock, booking and availability APIs plus the periodic cleanup sweep.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.asyncpg_setting import (
    close_all_asyncpg_pools,
    get_asyncpg_pool,
    warmup_asyncpg_pool,
)
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    Logger.base.info('🚀 [Booking Service] Starting up...')

    tracing = TracingConfig()
    tracing.setup()
    tracing.instrument_redis()
    Logger.base.info('📊 [Booking Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking Service] Dependency injection wired')

    # Kvrocks carries locks, notifications and broadcasts; fail fast when absent
    await kvrocks_client.initialize()

    await get_asyncpg_pool()
    await warmup_asyncpg_pool()

    async with anyio.create_task_group() as tg:
        await tg.start(container.cleanup_worker().run)
        Logger.base.info(
            f'✅ [Booking Service] Ready (lock store: {settings.LOCK_STORE_BACKEND}, '
            f'sweep every {settings.SWEEP_INTERVAL_SECONDS}s)'
        )

        yield

        Logger.base.info('🛑 [Booking Service] Shutting down...')
        tg.cancel_scope.cancel()

    await close_all_asyncpg_pools()
    await kvrocks_client.disconnect()
    tracing.shutdown()
    container.unwire()
    Logger.base.info('👋 [Booking Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    return RedirectResponse(url='/docs')
