from typing import Any, Callable, Coroutine

import asyncpg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.responses import Response

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger


ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


def _error_body(*, error: str, message: Any) -> dict[str, Any]:
    return {'error': error, 'detail': message}


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, CustomBaseError):
        exc = CustomBaseError(str(exc))
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        Logger.base.error(f'🔥 [HTTP] {type(exc).__name__} on {request.url.path}: {exc.message}')
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(error=type(exc).__name__, message=exc.message),
    )


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(error='ValueError', message=str(exc)),
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(error='RequestValidationError', message=errors),
    )


async def backing_store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Postgres or Kvrocks failures that escaped the adapters"""
    Logger.base.error(
        f'🔌 [HTTP] Backing store failure on {request.url.path}: {type(exc).__name__}: {exc}'
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(error=type(exc).__name__, message='Backing store unavailable'),
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.exception(f'❌ [HTTP] Unhandled {type(exc).__name__} on {request.url.path}')
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(error='InternalServerError', message='Internal server error'),
    )


EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    CustomBaseError: custom_error_handler,
    ValueError: value_error_handler,
    RequestValidationError: validation_error_handler,
    asyncpg.PostgresConnectionError: backing_store_error_handler,
    asyncpg.InterfaceError: backing_store_error_handler,
    RedisError: backing_store_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
