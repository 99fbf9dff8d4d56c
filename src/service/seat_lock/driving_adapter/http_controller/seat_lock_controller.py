from typing import List

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Response, status

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.seat_lock.app.command.seat_lock_manager import SeatLockManager
from src.service.seat_lock.app.query.seat_lock_query import SeatLockQuery
from src.service.seat_lock.driving_adapter.http_controller.schema.seat_lock_schema import (
    AcquireResponse,
    SeatHoldRequest,
    SeatListResponse,
    SeatLockResponse,
    SeatReleaseRequest,
    SeatSchema,
)


router = APIRouter()


@router.post('/hold')
@Logger.io
@inject
async def hold_seats(
    request: SeatHoldRequest,
    response: Response,
    seat_lock_manager: SeatLockManager = Depends(Provide[Container.seat_lock_manager]),
) -> AcquireResponse:
    result = await seat_lock_manager.acquire(
        showtime_id=request.showtime_id,
        seats=[seat.to_coordinate() for seat in request.seats],
        user_id=request.user_id,
    )
    if not result.success:
        response.status_code = status.HTTP_409_CONFLICT
    return AcquireResponse(
        success=result.success,
        locked_seats=[SeatSchema.from_coordinate(s) for s in result.locked_seats],
        contested_seats=[SeatSchema.from_coordinate(s) for s in result.contested_seats],
        expires_in_seconds=result.expires_in_seconds,
        locking_bypassed=result.locking_bypassed,
    )


@router.post('/release')
@Logger.io
@inject
async def release_seats(
    request: SeatReleaseRequest,
    seat_lock_manager: SeatLockManager = Depends(Provide[Container.seat_lock_manager]),
) -> SeatListResponse:
    released = await seat_lock_manager.release(
        showtime_id=request.showtime_id,
        seats=[seat.to_coordinate() for seat in request.seats],
        user_id=request.user_id,
    )
    return SeatListResponse(seats=[SeatSchema.from_coordinate(s) for s in released])


@router.post('/extend')
@Logger.io
@inject
async def extend_seats(
    request: SeatHoldRequest,
    seat_lock_manager: SeatLockManager = Depends(Provide[Container.seat_lock_manager]),
) -> SeatListResponse:
    extended = await seat_lock_manager.extend(
        showtime_id=request.showtime_id,
        seats=[seat.to_coordinate() for seat in request.seats],
        user_id=request.user_id,
    )
    return SeatListResponse(seats=[SeatSchema.from_coordinate(s) for s in extended])


@router.get('/showtime/{showtime_id}')
@Logger.io
@inject
async def list_showtime_locks(
    showtime_id: int,
    seat_lock_query: SeatLockQuery = Depends(Provide[Container.seat_lock_query]),
) -> List[SeatLockResponse]:
    locks = await seat_lock_query.list_showtime_locks(showtime_id=showtime_id)
    return [
        SeatLockResponse(
            seat=SeatSchema.from_coordinate(lock.seat),
            holder_user_id=lock.holder_user_id,
            acquired_at=lock.acquired_at,
        )
        for lock in locks
    ]
