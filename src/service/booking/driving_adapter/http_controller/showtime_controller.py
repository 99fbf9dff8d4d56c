from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.query.availability_reconciler import AvailabilityReconciler
from src.service.booking.driving_adapter.http_controller.schema.seat_map_schema import (
    SeatCheckRequest,
    SeatCheckResponse,
    SeatMapResponse,
)


router = APIRouter()


@router.get('/{showtime_id}/seat-map')
@Logger.io(truncate_content=True)
@inject
async def get_seat_map(
    showtime_id: int,
    viewer_id: Optional[int] = None,
    reconciler: AvailabilityReconciler = Depends(Provide[Container.availability_reconciler]),
) -> SeatMapResponse:
    seat_map = await reconciler.get_seat_map(showtime_id=showtime_id, viewer_id=viewer_id)
    return SeatMapResponse.from_dto(seat_map)


@router.post('/{showtime_id}/seat-check')
@Logger.io
@inject
async def check_seats(
    showtime_id: int,
    request: SeatCheckRequest,
    reconciler: AvailabilityReconciler = Depends(Provide[Container.availability_reconciler]),
) -> SeatCheckResponse:
    result = await reconciler.check_requested_seats(
        showtime_id=showtime_id,
        seats=[seat.to_coordinate() for seat in request.seats],
        user_id=request.user_id,
    )
    return SeatCheckResponse.from_dto(result)
