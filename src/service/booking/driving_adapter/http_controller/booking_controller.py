from typing import Union

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.booking.app.command.apply_payment_outcome_use_case import (
    ApplyPaymentOutcomeUseCase,
    PaymentOutcome,
)
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import (
    CreateBookingUseCase,
    RequestedSeat,
)
from src.service.booking.app.dto import BookingErrorCode, SeatUnavailability
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.domain.entity.booking_entity import PaymentStatus
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    BookingCreateRequest,
    BookingRejectionResponse,
    BookingResponse,
    CancelBookingRequest,
    CancellationResponse,
    PaymentOutcomeRequest,
    UnavailableSeatSchema,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)

# Contention is retryable with other seats; everything else is a business rule
_REJECTION_STATUS = {
    BookingErrorCode.SEAT_UNAVAILABLE: status.HTTP_409_CONFLICT,
    BookingErrorCode.SHOWTIME_IN_PAST: status.HTTP_400_BAD_REQUEST,
    BookingErrorCode.INSUFFICIENT_INVENTORY: status.HTTP_400_BAD_REQUEST,
    BookingErrorCode.TOO_LATE_TO_CANCEL: status.HTTP_400_BAD_REQUEST,
}

_REJECTION_RESPONSES: dict[int | str, dict] = {
    status.HTTP_400_BAD_REQUEST: {'model': BookingRejectionResponse},
    status.HTTP_409_CONFLICT: {'model': BookingRejectionResponse},
}


def _rejection(
    *,
    error_code: BookingErrorCode,
    message: str,
    unavailable_seats: list[SeatUnavailability] | None = None,
) -> JSONResponse:
    body = BookingRejectionResponse(
        error_code=error_code.value,
        message=message,
        unavailable_seats=[UnavailableSeatSchema.from_dto(u) for u in unavailable_seats or []],
    )
    return JSONResponse(status_code=_REJECTION_STATUS[error_code], content=body.model_dump())


@router.post(
    '',
    status_code=status.HTTP_201_CREATED,
    response_model=BookingResponse,
    responses=_REJECTION_RESPONSES,
)
@Logger.io
@inject
async def create_booking(
    request: BookingCreateRequest,
    use_case: CreateBookingUseCase = Depends(Provide[Container.create_booking_use_case]),
) -> Union[BookingResponse, JSONResponse]:
    with tracer.start_as_current_span('controller.create_booking') as span:
        span.set_attribute('showtime.id', request.showtime_id)
        span.set_attribute('user.id', request.user_id)

        result = await use_case.execute(
            showtime_id=request.showtime_id,
            seats=[RequestedSeat(seat=s.to_coordinate(), price=s.price) for s in request.seats],
            user_id=request.user_id,
            payment_method=request.payment_method,
            payment_status=PaymentStatus(request.payment_status),
        )
        if result.error_code is not None or result.booking is None:
            return _rejection(
                error_code=result.error_code or BookingErrorCode.SEAT_UNAVAILABLE,
                message=result.message,
                unavailable_seats=result.unavailable_seats,
            )

        span.set_attribute('booking.id', str(result.booking.id))
        return BookingResponse.from_entity(
            result.booking, locking_bypassed=result.locking_bypassed
        )


@router.get('/{booking_id}')
@Logger.io
@inject
async def get_booking(
    booking_id: UtilsUUID7,
    use_case: GetBookingUseCase = Depends(Provide[Container.get_booking_use_case]),
) -> BookingResponse:
    booking = await use_case.execute(booking_id=booking_id)
    return BookingResponse.from_entity(booking)


@router.post('/{booking_id}/payment-outcome')
@Logger.io
@inject
async def apply_payment_outcome(
    booking_id: UtilsUUID7,
    request: PaymentOutcomeRequest,
    use_case: ApplyPaymentOutcomeUseCase = Depends(
        Provide[Container.apply_payment_outcome_use_case]
    ),
) -> BookingResponse:
    booking = await use_case.execute(
        booking_id=booking_id, outcome=PaymentOutcome(request.outcome)
    )
    return BookingResponse.from_entity(booking)


@router.post(
    '/{booking_id}/cancel',
    response_model=CancellationResponse,
    responses=_REJECTION_RESPONSES,
)
@Logger.io
@inject
async def cancel_booking(
    booking_id: UtilsUUID7,
    request: CancelBookingRequest,
    use_case: CancelBookingUseCase = Depends(Provide[Container.cancel_booking_use_case]),
) -> Union[CancellationResponse, JSONResponse]:
    result = await use_case.execute(booking_id=booking_id, user_id=request.user_id)
    if not result.success or result.booking is None:
        return _rejection(
            error_code=result.error_code or BookingErrorCode.TOO_LATE_TO_CANCEL,
            message=result.message,
        )
    return CancellationResponse(
        booking=BookingResponse.from_entity(result.booking),
        refund_percentage=result.refund_percentage,
        refund_amount=result.refund_amount,
    )
