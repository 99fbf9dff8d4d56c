from src.service.booking.app.dto.booking_result import (
    BookingErrorCode,
    BookingResult,
    CancellationResult,
    SeatUnavailability,
    UnavailableReason,
)
from src.service.booking.app.dto.seat_map_dto import SeatCheckResult, SeatMap, SeatState, SeatStatus

__all__ = [
    'BookingErrorCode',
    'BookingResult',
    'CancellationResult',
    'SeatCheckResult',
    'SeatMap',
    'SeatState',
    'SeatStatus',
    'SeatUnavailability',
    'UnavailableReason',
]
