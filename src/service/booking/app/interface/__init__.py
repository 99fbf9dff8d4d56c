from src.service.booking.app.interface.i_booking_command_repo import (
    BookingStatusConflictError,
    IBookingCommandRepo,
    InsufficientSeatsError,
    SeatAlreadyBookedError,
)
from src.service.booking.app.interface.i_booking_event_dispatcher import (
    IBookingBroadcaster,
    INotificationDispatcher,
)
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.app.interface.i_showtime_query_repo import IShowtimeQueryRepo

__all__ = [
    'BookingStatusConflictError',
    'IBookingBroadcaster',
    'IBookingCommandRepo',
    'IBookingQueryRepo',
    'IShowtimeQueryRepo',
    'INotificationDispatcher',
    'InsufficientSeatsError',
    'SeatAlreadyBookedError',
]
