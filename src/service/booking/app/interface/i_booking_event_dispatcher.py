"""
Outbound booking side effects.

Both channels are fire-and-forget from the caller's point of view: a failure is
raised to the caller, which logs it and never rolls the booking back.
"""

from abc import ABC, abstractmethod

from src.service.booking.domain.domain_event.booking_events import (
    BookingBroadcast,
    BookingNotification,
)


class INotificationDispatcher(ABC):
    @abstractmethod
    async def dispatch(self, *, notification: BookingNotification) -> None:
        """Hand the notification to the delivery service (email/SMS/push)"""
        pass


class IBookingBroadcaster(ABC):
    @abstractmethod
    async def broadcast(self, *, event: BookingBroadcast) -> None:
        """Publish the event to real-time subscribers of the showtime"""
        pass
