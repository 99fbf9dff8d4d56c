"""
Wire Modules Configuration

Modules whose ``Provide[Container.x]`` markers need wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.driving_adapter.http_controller import (
    booking_controller,
    showtime_controller,
)
from src.service.seat_lock.driving_adapter.http_controller import seat_lock_controller


WIRE_MODULES: list[ModuleType] = [
    booking_controller,
    showtime_controller,
    seat_lock_controller,
]
