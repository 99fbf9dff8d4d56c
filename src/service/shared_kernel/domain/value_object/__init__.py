"""Shared Kernel Value Objects"""

from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate

__all__ = ['SeatCoordinate']
