"""
Seat Coordinate Value Object - Shared Kernel

The physical seat identity shared by the seat lock and booking contexts.
"""

import attrs

from src.platform.exception.exceptions import DomainError


@attrs.define(frozen=True, order=True)
class SeatCoordinate:
    row: str
    seat_number: int

    @property
    def label(self) -> str:
        """Seat label, e.g. ``A-12``"""
        return f'{self.row}-{self.seat_number}'

    @classmethod
    def from_label(cls, label: str) -> 'SeatCoordinate':
        # Row names never contain '-', so split on the last one
        row, sep, seat_number = label.rpartition('-')
        if not sep or not row:
            raise DomainError(f'Invalid seat label: {label}. Expected: row-seat (e.g. A-12)')
        try:
            return cls(row=row, seat_number=int(seat_number))
        except ValueError:
            raise DomainError(f'Invalid seat number in label: {label}')

    def to_dict(self) -> dict:
        return {'row': self.row, 'seat_number': self.seat_number}
