import attrs

from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


@attrs.define(frozen=True)
class AcquireResult:
    success: bool
    expires_in_seconds: int
    locked_seats: list[SeatCoordinate] = attrs.field(factory=list)
    contested_seats: list[SeatCoordinate] = attrs.field(factory=list)
    # Subset of locked_seats this call created; the rest were already held by the caller
    newly_acquired_seats: list[SeatCoordinate] = attrs.field(factory=list)
    locking_bypassed: bool = False

    @classmethod
    def held(
        cls,
        *,
        seats: list[SeatCoordinate],
        newly_acquired_seats: list[SeatCoordinate],
        expires_in_seconds: int,
    ) -> 'AcquireResult':
        return cls(
            success=True,
            locked_seats=seats,
            newly_acquired_seats=newly_acquired_seats,
            expires_in_seconds=expires_in_seconds,
        )

    @classmethod
    def contested(
        cls, *, contested_seats: list[SeatCoordinate], expires_in_seconds: int
    ) -> 'AcquireResult':
        return cls(
            success=False,
            contested_seats=contested_seats,
            expires_in_seconds=expires_in_seconds,
        )

    @classmethod
    def bypassed(
        cls,
        *,
        seats: list[SeatCoordinate],
        newly_acquired_seats: list[SeatCoordinate],
        expires_in_seconds: int,
    ) -> 'AcquireResult':
        """Lock store unreachable; the persisted overlap check is the only guard left"""
        return cls(
            success=True,
            locked_seats=seats,
            newly_acquired_seats=newly_acquired_seats,
            expires_in_seconds=expires_in_seconds,
            locking_bypassed=True,
        )
