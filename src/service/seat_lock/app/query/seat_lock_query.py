from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.seat_lock.app.interface.i_lock_store import ILockStore
from src.service.seat_lock.domain.seat_lock_entity import (
    SeatLock,
    seat_lock_key,
    showtime_lock_prefix,
)
from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


class SeatLockQuery:
    """
    Read-only view of live seat locks.

    Unlike SeatLockManager this does not degrade: LockStoreUnavailableError reaches
    the caller, which decides whether to fail open.
    """

    def __init__(self, lock_store: ILockStore) -> None:
        self.lock_store = lock_store
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def list_showtime_locks(self, *, showtime_id: int) -> list[SeatLock]:
        with self.tracer.start_as_current_span(
            'query.list_showtime_locks', attributes={'showtime.id': showtime_id}
        ):
            entries = await self.lock_store.scan(
                prefix=showtime_lock_prefix(showtime_id=showtime_id)
            )
            locks = [SeatLock.from_payload(key=key, payload=value) for key, value in entries.items()]
            return sorted(locks, key=lambda lock: lock.seat)

    @Logger.io
    async def get_locks(
        self, *, showtime_id: int, seats: list[SeatCoordinate]
    ) -> dict[SeatCoordinate, SeatLock]:
        """Live locks among ``seats``; unlocked seats are absent from the result"""
        unique_seats = list(dict.fromkeys(seats))
        keys = [seat_lock_key(showtime_id=showtime_id, seat=seat) for seat in unique_seats]
        values = await self.lock_store.get_many(keys=keys) if keys else []
        return {
            seat: SeatLock.from_payload(key=key, payload=value)
            for seat, key, value in zip(unique_seats, keys, values, strict=True)
            if value is not None
        }
