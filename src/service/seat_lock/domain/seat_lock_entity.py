from datetime import datetime, timezone

import attrs
import orjson

from src.service.shared_kernel.domain.value_object.seat_coordinate import SeatCoordinate


SEAT_LOCK_KEY_PREFIX = 'seat_lock'

# Lua scripts compare holders as strings, so the payload always stores a string
HOLDER_FIELD = 'holder_user_id'


def seat_lock_key(*, showtime_id: int, seat: SeatCoordinate) -> str:
    return f'{SEAT_LOCK_KEY_PREFIX}:{showtime_id}:{seat.label}'


def showtime_lock_prefix(*, showtime_id: int) -> str:
    return f'{SEAT_LOCK_KEY_PREFIX}:{showtime_id}:'


def seat_from_lock_key(key: str) -> SeatCoordinate:
    _, _, label = key.split(':', 2)
    return SeatCoordinate.from_label(label)


def holder_of(payload: str | bytes) -> str | None:
    try:
        holder = orjson.loads(payload).get(HOLDER_FIELD)
    except (orjson.JSONDecodeError, AttributeError):
        return None
    return None if holder is None else str(holder)


@attrs.define(frozen=True)
class SeatLock:
    """
    Short-lived exclusive hold on one seat of one showtime.

    Expiry is not stored here; it is the lock store's TTL on the key.
    """

    showtime_id: int
    seat: SeatCoordinate
    holder_user_id: int
    acquired_at: datetime

    @property
    def key(self) -> str:
        return seat_lock_key(showtime_id=self.showtime_id, seat=self.seat)

    def is_held_by(self, user_id: int) -> bool:
        return self.holder_user_id == user_id

    def to_payload(self) -> str:
        return orjson.dumps(
            {
                HOLDER_FIELD: str(self.holder_user_id),
                'acquired_at': self.acquired_at.isoformat(),
            }
        ).decode()

    @classmethod
    def from_payload(cls, *, key: str, payload: str | bytes) -> 'SeatLock':
        data = orjson.loads(payload)
        _, showtime_id, _ = key.split(':', 2)
        return cls(
            showtime_id=int(showtime_id),
            seat=seat_from_lock_key(key),
            holder_user_id=int(data[HOLDER_FIELD]),
            acquired_at=datetime.fromisoformat(data['acquired_at']).astimezone(timezone.utc),
        )
