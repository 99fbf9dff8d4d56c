from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
import uuid_utils

from src.service.booking.domain.domain_event.booking_events import (
    BookingBroadcast,
    BookingNotification,
    BroadcastType,
    NotificationKind,
)
from src.service.booking.domain.entity.booking_entity import Booking, BookingSeat, PaymentMethod
from src.service.booking.driven_adapter.broadcaster.redis_booking_broadcaster import (
    RedisBookingBroadcaster,
)
from src.service.booking.driven_adapter.notification.kvrocks_notification_dispatcher import (
    KvrocksNotificationDispatcher,
)


NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def booking() -> Booking:
    return Booking.create(
        id=uuid_utils.uuid7(),
        user_id=3,
        showtime_id=12,
        seats=[BookingSeat('C', 7, 300)],
        payment_method=PaymentMethod.UPI,
        now=NOW,
    )


@pytest.fixture
def redis_client() -> MagicMock:
    client = MagicMock()
    client.publish = AsyncMock(return_value=2)
    client.lpush = AsyncMock(return_value=1)
    return client


@pytest.fixture
def kvrocks_client(redis_client) -> MagicMock:
    kvrocks = MagicMock()
    kvrocks.get_client.return_value = redis_client
    return kvrocks


@pytest.mark.unit
class TestRedisBookingBroadcaster:
    @pytest.mark.asyncio
    async def test_publishes_to_showtime_channel(self, kvrocks_client, redis_client, booking):
        broadcaster = RedisBookingBroadcaster(kvrocks_client=kvrocks_client, channel_prefix='live')

        await broadcaster.broadcast(
            event=BookingBroadcast(type=BroadcastType.NEW_BOOKING, booking=booking)
        )

        channel, payload = redis_client.publish.await_args.args
        assert channel == 'live:12'
        message = orjson.loads(payload)
        assert message['type'] == 'NEW_BOOKING'
        assert message['data']['id'] == str(booking.id)
        assert message['data']['seats'] == [{'row': 'C', 'seat_number': 7, 'price': 300}]

    @pytest.mark.asyncio
    async def test_publish_failure_propagates(self, kvrocks_client, redis_client, booking):
        redis_client.publish.side_effect = ConnectionError('down')
        broadcaster = RedisBookingBroadcaster(kvrocks_client=kvrocks_client)

        with pytest.raises(ConnectionError):
            await broadcaster.broadcast(
                event=BookingBroadcast(type=BroadcastType.BOOKING_PAID, booking=booking)
            )


@pytest.mark.unit
class TestKvrocksNotificationDispatcher:
    @pytest.mark.asyncio
    async def test_pushes_to_queue(self, kvrocks_client, redis_client, booking):
        dispatcher = KvrocksNotificationDispatcher(
            kvrocks_client=kvrocks_client, queue_key='notify'
        )

        await dispatcher.dispatch(
            notification=BookingNotification(
                kind=NotificationKind.BOOKING_CONFIRMATION, booking=booking
            )
        )

        queue_key, payload = redis_client.lpush.await_args.args
        assert queue_key == 'notify'
        message = orjson.loads(payload)
        assert message['kind'] == 'booking_confirmation'
        assert message['user_id'] == 3
        assert 'queued_at' in message
