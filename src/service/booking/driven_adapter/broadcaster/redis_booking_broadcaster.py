"""
Redis Pub/Sub Booking Broadcaster

Channel: {BOOKING_BROADCAST_CHANNEL_PREFIX}:{showtime_id}
Subscribers (websocket gateways) relay the message to clients watching the seat map.
"""

import orjson

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import KvrocksClient
from src.service.booking.app.interface import IBookingBroadcaster
from src.service.booking.domain.domain_event.booking_events import BookingBroadcast


def showtime_channel(*, showtime_id: int, prefix: str | None = None) -> str:
    return f'{prefix or settings.BOOKING_BROADCAST_CHANNEL_PREFIX}:{showtime_id}'


class RedisBookingBroadcaster(IBookingBroadcaster):
    def __init__(self, kvrocks_client: KvrocksClient, channel_prefix: str = '') -> None:
        self.kvrocks_client = kvrocks_client
        self.channel_prefix = channel_prefix or settings.BOOKING_BROADCAST_CHANNEL_PREFIX

    async def broadcast(self, *, event: BookingBroadcast) -> None:
        channel = showtime_channel(showtime_id=event.booking.showtime_id, prefix=self.channel_prefix)
        receivers = await self.kvrocks_client.get_client().publish(
            channel, orjson.dumps(event.to_dict())
        )
        Logger.base.debug(
            f'📡 [BROADCAST] {event.type} for booking {event.booking.id} → {channel} '
            f'({receivers} subscribers)'
        )
