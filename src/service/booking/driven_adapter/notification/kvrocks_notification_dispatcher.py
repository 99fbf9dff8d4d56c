"""
Notification dispatcher backed by a Kvrocks list.

The delivery worker (email/SMS, outside this service) BRPOPs the queue, so a
push here is the whole contract.
"""

from datetime import datetime, timezone

import orjson

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import KvrocksClient
from src.service.booking.app.interface import INotificationDispatcher
from src.service.booking.domain.domain_event.booking_events import BookingNotification


class KvrocksNotificationDispatcher(INotificationDispatcher):
    def __init__(self, kvrocks_client: KvrocksClient, queue_key: str = '') -> None:
        self.kvrocks_client = kvrocks_client
        self.queue_key = queue_key or settings.NOTIFICATION_QUEUE_KEY

    async def dispatch(self, *, notification: BookingNotification) -> None:
        message = notification.to_dict() | {
            'queued_at': datetime.now(timezone.utc).isoformat(),
        }
        await self.kvrocks_client.get_client().lpush(self.queue_key, orjson.dumps(message))
        Logger.base.debug(
            f'✉️ [NOTIFY] Queued {notification.kind} for user {notification.user_id} '
            f'(booking {notification.booking.id})'
        )
