"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import settings
from src.platform.metrics.seat_booking_metrics import metrics
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.booking.app.command.apply_payment_outcome_use_case import (
    ApplyPaymentOutcomeUseCase,
)
from src.service.booking.app.command.booking_transitioner import BookingTransitioner
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.command.expire_pending_bookings_use_case import (
    ExpirePendingBookingsUseCase,
)
from src.service.booking.app.query.availability_reconciler import AvailabilityReconciler
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.driven_adapter.broadcaster.redis_booking_broadcaster import (
    RedisBookingBroadcaster,
)
from src.service.booking.driven_adapter.notification.kvrocks_notification_dispatcher import (
    KvrocksNotificationDispatcher,
)
from src.service.booking.driven_adapter.repo.booking_command_repo_impl import (
    BookingCommandRepoImpl,
)
from src.service.booking.driven_adapter.repo.booking_query_repo_impl import BookingQueryRepoImpl
from src.service.booking.driven_adapter.repo.showtime_query_repo_impl import (
    ShowtimeQueryRepoImpl,
)
from src.service.booking.driving_adapter.worker.cleanup_worker import CleanupWorker
from src.service.seat_lock.app.command.seat_lock_manager import SeatLockManager
from src.service.seat_lock.app.query.seat_lock_query import SeatLockQuery
from src.service.seat_lock.driven_adapter.state.in_memory_lock_store import InMemoryLockStore
from src.service.seat_lock.driven_adapter.state.redis_lock_store import RedisLockStore


class Container(containers.DeclarativeContainer):
    # Infrastructure
    config_service = providers.Object(settings)
    kvrocks_client = providers.Object(kvrocks_client)
    metrics = providers.Object(metrics)

    # Seat Lock: LOCK_STORE_BACKEND picks kvrocks (shared) or memory (single process)
    lock_store = providers.Selector(
        providers.Callable(lambda: settings.LOCK_STORE_BACKEND),
        kvrocks=providers.Singleton(
            RedisLockStore,
            kvrocks_client=kvrocks_client,
            key_prefix=settings.KVROCKS_KEY_PREFIX,
        ),
        memory=providers.Singleton(InMemoryLockStore),
    )
    seat_lock_manager = providers.Singleton(
        SeatLockManager,
        lock_store=lock_store,
        metrics=metrics,
        lock_ttl_seconds=settings.SEAT_LOCK_TTL_SECONDS,
    )
    seat_lock_query = providers.Singleton(SeatLockQuery, lock_store=lock_store)

    # Booking: repositories (PostgreSQL)
    booking_command_repo = providers.Singleton(BookingCommandRepoImpl)
    booking_query_repo = providers.Singleton(BookingQueryRepoImpl)
    showtime_query_repo = providers.Singleton(ShowtimeQueryRepoImpl)

    # Booking: outbound side effects (Kvrocks list + Pub/Sub)
    notification_dispatcher = providers.Singleton(
        KvrocksNotificationDispatcher, kvrocks_client=kvrocks_client
    )
    booking_broadcaster = providers.Singleton(RedisBookingBroadcaster, kvrocks_client=kvrocks_client)

    booking_transitioner = providers.Singleton(
        BookingTransitioner,
        booking_command_repo=booking_command_repo,
        seat_lock_manager=seat_lock_manager,
        notification_dispatcher=notification_dispatcher,
        booking_broadcaster=booking_broadcaster,
        metrics=metrics,
    )

    # Booking: use cases (stateless, Singleton)
    create_booking_use_case = providers.Singleton(
        CreateBookingUseCase,
        showtime_query_repo=showtime_query_repo,
        booking_command_repo=booking_command_repo,
        seat_lock_manager=seat_lock_manager,
        booking_transitioner=booking_transitioner,
        metrics=metrics,
    )
    apply_payment_outcome_use_case = providers.Singleton(
        ApplyPaymentOutcomeUseCase,
        booking_query_repo=booking_query_repo,
        booking_transitioner=booking_transitioner,
    )
    cancel_booking_use_case = providers.Singleton(
        CancelBookingUseCase,
        booking_query_repo=booking_query_repo,
        showtime_query_repo=showtime_query_repo,
        booking_transitioner=booking_transitioner,
        cancellation_cutoff_hours=settings.CANCELLATION_CUTOFF_HOURS,
    )
    expire_pending_bookings_use_case = providers.Singleton(
        ExpirePendingBookingsUseCase,
        booking_query_repo=booking_query_repo,
        booking_transitioner=booking_transitioner,
        pending_timeout_minutes=settings.PENDING_BOOKING_TIMEOUT_MINUTES,
    )
    get_booking_use_case = providers.Singleton(
        GetBookingUseCase, booking_query_repo=booking_query_repo
    )

    # Booking: queries
    availability_reconciler = providers.Singleton(
        AvailabilityReconciler,
        showtime_query_repo=showtime_query_repo,
        booking_query_repo=booking_query_repo,
        seat_lock_query=seat_lock_query,
    )

    # Background
    cleanup_worker = providers.Singleton(
        CleanupWorker,
        expire_pending_bookings_use_case=expire_pending_bookings_use_case,
        lock_store=lock_store,
        interval_seconds=settings.SWEEP_INTERVAL_SECONDS,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
