"""
Test Configuration

Environment overrides must be in place before any ``src`` module reads settings.
Unit tests run against in-memory fakes only; no Kvrocks or PostgreSQL is needed.
"""

import os


def _early_setup_test_environment() -> None:
    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    suffix = '' if worker_id == 'master' else f'_{worker_id}'
    os.environ['POSTGRES_DB'] = f'showtime_booking_test{suffix}'
    os.environ['KVROCKS_KEY_PREFIX'] = f'test{suffix}_'
    os.environ['LOCK_STORE_BACKEND'] = 'memory'


_early_setup_test_environment()

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from test.service.booking.unit.helpers import ManualClock  # noqa: E402
from test.service.seat_lock.unit.helpers import ManualMonotonicClock  # noqa: E402


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(datetime(2026, 3, 14, 18, 0, tzinfo=timezone.utc))


@pytest.fixture
def monotonic_clock() -> ManualMonotonicClock:
    return ManualMonotonicClock()
