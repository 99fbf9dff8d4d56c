import pytest

from src.service.seat_lock.driven_adapter.state.in_memory_lock_store import InMemoryLockStore


PAYLOAD_USER_1 = '{"holder_user_id":"1","acquired_at":"2026-01-01T00:00:00+00:00"}'


@pytest.fixture
def store(monotonic_clock) -> InMemoryLockStore:
    return InMemoryLockStore(clock=monotonic_clock)


@pytest.mark.unit
class TestInMemoryLockStore:
    @pytest.mark.asyncio
    async def test_set_if_absent_only_once(self, store):
        assert await store.set_if_absent(key='k', value=PAYLOAD_USER_1, ttl_seconds=10) is True
        assert await store.set_if_absent(key='k', value=PAYLOAD_USER_1, ttl_seconds=10) is False

    @pytest.mark.asyncio
    async def test_entries_expire(self, store, monotonic_clock):
        await store.set_if_absent(key='k', value=PAYLOAD_USER_1, ttl_seconds=10)

        monotonic_clock.advance(10)

        assert await store.get(key='k') is None
        assert await store.set_if_absent(key='k', value=PAYLOAD_USER_1, ttl_seconds=10) is True

    @pytest.mark.asyncio
    async def test_holder_checked_operations(self, store):
        await store.set_if_absent(key='k', value=PAYLOAD_USER_1, ttl_seconds=10)

        assert await store.refresh_if_holder(key='k', holder_user_id=2, ttl_seconds=10) is False
        assert await store.delete_if_holder(key='k', holder_user_id=2) is False
        assert await store.refresh_if_holder(key='k', holder_user_id=1, ttl_seconds=10) is True
        assert await store.delete_if_holder(key='k', holder_user_id=1) is True
        assert await store.get(key='k') is None

    @pytest.mark.asyncio
    async def test_get_many_keeps_order(self, store):
        await store.set_if_absent(key='b', value=PAYLOAD_USER_1, ttl_seconds=10)

        assert await store.get_many(keys=['a', 'b']) == [None, PAYLOAD_USER_1]

    @pytest.mark.asyncio
    async def test_scan_filters_by_prefix_and_expiry(self, store, monotonic_clock):
        await store.set_if_absent(key='seat_lock:1:A-1', value=PAYLOAD_USER_1, ttl_seconds=5)
        await store.set_if_absent(key='seat_lock:1:A-2', value=PAYLOAD_USER_1, ttl_seconds=50)
        await store.set_if_absent(key='seat_lock:2:A-1', value=PAYLOAD_USER_1, ttl_seconds=50)

        monotonic_clock.advance(6)

        assert await store.scan(prefix='seat_lock:1:') == {'seat_lock:1:A-2': PAYLOAD_USER_1}

    @pytest.mark.asyncio
    async def test_purge_expired(self, store, monotonic_clock):
        await store.set_if_absent(key='short', value=PAYLOAD_USER_1, ttl_seconds=5)
        await store.set_if_absent(key='long', value=PAYLOAD_USER_1, ttl_seconds=50)

        monotonic_clock.advance(6)

        assert await store.purge_expired() == 1
        assert await store.get(key='long') == PAYLOAD_USER_1

    @pytest.mark.asyncio
    async def test_delete_missing_key(self, store):
        assert await store.delete(key='nothing') is False
