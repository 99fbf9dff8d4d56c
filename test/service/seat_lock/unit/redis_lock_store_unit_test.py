"""
Unit tests for RedisLockStore

The Redis client is mocked; these tests pin the command shapes and the
translation of client failures into LockStoreUnavailableError.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.service.seat_lock.app.interface.i_lock_store import LockStoreUnavailableError
from src.service.seat_lock.driven_adapter.state.lua_script import (
    DELETE_IF_HOLDER_SCRIPT,
    REFRESH_IF_HOLDER_SCRIPT,
)
from src.service.seat_lock.driven_adapter.state.redis_lock_store import RedisLockStore


PREFIX = 'p:'


@pytest.fixture
def redis_client() -> MagicMock:
    client = MagicMock()
    client.set = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.mget = AsyncMock(return_value=[])
    client.delete = AsyncMock(return_value=1)
    return client


@pytest.fixture
def kvrocks_client(redis_client) -> MagicMock:
    kvrocks = MagicMock()
    kvrocks.get_client.return_value = redis_client
    return kvrocks


@pytest.fixture
def store(kvrocks_client) -> RedisLockStore:
    return RedisLockStore(kvrocks_client=kvrocks_client, key_prefix=PREFIX)


@pytest.mark.unit
class TestRedisLockStore:
    @pytest.mark.asyncio
    async def test_set_if_absent_uses_set_nx_ex(self, store, redis_client):
        created = await store.set_if_absent(key='seat_lock:1:A-1', value='{}', ttl_seconds=600)

        assert created is True
        redis_client.set.assert_awaited_once_with('p:seat_lock:1:A-1', '{}', nx=True, ex=600)

    @pytest.mark.asyncio
    async def test_set_if_absent_existing_key(self, store, redis_client):
        redis_client.set.return_value = None

        assert await store.set_if_absent(key='k', value='{}', ttl_seconds=600) is False

    @pytest.mark.asyncio
    async def test_refresh_runs_owner_checked_script(self, store, redis_client):
        # Given
        script = AsyncMock(return_value=1)
        redis_client.register_script.return_value = script

        # When
        refreshed = await store.refresh_if_holder(key='k', holder_user_id=9, ttl_seconds=600)

        # Then
        assert refreshed is True
        redis_client.register_script.assert_called_once_with(REFRESH_IF_HOLDER_SCRIPT)
        script.assert_awaited_once_with(
            keys=['p:k'], args=['holder_user_id', '9', 600], client=redis_client
        )

    @pytest.mark.asyncio
    async def test_scripts_registered_once_per_client(self, store, redis_client):
        script = AsyncMock(return_value=0)
        redis_client.register_script.return_value = script

        await store.delete_if_holder(key='a', holder_user_id=1)
        await store.delete_if_holder(key='b', holder_user_id=1)

        redis_client.register_script.assert_called_once_with(DELETE_IF_HOLDER_SCRIPT)
        assert script.await_count == 2

    @pytest.mark.asyncio
    async def test_scan_strips_prefix_and_skips_vanished_keys(self, store, redis_client):
        # Given
        async def scan_iter(match, count):
            assert match == 'p:seat_lock:1:*'
            for key in ('p:seat_lock:1:A-1', 'p:seat_lock:1:A-2'):
                yield key

        redis_client.scan_iter = scan_iter
        redis_client.mget.return_value = ['{"holder_user_id":"1"}', None]

        # When
        result = await store.scan(prefix='seat_lock:1:')

        # Then
        assert result == {'seat_lock:1:A-1': '{"holder_user_id":"1"}'}

    @pytest.mark.asyncio
    async def test_get_many_empty_skips_round_trip(self, store, redis_client):
        assert await store.get_many(keys=[]) == []
        redis_client.mget.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_error_becomes_unavailable(self, store, redis_client):
        redis_client.set.side_effect = RedisConnectionError('connection refused')

        with pytest.raises(LockStoreUnavailableError):
            await store.set_if_absent(key='k', value='{}', ttl_seconds=600)

    @pytest.mark.asyncio
    async def test_uninitialized_client_becomes_unavailable(self, kvrocks_client):
        kvrocks_client.get_client.side_effect = RuntimeError('Kvrocks client not initialized')
        store = RedisLockStore(kvrocks_client=kvrocks_client, key_prefix=PREFIX)

        with pytest.raises(LockStoreUnavailableError):
            await store.get(key='k')

    @pytest.mark.asyncio
    async def test_purge_is_noop(self, store):
        assert await store.purge_expired() == 0
