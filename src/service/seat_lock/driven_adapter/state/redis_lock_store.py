"""
Kvrocks-backed lock store.

Atomicity relies on SET NX EX for acquisition and on Lua scripts for every
owner-checked mutation, so no read-then-write race crosses the network.
"""

from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.platform.config.core_setting import settings
from src.platform.state.kvrocks_client import KvrocksClient
from src.service.seat_lock.app.interface.i_lock_store import ILockStore, LockStoreUnavailableError
from src.service.seat_lock.domain.seat_lock_entity import HOLDER_FIELD
from src.service.seat_lock.driven_adapter.state.lua_script import (
    DELETE_IF_HOLDER_SCRIPT,
    REFRESH_IF_HOLDER_SCRIPT,
)


_SCAN_BATCH = 200


class RedisLockStore(ILockStore):
    def __init__(self, kvrocks_client: KvrocksClient, key_prefix: str = '') -> None:
        self.kvrocks_client = kvrocks_client
        self.key_prefix = key_prefix or settings.KVROCKS_KEY_PREFIX
        self._scripts: dict[str, Any] = {}
        self._scripts_client: Redis | None = None

    def _key(self, key: str) -> str:
        return f'{self.key_prefix}{key}'

    def _client(self) -> Redis:
        try:
            return self.kvrocks_client.get_client()
        except RuntimeError as e:
            raise LockStoreUnavailableError(str(e)) from e

    def _script(self, client: Redis, source: str) -> Any:
        # Scripts are bound to a client; re-register after a reconnect
        if self._scripts_client is not client:
            self._scripts = {}
            self._scripts_client = client
        if source not in self._scripts:
            self._scripts[source] = client.register_script(source)
        return self._scripts[source]

    async def set_if_absent(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        client = self._client()
        try:
            return bool(await client.set(self._key(key), value, nx=True, ex=ttl_seconds))
        except RedisError as e:
            raise LockStoreUnavailableError(f'SET NX failed: {e}') from e

    async def get(self, *, key: str) -> str | None:
        client = self._client()
        try:
            return await client.get(self._key(key))
        except RedisError as e:
            raise LockStoreUnavailableError(f'GET failed: {e}') from e

    async def get_many(self, *, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        client = self._client()
        try:
            return await client.mget([self._key(key) for key in keys])
        except RedisError as e:
            raise LockStoreUnavailableError(f'MGET failed: {e}') from e

    async def refresh_if_holder(self, *, key: str, holder_user_id: int, ttl_seconds: int) -> bool:
        client = self._client()
        script = self._script(client, REFRESH_IF_HOLDER_SCRIPT)
        try:
            result = await script(
                keys=[self._key(key)],
                args=[HOLDER_FIELD, str(holder_user_id), ttl_seconds],
                client=client,
            )
        except RedisError as e:
            raise LockStoreUnavailableError(f'Refresh script failed: {e}') from e
        return bool(result)

    async def delete(self, *, key: str) -> bool:
        client = self._client()
        try:
            return bool(await client.delete(self._key(key)))
        except RedisError as e:
            raise LockStoreUnavailableError(f'DEL failed: {e}') from e

    async def delete_if_holder(self, *, key: str, holder_user_id: int) -> bool:
        client = self._client()
        script = self._script(client, DELETE_IF_HOLDER_SCRIPT)
        try:
            result = await script(
                keys=[self._key(key)],
                args=[HOLDER_FIELD, str(holder_user_id)],
                client=client,
            )
        except RedisError as e:
            raise LockStoreUnavailableError(f'Delete script failed: {e}') from e
        return bool(result)

    async def scan(self, *, prefix: str) -> dict[str, str]:
        client = self._client()
        full_prefix = self._key(prefix)
        try:
            keys = [
                key async for key in client.scan_iter(match=f'{full_prefix}*', count=_SCAN_BATCH)
            ]
            if not keys:
                return {}
            values = await client.mget(keys)
        except RedisError as e:
            raise LockStoreUnavailableError(f'SCAN failed: {e}') from e

        # Keys may expire between SCAN and MGET
        return {
            self._strip_prefix(key): value
            for key, value in zip(keys, values, strict=True)
            if value is not None
        }

    def _strip_prefix(self, key: str | bytes) -> str:
        key_str = key.decode() if isinstance(key, bytes) else key
        return key_str[len(self.key_prefix) :]

    async def purge_expired(self) -> int:
        # Kvrocks evicts on TTL itself
        return 0
