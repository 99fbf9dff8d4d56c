from abc import ABC, abstractmethod

from src.platform.exception.exceptions import ServiceUnavailableError


class LockStoreUnavailableError(ServiceUnavailableError):
    """The lock store could not be reached or answered with an error"""

    def __init__(self, message: str = 'Seat lock store unavailable') -> None:
        super().__init__(message)


class ILockStore(ABC):
    """
    Key-value store with atomic conditional writes and TTLs.

    Every method raises LockStoreUnavailableError on infrastructure failure.
    Holder checks compare the ``holder_user_id`` field of the stored JSON payload.
    """

    @abstractmethod
    async def set_if_absent(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        """
        Atomically write ``value`` only when ``key`` does not exist

        Returns:
            True when this call created the key
        """
        pass

    @abstractmethod
    async def get(self, *, key: str) -> str | None:
        pass

    @abstractmethod
    async def get_many(self, *, keys: list[str]) -> list[str | None]:
        """Values in the same order as ``keys``; missing keys map to None"""
        pass

    @abstractmethod
    async def refresh_if_holder(self, *, key: str, holder_user_id: int, ttl_seconds: int) -> bool:
        """Reset the TTL only when the stored holder matches"""
        pass

    @abstractmethod
    async def delete(self, *, key: str) -> bool:
        pass

    @abstractmethod
    async def delete_if_holder(self, *, key: str, holder_user_id: int) -> bool:
        pass

    @abstractmethod
    async def scan(self, *, prefix: str) -> dict[str, str]:
        """All live keys starting with ``prefix`` and their values"""
        pass

    @abstractmethod
    async def purge_expired(self) -> int:
        """
        Drop expired entries the backend does not evict on its own

        Returns:
            Number of entries removed
        """
        pass
