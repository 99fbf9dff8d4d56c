from src.service.seat_lock.app.dto.acquire_result import AcquireResult

__all__ = ['AcquireResult']
