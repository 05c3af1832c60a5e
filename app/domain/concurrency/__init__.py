"""
동시성 도구 모듈
"""
import asyncio
from typing import AsyncContextManager, Awaitable, Callable, Iterable, List, Optional, Protocol, TypeVar

from app.domain.concurrency.mutex import KeyedMutex, Mutex


T = TypeVar("T")
R = TypeVar("R")


class RegistrationLock(Protocol):
    """해커톤 ID 단위 등록 락 (KeyedMutex / RedisKeyedLock)"""

    def acquire(self, key: str, timeout: Optional[float] = None) -> AsyncContextManager[None]:
        ...


async def gather_bounded(items: Iterable[T], fn: Callable[[T], Awaitable[R]], limit: int) -> List[R]:
    """
    items 각각에 fn을 실행하되 동시에 최대 limit개까지만 진행

    결과 순서는 items 순서와 같습니다.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    semaphore = asyncio.Semaphore(limit)

    async def run(item: T) -> R:
        async with semaphore:
            return await fn(item)

    return list(await asyncio.gather(*(run(item) for item in items)))


__all__ = ["KeyedMutex", "Mutex", "RegistrationLock", "gather_bounded"]
