"""
프로세스 로컬 뮤텍스

[상태]
- Unlocked --lock()--> Locked
- Locked --lock()--> 대기열에 추가 (Locked 유지)
- Locked --unlock(), 대기자 있음--> 가장 오래된 대기자에게 소유권 이전 (Locked 유지)
- Locked --unlock(), 대기자 없음--> Unlocked

[한계]
- 같은 이벤트 루프(같은 프로세스) 안에서만 상호 배제
- 여러 서버 인스턴스 간에는 RedisKeyedLock 사용
"""
import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Deque, Dict, Optional, TypeVar

from app.core.exceptions import LockTimeoutError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class Mutex:
    """FIFO 대기열을 가진 비동기 뮤텍스 (타임아웃 지원)"""

    def __init__(self):
        self._locked = False
        self._waiters: Deque[asyncio.Future] = deque()

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def waiters(self) -> int:
        """아직 소유권을 받지 못한 대기자 수"""
        return sum(1 for fut in self._waiters if not fut.done())

    async def lock(self, timeout: Optional[float] = None) -> None:
        """
        락 획득

        Args:
            timeout: 최대 대기 시간 (초). None이면 무기한 대기

        Raises:
            LockTimeoutError: timeout 안에 소유권을 받지 못한 경우
        """
        if not self._locked:
            self._locked = True
            return

        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await asyncio.wait_for(fut, timeout)
        except (asyncio.TimeoutError, asyncio.CancelledError) as e:
            if fut.done() and not fut.cancelled():
                # 포기 직전에 소유권을 넘겨받았음: 다음 대기자에게 전달
                self.unlock()
            else:
                try:
                    self._waiters.remove(fut)
                except ValueError:
                    pass
            if isinstance(e, asyncio.TimeoutError):
                raise LockTimeoutError(
                    "Timed out waiting for lock",
                    details={"timeout": timeout},
                ) from None
            raise

    def unlock(self) -> None:
        """락 해제 (대기자가 있으면 소유권 이전)"""
        if not self._locked:
            raise RuntimeError("unlock() called on an unlocked Mutex")
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)
                return
        self._locked = False

    async def with_lock(self, fn: Callable[[], Awaitable[T]], timeout: Optional[float] = None) -> T:
        """락을 잡은 상태로 fn() 실행 후 해제"""
        await self.lock(timeout)
        try:
            return await fn()
        finally:
            self.unlock()

    async def __aenter__(self) -> "Mutex":
        await self.lock()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.unlock()


class KeyedMutex:
    """
    키(해커톤 ID)별 뮤텍스

    서로 다른 해커톤 등록은 직렬화하지 않습니다.
    아무도 쓰지 않는 키의 뮤텍스는 해제 시 제거됩니다.
    """

    def __init__(self):
        self._mutexes: Dict[str, Mutex] = {}

    def __len__(self) -> int:
        return len(self._mutexes)

    @asynccontextmanager
    async def acquire(self, key: str, timeout: Optional[float] = None) -> AsyncIterator[None]:
        mutex = self._mutexes.get(key)
        if mutex is None:
            mutex = self._mutexes[key] = Mutex()

        try:
            await mutex.lock(timeout)
        except BaseException:
            self._discard_if_idle(key, mutex)
            raise
        try:
            yield
        finally:
            mutex.unlock()
            self._discard_if_idle(key, mutex)

    def _discard_if_idle(self, key: str, mutex: Mutex) -> None:
        if not mutex.locked and self._mutexes.get(key) is mutex:
            del self._mutexes[key]
