"""
Redis 클라이언트 관리
여러 서버 인스턴스 간 해커톤 등록 락에 사용 (USE_REDIS_LOCK=true 일 때만)
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import LockError

from app.core.exceptions import LockTimeoutError


logger = logging.getLogger(__name__)


class RedisClient:
    """Redis 비동기 클라이언트 래퍼"""

    def __init__(self, url: str):
        self.url = url
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    async def connect(self):
        """Redis 연결 초기화"""
        self._pool = ConnectionPool.from_url(
            self.url,
            max_connections=20,
            decode_responses=True,
        )
        self._client = redis.Redis(connection_pool=self._pool)
        # 연결 테스트
        await self._client.ping()

    async def close(self):
        """Redis 연결 종료"""
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.aclose()

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis client not initialized. Call connect() first.")
        return self._client

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception:
            return False


class RedisKeyedLock:
    """
    Redis 기반 키별 분산 락 (KeyedMutex와 같은 acquire() 인터페이스)

    ttl_seconds가 지나면 보유자가 죽어도 자동으로 풀립니다.
    """

    def __init__(self, redis_client: RedisClient, ttl_seconds: float = 60.0, prefix: str = "lock:registration"):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def _lock_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    @asynccontextmanager
    async def acquire(self, key: str, timeout: Optional[float] = None) -> AsyncIterator[None]:
        lock = self.redis.client.lock(
            self._lock_key(key),
            timeout=self.ttl_seconds,
            blocking_timeout=timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            raise LockTimeoutError(
                "Timed out waiting for lock",
                details={"key": key, "timeout": timeout},
            )
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # TTL 만료로 이미 다른 보유자에게 넘어간 경우
                logger.warning(f"[RedisLock] 락 해제 실패 - key: {key}, error: {str(e)}")
