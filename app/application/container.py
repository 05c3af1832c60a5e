"""
서비스 컨테이너

프로세스 수명 동안 쓰는 객체(블롭 저장소 클라이언트, 등록 락, 서비스)를 한 번 만들어
`app.state.container`에 보관합니다. 테스트는 가짜 저장소를 주입해 독립 인스턴스를 만듭니다.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from app.application.services.hackathon_service import HackathonService
from app.application.services.ipfs_service import IpfsService
from app.application.services.registration_service import RegistrationCoordinator
from app.application.services.submission_service import ProjectService, ScoreService, TeamService
from app.core.config import Settings
from app.domain.concurrency import KeyedMutex, RegistrationLock
from app.domain.ports import BlobStore
from app.domain.retry import BackoffPolicy
from app.infrastructure.cache.redis_client import RedisClient, RedisKeyedLock
from app.infrastructure.pinata.client import PinataClient
from app.infrastructure.repositories import HackathonRepository, RecordRepository


logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    store: BlobStore
    registration_lock: RegistrationLock
    hackathons: HackathonService
    projects: ProjectService
    teams: TeamService
    scores: ScoreService
    ipfs: IpfsService
    redis: Optional[RedisClient] = None
    _closables: list = field(default_factory=list)

    async def start(self):
        """외부 연결 초기화 (Redis 락 사용 시 필수)"""
        if self.redis is not None:
            await self.redis.connect()
            logger.info("[Container] Redis 연결 성공 (분산 등록 락 사용)")

    async def close(self):
        for closable in self._closables:
            try:
                await closable.close()
            except Exception as e:
                logger.warning(f"[Container] 리소스 종료 중 오류: {str(e)}")


def build_container(
    settings: Settings,
    store: Optional[BlobStore] = None,
    registration_lock: Optional[RegistrationLock] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ServiceContainer:
    """
    설정으로 컨테이너 구성

    Args:
        store: 블롭 저장소 (None이면 PinataClient 생성)
        registration_lock: 등록 락 (None이면 설정에 따라 KeyedMutex / RedisKeyedLock)
        sleep: 재시도 대기 함수 (테스트에서 대체)
    """
    closables = []
    if store is None:
        store = PinataClient.from_settings(settings)
        closables.append(store)

    redis = None
    if registration_lock is None:
        if settings.USE_REDIS_LOCK:
            redis = RedisClient(settings.REDIS_URL)
            registration_lock = RedisKeyedLock(redis, ttl_seconds=settings.REDIS_LOCK_TTL_SECONDS)
            closables.append(redis)
        else:
            registration_lock = KeyedMutex()

    hackathon_repository = HackathonRepository(store, fetch_concurrency=settings.PINATA_FETCH_CONCURRENCY)
    record_repository = RecordRepository(store, fetch_concurrency=settings.PINATA_FETCH_CONCURRENCY)

    coordinator = RegistrationCoordinator(
        hackathon_repository,
        registration_lock,
        BackoffPolicy.from_settings(settings),
        lock_timeout=settings.REGISTRATION_LOCK_TIMEOUT,
        deadline_seconds=settings.REGISTRATION_DEADLINE_SECONDS,
        sleep=sleep,
    )
    update_policy = BackoffPolicy.exponential(
        max_attempts=settings.UPDATE_FILE_MAX_ATTEMPTS,
        base_delay=settings.RETRY_BASE_DELAY,
        jitter=settings.UPDATE_FILE_JITTER,
        max_delay=settings.RETRY_MAX_DELAY,
    )

    return ServiceContainer(
        settings=settings,
        store=store,
        registration_lock=registration_lock,
        hackathons=HackathonService(hackathon_repository, coordinator),
        projects=ProjectService(record_repository),
        teams=TeamService(record_repository),
        scores=ScoreService(record_repository),
        ipfs=IpfsService(
            store,
            update_policy,
            max_upload_size=settings.MAX_UPLOAD_SIZE_BYTES,
            signed_url_max_expires=settings.SIGNED_URL_MAX_EXPIRES,
            sleep=sleep,
        ),
        redis=redis,
        _closables=closables,
    )
