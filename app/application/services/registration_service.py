"""
등록 코디네이터 (Registration Coordinator)

[목적]
- 해커톤 참가자 목록에 한 명을 추가하는 읽기-수정-쓰기 흐름 관리
- 저장소가 비교-교환(CAS)을 제공하지 않으므로 락 + 시도별 재검증 + 재시도로 보완

[처리 흐름]
1. 해커톤 단위 락 획득 (프로세스 로컬 KeyedMutex 또는 Redis 락)
2. 시도마다:
   a. 최신 파일 핸들 재조회 (CID는 쓸 때마다 바뀌므로 캐시하지 않음)
   b. 최신 상태 기준으로 등록 조건 재검증 (중복, 종료, 마감, 정원)
   c. 참가자 배열 계산 후 태그 갱신 (본문은 다시 쓰지 않음)
3. 실패 시 BackoffPolicy에 따라 대기 후 재시도

[재시도하지 않는 오류]
- 해커톤/파일 없음, 인증 실패, 등록 조건 위반

[한계]
- 락 밖(다른 프로세스, Redis 락 미사용)에서의 동시 쓰기는 마지막 쓰기가 이김
- 보상 트랜잭션 없음
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

from app.core.exceptions import (
    HackathonNotFound,
    NotFoundError,
    RegistrationFailed,
    RegistrationRejected,
    RetryExhaustedError,
)
from app.core.timeutils import to_iso, utc_now
from app.domain.concurrency import RegistrationLock
from app.domain.models import HackathonRecord, Participant
from app.domain.retry import BackoffPolicy, retry_async
from app.infrastructure.pinata.errors import (
    BlobNotFoundError,
    BlobStoreError,
    BlobUnauthorizedError,
)
from app.infrastructure.repositories.hackathon_repository import HackathonRepository


logger = logging.getLogger(__name__)

_NON_RETRYABLE = (BlobNotFoundError, BlobUnauthorizedError, NotFoundError, RegistrationRejected)


def is_retryable(error: BaseException) -> bool:
    return not isinstance(error, _NON_RETRYABLE)


@dataclass
class RegistrationResult:
    """등록 성공 결과"""
    hackathon: HackathonRecord
    file_id: str
    cid: str
    attempts: int


class RegistrationCoordinator:
    """
    참가자 등록 코디네이터

    [구성 요소]
    - repository: 해커톤 레코드 조회/태그 갱신
    - lock: 해커톤 ID 단위 락
    - policy: 재시도 정책
    """

    def __init__(
        self,
        repository: HackathonRepository,
        lock: RegistrationLock,
        policy: BackoffPolicy,
        lock_timeout: Optional[float] = 10.0,
        deadline_seconds: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.lock = lock
        self.policy = policy
        self.lock_timeout = lock_timeout
        self.deadline_seconds = deadline_seconds
        self.sleep = sleep
        self.clock = clock

    async def register_participant(
        self,
        hackathon_id: str,
        participant: Participant,
        deadline_seconds: Optional[float] = None,
    ) -> RegistrationResult:
        """
        해커톤에 참가자 등록

        Args:
            hackathon_id: 해커톤 ID
            participant: 추가할 참가자 (registeredAt은 등록 시각으로 덮어씀)
            deadline_seconds: 전체 제한 시간 (None이면 기본값)

        Raises:
            HackathonNotFound: 해커톤 없음
            RegistrationRejected: 중복/종료/마감/정원 초과
            LockTimeoutError: 락 대기 시간 초과
            RegistrationFailed: 저장 실패 (재시도 소진 포함)
        """
        budget = deadline_seconds if deadline_seconds is not None else self.deadline_seconds
        deadline = time.monotonic() + budget
        lock_timeout = budget if self.lock_timeout is None else min(self.lock_timeout, budget)

        logger.info(f"[Registration] 등록 요청 - hackathon: {hackathon_id}, user: {participant.userId}")

        async with self.lock.acquire(hackathon_id, timeout=lock_timeout):

            async def attempt_once(attempt: int) -> RegistrationResult:
                return await self._attempt(hackathon_id, participant, attempt)

            try:
                result = await retry_async(
                    attempt_once,
                    self.policy,
                    is_retryable=is_retryable,
                    deadline=deadline,
                    sleep=self.sleep,
                    description=f"registration {hackathon_id}/{participant.userId}",
                )
            except RetryExhaustedError as e:
                raise RegistrationFailed(attempts=e.attempts) from e
            except BlobStoreError as e:
                logger.error(f"[Registration] 재시도 불가 저장소 오류 - hackathon: {hackathon_id}, error: {str(e)}")
                raise RegistrationFailed(attempts=1) from e

        logger.info(
            f"[Registration] 등록 완료 - hackathon: {hackathon_id}, user: {participant.userId}, "
            f"participants: {result.hackathon.participantCount}, attempts: {result.attempts}"
        )
        return result

    async def _attempt(self, hackathon_id: str, participant: Participant, attempt: int) -> RegistrationResult:
        latest = await self.repository.get_latest(hackathon_id)
        if latest is None:
            raise HackathonNotFound(hackathon_id)
        file, record = latest

        now = self.clock()
        record.check_can_register(participant.userId, now)

        entrant = participant.model_copy(update={"registeredAt": to_iso(now)})
        participants = [*record.participants, entrant]

        logger.debug(
            f"[Registration] attempt {attempt}/{self.policy.max_attempts} - "
            f"file: {file.id}, participants: {len(record.participants)} -> {len(participants)}"
        )
        updated = await self.repository.save_participants(
            file,
            hackathon_id,
            participants,
            extra_tags={"updateAttempt": str(attempt)},
        )

        record.participants = participants
        record.updatedAt = to_iso(now)
        record.fileId = file.id
        record.ipfsHash = updated.cid or file.cid
        record.refresh_derived(now)
        return RegistrationResult(hackathon=record, file_id=file.id, cid=record.ipfsHash, attempts=attempt)
