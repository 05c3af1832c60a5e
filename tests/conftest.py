"""
공통 테스트 픽스처
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.timeutils import to_iso, utc_now
from app.domain.concurrency import KeyedMutex
from app.domain.retry import BackoffPolicy
from app.application.services.registration_service import RegistrationCoordinator
from app.infrastructure.repositories import HackathonRepository
from tests.fakes import InMemoryBlobStore


class SleepRecorder:
    """asyncio.sleep 대체 (대기 없이 요청된 시간만 기록)"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def hackathon_body(
    hackathon_id: str = "hackathon-1",
    max_participants: Optional[int] = None,
    participants: Optional[List[Dict[str, Any]]] = None,
    start_in_days: float = 10,
    length_days: float = 2,
    deadline_in_days: Optional[float] = 5,
    **overrides: Any,
) -> Dict[str, Any]:
    """현재 시각 기준 해커톤 본문 생성"""
    now = utc_now()
    start = now + timedelta(days=start_in_days)
    body = {
        "id": hackathon_id,
        "title": f"Hackathon {hackathon_id}",
        "description": "Build something",
        "image": "",
        "startDate": to_iso(start),
        "endDate": to_iso(start + timedelta(days=length_days)),
        "registrationDeadline": (
            to_iso(now + timedelta(days=deadline_in_days)) if deadline_in_days is not None else None
        ),
        "status": "upcoming",
        "participants": participants or [],
        "maxParticipants": max_participants,
        "prizes": [{"id": "prize-0", "title": "1st", "amount": 1000, "currency": "USDC", "position": 1}],
        "judges": [],
        "tracks": [{"id": "track-0", "name": "DeFi", "description": "", "criteria": []}],
        "requirements": [],
        "rules": [],
        "organizerId": "organizer-1",
        "createdAt": to_iso(now),
        "updatedAt": to_iso(now),
    }
    body.update(overrides)
    return body


def seed_hackathon(store: InMemoryBlobStore, created_at: Optional[str] = None, **kwargs: Any):
    """hackathon 태그가 붙은 파일 추가"""
    body = hackathon_body(**kwargs)
    return store.add_file(
        body,
        {"type": "hackathon", "hackathonId": body["id"], "title": body["title"]},
        created_at=created_at,
        name=body["id"],
    )


@pytest.fixture
def store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        PINATA_JWT="test-jwt",
        PINATA_GATEWAY="gateway.test",
        RETRY_MAX_ATTEMPTS=3,
        RETRY_BASE_DELAY=1.0,
        USE_REDIS_LOCK=False,
        MAX_UPLOAD_SIZE_BYTES=1024,
    )


@pytest.fixture
def coordinator(store, sleep) -> RegistrationCoordinator:
    return RegistrationCoordinator(
        HackathonRepository(store),
        KeyedMutex(),
        BackoffPolicy.linear(max_attempts=3, base_delay=1.0),
        lock_timeout=1.0,
        deadline_seconds=30.0,
        sleep=sleep,
    )


@pytest.fixture
def client(test_settings, store, sleep):
    """인메모리 저장소를 주입한 테스트 클라이언트"""
    from app.main import create_app
    app = create_app(test_settings, blob_store=store, sleep=sleep)
    return TestClient(app)
