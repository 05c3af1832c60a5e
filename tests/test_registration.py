"""
등록 코디네이터 테스트

- 정원 / 중복 / 마감 규칙
- 재시도 횟수 제한
- 같은 프로세스 내 동시 등록
"""
import asyncio
import json

import pytest

from app.application.services.registration_service import RegistrationCoordinator
from app.core.exceptions import (
    AlreadyRegistered,
    HackathonEnded,
    HackathonFull,
    HackathonNotFound,
    LockTimeoutError,
    RegistrationClosed,
    RegistrationFailed,
)
from app.domain.concurrency import KeyedMutex
from app.domain.models import Participant
from app.domain.retry import BackoffPolicy
from app.infrastructure.pinata.errors import BlobUnauthorizedError
from app.infrastructure.repositories import HackathonRepository
from tests.conftest import seed_hackathon


def participants_in(store, file):
    raw = store.files[file.id].keyvalues.get("participants")
    return [p["userId"] for p in json.loads(raw)] if raw else []


class TestRegistrationRules:
    """등록 조건"""

    @pytest.mark.asyncio
    async def test_register_adds_participant_to_tags(self, store, coordinator):
        file = seed_hackathon(store, hackathon_id="h1")

        result = await coordinator.register_participant("h1", Participant(userId="alice", userName="Alice"))

        assert result.attempts == 1
        assert result.file_id == file.id
        assert result.hackathon.participantCount == 1
        assert result.hackathon.participants[0].registeredAt is not None
        assert participants_in(store, file) == ["alice"]
        assert store.files[file.id].keyvalues["participantCount"] == "1"

    @pytest.mark.asyncio
    async def test_capacity_is_enforced(self, store, coordinator):
        file = seed_hackathon(store, hackathon_id="h1", max_participants=2)

        await coordinator.register_participant("h1", Participant(userId="a"))
        await coordinator.register_participant("h1", Participant(userId="b"))
        with pytest.raises(HackathonFull) as exc_info:
            await coordinator.register_participant("h1", Participant(userId="c"))

        assert exc_info.value.message == "Hackathon is full. Maximum participants reached."
        assert participants_in(store, file) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_duplicate_registration_is_rejected(self, store, coordinator):
        file = seed_hackathon(store, hackathon_id="h1")

        await coordinator.register_participant("h1", Participant(userId="alice"))
        with pytest.raises(AlreadyRegistered):
            await coordinator.register_participant("h1", Participant(userId="alice"))

        assert participants_in(store, file) == ["alice"]
        assert len(store.update_calls) == 1

    @pytest.mark.asyncio
    async def test_duplicate_matches_legacy_id_field(self, store, coordinator):
        seed_hackathon(store, hackathon_id="h1", participants=[{"userId": "x", "id": "alice"}])

        with pytest.raises(AlreadyRegistered):
            await coordinator.register_participant("h1", Participant(userId="alice"))

    @pytest.mark.asyncio
    async def test_duplicate_matches_participant_without_user_id(self, store, coordinator):
        file = seed_hackathon(store, hackathon_id="h1", participants=[{"id": "alice", "userName": "Alice"}])

        with pytest.raises(AlreadyRegistered):
            await coordinator.register_participant("h1", Participant(userId="alice"))

        result = await coordinator.register_participant("h1", Participant(userId="bob"))
        assert participants_in(store, file) == ["alice", "bob"]
        assert result.hackathon.participantCount == 2

    @pytest.mark.asyncio
    async def test_registration_deadline(self, store, coordinator):
        seed_hackathon(store, hackathon_id="h1", deadline_in_days=-1)

        with pytest.raises(RegistrationClosed):
            await coordinator.register_participant("h1", Participant(userId="alice"))
        assert store.update_calls == []

    @pytest.mark.asyncio
    async def test_ended_hackathon(self, store, coordinator):
        seed_hackathon(store, hackathon_id="h1", start_in_days=-10, length_days=2, deadline_in_days=None)

        with pytest.raises(HackathonEnded):
            await coordinator.register_participant("h1", Participant(userId="alice"))

    @pytest.mark.asyncio
    async def test_unknown_hackathon(self, coordinator):
        with pytest.raises(HackathonNotFound):
            await coordinator.register_participant("missing", Participant(userId="alice"))

    @pytest.mark.asyncio
    async def test_registration_uses_latest_version(self, store, coordinator):
        seed_hackathon(store, hackathon_id="h1", created_at="2025-01-01T00:00:00.000Z")
        latest = seed_hackathon(store, hackathon_id="h1", created_at="2025-03-01T00:00:00.000Z")

        result = await coordinator.register_participant("h1", Participant(userId="alice"))
        assert result.file_id == latest.id


class TestRegistrationRetry:
    """저장 실패 재시도"""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, store, coordinator, sleep):
        file = seed_hackathon(store, hackathon_id="h1")
        store.fail_updates = 2

        result = await coordinator.register_participant("h1", Participant(userId="alice"))

        assert result.attempts == 3
        assert len(store.update_calls) == 3
        assert sleep.delays == [1.0, 2.0]
        assert store.files[file.id].keyvalues["updateAttempt"] == "3"
        assert participants_in(store, file) == ["alice"]

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, store, coordinator):
        file = seed_hackathon(store, hackathon_id="h1")
        store.fail_updates = 10

        with pytest.raises(RegistrationFailed) as exc_info:
            await coordinator.register_participant("h1", Participant(userId="alice"))

        assert len(store.update_calls) == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.message == "Failed to save registration to IPFS"
        assert participants_in(store, file) == []

    @pytest.mark.asyncio
    async def test_attempt_limit_follows_policy(self, store, sleep):
        seed_hackathon(store, hackathon_id="h1")
        store.fail_updates = 10
        coordinator = RegistrationCoordinator(
            HackathonRepository(store),
            KeyedMutex(),
            BackoffPolicy.exponential(max_attempts=5, base_delay=1.0, jitter=0.0),
            sleep=sleep,
        )

        with pytest.raises(RegistrationFailed):
            await coordinator.register_participant("h1", Participant(userId="alice"))

        assert len(store.update_calls) == 5
        assert sleep.delays == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    async def test_unauthorized_is_not_retried(self, store, coordinator):
        seed_hackathon(store, hackathon_id="h1")
        store.fail_updates = 1
        store.update_error = lambda: BlobUnauthorizedError("bad token", 401)

        with pytest.raises(RegistrationFailed) as exc_info:
            await coordinator.register_participant("h1", Participant(userId="alice"))

        assert len(store.update_calls) == 1
        assert exc_info.value.attempts == 1

    @pytest.mark.asyncio
    async def test_deadline_bounds_total_time(self, store, coordinator, sleep):
        seed_hackathon(store, hackathon_id="h1")
        store.fail_updates = 10

        with pytest.raises(RegistrationFailed):
            await coordinator.register_participant("h1", Participant(userId="alice"), deadline_seconds=0.5)

        assert len(store.update_calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_each_attempt_revalidates_against_fresh_state(self, store, coordinator):
        """실패한 시도 사이에 다른 쓰기가 자리를 채우면 다음 시도는 정원 초과로 끝남"""
        file = seed_hackathon(store, hackathon_id="h1", max_participants=1)
        store.fail_updates = 1

        async def sneak_in(file_id, tags):
            # 첫 번째 (실패하는) 쓰기 직전에 외부 프로세스가 먼저 등록했다고 가정
            if len(store.update_calls) == 1:
                store.files[file_id].keyvalues["participants"] = json.dumps([{"userId": "outsider"}])

        store.before_update = sneak_in

        with pytest.raises(HackathonFull):
            await coordinator.register_participant("h1", Participant(userId="alice"))

        assert participants_in(store, file) == ["outsider"]
        assert len(store.update_calls) == 1


class TestConcurrentRegistration:
    """같은 프로세스 내 동시 등록"""

    @pytest.mark.asyncio
    async def test_last_seat_goes_to_exactly_one_caller(self, store, coordinator):
        file = seed_hackathon(store, hackathon_id="h1", max_participants=1)
        store.update_delay = 0.01  # 락이 없으면 두 요청 모두 빈 목록을 읽게 되는 구간

        results = await asyncio.gather(
            coordinator.register_participant("h1", Participant(userId="userA")),
            coordinator.register_participant("h1", Participant(userId="userB")),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], HackathonFull)
        assert len(participants_in(store, file)) == 1

    @pytest.mark.asyncio
    async def test_many_concurrent_distinct_users(self, store, coordinator):
        file = seed_hackathon(store, hackathon_id="h1", max_participants=5)
        store.update_delay = 0.001

        results = await asyncio.gather(
            *(coordinator.register_participant("h1", Participant(userId=f"u{i}")) for i in range(8)),
            return_exceptions=True,
        )

        assert sum(1 for r in results if not isinstance(r, Exception)) == 5
        assert all(isinstance(r, HackathonFull) for r in results if isinstance(r, Exception))
        assert sorted(participants_in(store, file)) == [f"u{i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_lock_wait_times_out(self, store, sleep):
        seed_hackathon(store, hackathon_id="h1")
        locks = KeyedMutex()
        coordinator = RegistrationCoordinator(
            HackathonRepository(store),
            locks,
            BackoffPolicy.linear(3),
            lock_timeout=0.01,
            sleep=sleep,
        )

        async with locks.acquire("h1"):
            with pytest.raises(LockTimeoutError):
                await coordinator.register_participant("h1", Participant(userId="alice"))
        assert store.update_calls == []
