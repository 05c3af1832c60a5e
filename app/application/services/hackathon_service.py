"""
해커톤 서비스

[주요 역할]
1. list_hackathons(): 전체 목록 (ID당 최신 1건)
2. get_hackathon(): 단건 조회
3. create_hackathon(): 입력 검증 후 JSON 업로드 (수정은 같은 ID로 재업로드)
4. check_registration(): 참가 여부 확인
5. register(): RegistrationCoordinator 위임
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.application.services.registration_service import RegistrationCoordinator, RegistrationResult
from app.core.exceptions import HackathonNotFound, StoreError, ValidationError
from app.core.timeutils import parse_datetime, to_iso, utc_now
from app.domain.models import (
    HackathonRecord,
    Judge,
    Participant,
    Prize,
    Track,
    derive_status,
    generate_record_id,
)
from app.domain.ports import BlobFile
from app.infrastructure.pinata.errors import BlobStoreError
from app.infrastructure.repositories.hackathon_repository import HACKATHON_TYPE, HackathonRepository


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "startDate", "endDate", "registrationDeadline", "organizerId")


class HackathonService:
    """해커톤 조회/생성/등록 서비스"""

    def __init__(
        self,
        repository: HackathonRepository,
        coordinator: RegistrationCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.coordinator = coordinator
        self.clock = clock

    async def list_hackathons(self) -> List[HackathonRecord]:
        try:
            return await self.repository.list_hackathons()
        except BlobStoreError as e:
            logger.error(f"[HackathonService] 해커톤 목록 조회 실패: {str(e)}", exc_info=True)
            raise StoreError("Failed to fetch hackathons", status_code=500) from e

    async def get_hackathon(self, hackathon_id: str) -> HackathonRecord:
        try:
            latest = await self.repository.get_latest(hackathon_id)
        except BlobStoreError as e:
            logger.error(f"[HackathonService] 해커톤 조회 실패 - id: {hackathon_id}, error: {str(e)}")
            raise StoreError("Failed to fetch hackathon", status_code=500) from e
        if latest is None:
            raise HackathonNotFound(hackathon_id)
        return latest[1]

    async def check_registration(self, hackathon_id: str, user_id: str) -> Dict[str, Any]:
        """참가 여부 확인 (읽기 전용)"""
        if not user_id:
            raise ValidationError("User ID is required")
        try:
            hackathon = await self.get_hackathon(hackathon_id)
        except StoreError as e:
            raise StoreError("Failed to check registration", status_code=500) from e
        return {
            "isRegistered": hackathon.is_registered(user_id),
            "hackathonId": hackathon_id,
            "userId": user_id,
            "participantCount": len(hackathon.participants),
        }

    async def register(
        self,
        hackathon_id: str,
        user_id: Optional[str],
        user_email: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> RegistrationResult:
        if not user_id:
            raise ValidationError("User ID is required")
        participant = Participant(
            userId=user_id,
            userEmail=user_email or None,
            userName=user_name or user_id,
        )
        return await self.coordinator.register_participant(hackathon_id, participant)

    async def create_hackathon(self, payload: Dict[str, Any]) -> Tuple[HackathonRecord, BlobFile]:
        """
        해커톤 생성 (또는 _isUpdate + _originalId로 새 버전 업로드)

        [검증]
        - 필수 필드
        - 시작 < 종료, 등록 마감 < 시작
        - 상금 1개 이상
        """
        if any(not payload.get(field) for field in REQUIRED_FIELDS):
            raise ValidationError("Missing required fields")

        try:
            start = parse_datetime(payload["startDate"])
            end = parse_datetime(payload["endDate"])
            registration_deadline = parse_datetime(payload["registrationDeadline"])
        except (TypeError, ValueError) as e:
            raise ValidationError("Invalid date format") from e

        if start >= end:
            raise ValidationError("End date must be after start date")
        if registration_deadline >= start:
            raise ValidationError("Registration deadline must be before start date")

        prizes = payload.get("prizes")
        if not prizes or not isinstance(prizes, list):
            raise ValidationError("At least one prize is required")

        max_participants = payload.get("maxParticipants")
        if max_participants is not None and (not isinstance(max_participants, int) or max_participants < 0):
            raise ValidationError("maxParticipants must be a non-negative integer")

        is_update = bool(payload.get("_isUpdate"))
        original_id = payload.get("_originalId")
        hackathon_id = original_id if is_update and original_id else generate_record_id("hackathon")

        now = self.clock()
        try:
            record = self._build_record(payload, hackathon_id, start, end, now, is_update, max_participants)
        except (PydanticValidationError, TypeError, AttributeError) as e:
            raise ValidationError("Invalid hackathon data") from e

        keyvalues = {
            "hackathonId": hackathon_id,
            "title": record.title,
            "organizerId": record.organizerId,
            "type": HACKATHON_TYPE,
            "isUpdate": "true" if is_update else "false",
            "updateType": payload.get("_updateType"),
            "originalId": original_id,
        }
        body = record.model_dump(exclude={"fileId", "participantCount"}, exclude_none=True)

        try:
            file = await self.repository.store.upload_json(body, name=hackathon_id, keyvalues=keyvalues)
        except BlobStoreError as e:
            logger.error(f"[HackathonService] 해커톤 업로드 실패 - id: {hackathon_id}, error: {str(e)}")
            raise StoreError("Failed to store hackathon data on IPFS") from e

        record.ipfsHash = file.cid
        record.fileId = file.id
        logger.info(f"[HackathonService] 해커톤 생성 - id: {hackathon_id}, cid: {file.cid}, update: {is_update}")
        return record, file

    def _build_record(
        self,
        payload: Dict[str, Any],
        hackathon_id: str,
        start: datetime,
        end: datetime,
        now: datetime,
        is_update: bool,
        max_participants: Optional[int],
    ) -> HackathonRecord:
        now_iso = to_iso(now)
        record = HackathonRecord(
            id=hackathon_id,
            title=payload["title"],
            description=payload["description"],
            image=payload.get("image") or "",
            startDate=payload["startDate"],
            endDate=payload["endDate"],
            registrationDeadline=payload["registrationDeadline"],
            status=derive_status(start, end, now),
            # 수정 업로드는 기존 참가자를 본문에 그대로 옮김
            participants=(payload.get("participants") or []) if is_update else [],
            maxParticipants=max_participants or None,
            prizes=[
                Prize(**{**prize, "id": prize.get("id") or f"prize-{index}"})
                for index, prize in enumerate(payload["prizes"])
            ],
            judges=[
                self._build_judge(judge, index)
                for index, judge in enumerate(payload.get("judges") or [])
            ],
            tracks=[
                Track(**{**track, "id": track.get("id") or f"track-{index}"})
                for index, track in enumerate(payload.get("tracks") or [])
            ],
            requirements=payload.get("requirements") or [],
            rules=payload.get("rules") or [],
            organizerId=payload["organizerId"],
            createdAt=now_iso,
            updatedAt=now_iso,
        )
        record.participantCount = len(record.participants)
        return record

    @staticmethod
    def _build_judge(judge: Dict[str, Any], index: int) -> Judge:
        # 클라이언트가 보낸 null 값은 빈 문자열로 저장
        links = judge.get("socialLinks") or {}
        return Judge(**{
            **judge,
            "id": judge.get("id") or f"judge-{index}",
            "avatar": judge.get("avatar") or "",
            "socialLinks": {
                "twitter": links.get("twitter") or "",
                "linkedin": links.get("linkedin") or "",
                "github": links.get("github") or "",
            },
        })
