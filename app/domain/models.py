"""
도메인 레코드 정의

IPFS에 JSON 본문으로 저장되는 레코드입니다.
필드 이름은 저장 형식(camelCase)을 그대로 따릅니다.
"""
import secrets
import string
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.exceptions import (
    AlreadyRegistered,
    HackathonEnded,
    HackathonFull,
    RegistrationClosed,
)
from app.core.timeutils import parse_datetime, utc_now


_BASE36 = string.digits + string.ascii_lowercase


def _random_base36(length: int) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_record_id(kind: str, now_ms: Optional[int] = None) -> str:
    """"<kind>-<epoch millis>-<base36 9자리>" 형식 ID 생성"""
    millis = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{kind}-{millis}-{_random_base36(9)}"


def generate_invite_code() -> str:
    """팀 초대 코드 (대문자 base36 8자리)"""
    return _random_base36(8).upper()


def derive_status(start: datetime, end: datetime, now: datetime) -> str:
    """시작/종료 시각 기준 상태 (upcoming | active | ended)"""
    if now > end:
        return "ended"
    if now >= start:
        return "active"
    return "upcoming"


class Participant(BaseModel):
    """해커톤 참가자"""
    model_config = ConfigDict(extra="allow")

    userId: Optional[str] = None
    userEmail: Optional[str] = None
    userName: Optional[str] = None
    registeredAt: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _legacy_id(cls, value: Any) -> Any:
        # 초기 데이터는 userId 대신 id만 저장했음
        if isinstance(value, dict) and not value.get("userId") and value.get("id"):
            return {**value, "userId": str(value["id"])}
        return value


class SocialLinks(BaseModel):
    twitter: str = ""
    linkedin: str = ""
    github: str = ""


class Prize(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    position: Optional[int] = None


class Judge(BaseModel):
    id: str
    name: Optional[str] = None
    title: Optional[str] = None
    company: Optional[str] = None
    avatar: str = ""
    bio: Optional[str] = None
    socialLinks: SocialLinks = Field(default_factory=SocialLinks)


class Track(BaseModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    criteria: List[str] = Field(default_factory=list)


class HackathonRecord(BaseModel):
    """
    해커톤 레코드

    participants는 JSON 본문 또는 메타데이터 태그에서 옵니다.
    (등록은 본문을 다시 쓰지 않고 태그만 갱신하기 때문)
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    description: str = ""
    image: str = ""
    startDate: str
    endDate: str
    registrationDeadline: Optional[str] = None
    status: str = "upcoming"
    participants: List[Participant] = Field(default_factory=list)
    participantCount: int = 0
    maxParticipants: Optional[int] = None
    prizes: List[Prize] = Field(default_factory=list)
    judges: List[Judge] = Field(default_factory=list)
    tracks: List[Track] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    rules: List[str] = Field(default_factory=list)
    organizerId: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    ipfsHash: str = ""
    fileId: Optional[str] = None

    @field_validator("participants", mode="before")
    @classmethod
    def _legacy_participant_count(cls, value: Any) -> Any:
        # 초기 버전은 participants에 숫자(0)를 저장했음
        if not isinstance(value, list):
            return []
        return value

    @field_validator("maxParticipants", mode="before")
    @classmethod
    def _empty_max_participants(cls, value: Any) -> Any:
        if value in ("", 0, "0"):
            return None
        return value

    def refresh_derived(self, now: Optional[datetime] = None) -> "HackathonRecord":
        """status / participantCount 재계산 (저장된 값은 신뢰하지 않음)"""
        now = now or utc_now()
        self.status = derive_status(parse_datetime(self.startDate), parse_datetime(self.endDate), now)
        self.participantCount = len(self.participants)
        return self

    def is_registered(self, user_id: str) -> bool:
        """userId 또는 레거시 id 필드로 참가 여부 확인"""
        for participant in self.participants:
            if participant.userId == user_id:
                return True
            if (participant.model_extra or {}).get("id") == user_id:
                return True
        return False

    def check_can_register(self, user_id: str, now: Optional[datetime] = None) -> None:
        """
        등록 가능 여부 검사

        검사 순서: 중복 → 종료 → 등록 마감 → 정원
        Raises:
            RegistrationRejected 하위 예외
        """
        now = now or utc_now()
        if self.is_registered(user_id):
            raise AlreadyRegistered()

        end = parse_datetime(self.endDate)
        if end is not None and now > end:
            raise HackathonEnded()

        deadline = parse_datetime(self.registrationDeadline)
        if deadline is not None and now > deadline:
            raise RegistrationClosed()

        if self.maxParticipants and len(self.participants) >= self.maxParticipants:
            raise HackathonFull()


class TeamMember(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    userId: str
    name: str
    email: Optional[str] = None
    role: str = "Member"
    joinedAt: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class TeamInfo(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    members: List[Dict[str, Any]] = Field(default_factory=list)


class ProjectRecord(BaseModel):
    """프로젝트 제출 레코드 (제출 시 한 번만 기록)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    description: str
    team: List[Dict[str, Any]] = Field(default_factory=list)
    hackathonId: str
    trackId: str
    repositoryUrl: Optional[str] = None
    demoUrl: Optional[str] = None
    videoUrl: Optional[str] = None
    ipfsHash: str = ""
    submittedAt: str
    submittedBy: str
    technologies: List[str] = Field(default_factory=list)
    challenges: str = ""
    achievements: str = ""
    futureWork: str = ""
    files: List[Any] = Field(default_factory=list)
    teamInfo: Optional[TeamInfo] = None


class TeamRecord(BaseModel):
    """팀 레코드 (리더가 첫 번째 멤버)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str = ""
    hackathonId: str
    leaderId: str
    members: List[TeamMember] = Field(default_factory=list)
    inviteCode: str
    maxMembers: int = 4
    isPublic: bool = True
    skills: List[str] = Field(default_factory=list)
    lookingFor: List[str] = Field(default_factory=list)
    ipfsHash: str = ""
    createdAt: str
    updatedAt: str


class ScoreRecord(BaseModel):
    """심사 점수 레코드 (기준별 0~10점)"""
    model_config = ConfigDict(extra="ignore")

    id: str
    projectId: str
    judgeId: str
    scores: Dict[str, float]
    feedback: str
    privateNotes: str = ""
    totalScore: float = 0
    criteriaScores: List[Any] = Field(default_factory=list)
    isDraft: bool = False
    submittedAt: str
    ipfsHash: str = ""
    version: str = "1.0"
