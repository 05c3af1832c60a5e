"""
제출 서비스
프로젝트 / 팀 / 심사 점수 레코드 생성 및 조회

레코드는 생성 시 한 번만 기록되며 수정 경로는 없습니다.
"""
import logging
import math
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ProjectNotFound, StoreError, ValidationError
from app.core.timeutils import to_iso, utc_now
from app.domain.models import (
    ProjectRecord,
    ScoreRecord,
    TeamMember,
    TeamRecord,
    generate_invite_code,
    generate_record_id,
)
from app.domain.ports import BlobFile
from app.infrastructure.pinata.errors import BlobStoreError
from app.infrastructure.repositories.record_repository import RecordRepository


logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 10
DEFAULT_LIST_LIMIT = 50


def ipfs_summary(file: BlobFile) -> Dict[str, Any]:
    return {"cid": file.cid, "url": file.url, "size": file.size}


def _missing(payload: Dict[str, Any], fields: Tuple[str, ...]) -> bool:
    return any(not payload.get(field) for field in fields)


class ProjectService:
    """프로젝트 제출 서비스"""

    REQUIRED_FIELDS = ("title", "description", "hackathonId", "trackId", "submittedBy")

    def __init__(self, repository: RecordRepository, clock: Callable[[], datetime] = utc_now):
        self.repository = repository
        self.clock = clock

    async def create_project(self, payload: Dict[str, Any]) -> Tuple[ProjectRecord, BlobFile]:
        """
        프로젝트 제출 (초안 → project-final 2단계 기록)

        Returns:
            (최종 레코드, 최종 파일)
        """
        if _missing(payload, self.REQUIRED_FIELDS):
            raise ValidationError(f"Missing required fields: {', '.join(self.REQUIRED_FIELDS)}")

        project_id = generate_record_id("project")
        submitted_at = to_iso(self.clock())
        team = payload.get("team") or {}

        try:
            record = ProjectRecord(
                id=project_id,
                title=payload["title"],
                description=payload["description"],
                team=team.get("members") or [],
                hackathonId=payload["hackathonId"],
                trackId=payload["trackId"],
                repositoryUrl=payload.get("repositoryUrl") or None,
                demoUrl=payload.get("demoUrl") or None,
                videoUrl=payload.get("videoUrl") or None,
                submittedAt=submitted_at,
                submittedBy=payload["submittedBy"],
                technologies=payload.get("technologies") or [],
                challenges=payload.get("challenges") or "",
                achievements=payload.get("achievements") or "",
                futureWork=payload.get("futureWork") or "",
                files=payload.get("files") or [],
                teamInfo=(
                    {"id": team.get("id"), "name": team.get("name"), "members": team.get("members") or []}
                    if team else None
                ),
            )
        except (PydanticValidationError, AttributeError) as e:
            raise ValidationError("Invalid project data") from e

        keyvalues = {
            "projectId": project_id,
            "hackathonId": record.hackathonId,
            "trackId": record.trackId,
            "teamId": payload.get("teamId") or "",
            "submittedBy": record.submittedBy,
            "createdAt": submitted_at,
        }
        body = record.model_dump(exclude_none=True)
        try:
            _, final = await self.repository.save_two_phase(
                body, name=project_id, keyvalues=keyvalues,
                draft_type="project", final_type="project-final",
            )
        except BlobStoreError as e:
            logger.error(f"[ProjectService] 프로젝트 업로드 실패 - id: {project_id}, error: {str(e)}")
            raise StoreError("Failed to store project data on IPFS") from e

        record.ipfsHash = final.cid
        return record, final

    async def list_projects(
        self,
        hackathon_id: Optional[str] = None,
        team_id: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[Dict[str, Any]]:
        try:
            projects = await self.repository.list_records(
                "project-final",
                filters={"hackathonId": hackathon_id, "teamId": team_id},
            )
        except BlobStoreError as e:
            logger.error(f"[ProjectService] 프로젝트 목록 조회 실패: {str(e)}")
            raise StoreError("Failed to fetch projects", status_code=500) from e

        if user_id:
            projects = [p for p in projects if self._involves(p, user_id)]
        return projects[:limit]

    async def get_project(self, project_id: str) -> Dict[str, Any]:
        try:
            projects = await self.repository.list_records("project-final", filters={"projectId": project_id})
        except BlobStoreError as e:
            logger.error(f"[ProjectService] 프로젝트 조회 실패 - id: {project_id}, error: {str(e)}")
            raise StoreError("Failed to fetch project", status_code=500) from e

        for project in projects:
            if project.get("id") == project_id:
                return project
        raise ProjectNotFound(project_id)

    @staticmethod
    def _involves(project: Dict[str, Any], user_id: str) -> bool:
        if project.get("submittedBy") == user_id:
            return True
        return any(isinstance(m, dict) and m.get("userId") == user_id for m in project.get("team") or [])


class TeamService:
    """팀 생성 서비스 (생성자가 리더, 초대 코드 발급)"""

    REQUIRED_FIELDS = ("name", "hackathonId", "leaderId")

    def __init__(self, repository: RecordRepository, clock: Callable[[], datetime] = utc_now):
        self.repository = repository
        self.clock = clock

    async def create_team(self, payload: Dict[str, Any]) -> Tuple[TeamRecord, BlobFile]:
        if _missing(payload, self.REQUIRED_FIELDS):
            raise ValidationError(f"Missing required fields: {', '.join(self.REQUIRED_FIELDS)}")

        now = self.clock()
        now_iso = to_iso(now)
        team_id = generate_record_id("team")
        skills = payload.get("skills") or []

        try:
            leader = TeamMember(
                id=f"member-{int(time.time() * 1000)}",
                userId=payload["leaderId"],
                name=payload.get("leaderName") or "Team Leader",
                role="Leader",
                joinedAt=now_iso,
                skills=skills,
            )
            record = TeamRecord(
                id=team_id,
                name=payload["name"],
                description=payload.get("description") or "",
                hackathonId=payload["hackathonId"],
                leaderId=payload["leaderId"],
                members=[leader],
                inviteCode=generate_invite_code(),
                maxMembers=payload.get("maxMembers") or 4,
                isPublic=payload.get("isPublic") is not False,
                skills=skills,
                lookingFor=payload.get("lookingFor") or [],
                createdAt=now_iso,
                updatedAt=now_iso,
            )
        except PydanticValidationError as e:
            raise ValidationError("Invalid team data") from e

        keyvalues = {
            "teamId": team_id,
            "hackathonId": record.hackathonId,
            "leaderId": record.leaderId,
            "createdAt": now_iso,
        }
        try:
            _, final = await self.repository.save_two_phase(
                record.model_dump(exclude_none=True), name=team_id, keyvalues=keyvalues,
                draft_type="team", final_type="team-final",
            )
        except BlobStoreError as e:
            logger.error(f"[TeamService] 팀 업로드 실패 - id: {team_id}, error: {str(e)}")
            raise StoreError("Failed to store team data on IPFS") from e

        record.ipfsHash = final.cid
        logger.info(f"[TeamService] 팀 생성 - id: {team_id}, hackathon: {record.hackathonId}")
        return record, final

    async def list_teams(self, hackathon_id: Optional[str] = None, limit: int = DEFAULT_LIST_LIMIT) -> List[Dict[str, Any]]:
        try:
            teams = await self.repository.list_records("team-final", filters={"hackathonId": hackathon_id})
        except BlobStoreError as e:
            logger.error(f"[TeamService] 팀 목록 조회 실패: {str(e)}")
            raise StoreError("Failed to fetch teams", status_code=500) from e
        return teams[:limit]


class ScoreService:
    """심사 점수 서비스"""

    REQUIRED_FIELDS = ("projectId", "judgeId", "scores", "feedback")

    def __init__(self, repository: RecordRepository, clock: Callable[[], datetime] = utc_now):
        self.repository = repository
        self.clock = clock

    @staticmethod
    def validate_scores(scores: Any) -> Dict[str, float]:
        """기준별 점수 검증 (숫자, 0~10)"""
        if not isinstance(scores, dict) or not scores:
            raise ValidationError("Scores must be a non-empty object")
        for criterion, score in scores.items():
            valid_number = isinstance(score, (int, float)) and not isinstance(score, bool) and math.isfinite(score)
            if not valid_number or score < MIN_SCORE or score > MAX_SCORE:
                raise ValidationError(f"Invalid score for {criterion}. Must be between {MIN_SCORE} and {MAX_SCORE}")
        return scores

    async def create_score(self, payload: Dict[str, Any]) -> Tuple[ScoreRecord, BlobFile]:
        """
        점수 기록

        - 초안(isDraft): score-draft 1회 기록
        - 최종: score-final → score-final-with-hash 2단계 기록
        totalScore가 없으면 기준별 점수 평균
        """
        if _missing(payload, self.REQUIRED_FIELDS):
            raise ValidationError(f"Missing required fields: {', '.join(self.REQUIRED_FIELDS)}")
        scores = self.validate_scores(payload["scores"])

        is_draft = bool(payload.get("isDraft", False))
        score_id = generate_record_id("score")
        submitted_at = to_iso(self.clock())
        total = payload.get("totalScore")
        if total is None:
            total = round(sum(scores.values()) / len(scores), 2)

        try:
            record = ScoreRecord(
                id=score_id,
                projectId=payload["projectId"],
                judgeId=payload["judgeId"],
                scores=scores,
                feedback=payload["feedback"],
                privateNotes=payload.get("privateNotes") or "",
                totalScore=total,
                criteriaScores=payload.get("criteriaScores") or [],
                isDraft=is_draft,
                submittedAt=submitted_at,
            )
        except PydanticValidationError as e:
            raise ValidationError("Invalid score data") from e

        keyvalues = {
            "scoreId": score_id,
            "projectId": record.projectId,
            "judgeId": record.judgeId,
            "totalScore": str(record.totalScore),
            "submittedAt": submitted_at,
        }
        body = record.model_dump()
        try:
            if is_draft:
                final = await self.repository.save_single(
                    body,
                    name=f"{score_id}-draft",
                    keyvalues={**keyvalues, "type": "score-draft", "isDraft": "true"},
                )
                record.ipfsHash = final.cid
            else:
                draft, final = await self.repository.save_two_phase(
                    body, name=score_id, keyvalues=keyvalues,
                    draft_type="score-final", final_type="score-final-with-hash",
                    tag_draft_cid=True,
                )
                record.ipfsHash = draft.cid
        except BlobStoreError as e:
            logger.error(f"[ScoreService] 점수 업로드 실패 - id: {score_id}, error: {str(e)}")
            raise StoreError("Failed to store score data on IPFS") from e

        logger.info(f"[ScoreService] 점수 기록 - project: {record.projectId}, judge: {record.judgeId}, draft: {is_draft}")
        return record, final
