"""
프로젝트 / 팀 / 점수 관련 스키마
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.models import TeamRecord
from app.presentation.schemas.common import IpfsSummary


class CreateProjectRequest(BaseModel):
    """프로젝트 제출 요청"""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = Field(None, description="프로젝트 제목")
    description: Optional[str] = Field(None, description="설명")
    hackathonId: Optional[str] = Field(None, description="해커톤 ID")
    trackId: Optional[str] = Field(None, description="트랙 ID")
    teamId: Optional[str] = Field(None, description="팀 ID")
    repositoryUrl: Optional[str] = Field(None, description="저장소 URL")
    demoUrl: Optional[str] = Field(None, description="데모 URL")
    videoUrl: Optional[str] = Field(None, description="영상 URL")
    technologies: Optional[List[str]] = Field(None, description="사용 기술")
    challenges: Optional[str] = None
    achievements: Optional[str] = None
    futureWork: Optional[str] = None
    files: Optional[List[Any]] = Field(None, description="첨부 파일 (CID 목록 등)")
    submittedBy: Optional[str] = Field(None, description="제출자 ID")
    team: Optional[Dict[str, Any]] = Field(None, description="팀 정보 {id, name, members}")


class ProjectMetadata(BaseModel):
    technologies: List[str] = Field(default_factory=list)
    challenges: str = ""
    achievements: str = ""
    futureWork: str = ""
    files: List[Any] = Field(default_factory=list)
    teamInfo: Optional[Dict[str, Any]] = None


class CreateProjectResponse(BaseModel):
    """프로젝트 제출 응답"""
    success: bool = True
    project: Dict[str, Any] = Field(..., description="제출된 프로젝트 (ipfsHash = 최종 CID)")
    metadata: ProjectMetadata
    ipfs: IpfsSummary


class CreateTeamRequest(BaseModel):
    """팀 생성 요청"""
    name: Optional[str] = Field(None, description="팀 이름")
    description: Optional[str] = Field(None, description="팀 소개")
    hackathonId: Optional[str] = Field(None, description="해커톤 ID")
    leaderId: Optional[str] = Field(None, description="리더 사용자 ID")
    leaderName: Optional[str] = Field(None, description="리더 표시 이름")
    maxMembers: Optional[int] = Field(None, description="최대 인원 (기본 4)")
    isPublic: Optional[bool] = Field(None, description="공개 여부 (기본 공개)")
    skills: Optional[List[str]] = None
    lookingFor: Optional[List[str]] = None


class CreateTeamResponse(BaseModel):
    """팀 생성 응답"""
    success: bool = True
    team: TeamRecord
    ipfs: IpfsSummary


class CreateScoreRequest(BaseModel):
    """심사 점수 요청"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "projectId": "project-1700000000000-abc123def",
                "judgeId": "judge-0",
                "scores": {"innovation": 8, "execution": 7.5},
                "feedback": "Solid work",
                "isDraft": False
            }
        }
    )

    projectId: Optional[str] = Field(None, description="프로젝트 ID")
    judgeId: Optional[str] = Field(None, description="심사위원 ID")
    # 숫자 검증은 서비스에서 (기준별 오류 메시지)
    scores: Optional[Any] = Field(None, description="기준별 점수 (0~10)")
    feedback: Optional[str] = Field(None, description="피드백")
    privateNotes: Optional[str] = Field(None, description="비공개 메모")
    totalScore: Optional[float] = Field(None, description="총점 (없으면 평균)")
    criteriaScores: Optional[List[Any]] = None
    isDraft: Optional[bool] = Field(False, description="임시 저장 여부")


class ScoreSummary(BaseModel):
    judgeId: str
    criteria: Dict[str, float]
    score: float
    feedback: str
    submittedAt: str


class ScoreMetadata(BaseModel):
    id: str
    projectId: str
    privateNotes: str = ""
    criteriaScores: List[Any] = Field(default_factory=list)
    isDraft: bool = False
    ipfsHash: str = ""


class CreateScoreResponse(BaseModel):
    """심사 점수 응답"""
    success: bool = True
    score: ScoreSummary
    metadata: ScoreMetadata
    ipfs: IpfsSummary
