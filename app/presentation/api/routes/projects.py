"""
프로젝트 API 라우터
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from app.application.services.submission_service import ProjectService, ipfs_summary
from app.presentation.api.dependencies import get_project_service
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.submission import (
    CreateProjectRequest,
    CreateProjectResponse,
    ProjectMetadata,
)


router = APIRouter(prefix="/projects", tags=["Projects"])

# 응답의 project에 포함하는 필드 (나머지는 metadata로)
PROJECT_FIELDS = (
    "id", "title", "description", "team", "hackathonId", "trackId",
    "repositoryUrl", "demoUrl", "videoUrl", "ipfsHash", "submittedAt", "submittedBy",
)


@router.get(
    "",
    response_model=List[Dict[str, Any]],
    summary="프로젝트 목록",
    description="최종(project-final) 레코드만 반환합니다."
)
async def list_projects(
    hackathonId: Optional[str] = Query(None, description="해커톤 ID"),
    teamId: Optional[str] = Query(None, description="팀 ID"),
    userId: Optional[str] = Query(None, description="제출자 또는 팀원 ID"),
    limit: int = Query(50, ge=1, le=1000, description="최대 개수"),
    service: ProjectService = Depends(get_project_service)
) -> List[Dict[str, Any]]:
    return await service.list_projects(hackathon_id=hackathonId, team_id=teamId, user_id=userId, limit=limit)


@router.post(
    "/create",
    response_model=CreateProjectResponse,
    responses={
        400: {"model": ErrorResponse, "description": "필수 필드 누락"},
        503: {"model": ErrorResponse, "description": "IPFS 저장 실패"},
    },
    summary="프로젝트 제출",
    description="초안을 먼저 올리고, 초안 CID를 ipfsHash로 담은 최종본(project-final)을 다시 올립니다."
)
async def create_project(
    request: CreateProjectRequest,
    service: ProjectService = Depends(get_project_service)
) -> CreateProjectResponse:
    record, final = await service.create_project(request.model_dump(exclude_none=True))
    body = record.model_dump()
    return CreateProjectResponse(
        project={field: body.get(field) for field in PROJECT_FIELDS},
        metadata=ProjectMetadata(
            technologies=record.technologies,
            challenges=record.challenges,
            achievements=record.achievements,
            futureWork=record.futureWork,
            files=record.files,
            teamInfo=body.get("teamInfo"),
        ),
        ipfs=ipfs_summary(final),
    )


@router.get(
    "/{project_id}",
    response_model=Dict[str, Any],
    responses={404: {"model": ErrorResponse, "description": "프로젝트 없음"}},
    summary="프로젝트 조회",
)
async def get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service)
) -> Dict[str, Any]:
    return await service.get_project(project_id)
