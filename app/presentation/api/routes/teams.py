"""
팀 API 라우터
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from app.application.services.submission_service import TeamService, ipfs_summary
from app.presentation.api.dependencies import get_team_service
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.submission import CreateTeamRequest, CreateTeamResponse


router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("", response_model=List[Dict[str, Any]], summary="팀 목록")
async def list_teams(
    hackathonId: Optional[str] = Query(None, description="해커톤 ID"),
    limit: int = Query(50, ge=1, le=1000, description="최대 개수"),
    service: TeamService = Depends(get_team_service)
) -> List[Dict[str, Any]]:
    return await service.list_teams(hackathon_id=hackathonId, limit=limit)


@router.post(
    "/create",
    response_model=CreateTeamResponse,
    responses={
        400: {"model": ErrorResponse, "description": "필수 필드 누락"},
        503: {"model": ErrorResponse, "description": "IPFS 저장 실패"},
    },
    summary="팀 생성",
    description="요청자를 리더(첫 번째 멤버)로 하는 팀을 만들고 초대 코드를 발급합니다."
)
async def create_team(
    request: CreateTeamRequest,
    service: TeamService = Depends(get_team_service)
) -> CreateTeamResponse:
    record, final = await service.create_team(request.model_dump(exclude_none=True))
    return CreateTeamResponse(team=record, ipfs=ipfs_summary(final))
