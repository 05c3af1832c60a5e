"""
심사 점수 API 라우터
"""
from fastapi import APIRouter, Depends

from app.application.services.submission_service import ScoreService, ipfs_summary
from app.presentation.api.dependencies import get_score_service
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.submission import (
    CreateScoreRequest,
    CreateScoreResponse,
    ScoreMetadata,
    ScoreSummary,
)


router = APIRouter(prefix="/scores", tags=["Scores"])


@router.post(
    "/create",
    response_model=CreateScoreResponse,
    responses={
        400: {"model": ErrorResponse, "description": "필수 필드 누락 또는 점수 범위(0~10) 위반"},
        503: {"model": ErrorResponse, "description": "IPFS 저장 실패"},
    },
    summary="심사 점수 기록",
    description="""
    - isDraft=true: 초안 1건 기록
    - isDraft=false: 최종본 기록 후 그 CID를 담은 사본을 한 번 더 기록
    """
)
async def create_score(
    request: CreateScoreRequest,
    service: ScoreService = Depends(get_score_service)
) -> CreateScoreResponse:
    record, final = await service.create_score(request.model_dump(exclude_none=True))
    return CreateScoreResponse(
        score=ScoreSummary(
            judgeId=record.judgeId,
            criteria=record.scores,
            score=record.totalScore,
            feedback=record.feedback,
            submittedAt=record.submittedAt,
        ),
        metadata=ScoreMetadata(
            id=record.id,
            projectId=record.projectId,
            privateNotes=record.privateNotes,
            criteriaScores=record.criteriaScores,
            isDraft=record.isDraft,
            ipfsHash=record.ipfsHash,
        ),
        ipfs=ipfs_summary(final),
    )
