"""
해커톤 API 라우터
"""
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from app.application.services.hackathon_service import HackathonService
from app.application.services.submission_service import ProjectService, ipfs_summary
from app.domain.models import HackathonRecord
from app.presentation.api.dependencies import get_hackathon_service, get_project_service
from app.presentation.schemas.common import ErrorResponse
from app.presentation.schemas.hackathon import (
    CheckRegistrationRequest,
    CheckRegistrationResponse,
    CreateHackathonRequest,
    CreateHackathonResponse,
    RegisterRequest,
    RegisterResponse,
)


router = APIRouter(prefix="/hackathons", tags=["Hackathons"])
logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=List[HackathonRecord],
    responses={500: {"model": ErrorResponse}},
    summary="해커톤 목록",
    description="해커톤 ID마다 가장 최근(createdAt) 기록 1건을 반환합니다."
)
async def list_hackathons(
    service: HackathonService = Depends(get_hackathon_service)
) -> List[HackathonRecord]:
    return await service.list_hackathons()


@router.post(
    "/create",
    response_model=CreateHackathonResponse,
    responses={
        400: {"model": ErrorResponse, "description": "입력값 오류"},
        503: {"model": ErrorResponse, "description": "IPFS 저장 실패"},
    },
    summary="해커톤 생성",
    description="""
    해커톤 레코드를 검증 후 IPFS에 업로드합니다.

    **검증:**
    - 필수 필드: title, description, startDate, endDate, registrationDeadline, organizerId
    - startDate < endDate, registrationDeadline < startDate
    - 상금 1개 이상

    `_isUpdate` + `_originalId`를 보내면 같은 ID로 새 버전을 업로드합니다.
    """
)
async def create_hackathon(
    request: CreateHackathonRequest,
    service: HackathonService = Depends(get_hackathon_service)
) -> CreateHackathonResponse:
    record, file = await service.create_hackathon(request.to_payload())
    return CreateHackathonResponse(hackathon=record, ipfs=ipfs_summary(file))


@router.get(
    "/{hackathon_id}",
    response_model=HackathonRecord,
    responses={404: {"model": ErrorResponse, "description": "해커톤 없음"}},
    summary="해커톤 조회",
)
async def get_hackathon(
    hackathon_id: str,
    service: HackathonService = Depends(get_hackathon_service)
) -> HackathonRecord:
    return await service.get_hackathon(hackathon_id)


@router.post(
    "/{hackathon_id}/register",
    response_model=RegisterResponse,
    responses={
        400: {"model": ErrorResponse, "description": "중복 등록, 마감, 정원 초과"},
        404: {"model": ErrorResponse, "description": "해커톤 없음"},
        500: {"model": ErrorResponse, "description": "저장 실패 (재시도 소진)"},
        503: {"model": ErrorResponse, "description": "등록 락 대기 시간 초과"},
    },
    summary="해커톤 참가 등록",
    description="""
    해커톤 단위 락 안에서 최신 상태를 다시 읽어 검증한 뒤 참가자 태그를 갱신합니다.
    저장 실패는 재시도 정책에 따라 재시도합니다.
    """
)
async def register(
    hackathon_id: str,
    request: RegisterRequest,
    service: HackathonService = Depends(get_hackathon_service)
) -> RegisterResponse:
    result = await service.register(
        hackathon_id,
        user_id=request.userId,
        user_email=request.userEmail,
        user_name=request.userName,
    )
    return RegisterResponse(hackathon=result.hackathon, fileId=result.file_id)


@router.post(
    "/{hackathon_id}/check-registration",
    response_model=CheckRegistrationResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="참가 여부 확인",
)
async def check_registration(
    hackathon_id: str,
    request: CheckRegistrationRequest,
    service: HackathonService = Depends(get_hackathon_service)
) -> CheckRegistrationResponse:
    result = await service.check_registration(hackathon_id, request.userId)
    return CheckRegistrationResponse(**result)


@router.get(
    "/{hackathon_id}/projects",
    response_model=List[Dict[str, Any]],
    summary="해커톤 제출 프로젝트 목록",
)
async def list_hackathon_projects(
    hackathon_id: str,
    service: ProjectService = Depends(get_project_service)
) -> List[Dict[str, Any]]:
    return await service.list_projects(hackathon_id=hackathon_id)
