"""
IPFS 직접 접근 API 라우터
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.application.services.ipfs_service import IpfsService
from app.core.exceptions import ValidationError
from app.presentation.api.dependencies import get_ipfs_service
from app.presentation.schemas.common import ErrorResponse, FileResponse
from app.presentation.schemas.ipfs import (
    FileListResponse,
    SignedUrlRequest,
    SignedUrlResponse,
    UpdateFileRequest,
    UpdateFileResponse,
    UploadJsonRequest,
)


router = APIRouter(prefix="/ipfs", tags=["IPFS"])


@router.post(
    "/upload",
    response_model=FileResponse,
    responses={
        400: {"model": ErrorResponse, "description": "파일 없음 / 메타데이터 형식 오류"},
        413: {"model": ErrorResponse, "description": "파일 크기 초과"},
    },
    summary="파일 업로드",
)
async def upload_file(
    file: Optional[UploadFile] = File(None, description="업로드할 파일"),
    metadata: Optional[str] = Form(None, description="keyvalues JSON 문자열"),
    service: IpfsService = Depends(get_ipfs_service)
) -> FileResponse:
    if file is None:
        raise ValidationError("No file provided")
    content = await service.read_upload(file)
    result = await service.upload_file(content, file.filename or "file", file.content_type, metadata)
    return FileResponse(**result.to_dict())


@router.post("/upload-json", response_model=FileResponse, summary="JSON 업로드")
async def upload_json(
    request: UploadJsonRequest,
    service: IpfsService = Depends(get_ipfs_service)
) -> FileResponse:
    metadata = request.metadata.model_dump() if request.metadata else None
    result = await service.upload_json(request.data, metadata)
    return FileResponse(**result.to_dict())


@router.get("/signed-url", response_model=SignedUrlResponse, summary="서명된 업로드 URL 발급")
async def get_signed_url(
    expires: int = Query(30, description="유효 시간 (초, 최대 300)"),
    service: IpfsService = Depends(get_ipfs_service)
) -> SignedUrlResponse:
    return SignedUrlResponse(**await service.create_signed_url(expires))


@router.post("/signed-url", response_model=SignedUrlResponse, summary="서명된 업로드 URL 발급")
async def create_signed_url(
    request: SignedUrlRequest,
    service: IpfsService = Depends(get_ipfs_service)
) -> SignedUrlResponse:
    return SignedUrlResponse(**await service.create_signed_url(request.expires))


@router.post(
    "/update-file",
    response_model=UpdateFileResponse,
    responses={404: {"model": ErrorResponse, "description": "파일 없음"}},
    summary="파일 태그 수정",
    description="지수 백오프 + 지터로 재시도합니다. 파일 없음/인증 실패는 재시도하지 않습니다."
)
async def update_file(
    request: UpdateFileRequest,
    service: IpfsService = Depends(get_ipfs_service)
) -> UpdateFileResponse:
    result = await service.update_file(request.fileId, request.keyvalues)
    return UpdateFileResponse(fileId=result.id, cid=result.cid, url=result.url)


@router.get("/list", response_model=FileListResponse, summary="파일 목록")
async def list_files(
    type: Optional[str] = Query(None, description="type 태그 필터"),
    limit: Optional[int] = Query(None, ge=1, description="최대 개수"),
    order: Optional[str] = Query(None, description="ASC | DESC"),
    service: IpfsService = Depends(get_ipfs_service)
) -> FileListResponse:
    files = await service.list_files(file_type=type, limit=limit, order=order)
    return FileListResponse(files=[FileResponse(**f.to_dict()) for f in files])
