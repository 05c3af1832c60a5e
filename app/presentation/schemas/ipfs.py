"""
IPFS 직접 접근 스키마
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.presentation.schemas.common import FileResponse


class UploadJsonMetadata(BaseModel):
    name: Optional[str] = Field(None, description="파일 이름 (기본 data.json)")
    keyvalues: Optional[Dict[str, Any]] = Field(None, description="메타데이터 태그")


class UploadJsonRequest(BaseModel):
    """JSON 업로드 요청"""
    data: Optional[Any] = Field(None, description="업로드할 JSON")
    metadata: Optional[UploadJsonMetadata] = None


class SignedUrlRequest(BaseModel):
    expires: int = Field(30, description="유효 시간 (초, 최대 300)")


class SignedUrlResponse(BaseModel):
    """서명된 업로드 URL"""
    signedUrl: str
    expires: int
    expiresAt: str


class UpdateFileRequest(BaseModel):
    """파일 태그 수정 요청"""
    fileId: Optional[str] = Field(None, description="파일 ID")
    keyvalues: Optional[Dict[str, Any]] = Field(None, description="덮어쓸 태그")


class UpdateFileResponse(BaseModel):
    success: bool = True
    fileId: str
    cid: str
    url: Optional[str] = None


class FileListResponse(BaseModel):
    files: List[FileResponse] = Field(default_factory=list)
