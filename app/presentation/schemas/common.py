"""
공통 스키마
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "ok",
                "version": "0.1.0",
                "components": {
                    "pinata": True,
                    "redis": None
                }
            }
        }
    )

    status: str = Field("ok", description="상태")
    version: str = Field(..., description="버전")
    components: Dict[str, Optional[bool]] = Field(
        default_factory=dict,
        description="컴포넌트 상태 (None은 사용하지 않음)"
    )


class ErrorResponse(BaseModel):
    """에러 응답"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Hackathon is full. Maximum participants reached.",
                "error_code": "HACKATHON_FULL",
            }
        }
    )

    error: str = Field(..., description="에러 메시지")
    error_code: Optional[str] = Field(None, description="에러 코드")
    details: Optional[Any] = Field(None, description="상세 정보")


class IpfsSummary(BaseModel):
    """업로드 결과 요약"""
    cid: str = Field(..., description="콘텐츠 주소 (CID)")
    url: Optional[str] = Field(None, description="게이트웨이 URL")
    size: int = Field(0, description="바이트 크기")


class FileResponse(BaseModel):
    """핀된 파일 정보"""
    id: str = Field(..., description="파일 ID")
    cid: str = Field(..., description="콘텐츠 주소 (CID)")
    name: Optional[str] = Field(None, description="파일 이름")
    size: int = Field(0, description="바이트 크기")
    mimeType: Optional[str] = Field(None, description="MIME 타입")
    keyvalues: Dict[str, str] = Field(default_factory=dict, description="메타데이터 태그")
    createdAt: Optional[str] = Field(None, description="생성 시각")
    url: Optional[str] = Field(None, description="게이트웨이 URL")
