"""
해커톤 관련 스키마

요청 필드는 모두 선택값으로 두고 서비스에서 검증합니다.
(누락 시 422가 아닌 400 + 고정 메시지를 돌려주기 위함)
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.models import HackathonRecord
from app.presentation.schemas.common import IpfsSummary


class CreateHackathonRequest(BaseModel):
    """해커톤 생성 요청"""
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Web3 Builders Hackathon",
                "description": "Build on IPFS",
                "startDate": "2030-03-01T00:00:00.000Z",
                "endDate": "2030-03-03T00:00:00.000Z",
                "registrationDeadline": "2030-02-25T00:00:00.000Z",
                "organizerId": "0xabc",
                "maxParticipants": 100,
                "prizes": [{"title": "1st", "amount": 1000, "currency": "USDC", "position": 1}],
            }
        },
    )

    title: Optional[str] = Field(None, description="제목")
    description: Optional[str] = Field(None, description="설명")
    image: Optional[str] = Field(None, description="대표 이미지 (CID 또는 URL)")
    startDate: Optional[str] = Field(None, description="시작 시각 (ISO-8601)")
    endDate: Optional[str] = Field(None, description="종료 시각 (ISO-8601)")
    registrationDeadline: Optional[str] = Field(None, description="등록 마감 시각 (ISO-8601)")
    organizerId: Optional[str] = Field(None, description="주최자 ID")
    maxParticipants: Optional[int] = Field(None, description="최대 참가자 수 (없으면 무제한)")
    prizes: Optional[List[Dict[str, Any]]] = Field(None, description="상금 목록 (1개 이상)")
    judges: Optional[List[Dict[str, Any]]] = Field(None, description="심사위원 목록")
    tracks: Optional[List[Dict[str, Any]]] = Field(None, description="트랙 목록")
    requirements: Optional[List[str]] = Field(None, description="참가 요건")
    rules: Optional[List[str]] = Field(None, description="규칙")
    participants: Optional[List[Dict[str, Any]]] = Field(None, description="수정 업로드 시 기존 참가자")
    isUpdate: Optional[bool] = Field(None, alias="_isUpdate", description="기존 해커톤의 새 버전 여부")
    originalId: Optional[str] = Field(None, alias="_originalId", description="수정 대상 해커톤 ID")
    updateType: Optional[str] = Field(None, alias="_updateType", description="수정 종류")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CreateHackathonResponse(BaseModel):
    """해커톤 생성 응답"""
    success: bool = Field(True, description="성공 여부")
    hackathon: HackathonRecord = Field(..., description="저장된 해커톤")
    ipfs: IpfsSummary = Field(..., description="업로드 결과")


class RegisterRequest(BaseModel):
    """참가 등록 요청"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "0x1234",
                "userEmail": "alice@example.com",
                "userName": "alice"
            }
        }
    )

    userId: Optional[str] = Field(None, description="사용자 ID (지갑 주소 등)")
    userEmail: Optional[str] = Field(None, description="이메일")
    userName: Optional[str] = Field(None, description="표시 이름 (없으면 userId)")


class RegisterResponse(BaseModel):
    """참가 등록 응답"""
    success: bool = Field(True, description="성공 여부")
    message: str = Field("Successfully registered for hackathon", description="결과 메시지")
    hackathon: HackathonRecord = Field(..., description="등록 반영된 해커톤")
    fileId: str = Field(..., description="태그가 갱신된 파일 ID")


class CheckRegistrationRequest(BaseModel):
    """참가 여부 확인 요청"""
    userId: Optional[str] = Field(None, description="사용자 ID")


class CheckRegistrationResponse(BaseModel):
    """참가 여부 확인 응답"""
    isRegistered: bool = Field(..., description="참가 여부")
    hackathonId: str = Field(..., description="해커톤 ID")
    userId: str = Field(..., description="사용자 ID")
    participantCount: int = Field(0, description="현재 참가자 수")
