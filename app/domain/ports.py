"""
블롭 저장소 포트
서비스 계층은 이 인터페이스에만 의존 (Pinata 클라이언트 / 테스트용 인메모리 저장소)
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol


@dataclass
class BlobFile:
    """핀된 파일 한 건 (목록 조회, 업로드, 메타데이터 수정 결과 공통)"""
    id: str
    cid: str
    name: Optional[str] = None
    size: int = 0
    mime_type: Optional[str] = None
    keyvalues: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cid": self.cid,
            "name": self.name,
            "size": self.size,
            "mimeType": self.mime_type,
            "keyvalues": self.keyvalues,
            "createdAt": self.created_at,
            "url": self.url,
        }


class BlobStore(Protocol):
    """
    이름 + 태그(keyvalues)가 붙은 JSON 블롭 저장소

    - 내용 주소(CID) 기반이므로 본문은 불변
    - update_metadata()는 태그만 덮어쓰며 동시 호출 간 원자성이 없음 (마지막 쓰기 우선)
    """

    async def list_files(
        self,
        keyvalues: Optional[Mapping[str, str]] = None,
        limit: Optional[int] = None,
        order: str = "DESC",
    ) -> List[BlobFile]:
        ...

    async def fetch_json(self, cid: str) -> Any:
        ...

    async def upload_json(
        self,
        data: Any,
        name: str,
        keyvalues: Optional[Mapping[str, Any]] = None,
    ) -> BlobFile:
        ...

    async def upload_file(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        name: Optional[str] = None,
        keyvalues: Optional[Mapping[str, Any]] = None,
    ) -> BlobFile:
        ...

    async def update_metadata(self, file_id: str, keyvalues: Mapping[str, Any]) -> BlobFile:
        ...

    async def create_signed_url(self, expires: int) -> str:
        ...
