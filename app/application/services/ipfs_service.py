"""
IPFS 직접 접근 서비스
/api/ipfs/* 라우트가 사용하는 블롭 저장소 통과(pass-through) 기능
"""
import asyncio
import json
import logging
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from app.core.exceptions import NotFoundError, RetryExhaustedError, StoreError, ValidationError
from app.core.timeutils import to_iso, utc_now
from app.domain.ports import BlobFile, BlobStore
from app.domain.retry import BackoffPolicy, retry_async
from app.infrastructure.pinata.errors import (
    BlobNotFoundError,
    BlobPayloadTooLarge,
    BlobStoreError,
    BlobUnauthorizedError,
)
from app.infrastructure.pinata.utils import format_file_size, get_file_type


logger = logging.getLogger(__name__)


def _is_retryable_update(error: BaseException) -> bool:
    return not isinstance(error, (BlobNotFoundError, BlobUnauthorizedError))


class IpfsService:
    """블롭 저장소 통과 서비스"""

    def __init__(
        self,
        store: BlobStore,
        update_policy: BackoffPolicy,
        max_upload_size: int,
        signed_url_max_expires: int = 300,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.update_policy = update_policy
        self.max_upload_size = max_upload_size
        self.signed_url_max_expires = signed_url_max_expires
        self.sleep = sleep

    def check_upload_size(self, size: Optional[int]) -> None:
        """업로드 크기 제한 검사 (크기를 모르면 통과)"""
        if size is not None and size > self.max_upload_size:
            raise ValidationError(
                f"File too large. Max size: {format_file_size(self.max_upload_size)}",
                error_code="PAYLOAD_TOO_LARGE",
                status_code=413,
                details={"maxBytes": self.max_upload_size},
            )

    async def read_upload(self, upload: Any) -> bytes:
        """
        업로드 본문 읽기

        선언된 크기로 먼저 거르고, 크기를 모르면 제한보다 1바이트만 더 읽어
        초과 여부를 판단합니다 (전체를 메모리에 올리지 않음).
        """
        self.check_upload_size(getattr(upload, "size", None))
        content = await upload.read(self.max_upload_size + 1)
        self.check_upload_size(len(content))
        return content

    async def upload_file(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str],
        metadata: Optional[str] = None,
    ) -> BlobFile:
        """
        파일 업로드

        Args:
            metadata: keyvalues로 쓸 JSON 객체 문자열 (선택)
        """
        self.check_upload_size(len(content))

        keyvalues: Dict[str, Any] = {}
        if metadata:
            try:
                keyvalues = json.loads(metadata)
            except ValueError as e:
                raise ValidationError("Invalid metadata format") from e
            if not isinstance(keyvalues, dict):
                raise ValidationError("Invalid metadata format")
        keyvalues.setdefault("fileType", get_file_type(filename))

        try:
            return await self.store.upload_file(content, filename, content_type, keyvalues=keyvalues)
        except BlobPayloadTooLarge as e:
            raise ValidationError("File too large", error_code="PAYLOAD_TOO_LARGE", status_code=413) from e
        except BlobStoreError as e:
            logger.error(f"[IpfsService] 파일 업로드 실패 - filename: {filename}, error: {str(e)}")
            raise StoreError("Upload failed", status_code=500) from e

    async def upload_json(self, data: Any, metadata: Optional[Mapping[str, Any]] = None) -> BlobFile:
        if data is None or data == {} or data == []:
            raise ValidationError("No data provided")
        metadata = metadata or {}
        name = metadata.get("name") or "data.json"
        try:
            return await self.store.upload_json(data, name=name, keyvalues=metadata.get("keyvalues") or {})
        except BlobStoreError as e:
            logger.error(f"[IpfsService] JSON 업로드 실패 - name: {name}, error: {str(e)}")
            raise StoreError("JSON upload failed", status_code=500) from e

    async def create_signed_url(self, expires: int) -> Dict[str, Any]:
        if expires > self.signed_url_max_expires:
            raise ValidationError(f"Expires time cannot exceed {self.signed_url_max_expires} seconds")
        if expires <= 0:
            raise ValidationError("Expires time must be positive")
        try:
            url = await self.store.create_signed_url(expires)
        except BlobStoreError as e:
            logger.error(f"[IpfsService] 서명 URL 생성 실패: {str(e)}")
            raise StoreError("Failed to create signed URL", status_code=500) from e
        return {
            "signedUrl": url,
            "expires": expires,
            "expiresAt": to_iso(utc_now() + timedelta(seconds=expires)),
        }

    async def update_file(self, file_id: str, keyvalues: Optional[Mapping[str, Any]]) -> BlobFile:
        """
        파일 태그 직접 수정 (지수 백오프 + 지터 재시도)

        파일 없음 / 인증 실패는 재시도하지 않습니다.
        """
        if not file_id:
            raise ValidationError("File ID is required")

        async def attempt(n: int) -> BlobFile:
            tags = dict(keyvalues or {})
            tags["updateAttempt"] = str(n)
            tags["lastAttemptAt"] = to_iso(utc_now())
            return await self.store.update_metadata(file_id, tags)

        try:
            return await retry_async(
                attempt,
                self.update_policy,
                is_retryable=_is_retryable_update,
                sleep=self.sleep,
                description=f"update-file {file_id}",
            )
        except BlobNotFoundError as e:
            raise NotFoundError("File not found", error_code="FILE_NOT_FOUND") from e
        except (BlobStoreError, RetryExhaustedError) as e:
            logger.error(f"[IpfsService] 파일 수정 실패 - id: {file_id}, error: {str(e)}")
            raise StoreError("Failed to update file", status_code=500) from e

    async def list_files(
        self,
        file_type: Optional[str] = None,
        limit: Optional[int] = None,
        order: Optional[str] = None,
    ) -> List[BlobFile]:
        order = (order or "DESC").upper()
        if order not in ("ASC", "DESC"):
            raise ValidationError("order must be ASC or DESC")
        try:
            return await self.store.list_files(
                keyvalues={"type": file_type} if file_type else None,
                limit=limit,
                order=order,
            )
        except BlobStoreError as e:
            logger.error(f"[IpfsService] 파일 목록 조회 실패: {str(e)}")
            raise StoreError("Failed to list files", status_code=500) from e
