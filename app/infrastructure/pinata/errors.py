"""
Pinata 클라이언트 예외
HTTP 상태 코드별로 구분 (재시도 가능 여부 판단에 사용)
"""
from typing import Optional


class BlobStoreError(Exception):
    """블롭 저장소 호출 실패 (네트워크 오류 포함)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BlobNotFoundError(BlobStoreError):
    """파일 없음 (404) - 재시도하지 않음"""


class BlobUnauthorizedError(BlobStoreError):
    """인증 실패 (401/403) - 재시도하지 않음"""


class BlobPayloadTooLarge(BlobStoreError):
    """업로드 크기 초과 (413)"""


def error_for_status(status_code: int, message: str) -> BlobStoreError:
    """HTTP 상태 코드에 맞는 예외 생성"""
    if status_code == 404:
        return BlobNotFoundError(message, status_code)
    if status_code in (401, 403):
        return BlobUnauthorizedError(message, status_code)
    if status_code == 413:
        return BlobPayloadTooLarge(message, status_code)
    return BlobStoreError(message, status_code)
