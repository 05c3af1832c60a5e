"""
도메인 예외 정의

라우터 경계에서 `app.main`의 예외 핸들러가 `{error, error_code}` JSON으로 변환합니다.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    """애플리케이션 예외 베이스"""
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.details = details


class ValidationError(AppError):
    """입력값 검증 실패"""
    status_code = 400
    error_code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """대상 레코드 없음"""
    status_code = 404
    error_code = "NOT_FOUND"


class HackathonNotFound(NotFoundError):
    error_code = "HACKATHON_NOT_FOUND"

    def __init__(self, hackathon_id: str):
        super().__init__("Hackathon not found", details={"hackathonId": hackathon_id})


class ProjectNotFound(NotFoundError):
    error_code = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        super().__init__("Project not found", details={"projectId": project_id})


class RegistrationRejected(AppError):
    """등록 거부 (중복, 마감, 정원 초과)"""
    status_code = 400
    error_code = "REGISTRATION_REJECTED"


class AlreadyRegistered(RegistrationRejected):
    error_code = "ALREADY_REGISTERED"

    def __init__(self):
        super().__init__("User is already registered for this hackathon")


class HackathonEnded(RegistrationRejected):
    error_code = "HACKATHON_ENDED"

    def __init__(self):
        super().__init__("Hackathon has ended. Registration is closed.")


class RegistrationClosed(RegistrationRejected):
    error_code = "REGISTRATION_CLOSED"

    def __init__(self):
        super().__init__("Registration deadline has passed.")


class HackathonFull(RegistrationRejected):
    error_code = "HACKATHON_FULL"

    def __init__(self):
        super().__init__("Hackathon is full. Maximum participants reached.")


class StoreError(AppError):
    """저장소(IPFS) 실패 - 백엔드 상세는 노출하지 않음"""
    status_code = 503
    error_code = "STORE_ERROR"


class RetryExhaustedError(StoreError):
    """재시도 한도 초과"""
    status_code = 500
    error_code = "RETRY_EXHAUSTED"

    def __init__(self, message: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(message, details={"attempts": attempts})
        self.attempts = attempts
        self.last_error = last_error


class RegistrationFailed(StoreError):
    """등록 저장 실패 (재시도 소진 포함) - 부분 성공 상태는 전달하지 않음"""
    status_code = 500
    error_code = "REGISTRATION_FAILED"

    def __init__(self, attempts: int):
        super().__init__("Failed to save registration to IPFS", details={"attempts": attempts})
        self.attempts = attempts


class LockTimeoutError(AppError):
    """락 획득 대기 시간 초과"""
    status_code = 503
    error_code = "LOCK_TIMEOUT"
