"""
환경 설정 모듈
Pinata(IPFS), Redis 락, 재시도 정책 등의 설정을 관리합니다.
"""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 환경 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # 알 수 없는 환경 변수는 무시
    )

    # 앱 기본 설정
    APP_NAME: str = "AthenaForge Hackathon API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # FastAPI 설정
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ALLOW_ORIGINS: List[str] = ["*"]

    # Pinata 설정 (IPFS 핀 서비스)
    PINATA_JWT: Optional[str] = None
    PINATA_GATEWAY: str = "gateway.pinata.cloud"
    PINATA_GROUP_ID: Optional[str] = None
    PINATA_API_URL: str = "https://api.pinata.cloud/v3"
    PINATA_UPLOAD_URL: str = "https://uploads.pinata.cloud/v3"
    PINATA_TIMEOUT: float = 30.0
    PINATA_LIST_LIMIT: int = 1000  # 목록 조회 시 페이지 크기
    PINATA_FETCH_CONCURRENCY: int = 8  # 게이트웨이 본문 동시 조회 수

    # 재시도 정책 (등록 코디네이터)
    RETRY_MAX_ATTEMPTS: int = 3  # 최대 시도 횟수 (첫 시도 포함)
    RETRY_BASE_DELAY: float = 1.0  # 기본 대기 시간 (초)
    RETRY_MAX_DELAY: float = 30.0  # 최대 대기 시간 (초)
    RETRY_BACKOFF_STRATEGY: str = "linear"  # 백오프 전략 (linear, exponential, fixed)
    RETRY_JITTER: float = 0.0  # 지터 비율 (0.0 ~ 1.0)

    # 파일 메타데이터 직접 수정 (/api/ipfs/update-file)
    UPDATE_FILE_MAX_ATTEMPTS: int = 5
    UPDATE_FILE_JITTER: float = 0.3

    # 등록 처리 제한
    REGISTRATION_DEADLINE_SECONDS: float = 30.0  # 코디네이터 1회 실행 전체 제한 시간
    REGISTRATION_LOCK_TIMEOUT: float = 10.0  # 등록 락 대기 제한 시간

    # Redis 설정 (다중 프로세스 등록 락, 선택)
    USE_REDIS_LOCK: bool = False
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DB: int = 0
    REDIS_LOCK_TTL_SECONDS: float = 60.0  # 락 보유자가 죽었을 때 자동 해제

    @property
    def REDIS_URL(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # 업로드 제한
    MAX_UPLOAD_SIZE_BYTES: int = 100 * 1024 * 1024
    SIGNED_URL_MAX_EXPIRES: int = 300  # 서명 URL 최대 유효 시간 (초)


@lru_cache()
def get_settings() -> Settings:
    """싱글톤 설정 객체 반환"""
    return Settings()


settings = get_settings()
