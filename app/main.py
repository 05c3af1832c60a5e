"""
FastAPI 메인 애플리케이션
AthenaForge Hackathon API

[목적]
- 해커톤 / 프로젝트 / 팀 / 심사 점수 레코드를 IPFS(Pinata)에 저장하는 API의 진입점

[주요 역할]
1. 애플리케이션 초기화 (lifespan 이벤트)
   - ServiceContainer 시작 (Redis 락 사용 시 Redis 연결)
   - 종료 시 HTTP 클라이언트 / Redis 연결 정리

2. API 라우터 등록
   - /api/hackathons: 해커톤 조회, 생성, 참가 등록
   - /api/projects, /api/teams, /api/scores: 제출 레코드
   - /api/ipfs: 저장소 직접 접근
   - /health, /info

3. 예외 핸들러: 모든 오류를 {error, error_code} JSON으로 변환

[실행 방법]
1. 직접 실행: python app/main.py
2. uvicorn: uvicorn app.main:app --reload
3. 스크립트: python scripts/run_dev.py
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.application.container import build_container
from app.core.config import Settings, settings as default_settings
from app.core.exceptions import AppError
from app.domain.concurrency import RegistrationLock
from app.domain.ports import BlobStore
from app.presentation.api.routes import (
    hackathons_router,
    health_router,
    ipfs_router,
    projects_router,
    scores_router,
    teams_router,
)


# 로깅 설정
# DEBUG 모드에서는 상세 로그, 프로덕션에서는 INFO 레벨로 설정
logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 라이프사이클 관리

    [Startup 단계]
    - Redis 락 사용 시 Redis 연결 (실패하면 서버 시작 중단)

    [Shutdown 단계]
    - Pinata HTTP 클라이언트, Redis 연결 정리
    """
    container = app.state.container
    settings = container.settings

    # ===== Startup =====
    logger.info(f"Starting {settings.APP_NAME}...")
    if not settings.PINATA_JWT:
        logger.warning("PINATA_JWT가 설정되지 않았습니다. 저장소 호출은 인증 오류로 실패합니다.")

    try:
        await container.start()
    except Exception as e:
        logger.error(f"Redis 연결 실패: {str(e)}")
        raise  # 분산 락을 켠 상태에서 Redis 없이 시작하지 않음

    logger.info(f"서버 시작 완료: http://{settings.API_HOST}:{settings.API_PORT}")

    yield  # 애플리케이션 실행

    # ===== Shutdown =====
    logger.info("Shutting down...")
    await container.close()
    logger.info("서버 종료 완료")


def _error_body(message: str, error_code: Optional[str] = None, details=None) -> dict:
    body = {"error": message}
    if error_code:
        body["error_code"] = error_code
    if details is not None:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    예외 → JSON 응답 변환

    - AppError: 자체 status_code / error_code
    - HTTPException: detail을 {error} 형태로 평탄화
    - 요청 본문 검증 실패: 400 VALIDATION_ERROR
    - 그 외: 500 (내부 상세는 로그로만)
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"[API] {request.method} {request.url.path} 실패: {exc.message} ({exc.error_code})")
        else:
            logger.info(f"[API] {request.method} {request.url.path} 거부: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.error_code, exc.details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            message = exc.detail.get("error") or exc.detail.get("error_message") or "Request failed"
            error_code = exc.detail.get("error_code")
        else:
            message, error_code = str(exc.detail), None
        return JSONResponse(status_code=exc.status_code, content=_error_body(message, error_code))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request body", "VALIDATION_ERROR", errors),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"[API] {request.method} {request.url.path} 처리 중 오류: {str(exc)}", exc_info=True)
        return JSONResponse(status_code=500, content=_error_body("Internal server error", "INTERNAL_ERROR"))


def create_app(
    settings: Optional[Settings] = None,
    blob_store: Optional[BlobStore] = None,
    registration_lock: Optional[RegistrationLock] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> FastAPI:
    """
    FastAPI 앱 생성

    Args:
        settings: 설정 (None이면 환경 변수)
        blob_store: 블롭 저장소 (테스트에서 인메모리 저장소 주입)
        registration_lock: 등록 락 (None이면 설정에 따라 결정)
        sleep: 재시도 대기 함수
    """
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## AthenaForge Hackathon API

IPFS(Pinata) 기반 해커톤 관리 API

### 기능
- 해커톤 생성 및 조회 (ID별 최신 버전)
- 참가 등록 (해커톤 단위 락 + 재시도)
- 프로젝트 제출, 팀 생성, 심사 점수 기록
- 파일 업로드 및 서명된 업로드 URL 발급
""",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.container = build_container(
        settings,
        store=blob_store,
        registration_lock=registration_lock,
        sleep=sleep,
    )

    # ===== CORS 설정 =====
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ===== 라우터 등록 =====
    app.include_router(health_router)  # /health, /info
    app.include_router(hackathons_router, prefix="/api")  # /api/hackathons/*
    app.include_router(projects_router, prefix="/api")  # /api/projects/*
    app.include_router(teams_router, prefix="/api")  # /api/teams/*
    app.include_router(scores_router, prefix="/api")  # /api/scores/*
    app.include_router(ipfs_router, prefix="/api")  # /api/ipfs/*
    return app


app = create_app()


if __name__ == "__main__":
    """
    메인 실행 블록

    [사용법]
    python app/main.py

    [대안]
    - scripts/run_dev.py: 개발용 스크립트 (권장)
    - uvicorn app.main:app --reload: 직접 uvicorn 실행
    """
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=default_settings.DEBUG,
        log_level="debug" if default_settings.DEBUG else "info",
    )
