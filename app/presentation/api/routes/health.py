"""
헬스 체크 API 라우터
"""
import logging

from fastapi import APIRouter, Depends

from app.application.container import ServiceContainer
from app.presentation.api.dependencies import get_container
from app.presentation.schemas.common import HealthResponse


router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="헬스 체크",
    description="서버 및 의존 서비스 상태를 확인합니다."
)
async def health_check(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
    """헬스 체크"""
    components = {}

    # Pinata 상태 확인 (인증 포함)
    ping = getattr(container.store, "ping", None)
    if ping is None:
        components["pinata"] = None
    else:
        try:
            components["pinata"] = await ping()
        except Exception as e:
            logger.warning(f"[Health] Pinata 상태 확인 실패: {str(e)}")
            components["pinata"] = False

    # Redis 상태 확인 (분산 락 사용 시에만)
    if container.redis is not None:
        components["redis"] = await container.redis.ping()
    else:
        components["redis"] = None

    critical_components = {k: v for k, v in components.items() if v is not None}
    overall_status = "ok" if all(critical_components.values()) else "degraded"

    return HealthResponse(
        status=overall_status,
        version=container.settings.APP_VERSION,
        components=components,
    )


@router.get(
    "/info",
    summary="API 정보",
    description="API 정보를 반환합니다."
)
async def api_info(container: ServiceContainer = Depends(get_container)):
    """API 정보 엔드포인트"""
    return {
        "name": container.settings.APP_NAME,
        "version": container.settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }
