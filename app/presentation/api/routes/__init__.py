"""
API 라우터 모듈
"""
from app.presentation.api.routes.health import router as health_router
from app.presentation.api.routes.hackathons import router as hackathons_router
from app.presentation.api.routes.projects import router as projects_router
from app.presentation.api.routes.teams import router as teams_router
from app.presentation.api.routes.scores import router as scores_router
from app.presentation.api.routes.ipfs import router as ipfs_router

__all__ = [
    "health_router",
    "hackathons_router",
    "projects_router",
    "teams_router",
    "scores_router",
    "ipfs_router",
]
