"""
라우터 의존성

서비스는 create_app()이 만든 ServiceContainer(app.state.container)에서 꺼냅니다.
"""
from fastapi import Request

from app.application.container import ServiceContainer
from app.application.services.hackathon_service import HackathonService
from app.application.services.ipfs_service import IpfsService
from app.application.services.submission_service import ProjectService, ScoreService, TeamService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_hackathon_service(request: Request) -> HackathonService:
    return get_container(request).hackathons


def get_project_service(request: Request) -> ProjectService:
    return get_container(request).projects


def get_team_service(request: Request) -> TeamService:
    return get_container(request).teams


def get_score_service(request: Request) -> ScoreService:
    return get_container(request).scores


def get_ipfs_service(request: Request) -> IpfsService:
    return get_container(request).ipfs
