"""
리포지토리 모듈
"""
from app.infrastructure.repositories.hackathon_repository import HackathonRepository
from app.infrastructure.repositories.record_repository import RecordRepository

__all__ = [
    "HackathonRepository",
    "RecordRepository",
]
