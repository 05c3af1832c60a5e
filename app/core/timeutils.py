"""
시간 유틸리티
모든 타임스탬프는 UTC ISO-8601 (밀리초, "Z" 접미사) 문자열로 저장
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """datetime -> "2025-01-01T00:00:00.000Z" """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return to_iso(utc_now())


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    ISO 문자열 파싱 (타임존이 없으면 UTC로 간주)

    "Z" 접미사와 날짜만 있는 문자열("2025-01-01")도 허용합니다.
    파싱 불가하면 ValueError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
