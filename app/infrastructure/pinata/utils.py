"""
IPFS 유틸리티 함수
게이트웨이 URL, CID 검증, 메타데이터 태그 변환
"""
import json
import math
import re
from typing import Any, Dict, Mapping, Optional


_CID_PATTERN = re.compile(r"^(Qm[1-9A-HJ-NP-Za-km-z]{44}|b[A-Za-z2-7]{58}|[A-Za-z2-7]{59})$")
_CID_IN_URL_PATTERN = re.compile(r"/ipfs/([a-zA-Z0-9]+)")

_FILE_TYPES = {
    "image": ("jpg", "jpeg", "png", "gif", "webp", "svg"),
    "document": ("pdf", "doc", "docx", "txt", "md"),
    "archive": ("zip", "rar", "7z", "tar", "gz"),
    "video": ("mp4", "webm", "mov", "avi", "mkv"),
    "audio": ("mp3", "wav", "ogg", "m4a"),
    "code": ("js", "ts", "jsx", "tsx", "json", "html", "css", "py"),
}


def get_file_url(gateway: str, cid: str) -> str:
    """
    CID로 게이트웨이 URL 생성

    예:
    - ("example.mypinata.cloud", "Qm...") -> "https://example.mypinata.cloud/ipfs/Qm..."
    - ("http://localhost:8080/", "Qm...") -> "http://localhost:8080/ipfs/Qm..."
    """
    base = gateway if gateway.startswith("http") else f"https://{gateway}"
    return f"{base.rstrip('/')}/ipfs/{cid}"


def extract_cid_from_url(url: str) -> Optional[str]:
    """IPFS URL에서 CID 추출 (없으면 None)"""
    match = _CID_IN_URL_PATTERN.search(url or "")
    return match.group(1) if match else None


def is_valid_cid(cid: str) -> bool:
    """CIDv0(Qm...) / CIDv1(base32) 형식 검사"""
    return bool(cid) and bool(_CID_PATTERN.match(cid))


def stringify_keyvalues(keyvalues: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """
    메타데이터 태그 값을 문자열로 변환

    Pinata keyvalues는 문자열만 허용합니다.
    - None / 빈 문자열: 제거
    - dict / list: JSON 문자열
    - bool: "true" / "false"
    """
    cleaned: Dict[str, str] = {}
    for key, value in (keyvalues or {}).items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        elif isinstance(value, (dict, list)):
            cleaned[key] = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        else:
            cleaned[key] = str(value)
    return cleaned


def format_file_size(size: int) -> str:
    """바이트 수를 읽기 쉬운 단위로 변환 (예: 1536 -> "1.5 KB")"""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, index), 2)
    return f"{value:g} {units[index]}"


def get_file_type(filename: str) -> str:
    """확장자로 파일 분류 (image, document, archive, video, audio, code, file)"""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""
    for file_type, extensions in _FILE_TYPES.items():
        if extension in extensions:
            return file_type
    return "file"
