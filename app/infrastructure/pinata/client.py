"""
Pinata 클라이언트
Pinata v3 HTTP API를 httpx 비동기 클라이언트로 호출

[엔드포인트]
- 목록 조회: GET  {api}/files/public
- 태그 수정: PUT  {api}/files/public/{id}
- 업로드:    POST {uploads}/files (multipart)
- 서명 URL:  POST {uploads}/files/sign
- 본문 조회: GET  https://{gateway}/ipfs/{cid}

재시도는 여기서 하지 않습니다 (호출자가 BackoffPolicy로 처리).
"""
import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional

import httpx

from app.core.config import Settings
from app.core.timeutils import utc_now_iso
from app.domain.ports import BlobFile
from app.infrastructure.pinata.errors import BlobNotFoundError, BlobStoreError, error_for_status
from app.infrastructure.pinata.utils import extract_cid_from_url, get_file_url, is_valid_cid, stringify_keyvalues


logger = logging.getLogger(__name__)


class PinataClient:
    """Pinata 비동기 클라이언트 래퍼 (BlobStore 구현)"""

    def __init__(
        self,
        jwt: Optional[str],
        gateway: str,
        group_id: Optional[str] = None,
        api_url: str = "https://api.pinata.cloud/v3",
        upload_url: str = "https://uploads.pinata.cloud/v3",
        timeout: float = 30.0,
        list_limit: int = 1000,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.jwt = jwt
        self.gateway = gateway
        self.group_id = group_id
        self.api_url = api_url.rstrip("/")
        self.upload_url = upload_url.rstrip("/")
        self.list_limit = list_limit
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PinataClient":
        return cls(
            jwt=settings.PINATA_JWT,
            gateway=settings.PINATA_GATEWAY,
            group_id=settings.PINATA_GROUP_ID,
            api_url=settings.PINATA_API_URL,
            upload_url=settings.PINATA_UPLOAD_URL,
            timeout=settings.PINATA_TIMEOUT,
            list_limit=settings.PINATA_LIST_LIMIT,
        )

    async def close(self):
        """HTTP 클라이언트 종료 (주입받은 클라이언트는 닫지 않음)"""
        if self._owns_client:
            await self._client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.jwt:
            headers["Authorization"] = f"Bearer {self.jwt}"
        return headers

    async def _request(self, method: str, url: str, unwrap: bool = True, **kwargs) -> Any:
        """
        요청 실행 후 JSON 응답의 "data" 필드 반환

        - 네트워크/타임아웃 오류: BlobStoreError
        - 2xx 이외: 상태 코드별 BlobStoreError 하위 예외
        """
        try:
            response = await self._client.request(method, url, headers=self._get_headers(), **kwargs)
        except httpx.TimeoutException as e:
            raise BlobStoreError(f"Pinata request timed out: {method} {url}") from e
        except httpx.HTTPError as e:
            raise BlobStoreError(f"Pinata request failed: {method} {url}: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                f"[Pinata] 요청 실패 - {method} {url}, "
                f"status={response.status_code}, body={response.text[:200]}"
            )
            raise error_for_status(
                response.status_code,
                f"Pinata {method} {url} failed with status {response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise BlobStoreError(f"Invalid JSON from Pinata: {method} {url}") from e
        if unwrap and isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def _to_blob_file(self, data: Mapping[str, Any]) -> BlobFile:
        cid = data.get("cid") or ""
        return BlobFile(
            id=str(data.get("id", "")),
            cid=cid,
            name=data.get("name"),
            size=int(data.get("size") or 0),
            mime_type=data.get("mime_type"),
            keyvalues=dict(data.get("keyvalues") or {}),
            created_at=data.get("created_at"),
            url=get_file_url(self.gateway, cid) if cid and cid != "pending" else None,
        )

    # ===== 조회 =====

    async def list_files(
        self,
        keyvalues: Optional[Mapping[str, str]] = None,
        limit: Optional[int] = None,
        order: str = "DESC",
    ) -> List[BlobFile]:
        """
        파일 목록 조회 (next_page_token을 따라 전체 페이지 수집)

        Args:
            keyvalues: 태그 필터 (모두 일치하는 파일만)
            limit: 최대 개수 (None이면 전체)
            order: 생성일 정렬 (ASC / DESC)
        """
        params: Dict[str, Any] = {
            "order": order,
            "limit": min(limit, self.list_limit) if limit else self.list_limit,
        }
        if self.group_id:
            params["group"] = self.group_id
        for key, value in stringify_keyvalues(keyvalues).items():
            params[f"metadata[{key}]"] = value

        files: List[BlobFile] = []
        while True:
            data = await self._request("GET", f"{self.api_url}/files/public", params=params)
            for item in data.get("files") or []:
                files.append(self._to_blob_file(item))
                if limit and len(files) >= limit:
                    return files

            next_token = data.get("next_page_token")
            if not next_token:
                break
            params["pageToken"] = next_token

        logger.debug(f"[Pinata] 파일 {len(files)}건 조회 (filter={dict(keyvalues or {})})")
        return files

    async def fetch_json(self, cid: str) -> Any:
        """
        게이트웨이에서 JSON 본문 조회

        cid 자리에 게이트웨이 URL을 넘겨도 됩니다.
        CID 형식이 아니면 요청 없이 BlobNotFoundError.
        """
        if "/" in (cid or ""):
            cid = extract_cid_from_url(cid) or ""
        if not is_valid_cid(cid):
            raise BlobNotFoundError(f"Invalid CID: {cid!r}", 404)
        url = get_file_url(self.gateway, cid)
        data = await self._request("GET", url, unwrap=False)
        # 게이트웨이가 JSON을 문자열로 감싸서 주는 경우
        if isinstance(data, str):
            try:
                return json.loads(data)
            except ValueError as e:
                raise BlobStoreError(f"Blob {cid} is not valid JSON") from e
        return data

    # ===== 업로드 =====

    async def upload_json(
        self,
        data: Any,
        name: str,
        keyvalues: Optional[Mapping[str, Any]] = None,
    ) -> BlobFile:
        """JSON 데이터를 파일로 핀 (태그 기본값: type=json, uploadedAt)"""
        content = json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")
        tags = {"type": "json", "uploadedAt": utc_now_iso(), **stringify_keyvalues(keyvalues)}
        return await self._upload(content, name, "application/json", name, tags)

    async def upload_file(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        name: Optional[str] = None,
        keyvalues: Optional[Mapping[str, Any]] = None,
    ) -> BlobFile:
        """임의 파일 핀 (태그 기본값: type=file, uploadedAt)"""
        tags = {"type": "file", "uploadedAt": utc_now_iso(), **stringify_keyvalues(keyvalues)}
        return await self._upload(
            content,
            filename,
            content_type or "application/octet-stream",
            name or filename,
            tags,
        )

    async def _upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        name: str,
        keyvalues: Dict[str, str],
    ) -> BlobFile:
        form: Dict[str, str] = {
            "network": "public",
            "name": name,
            "keyvalues": json.dumps(keyvalues),
        }
        if self.group_id:
            form["group_id"] = self.group_id

        data = await self._request(
            "POST",
            f"{self.upload_url}/files",
            data=form,
            files={"file": (filename, content, content_type)},
        )
        blob = self._to_blob_file(data)
        logger.info(f"[Pinata] 업로드 완료 - name: {name}, cid: {blob.cid}, size: {blob.size}")
        return blob

    # ===== 수정 =====

    async def update_metadata(self, file_id: str, keyvalues: Mapping[str, Any]) -> BlobFile:
        """
        기존 파일의 태그 덮어쓰기 (본문은 그대로)

        빈 값은 제거하고 updatedAt을 항상 새로 기록합니다.
        동시 호출 간 병합은 없습니다 (마지막 쓰기 우선).
        """
        tags = stringify_keyvalues(keyvalues)
        tags["updatedAt"] = utc_now_iso()
        data = await self._request(
            "PUT",
            f"{self.api_url}/files/public/{file_id}",
            json={"keyvalues": tags},
        )
        blob = self._to_blob_file(data)
        if not blob.id:
            blob.id = file_id
        return blob

    async def create_signed_url(self, expires: int) -> str:
        """클라이언트 직접 업로드용 서명 URL 생성"""
        data = await self._request(
            "POST",
            f"{self.upload_url}/files/sign",
            json={"date": int(time.time()), "expires": expires, "network": "public"},
        )
        if not isinstance(data, str):
            raise BlobStoreError("Unexpected signed URL response from Pinata")
        return data

    async def ping(self) -> bool:
        """인증 및 연결 확인 (헬스 체크용)"""
        try:
            await self._request("GET", f"{self.api_url}/files/public", params={"limit": 1})
            return True
        except BlobStoreError:
            return False
