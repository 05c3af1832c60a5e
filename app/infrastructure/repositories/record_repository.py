"""
제출 레코드 Repository
프로젝트 / 팀 / 점수 레코드 저장 및 조회

[2단계 기록]
1. 초안 업로드 (type=<kind>) → CID 획득
2. ipfsHash에 1의 CID를 넣은 최종본 업로드 (type=<kind>-final)
최종본만 조회 대상입니다.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from app.domain.concurrency import gather_bounded
from app.domain.ports import BlobFile, BlobStore


logger = logging.getLogger(__name__)


class RecordRepository:
    """불변 JSON 레코드 저장소 (생성 후 수정 없음)"""

    def __init__(self, store: BlobStore, fetch_concurrency: int = 8):
        self.store = store
        self.fetch_concurrency = fetch_concurrency

    async def save_two_phase(
        self,
        record: Dict[str, Any],
        name: str,
        keyvalues: Mapping[str, Any],
        draft_type: str,
        final_type: str,
        tag_draft_cid: bool = False,
    ) -> Tuple[BlobFile, BlobFile]:
        """
        초안 → 최종본 순서로 업로드

        record["ipfsHash"]는 초안 CID로 채워집니다.

        Returns:
            (초안 파일, 최종 파일)
        """
        draft = await self.store.upload_json(
            record,
            name=name,
            keyvalues={**keyvalues, "type": draft_type},
        )
        record["ipfsHash"] = draft.cid

        final_tags = {**keyvalues, "type": final_type}
        if tag_draft_cid:
            final_tags["ipfsHash"] = draft.cid

        final = await self.store.upload_json(
            record,
            name=f"{name}-final",
            keyvalues=final_tags,
        )
        logger.info(
            f"[RecordRepository] 레코드 저장 - name: {name}, "
            f"draft: {draft.cid}, final: {final.cid}"
        )
        return draft, final

    async def save_single(
        self,
        record: Dict[str, Any],
        name: str,
        keyvalues: Mapping[str, Any],
    ) -> BlobFile:
        return await self.store.upload_json(record, name=name, keyvalues=keyvalues)

    async def list_records(
        self,
        record_type: str,
        filters: Optional[Mapping[str, str]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        타입 태그로 레코드 본문 조회 (최신순)

        본문 조회에 실패한 파일은 건너뜁니다.
        """
        keyvalues = {"type": record_type, **{k: v for k, v in (filters or {}).items() if v}}
        files = await self.store.list_files(keyvalues=keyvalues, limit=limit, order="DESC")
        files = [f for f in files if f.cid and f.cid != "pending"]

        async def load(file: BlobFile) -> Optional[Dict[str, Any]]:
            try:
                body = await self.store.fetch_json(file.cid)
            except Exception as e:
                logger.warning(f"[RecordRepository] 본문 조회 실패 - cid: {file.cid}, error: {str(e)}")
                return None
            if not isinstance(body, dict):
                return None
            body.setdefault("ipfsHash", file.cid)
            return body

        bodies = await gather_bounded(files, load, self.fetch_concurrency)
        return [body for body in bodies if body is not None]
