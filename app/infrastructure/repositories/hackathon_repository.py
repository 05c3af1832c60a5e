"""
해커톤 Repository
블롭 저장소에서 해커톤 레코드를 조회하고 최신 버전을 결정

[저장 형식]
- 본문: HackathonRecord JSON (생성 시 1회 기록, 불변)
- 태그: type=hackathon, hackathonId, participants(JSON), participantCount, updatedAt
  * 등록은 본문이 아니라 태그만 갱신하므로 태그의 participants가 우선

[버전]
같은 hackathonId로 여러 파일이 있을 수 있음 (수정 시 재업로드).
생성 시각(created_at)이 가장 늦은 파일이 현재 버전입니다.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.core.timeutils import parse_datetime
from app.domain.concurrency import gather_bounded
from app.domain.models import HackathonRecord, Participant
from app.domain.ports import BlobFile, BlobStore


logger = logging.getLogger(__name__)

HACKATHON_TYPE = "hackathon"
DEFAULT_FETCH_CONCURRENCY = 8

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(file: BlobFile) -> datetime:
    try:
        return parse_datetime(file.created_at) or _EPOCH
    except ValueError:
        return _EPOCH


def latest_by_key(files: Iterable[BlobFile], key_name: str) -> Tuple[Dict[str, BlobFile], List[BlobFile]]:
    """
    태그 key_name 값별로 가장 최근 파일만 남김

    Returns:
        (키별 최신 파일, 태그가 없는 파일 목록)
    """
    latest: Dict[str, BlobFile] = {}
    untagged: List[BlobFile] = []
    for file in files:
        if file.cid in ("", "pending"):
            continue
        key = file.keyvalues.get(key_name)
        if not key:
            untagged.append(file)
            continue
        current = latest.get(key)
        if current is None or _created_key(file) > _created_key(current):
            latest[key] = file
    return latest, untagged


class HackathonRepository:
    """해커톤 데이터 접근 계층"""

    def __init__(self, store: BlobStore, fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY):
        self.store = store
        self.fetch_concurrency = fetch_concurrency

    async def list_files(self, hackathon_id: Optional[str] = None) -> List[BlobFile]:
        filters = {"type": HACKATHON_TYPE}
        if hackathon_id:
            filters["hackathonId"] = hackathon_id
        return await self.store.list_files(keyvalues=filters, order="DESC")

    async def materialize(self, file: BlobFile) -> Optional[HackathonRecord]:
        """
        파일 → HackathonRecord

        본문에 title이 없거나 형식이 잘못된 파일은 None (경고 로그)
        """
        body = await self.store.fetch_json(file.cid)
        if not isinstance(body, dict) or not body.get("title"):
            logger.warning(f"[HackathonRepository] 필수 필드 없음 - 건너뜀: {file.cid}")
            return None

        data = dict(body)
        data.setdefault("id", file.keyvalues.get("hackathonId") or file.id)
        data["ipfsHash"] = file.cid
        data["fileId"] = file.id
        if not data.get("createdAt"):
            data["createdAt"] = file.created_at

        tag_participants = self._participants_from_tags(file)
        if tag_participants is not None:
            data["participants"] = tag_participants
        if file.keyvalues.get("updatedAt"):
            data["updatedAt"] = file.keyvalues["updatedAt"]

        try:
            return HackathonRecord.model_validate(data).refresh_derived()
        except (PydanticValidationError, ValueError, TypeError) as e:
            logger.warning(f"[HackathonRepository] 레코드 변환 실패 - cid: {file.cid}, error: {str(e)}")
            return None

    def _participants_from_tags(self, file: BlobFile) -> Optional[List[dict]]:
        raw = file.keyvalues.get("participants")
        if not raw:
            return None
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning(f"[HackathonRepository] participants 태그 파싱 실패 - file: {file.id}")
            return None
        if not isinstance(parsed, list):
            return None
        return parsed

    async def _materialize_many(self, files: List[BlobFile]) -> List[Tuple[BlobFile, HackathonRecord]]:
        async def load(file: BlobFile):
            try:
                return file, await self.materialize(file)
            except Exception as e:
                # 한 파일의 조회 실패가 전체 목록을 막지 않도록
                logger.error(f"[HackathonRepository] 해커톤 조회 오류 - cid: {file.cid}, error: {str(e)}")
                return file, None

        results = await gather_bounded(files, load, self.fetch_concurrency)
        return [(f, r) for f, r in results if r is not None]

    async def list_hackathons(self) -> List[HackathonRecord]:
        """
        전체 해커톤 목록 (ID당 최신 1건)

        태그에 hackathonId가 없는 레거시 파일은 본문을 읽은 뒤 본문 id로 합칩니다.
        """
        files = await self.list_files()
        latest, untagged = latest_by_key(files, "hackathonId")

        loaded = await self._materialize_many(list(latest.values()) + untagged)

        chosen: Dict[str, Tuple[BlobFile, HackathonRecord]] = {}
        for file, record in loaded:
            current = chosen.get(record.id)
            if current is None or _created_key(file) > _created_key(current[0]):
                chosen[record.id] = (file, record)

        ordered = sorted(chosen.values(), key=lambda pair: _created_key(pair[0]), reverse=True)
        logger.info(f"[HackathonRepository] 해커톤 {len(ordered)}건 반환 (파일 {len(files)}건)")
        return [record for _, record in ordered]

    async def get_latest(self, hackathon_id: str) -> Optional[Tuple[BlobFile, HackathonRecord]]:
        """
        해커톤의 현재 파일 핸들과 레코드 조회 (캐시 없이 매번 새로 조회)

        내용 주소가 다시 쓸 때마다 바뀌므로 호출자는 핸들을 보관하지 않습니다.
        """
        files = await self.list_files(hackathon_id)
        latest, _ = latest_by_key(files, "hackathonId")
        file = latest.get(hackathon_id)
        if file is not None:
            record = await self.materialize(file)
            if record is not None:
                return file, record

        # 태그 없는 레거시 파일: 전체 목록에서 본문 id로 검색
        all_files = await self.list_files()
        _, untagged = latest_by_key(all_files, "hackathonId")
        candidates = [pair for pair in await self._materialize_many(untagged) if pair[1].id == hackathon_id]
        if not candidates:
            return None
        return max(candidates, key=lambda pair: _created_key(pair[0]))

    async def save_participants(
        self,
        file: BlobFile,
        hackathon_id: str,
        participants: List[Participant],
        extra_tags: Optional[Dict[str, str]] = None,
    ) -> BlobFile:
        """
        참가자 목록을 태그로 기록 (본문은 그대로)

        동시 호출 시 마지막 쓰기가 이깁니다.
        """
        tags = {
            **file.keyvalues,
            "type": HACKATHON_TYPE,
            "hackathonId": hackathon_id,
            "participantCount": str(len(participants)),
            "participants": json.dumps(
                [p.model_dump(exclude_none=True) for p in participants],
                ensure_ascii=False,
                separators=(",", ":"),
            ),
            **(extra_tags or {}),
        }
        return await self.store.update_metadata(file.id, tags)
