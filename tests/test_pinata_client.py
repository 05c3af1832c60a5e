"""
Pinata 클라이언트 테스트 (httpx.MockTransport)
"""
import json

import httpx
import pytest

from app.infrastructure.pinata.client import PinataClient
from app.infrastructure.pinata.errors import (
    BlobNotFoundError,
    BlobPayloadTooLarge,
    BlobStoreError,
    BlobUnauthorizedError,
)
from app.infrastructure.pinata.utils import (
    extract_cid_from_url,
    format_file_size,
    get_file_type,
    get_file_url,
    is_valid_cid,
    stringify_keyvalues,
)


CID = "bafkreigh2akiscaildcqabsyg3dfr6chu3fgpregiymsck7e7aqa4s52zy"


def make_client(handler, **kwargs) -> PinataClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PinataClient(
        jwt="test-jwt",
        gateway="gateway.test",
        group_id=kwargs.pop("group_id", "group-1"),
        http_client=http_client,
        **kwargs,
    )


def file_item(file_id="f1", cid=CID, **keyvalues):
    return {
        "id": file_id,
        "cid": cid,
        "name": "record.json",
        "size": 42,
        "mime_type": "application/json",
        "keyvalues": keyvalues,
        "created_at": "2025-01-01T00:00:00.000Z",
    }


class TestPinataList:
    """목록 조회"""

    @pytest.mark.asyncio
    async def test_filters_and_pagination(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if "pageToken" not in request.url.params:
                return httpx.Response(200, json={"data": {"files": [file_item("f1")], "next_page_token": "p2"}})
            return httpx.Response(200, json={"data": {"files": [file_item("f2")], "next_page_token": None}})

        client = make_client(handler)
        files = await client.list_files(keyvalues={"type": "hackathon", "hackathonId": "h1"})

        assert [f.id for f in files] == ["f1", "f2"]
        first = requests[0]
        assert first.method == "GET"
        assert first.url.path == "/v3/files/public"
        assert first.url.params["metadata[type]"] == "hackathon"
        assert first.url.params["metadata[hackathonId]"] == "h1"
        assert first.url.params["group"] == "group-1"
        assert first.url.params["order"] == "DESC"
        assert first.headers["Authorization"] == "Bearer test-jwt"
        assert requests[1].url.params["pageToken"] == "p2"
        assert files[0].url == f"https://gateway.test/ipfs/{CID}"

    @pytest.mark.asyncio
    async def test_limit_stops_early(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"files": [file_item("a"), file_item("b")], "next_page_token": "x"}})

        files = await make_client(handler).list_files(limit=1)
        assert [f.id for f in files] == ["a"]

    @pytest.mark.asyncio
    async def test_pending_cid_has_no_url(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"files": [file_item("a", cid="pending")]}})

        files = await make_client(handler).list_files()
        assert files[0].url is None


class TestPinataWrite:
    """업로드 / 태그 수정"""

    @pytest.mark.asyncio
    async def test_upload_json_sends_multipart_with_tags(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = request.content.decode("utf-8", errors="replace")
            return httpx.Response(200, json={"data": file_item("new", hackathonId="h1")})

        blob = await make_client(handler).upload_json({"title": "x"}, name="h1", keyvalues={"hackathonId": "h1", "isUpdate": False})

        assert captured["url"] == "https://uploads.pinata.cloud/v3/files"
        assert 'name="network"' in captured["body"]
        assert 'name="group_id"' in captured["body"]
        assert '"isUpdate": "false"' in captured["body"]
        assert '"type": "json"' in captured["body"]
        assert blob.id == "new"
        assert blob.cid == CID

    @pytest.mark.asyncio
    async def test_update_metadata_stringifies_and_stamps(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["path"] = request.url.path
            captured["json"] = json.loads(request.content)
            return httpx.Response(200, json={"data": file_item("f1", **captured["json"]["keyvalues"])})

        blob = await make_client(handler).update_metadata(
            "f1", {"participantCount": 2, "participants": [{"userId": "a"}], "empty": ""}
        )

        assert captured["method"] == "PUT"
        assert captured["path"] == "/v3/files/public/f1"
        tags = captured["json"]["keyvalues"]
        assert tags["participantCount"] == "2"
        assert json.loads(tags["participants"]) == [{"userId": "a"}]
        assert "empty" not in tags
        assert "updatedAt" in tags
        assert blob.id == "f1"

    @pytest.mark.asyncio
    async def test_signed_url(self):
        def handler(request):
            body = json.loads(request.content)
            assert body["expires"] == 60
            assert body["network"] == "public"
            return httpx.Response(200, json={"data": "https://uploads.pinata.cloud/signed/abc"})

        assert await make_client(handler).create_signed_url(60) == "https://uploads.pinata.cloud/signed/abc"


class TestPinataErrors:
    """상태 코드 → 예외"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, error_type", [
        (404, BlobNotFoundError),
        (401, BlobUnauthorizedError),
        (403, BlobUnauthorizedError),
        (413, BlobPayloadTooLarge),
        (500, BlobStoreError),
    ])
    async def test_status_mapping(self, status, error_type):
        def handler(request):
            return httpx.Response(status, json={"error": "nope"})

        with pytest.raises(error_type) as exc_info:
            await make_client(handler).update_metadata("f1", {"a": "b"})
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(BlobStoreError):
            await make_client(handler).list_files()

    @pytest.mark.asyncio
    async def test_ping_reports_failure(self):
        def handler(request):
            return httpx.Response(401, json={})

        assert await make_client(handler).ping() is False


class TestPinataFetch:
    """게이트웨이 본문 조회"""

    @pytest.mark.asyncio
    async def test_fetch_json_does_not_unwrap_data_key(self):
        def handler(request):
            assert str(request.url) == f"https://gateway.test/ipfs/{CID}"
            return httpx.Response(200, json={"data": [1, 2], "title": "x"})

        assert await make_client(handler).fetch_json(CID) == {"data": [1, 2], "title": "x"}

    @pytest.mark.asyncio
    async def test_fetch_json_accepts_gateway_url(self):
        def handler(request):
            assert request.url.path == f"/ipfs/{CID}"
            return httpx.Response(200, json={"title": "x"})

        assert await make_client(handler).fetch_json(f"https://other.gateway/ipfs/{CID}") == {"title": "x"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cid", ["pending", "", "https://example.com/nothing"])
    async def test_fetch_json_rejects_invalid_cid_without_request(self, cid):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(BlobNotFoundError):
            await make_client(handler).fetch_json(cid)
        assert requests == []


class TestIpfsUtils:
    """IPFS 유틸리티"""

    def test_gateway_url(self):
        assert get_file_url("gateway.test", CID) == f"https://gateway.test/ipfs/{CID}"
        assert get_file_url("http://localhost:8080/", CID) == f"http://localhost:8080/ipfs/{CID}"

    def test_extract_cid(self):
        assert extract_cid_from_url(f"https://gateway.test/ipfs/{CID}") == CID
        assert extract_cid_from_url("https://example.com/") is None
        assert is_valid_cid(CID)
        assert not is_valid_cid("pending")

    def test_stringify_keyvalues(self):
        assert stringify_keyvalues({"a": True, "b": None, "c": 3, "d": {"x": 1}}) == {
            "a": "true",
            "c": "3",
            "d": '{"x":1}',
        }

    def test_file_helpers(self):
        assert format_file_size(0) == "0 Bytes"
        assert format_file_size(1536) == "1.5 KB"
        assert get_file_type("photo.PNG") == "image"
        assert get_file_type("README") == "file"
