"""
API 테스트
"""
import json
from datetime import timedelta

from app.core.timeutils import to_iso, utc_now
from tests.conftest import seed_hackathon


def hackathon_request(**overrides):
    now = utc_now()
    data = {
        "title": "API Hackathon",
        "description": "Created through the API",
        "startDate": to_iso(now + timedelta(days=10)),
        "endDate": to_iso(now + timedelta(days=11)),
        "registrationDeadline": to_iso(now + timedelta(days=3)),
        "organizerId": "organizer-1",
        "prizes": [{"title": "Grand", "amount": 1000, "currency": "USDC", "position": 1}],
    }
    data.update(overrides)
    return data


class TestHealthAPI:
    """헬스 체크 API 테스트"""

    def test_info(self, client):
        response = client.get("/info")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "AthenaForge Hackathon API"
        assert "version" in data

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["pinata"] is True
        assert data["components"]["redis"] is None

    def test_unknown_route_uses_error_shape(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert "error" in response.json()


class TestHackathonAPI:
    """해커톤 API 테스트"""

    def test_create_then_get(self, client):
        response = client.post("/api/hackathons/create", json=hackathon_request())
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        hackathon_id = data["hackathon"]["id"]
        assert data["ipfs"]["cid"] == data["hackathon"]["ipfsHash"]
        assert data["ipfs"]["url"].endswith(data["ipfs"]["cid"])

        response = client.get(f"/api/hackathons/{hackathon_id}")
        assert response.status_code == 200
        assert response.json()["title"] == "API Hackathon"

    def test_create_validation_error(self, client):
        response = client.post("/api/hackathons/create", json=hackathon_request(prizes=[]))
        assert response.status_code == 400
        assert response.json()["error"] == "At least one prize is required"

    def test_create_with_null_judge_links(self, client):
        response = client.post("/api/hackathons/create", json=hackathon_request(
            judges=[{"name": "J", "avatar": None, "socialLinks": {"twitter": None}}],
        ))
        assert response.status_code == 200
        judge = response.json()["hackathon"]["judges"][0]
        assert judge["avatar"] == ""
        assert judge["socialLinks"]["twitter"] == ""

    def test_create_missing_fields(self, client):
        response = client.post("/api/hackathons/create", json={"title": "only a title"})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields", "error_code": "VALIDATION_ERROR"}

    def test_create_store_failure(self, client, store):
        store.fail_uploads = 1
        response = client.post("/api/hackathons/create", json=hackathon_request())
        assert response.status_code == 503
        assert response.json()["error"] == "Failed to store hackathon data on IPFS"

    def test_list_dedups_by_id(self, client, store):
        seed_hackathon(store, hackathon_id="h1", title="first", created_at="2025-01-01T00:00:00.000Z")
        seed_hackathon(store, hackathon_id="h1", title="second", created_at="2025-01-02T00:00:00.000Z")

        response = client.get("/api/hackathons")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["title"] == "second"

    def test_get_unknown_hackathon(self, client):
        response = client.get("/api/hackathons/missing")
        assert response.status_code == 404
        assert response.json()["error"] == "Hackathon not found"
        assert response.json()["error_code"] == "HACKATHON_NOT_FOUND"


class TestRegistrationAPI:
    """참가 등록 API 테스트"""

    def test_register_and_check(self, client, store):
        file = seed_hackathon(store, hackathon_id="h1", max_participants=1)

        response = client.post("/api/hackathons/h1/register", json={"userId": "alice", "userEmail": "a@x.io"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Successfully registered for hackathon"
        assert data["fileId"] == file.id
        assert data["hackathon"]["participantCount"] == 1
        assert data["hackathon"]["participants"][0]["userName"] == "alice"

        response = client.post("/api/hackathons/h1/check-registration", json={"userId": "alice"})
        assert response.status_code == 200
        assert response.json() == {
            "isRegistered": True,
            "hackathonId": "h1",
            "userId": "alice",
            "participantCount": 1,
        }

        response = client.post("/api/hackathons/h1/register", json={"userId": "bob"})
        assert response.status_code == 400
        assert response.json()["error"] == "Hackathon is full. Maximum participants reached."

    def test_full_hackathon_keeps_participant_list(self, client, store):
        file = seed_hackathon(store, hackathon_id="h1", max_participants=2)
        for user_id in ("alice", "bob"):
            assert client.post("/api/hackathons/h1/register", json={"userId": user_id}).status_code == 200

        response = client.post("/api/hackathons/h1/register", json={"userId": "carol"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "HACKATHON_FULL"
        assert len(json.loads(store.files[file.id].keyvalues["participants"])) == 2
        assert client.get("/api/hackathons/h1").json()["participantCount"] == 2

    def test_registration_after_deadline(self, client, store):
        file = seed_hackathon(store, hackathon_id="h1", deadline_in_days=-1)
        store.files[file.id].keyvalues["participants"] = json.dumps([{"userId": "early"}])

        response = client.post("/api/hackathons/h1/register", json={"userId": "late"})
        assert response.status_code == 400
        assert response.json()["error"] == "Registration deadline has passed."
        assert store.update_calls == []
        assert client.get("/api/hackathons/h1").json()["participantCount"] == 1

    def test_register_when_stored_participant_has_only_id(self, client, store):
        seed_hackathon(store, hackathon_id="h1", participants=[{"id": "alice", "userName": "Alice"}])

        assert [h["id"] for h in client.get("/api/hackathons").json()] == ["h1"]
        response = client.post("/api/hackathons/h1/register", json={"userId": "alice"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "ALREADY_REGISTERED"

    def test_duplicate_registration(self, client, store):
        seed_hackathon(store, hackathon_id="h1")
        client.post("/api/hackathons/h1/register", json={"userId": "alice"})

        response = client.post("/api/hackathons/h1/register", json={"userId": "alice"})
        assert response.status_code == 400
        assert response.json()["error"] == "User is already registered for this hackathon"
        assert json.loads(store.files["file-1"].keyvalues["participants"]) != []

    def test_user_id_required(self, client, store):
        seed_hackathon(store, hackathon_id="h1")
        response = client.post("/api/hackathons/h1/register", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"

        response = client.post("/api/hackathons/h1/check-registration", json={})
        assert response.status_code == 400

    def test_register_unknown_hackathon(self, client):
        response = client.post("/api/hackathons/missing/register", json={"userId": "alice"})
        assert response.status_code == 404

    def test_register_store_failure_after_retries(self, client, store, sleep):
        seed_hackathon(store, hackathon_id="h1")
        store.fail_updates = 10

        response = client.post("/api/hackathons/h1/register", json={"userId": "alice"})
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to save registration to IPFS"
        assert len(store.update_calls) == 3
        assert sleep.delays == [1.0, 2.0]


class TestSubmissionAPI:
    """프로젝트 / 팀 / 점수 API 테스트"""

    def test_project_flow(self, client):
        response = client.post("/api/projects/create", json={
            "title": "Chain Notes",
            "description": "Notes on IPFS",
            "hackathonId": "h1",
            "trackId": "track-0",
            "submittedBy": "alice",
            "technologies": ["fastapi"],
        })
        assert response.status_code == 200
        data = response.json()
        project_id = data["project"]["id"]
        assert data["project"]["ipfsHash"] == data["ipfs"]["cid"]
        assert data["metadata"]["technologies"] == ["fastapi"]

        assert [p["id"] for p in client.get("/api/projects", params={"hackathonId": "h1"}).json()] == [project_id]
        assert [p["id"] for p in client.get("/api/hackathons/h1/projects").json()] == [project_id]
        assert client.get(f"/api/projects/{project_id}").json()["title"] == "Chain Notes"
        assert client.get("/api/projects/project-missing").status_code == 404

    def test_project_missing_fields(self, client):
        response = client.post("/api/projects/create", json={"title": "x"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("Missing required fields")

    def test_team_create_and_list(self, client):
        response = client.post("/api/teams/create", json={"name": "A-Team", "hackathonId": "h1", "leaderId": "alice"})
        assert response.status_code == 200
        team = response.json()["team"]
        assert team["members"][0]["userId"] == "alice"
        assert len(team["inviteCode"]) == 8

        teams = client.get("/api/teams", params={"hackathonId": "h1"}).json()
        assert [t["id"] for t in teams] == [team["id"]]

    def test_score_create(self, client):
        response = client.post("/api/scores/create", json={
            "projectId": "project-1",
            "judgeId": "judge-0",
            "scores": {"innovation": 9, "design": 7},
            "feedback": "Great",
        })
        assert response.status_code == 200
        data = response.json()
        assert data["score"]["criteria"] == {"innovation": 9, "design": 7}
        assert data["score"]["score"] == 8
        assert data["metadata"]["isDraft"] is False

    def test_score_out_of_range(self, client):
        response = client.post("/api/scores/create", json={
            "projectId": "project-1",
            "judgeId": "judge-0",
            "scores": {"innovation": 12},
            "feedback": "Great",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid score for innovation. Must be between 0 and 10"


class TestIpfsAPI:
    """IPFS 직접 접근 API 테스트"""

    def test_upload_file(self, client, store):
        response = client.post(
            "/api/ipfs/upload",
            files={"file": ("hello.txt", b"hello", "text/plain")},
            data={"metadata": json.dumps({"owner": "alice"})},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "hello.txt"
        assert data["keyvalues"]["owner"] == "alice"
        assert data["keyvalues"]["type"] == "file"

    def test_upload_invalid_metadata(self, client):
        response = client.post(
            "/api/ipfs/upload",
            files={"file": ("hello.txt", b"hello", "text/plain")},
            data={"metadata": "{not json"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid metadata format"

    def test_upload_too_large(self, client, store):
        response = client.post("/api/ipfs/upload", files={"file": ("big.bin", b"x" * 2048, "application/octet-stream")})
        assert response.status_code == 413
        assert response.json()["error"] == "File too large. Max size: 1 KB"
        assert store.uploads == []

    def test_upload_without_file(self, client):
        response = client.post("/api/ipfs/upload", data={"metadata": "{}"})
        assert response.status_code == 400
        assert response.json()["error"] == "No file provided"

    def test_upload_json(self, client):
        response = client.post("/api/ipfs/upload-json", json={"data": {"a": 1}, "metadata": {"name": "a.json"}})
        assert response.status_code == 200
        assert response.json()["name"] == "a.json"

        response = client.post("/api/ipfs/upload-json", json={"metadata": {"name": "a.json"}})
        assert response.status_code == 400
        assert response.json()["error"] == "No data provided"

    def test_signed_url(self, client):
        response = client.get("/api/ipfs/signed-url", params={"expires": 60})
        assert response.status_code == 200
        assert response.json()["expires"] == 60
        assert response.json()["signedUrl"].startswith("https://")

        response = client.post("/api/ipfs/signed-url", json={"expires": 301})
        assert response.status_code == 400
        assert response.json()["error"] == "Expires time cannot exceed 300 seconds"

    def test_update_file_retries_with_backoff(self, client, store, sleep):
        file = store.add_file({"a": 1}, {"type": "json"})
        store.fail_updates = 2

        response = client.post("/api/ipfs/update-file", json={"fileId": file.id, "keyvalues": {"status": "reviewed"}})
        assert response.status_code == 200
        assert response.json()["fileId"] == file.id
        assert len(store.update_calls) == 3
        assert len(sleep.delays) == 2
        assert store.files[file.id].keyvalues["status"] == "reviewed"
        assert store.files[file.id].keyvalues["updateAttempt"] == "3"

    def test_update_file_gives_up_after_five_attempts(self, client, store):
        file = store.add_file({"a": 1}, {"type": "json"})
        store.fail_updates = 10

        response = client.post("/api/ipfs/update-file", json={"fileId": file.id, "keyvalues": {"x": "y"}})
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to update file"
        assert len(store.update_calls) == 5

    def test_update_unknown_file(self, client, store):
        response = client.post("/api/ipfs/update-file", json={"fileId": "nope", "keyvalues": {}})
        assert response.status_code == 404
        assert len(store.update_calls) == 1

    def test_list_files(self, client, store):
        store.add_file({"a": 1}, {"type": "json"})
        store.add_file({"b": 2}, {"type": "other"})

        response = client.get("/api/ipfs/list", params={"type": "json"})
        assert response.status_code == 200
        assert len(response.json()["files"]) == 1

        response = client.get("/api/ipfs/list", params={"order": "sideways"})
        assert response.status_code == 400
