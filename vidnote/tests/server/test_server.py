"""Tests for the annotation service."""

import json

import pytest
from fastapi.testclient import TestClient

from vidnote.server import AnnotationRepository, create_app, same_id
from vidnote.utils.misc import IdAllocator


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "annotations.json"


@pytest.fixture
def client(data_file):
    return TestClient(create_app(data_file))


def line(**extra):
    return {"tool": "line", "start": 0, "end": 2, "startX": 0, "startY": 0, "endX": 5, "endY": 5, **extra}


class TestStartup:
    def test_data_file_is_created_empty(self, client, data_file):
        assert json.loads(data_file.read_text()) == []

    def test_existing_data_is_kept(self, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text(json.dumps([{"id": 1, "videoId": "default"}]))

        response = TestClient(create_app(data_file)).get("/api/annotations")
        assert response.json()["data"] == [{"id": 1, "videoId": "default"}]

    def test_unreadable_data_reads_empty(self, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text("{oops")

        response = TestClient(create_app(data_file)).get("/api/annotations")
        assert response.json() == {"success": True, "data": []}

    def test_custom_prefix(self, data_file):
        client = TestClient(create_app(data_file, prefix="/v2"))
        assert client.get("/v2/health").status_code == 200
        assert client.get("/api/health").status_code == 404


class TestCreate:
    def test_create_stamps_id_and_timestamps(self, client):
        response = client.post("/api/annotations", json=line(id="client-id", createdAt="x"))

        assert response.status_code == 201
        body = response.json()
        assert body["success"]
        record = body["data"]
        assert isinstance(record["id"], int)
        assert record["createdAt"] == record["updatedAt"] != "x"
        assert record["endX"] == 5

    def test_zero_start_is_valid(self, client):
        assert client.post("/api/annotations", json=line(start=0, end=0)).status_code == 201

    @pytest.mark.parametrize("missing", ["tool", "start", "end"])
    def test_missing_required_field(self, client, missing):
        payload = line()
        del payload[missing]

        response = client.post("/api/annotations", json=payload)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": f"Missing required field: {missing}",
        }

    def test_ids_are_unique(self, client):
        ids = {client.post("/api/annotations", json=line()).json()["data"]["id"] for _ in range(5)}
        assert len(ids) == 5

    def test_invalid_body(self, client):
        response = client.post("/api/annotations", json=[1, 2])
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestBulk:
    def test_bulk_with_video_replaces_only_that_video(self, client):
        client.post("/api/annotations/bulk", json={"annotations": [line(id=1)], "videoId": "a"})
        client.post("/api/annotations/bulk", json={"annotations": [line(id=2)], "videoId": "b"})
        response = client.post(
            "/api/annotations/bulk",
            json={"annotations": [line(id=3), line(id=4)], "videoId": "a"},
        )

        assert response.json()["message"] == "Saved 2 annotations"
        assert [r["id"] for r in client.get("/api/annotations/a").json()["data"]] == [3, 4]
        assert [r["id"] for r in client.get("/api/annotations/b").json()["data"]] == [2]

    def test_bulk_without_video_replaces_everything(self, client):
        client.post("/api/annotations/bulk", json={"annotations": [line(id=1)], "videoId": "a"})
        client.post("/api/annotations/bulk", json={"annotations": [line(id=2)]})

        records = client.get("/api/annotations").json()["data"]
        assert [(r["id"], r["videoId"]) for r in records] == [(2, "default")]

    def test_bulk_keeps_created_at(self, client):
        response = client.post(
            "/api/annotations/bulk",
            json={"annotations": [line(id=1, createdAt="2024-01-01T00:00:00.000Z"), line(id=2)]},
        )
        first, second = response.json()["data"]
        assert first["createdAt"] == "2024-01-01T00:00:00.000Z"
        assert second["createdAt"] == second["updatedAt"]

    @pytest.mark.parametrize("annotations", [None, {"id": 1}, "[]", 3])
    def test_bulk_rejects_non_lists(self, client, annotations):
        response = client.post("/api/annotations/bulk", json={"annotations": annotations})
        assert response.status_code == 400
        assert response.json()["error"] == "Annotations must be an array"

    def test_bulk_rejects_non_object_items(self, client):
        response = client.post("/api/annotations/bulk", json={"annotations": [1]})
        assert response.status_code == 400


class TestUpdateDelete:
    def test_update_merges_and_keeps_identity(self, client):
        created = client.post("/api/annotations", json=line(color="#fff")).json()["data"]

        response = client.put(
            f"/api/annotations/{created['id']}",
            json={"color": "#000", "id": 999, "createdAt": "never"},
        )

        updated = response.json()["data"]
        assert response.status_code == 200
        assert updated["id"] == created["id"]
        assert updated["createdAt"] == created["createdAt"]
        assert updated["color"] == "#000"
        assert updated["endX"] == 5

    def test_update_missing(self, client):
        response = client.put("/api/annotations/123", json={"color": "#000"})
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Annotation not found"}

    def test_delete_returns_the_record(self, client):
        created = client.post("/api/annotations", json=line()).json()["data"]

        response = client.delete(f"/api/annotations/{created['id']}")

        assert response.json()["data"]["id"] == created["id"]
        assert client.get("/api/annotations").json()["data"] == []
        assert client.delete(f"/api/annotations/{created['id']}").status_code == 404

    def test_delete_all(self, client):
        client.post("/api/annotations", json=line())
        response = client.delete("/api/annotations")

        assert response.json() == {"success": True, "message": "All annotations deleted"}
        assert client.get("/api/annotations").json()["data"] == []


class TestErrors:
    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["success"]
        assert body["timestamp"].endswith("Z")

    def test_unknown_route(self, client):
        response = client.get("/api/nothing/here")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Route not found"}

    def test_unexpected_error(self, data_file, monkeypatch):
        app = create_app(data_file)

        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(app.state.repository, "list", explode)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/api/annotations")
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Something went wrong!"}


class TestRepository:
    def test_same_id(self):
        assert same_id(17, "17")
        assert same_id("17", 17.0)
        assert same_id("abc", "abc")
        assert not same_id("abc", 17)
        assert not same_id(None, 0)

    def test_ids_skip_existing_records(self, tmp_path):
        repository = AnnotationRepository(tmp_path / "a.json")
        repository.ids = IdAllocator(clock=lambda: 1.0)
        repository.initialize()
        repository.replace([{"id": 5000, "tool": "line"}])

        assert repository.create({"tool": "line"})["id"] == 5001
