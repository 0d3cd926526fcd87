"""Tests for the Flask HTTP surface."""

import io
import os


def _upload(client, content: str, filename="access.log", **form):
    data = {"file": (io.BytesIO(content.encode()), filename), **form}
    return client.post("/upload", data=data, content_type="multipart/form-data")


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"


class TestUpload:
    def test_upload_analyzes_and_stores(self, client, sample_lines):
        resp = _upload(client, "\n".join(sample_lines), owner_id="9")
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["id"] == 1
        assert data["owner_id"] == 9
        assert data["source_name"] == "access.log"
        assert data["total_requests"] == 5
        assert data["error_count"] == 2
        assert data["average_response_time"] == 0.0

    def test_owner_from_header(self, client):
        data = {"file": (io.BytesIO(b"GET / 200 1ms 10.0.0.1\n"), "a.log")}
        resp = client.post("/upload", data=data, content_type="multipart/form-data",
                           headers={"X-Owner-ID": "4"})
        assert resp.get_json()["owner_id"] == 4

    def test_missing_file(self, client):
        resp = client.post("/upload", data={}, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "file required"

    def test_bad_owner_id(self, client):
        resp = _upload(client, "GET / 200 1ms 10.0.0.1", owner_id="abc")
        assert resp.status_code == 400

    def test_empty_upload(self, client):
        resp = _upload(client, "")
        assert resp.status_code == 201
        assert resp.get_json()["total_requests"] == 0

    def test_undecodable_upload_is_server_error(self, client):
        data = {"file": (io.BytesIO(b"\xff\xfe\xfa"), "bin.log")}
        resp = client.post("/upload", data=data, content_type="multipart/form-data")
        assert resp.status_code == 500
        assert "cannot read" in resp.get_json()["error"]

    def test_upload_file_removed(self, client, config):
        _upload(client, "GET / 200 1ms 10.0.0.1")
        assert os.listdir(config.upload_dir) == []

    def test_unsafe_filename_sanitized(self, client):
        resp = _upload(client, "GET / 200 1ms 10.0.0.1", filename="../../etc/passwd")
        assert resp.status_code == 201
        assert "/" not in resp.get_json()["source_name"]

    def test_save_failure_is_server_error(self, client, monkeypatch):
        from werkzeug.datastructures import FileStorage

        def broken_save(self, dst, buffer_size=16384):
            raise OSError("disk full")

        monkeypatch.setattr(FileStorage, "save", broken_save)
        resp = _upload(client, "GET / 200 1ms 10.0.0.1")
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "failed to save file"
        assert client.get("/analyses").get_json() == []


class TestAnalyses:
    def test_list_empty(self, client):
        resp = client.get("/analyses")
        assert resp.status_code == 200
        assert resp.get_json() == []

    def test_create_and_get(self, client):
        resp = client.post("/analyses", json={"total_requests": 10, "error_count": 1,
                                              "unique_client_count": 4},
                           headers={"X-Owner-ID": "2"})
        assert resp.status_code == 201
        record_id = resp.get_json()["id"]

        resp = client.get(f"/analyses/{record_id}")
        assert resp.status_code == 200
        assert resp.get_json()["owner_id"] == 2

    def test_create_invalid_counters(self, client):
        resp = client.post("/analyses", json={"total_requests": 1, "error_count": 5})
        assert resp.status_code == 400

    def test_create_non_json(self, client):
        resp = client.post("/analyses", data="nope", content_type="text/plain")
        assert resp.status_code == 400

    def test_list_filters_owner(self, client):
        client.post("/analyses", json={"owner_id": 1})
        client.post("/analyses", json={"owner_id": 2})
        resp = client.get("/analyses?owner_id=2")
        assert [r["owner_id"] for r in resp.get_json()] == [2]

    def test_get_missing(self, client):
        resp = client.get("/analyses/404")
        assert resp.status_code == 404

    def test_update(self, client):
        record_id = client.post("/analyses", json={"total_requests": 1}).get_json()["id"]
        resp = client.put(f"/analyses/{record_id}", json={"total_requests": 3,
                                                          "source_name": "renamed.log"})
        assert resp.status_code == 200
        assert resp.get_json()["total_requests"] == 3
        assert resp.get_json()["source_name"] == "renamed.log"

    def test_update_missing(self, client):
        resp = client.put("/analyses/77", json={"total_requests": 3})
        assert resp.status_code == 404

    def test_delete(self, client):
        record_id = client.post("/analyses", json={}).get_json()["id"]
        resp = client.delete(f"/analyses/{record_id}")
        assert resp.status_code == 200
        assert client.get(f"/analyses/{record_id}").status_code == 404

    def test_delete_missing(self, client):
        assert client.delete("/analyses/5").status_code == 404
