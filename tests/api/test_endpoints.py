"""Tests for the HTTP endpoints."""

import io
import json
import zipfile

import pytest
from fastapi.testclient import TestClient

from filedepot.app import create_app


@pytest.fixture
def client(tmp_path):
    """Create a test client backed by a temporary store."""
    app = create_app(config_path=tmp_path / "data" / "config.json", base_dir=tmp_path)
    return TestClient(app)


@pytest.fixture
def uploads(tmp_path):
    return tmp_path / "uploads"


def _upload(client, *names, content=b"content"):
    files = [("fileOrFiles", (name, content, "text/plain")) for name in names]
    return client.post("/upload/files", files=files)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Request-ID"]


def test_upload_single_file(client, uploads):
    response = _upload(client, "hello.txt", content=b"hi")
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "1 file(s) uploaded successfully."
    assert "failed" not in data
    (meta,) = data["filesData"]
    assert meta["originalName"] == "hello.txt"
    assert meta["storedName"] == "hello.txt"
    assert meta["size"] == 2
    assert meta["mimetype"] == "text/plain"
    assert (uploads / "hello.txt").read_bytes() == b"hi"


def test_upload_collisions_get_counters(client):
    _upload(client, "report.pdf")
    response = _upload(client, "report.pdf", "report.pdf")
    assert response.status_code == 201
    stored = [m["storedName"] for m in response.json()["filesData"]]
    assert stored == ["report(1).pdf", "report(2).pdf"]


def test_upload_without_files(client):
    response = client.post("/upload/files", files=[("other", ("a.txt", b"x", "text/plain"))])
    assert response.status_code == 400
    assert response.json()["code"] == "EMPTY_BATCH"


def test_upload_too_many_files(client, uploads):
    response = _upload(client, *[f"f{i}.txt" for i in range(11)])
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "BATCH_TOO_LARGE"
    assert data["limit"] == 10
    assert not uploads.exists() or list(uploads.iterdir()) == []


def test_list_files(client):
    _upload(client, "b.txt", content=b"x" * 2048)
    _upload(client, "a.TXT")
    response = client.get("/download/list")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["count"] == 2
    first, second = data["files"]
    assert first["name"] == "a.TXT"
    assert first["extension"] == ".txt"
    assert first["downloadUrl"] == "/download?filenames=a.TXT"
    assert second["size"] == "2 KB"
    assert second["sizeBytes"] == 2048
    assert "created" in second and "modified" in second


def test_list_files_before_any_upload(client):
    response = client.get("/download/list")
    assert response.status_code == 200
    assert response.json() == {"success": True, "count": 0, "files": []}


def test_download_single_file(client):
    _upload(client, "my notes.txt", content=b"plain bytes")
    response = client.get("/download", params={"filenames": "my notes.txt"})
    assert response.status_code == 200
    assert response.content == b"plain bytes"
    assert response.headers["content-type"] == "application/octet-stream"
    assert response.headers["content-disposition"] == 'attachment; filename="my%20notes.txt"'
    assert response.headers["content-length"] == str(len(b"plain bytes"))


def test_download_several_files_as_zip(client):
    _upload(client, "a.txt", content=b"A")
    _upload(client, "b.txt", content=b"B")
    response = client.get("/download?filenames=b.txt,a.txt")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert response.headers["content-disposition"].startswith('attachment; filename="download_')
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert zf.namelist() == ["b.txt", "a.txt"]
        assert zf.read("a.txt") == b"A"


def test_download_repeated_parameters(client):
    _upload(client, "a.txt", "b.txt")
    response = client.get("/download?filenames=a.txt&filenames=b.txt")
    assert response.status_code == 200
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert sorted(zf.namelist()) == ["a.txt", "b.txt"]


def test_download_everything_from_empty_store(client):
    response = client.get("/download")
    assert response.status_code == 200
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert zf.namelist() == []


def test_download_missing_file(client):
    _upload(client, "a.txt")
    response = client.get("/download?filenames=a.txt,missing.txt")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "FILES_NOT_FOUND"
    assert data["missing"] == ["missing.txt"]
    assert data["detail"] == "Files not found: missing.txt"


def test_delete_files(client, uploads):
    _upload(client, "a.txt", "b.txt")
    response = client.request("DELETE", "/download", json={"filepaths": ["a.txt", "nope.txt"]})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Successfully deleted 1 file(s)"
    assert data["deleted"] == ["a.txt"]
    assert data["failed"] == [{"filename": "nope.txt", "error": "not found"}]
    assert sorted(p.name for p in uploads.iterdir()) == ["b.txt"]


def test_delete_comma_delimited_string(client):
    _upload(client, "a.txt", "b.txt")
    response = client.request("DELETE", "/download", json={"filepaths": "a.txt, b.txt"})
    assert response.status_code == 200
    assert response.json()["deleted"] == ["a.txt", "b.txt"]
    assert "failed" not in response.json()


def test_delete_nothing_deleted(client):
    response = client.request("DELETE", "/download", json={"filepaths": ["ghost.txt"]})
    assert response.status_code == 500
    data = response.json()
    assert data["code"] == "DELETION_FAILED"
    assert data["success"] is False
    assert data["deleted"] == []
    assert data["failed"] == [{"filename": "ghost.txt", "error": "not found"}]


def test_delete_empty_list(client):
    response = client.request("DELETE", "/download", json={"filepaths": []})
    assert response.status_code == 400
    assert response.json()["code"] == "EMPTY_BATCH"


def test_settings_storage_root_switch(client, tmp_path):
    response = client.post("/api/settings/storage-root", json={"storage_root": "shared"})
    assert response.status_code == 200
    data = response.json()
    assert data["resolved_storage_root"] == str((tmp_path / "shared").resolve())
    assert data["auth_required"] is False

    _upload(client, "moved.txt")
    assert (tmp_path / "shared" / "moved.txt").is_file()
    assert client.get("/api/settings").json()["storage_root"] == str((tmp_path / "shared").resolve())


def test_settings_storage_root_rejects_file(client, tmp_path):
    (tmp_path / "blocker").write_bytes(b"")
    response = client.post("/api/settings/storage-root", json={"storage_root": "blocker"})
    assert response.status_code == 400


def test_access_token_required_when_configured(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"access_token": "s3cret"}), encoding="utf-8")
    client = TestClient(create_app(config_path=config_path, base_dir=tmp_path))

    assert client.get("/download/list").status_code == 401
    assert client.get("/download/list", headers={"Authorization": "Bearer wrong"}).status_code == 401

    response = client.get("/download/list", headers={"Authorization": "Bearer s3cret"})
    assert response.status_code == 200
    assert client.get("/health").status_code == 200
    assert "s3cret" not in client.get("/api/settings", headers={"Authorization": "Bearer s3cret"}).text
