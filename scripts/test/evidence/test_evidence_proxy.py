"""
Evidence storage and proxy tests

Covers:
- storage keys: sanitized names, no escape from the bucket
- proxy access with the owning access key or an admin session
- refusal for other keys and anonymous requests
- transparent pixel for missing images, 404 for other missing files
- content type and cache headers

Usage:
    pytest scripts/test/evidence/test_evidence_proxy.py
"""

import base64
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent.parent))

from yourvoice.models import ReportEvidence
from yourvoice.services.evidence_service import (
    TRANSPARENT_PIXEL, StorageError, EvidenceStorage, evidence_storage,
    sanitize_filename, build_storage_key, content_type_for, is_image_path
)
from test_utils import log_test_start, log_test_step, log_success

PDF_BYTES = b"%PDF-1.4\n%bukti\n"
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"

KEY = "PRXY2345PRXY"
OTHER_KEY = "THRD2345THRD"


def _submit_with_files(client, key, files):
    response = client.post("/api/reports/submit", json={
        "category": "bullying",
        "title": "Laporan dengan bukti",
        "description": "Bukti terlampir pada laporan ini.",
        "accessKey": key,
        "files": [
            {"name": name, "type": mime, "size": len(content), "data": base64.b64encode(content).decode()}
            for name, mime, content in files
        ],
    })
    assert response.status_code == 201
    return response.json()["data"]


def test_sanitize_filename():
    assert sanitize_filename("foto kantin (1).jpg") == "foto_kantin__1_.jpg"
    assert sanitize_filename("../../etc/passwd") == ".._.._etc_passwd"
    assert sanitize_filename("laporan-final.PDF") == "laporan-final.PDF"


def test_build_storage_key():
    assert build_storage_key(KEY, "a b.png", now_ms=1760000000000) == f"{KEY}/1760000000000-a_b.png"


def test_content_types():
    assert content_type_for("x/a.JPG") == "image/jpeg"
    assert content_type_for("x/a.webp") == "image/webp"
    assert content_type_for("x/a.pdf") == "application/pdf"
    assert content_type_for("x/a.bin") == "application/octet-stream"
    assert is_image_path("x/a.gif")
    assert not is_image_path("x/a.pdf")


def test_storage_rejects_traversal(s3):
    storage = EvidenceStorage("traversal-check")
    with pytest.raises(StorageError):
        storage.upload("../outside.txt", b"x")
    with pytest.raises(StorageError):
        storage.download("/etc/passwd")
    assert not storage.exists("../../etc/passwd")


def test_storage_round_trip(s3):
    storage = EvidenceStorage("round-trip")
    storage.upload("KEY/1-a.pdf", PDF_BYTES)
    assert storage.download("KEY/1-a.pdf") == PDF_BYTES
    with pytest.raises(StorageError):
        storage.upload("KEY/1-a.pdf", b"other")
    storage.upload("KEY/1-a.pdf", b"other", upsert=True)
    assert storage.download("KEY/1-a.pdf") == b"other"
    storage.remove("KEY/1-a.pdf")
    assert not storage.exists("KEY/1-a.pdf")


def test_storage_creates_missing_bucket(s3):
    storage = EvidenceStorage("created-on-first-use")
    assert not storage.exists("KEY/none.pdf")
    buckets = [b["Name"] for b in s3.list_buckets()["Buckets"]]
    assert "created-on-first-use" in buckets


def test_submit_writes_to_bucket(client, db, s3):
    _submit_with_files(client, KEY, [("bukti.pdf", "application/pdf", PDF_BYTES)])
    file_path = db.query(ReportEvidence).one().file_path

    stored = s3.get_object(Bucket="evidence", Key=file_path)
    assert stored["Body"].read() == PDF_BYTES
    assert stored["ContentType"] == "application/pdf"


def test_proxy_with_owner_key(client, db):
    log_test_start("proxy with owner key")
    _submit_with_files(client, KEY, [("bukti.pdf", "application/pdf", PDF_BYTES)])
    file_path = db.query(ReportEvidence).one().file_path

    response = client.get(f"/api/evidence/{file_path}", params={"key": "prxy-2345-prxy"})
    assert response.status_code == 200
    assert response.content == PDF_BYTES
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["cache-control"] == "public, max-age=3600"
    assert response.headers["content-disposition"] == f'inline; filename="{file_path.rsplit("/", 1)[-1]}"'
    log_success("owner can read evidence")


def test_proxy_follows_status_url(client):
    _submit_with_files(client, KEY, [("foto.jpg", "image/jpeg", JPEG_BYTES)])
    url = client.get("/api/reports/status", params={"key": KEY}).json()["data"]["evidence"][0]["url"]
    response = client.get(url)
    assert response.status_code == 200
    assert response.content == JPEG_BYTES
    assert response.headers["content-type"] == "image/jpeg"


def test_proxy_refuses_other_keys(client, db):
    log_test_start("proxy authorization")
    _submit_with_files(client, KEY, [("bukti.pdf", "application/pdf", PDF_BYTES)])
    _submit_with_files(client, OTHER_KEY, [])
    file_path = db.query(ReportEvidence).one().file_path

    log_test_step(1, "another report's key")
    assert client.get(f"/api/evidence/{file_path}", params={"key": OTHER_KEY}).status_code == 401

    log_test_step(2, "no key, no session")
    assert client.get(f"/api/evidence/{file_path}").status_code == 401
    log_success("foreign access refused")


def test_proxy_with_admin_session(admin_client, db):
    _submit_with_files(admin_client, KEY, [("bukti.pdf", "application/pdf", PDF_BYTES)])
    file_path = db.query(ReportEvidence).one().file_path
    response = admin_client.get(f"/api/evidence/{file_path}")
    assert response.status_code == 200
    assert response.content == PDF_BYTES


def test_missing_image_returns_pixel(client, db):
    _submit_with_files(client, KEY, [("foto.png", "image/png", TRANSPARENT_PIXEL)])
    file_path = db.query(ReportEvidence).one().file_path
    evidence_storage.remove(file_path)

    response = client.get(f"/api/evidence/{file_path}", params={"key": KEY})
    assert response.status_code == 200
    assert response.content == TRANSPARENT_PIXEL
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "no-cache"


def test_missing_document_returns_404(admin_client, db):
    _submit_with_files(admin_client, KEY, [("bukti.pdf", "application/pdf", PDF_BYTES)])
    file_path = db.query(ReportEvidence).one().file_path
    evidence_storage.remove(file_path)

    response = admin_client.get(f"/api/evidence/{file_path}")
    assert response.status_code == 404
    assert response.json()["msg"] == "File tidak ditemukan"


def test_missing_path(client):
    response = client.get("/api/evidence/")
    assert response.status_code == 400
    assert response.json()["msg"] == "Path file diperlukan"


def test_unregistered_path_with_key(client):
    _submit_with_files(client, KEY, [])
    assert client.get(f"/api/evidence/{KEY}/123-none.pdf", params={"key": KEY}).status_code == 401


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
