"""
Admin report management and dashboard tests

Covers:
- listing with filters, title search and pagination
- single report lookup by id
- status / progress updates with timeline entries
- deletion including stored evidence files
- dashboard statistics and their invalidation

Usage:
    pytest scripts/test/admin_reports/test_admin_reports.py
"""

import base64
import sys
import uuid
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent.parent))

from yourvoice.models import Report, ReportTimeline, ReportEvidence
from yourvoice.services.evidence_service import evidence_storage
from yourvoice.utils.timeutil import utcnow, format_month_key_id
from test_utils import log_test_start, log_test_step, log_success

PDF_BYTES = b"%PDF-1.4\n%test\n"


def _submit(client, title, category="bullying", **extra):
    body = {
        "category": category,
        "title": title,
        "description": "Deskripsi laporan yang cukup panjang.",
        **extra,
    }
    response = client.post("/api/reports/submit", json=body)
    assert response.status_code == 201
    return response.json()["data"]


def test_list_reports(admin_client):
    log_test_start("list reports")
    _submit(admin_client, "Laporan pertama")
    _submit(admin_client, "Laporan kedua", category="idea")
    _submit(admin_client, "Usulan taman sekolah", category="idea")

    log_test_step(1, "all reports, newest first")
    data = admin_client.get("/api/reports").json()["data"]
    assert [r["title"] for r in data["reports"]] == [
        "Usulan taman sekolah", "Laporan kedua", "Laporan pertama"
    ]
    assert data["pagination"] == {"page": 1, "limit": 20, "total": 3, "totalPages": 1}
    assert len(data["reports"][0]["report_timeline"]) == 1
    assert data["reports"][0]["report_evidence"] == []

    log_test_step(2, "category filter")
    data = admin_client.get("/api/reports", params={"category": "idea"}).json()["data"]
    assert data["pagination"]["total"] == 2

    log_test_step(3, "'all' is ignored")
    data = admin_client.get("/api/reports", params={"category": "all", "status": "all"}).json()["data"]
    assert data["pagination"]["total"] == 3

    log_test_step(4, "case-insensitive title search")
    data = admin_client.get("/api/reports", params={"search": "LAPORAN"}).json()["data"]
    assert data["pagination"]["total"] == 2
    log_success("filters applied")


def test_pagination(admin_client):
    for i in range(5):
        _submit(admin_client, f"Laporan nomor {i}")

    data = admin_client.get("/api/reports", params={"page": 2, "limit": 2}).json()["data"]
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}
    assert [r["title"] for r in data["reports"]] == ["Laporan nomor 2", "Laporan nomor 1"]


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 101}])
def test_pagination_bounds(admin_client, params):
    assert admin_client.get("/api/reports", params=params).status_code == 400


def test_single_report(admin_client):
    report = _submit(admin_client, "Laporan tunggal")["report"]
    data = admin_client.get("/api/reports", params={"id": report["id"]}).json()["data"]
    assert data["pagination"] is None
    assert len(data["reports"]) == 1
    assert data["reports"][0]["id"] == report["id"]

    data = admin_client.get("/api/reports", params={"id": str(uuid.uuid4())}).json()["data"]
    assert data["reports"] == []


def test_update_report(admin_client, db):
    log_test_start("update report")
    submitted = _submit(admin_client, "Laporan diproses")
    report_id = submitted["report"]["id"]

    response = admin_client.patch("/api/reports", json={
        "id": report_id,
        "status": "in_progress",
        "progress": 40,
        "addTimeline": {"title": "Wali kelas sudah dihubungi", "isActive": True},
    })
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "in_progress"
    assert data["progress"] == 40

    entries = db.query(ReportTimeline).filter(ReportTimeline.report_id == report_id).all()
    assert len(entries) == 2
    added = [e for e in entries if e.title == "Wali kelas sudah dihubungi"][0]
    assert added.status == "in_progress"
    assert added.is_active

    log_test_step(1, "citizen sees the note")
    status = admin_client.get("/api/reports/status", params={"key": submitted["accessKey"]}).json()["data"]
    assert status["statusLabel"] == "Sedang Diproses"
    assert status["timeline"][-1]["title"] == "Laporan Sedang Diproses"
    assert status["timeline"][-1]["note"] == "Wali kelas sudah dihubungi"
    log_success("update visible on status page")


def test_timeline_order_survives_equal_timestamps(admin_client, db):
    submitted = _submit(admin_client, "Laporan dua catatan")
    report_id = submitted["report"]["id"]
    for note in ("Catatan pertama", "Catatan kedua"):
        response = admin_client.patch("/api/reports", json={
            "id": report_id,
            "status": "in_progress",
            "addTimeline": {"title": note},
        })
        assert response.status_code == 200

    same_second = utcnow().replace(microsecond=0)
    db.query(ReportTimeline).filter(ReportTimeline.report_id == report_id).update(
        {ReportTimeline.created_at: same_second}
    )
    db.commit()

    positions = [
        e.position for e in db.query(ReportTimeline)
        .filter(ReportTimeline.report_id == report_id)
        .order_by(ReportTimeline.position).all()
    ]
    assert positions == [1, 2, 3]

    timeline = admin_client.get(
        "/api/reports/status", params={"key": submitted["accessKey"]}
    ).json()["data"]["timeline"]
    assert [item["note"] for item in timeline[1:]] == ["Catatan pertama", "Catatan kedua"]


def test_update_progress_only(admin_client, db):
    report_id = _submit(admin_client, "Laporan progres")["report"]["id"]
    response = admin_client.patch("/api/reports", json={"id": report_id, "progress": 100})
    assert response.status_code == 200
    report = db.query(Report).filter(Report.id == report_id).one()
    assert report.status == "pending"
    assert report.progress == 100
    assert db.query(ReportTimeline).filter(ReportTimeline.report_id == report_id).count() == 1


@pytest.mark.parametrize("payload, status_code, message", [
    ({"status": "done"}, 400, "Status tidak valid"),
    ({"progress": 101}, 400, "Progress harus antara 0-100"),
    ({"progress": -1}, 400, "Progress harus antara 0-100"),
])
def test_update_validation(admin_client, payload, status_code, message):
    report_id = _submit(admin_client, "Laporan validasi")["report"]["id"]
    response = admin_client.patch("/api/reports", json={"id": report_id, **payload})
    assert response.status_code == status_code
    assert response.json()["msg"] == message


def test_update_unknown_report(admin_client):
    response = admin_client.patch("/api/reports", json={"id": str(uuid.uuid4()), "status": "closed"})
    assert response.status_code == 404


def test_delete_report(admin_client, db):
    log_test_start("delete report")
    pdf = {"name": "bukti.pdf", "type": "application/pdf", "size": len(PDF_BYTES),
           "data": base64.b64encode(PDF_BYTES).decode()}
    submitted = _submit(admin_client, "Laporan dihapus", accessKey="DELT2345DELT", files=[pdf])
    report_id = submitted["report"]["id"]

    file_path = db.query(ReportEvidence).one().file_path
    assert evidence_storage.exists(file_path)

    response = admin_client.delete("/api/reports", params={"id": report_id})
    assert response.status_code == 200

    db.expire_all()
    assert db.query(Report).count() == 0
    assert db.query(ReportTimeline).count() == 0
    assert db.query(ReportEvidence).count() == 0
    assert not evidence_storage.exists(file_path)
    log_success("rows and files removed")


@pytest.mark.parametrize("params, status_code", [
    ({}, 400),
    ({"id": "not-a-uuid"}, 400),
    ({"id": str(uuid.uuid4())}, 404),
])
def test_delete_errors(admin_client, params, status_code):
    assert admin_client.delete("/api/reports", params=params).status_code == status_code


def test_dashboard_stats(admin_client):
    log_test_start("dashboard stats")
    first = _submit(admin_client, "Laporan satu")["report"]["id"]
    _submit(admin_client, "Laporan dua")
    _submit(admin_client, "Usulan tiga", category="idea")
    admin_client.patch("/api/reports", json={"id": first, "status": "resolved", "progress": 100})

    stats = admin_client.get("/api/admin/dashboard/stats").json()["data"]
    assert stats["overview"] == {
        "totalReports": 3,
        "pendingReports": 2,
        "inProgressReports": 0,
        "resolvedReports": 1,
        "closedReports": 0,
        "resolutionRate": 33,
    }
    assert stats["byCategory"] == {"bullying": 2, "idea": 1}
    assert len(stats["recentReports"]) == 3
    assert stats["monthlyTrends"] == {format_month_key_id(utcnow()): 3}
    assert stats["generatedAt"].endswith("Z")
    log_success("stats computed")


def test_dashboard_stats_invalidated_on_write(admin_client):
    _submit(admin_client, "Laporan satu")
    assert admin_client.get("/api/admin/dashboard/stats").json()["data"]["overview"]["totalReports"] == 1

    _submit(admin_client, "Laporan dua")
    assert admin_client.get("/api/admin/dashboard/stats").json()["data"]["overview"]["totalReports"] == 2


def test_empty_dashboard(admin_client):
    overview = admin_client.get("/api/admin/dashboard/stats").json()["data"]["overview"]
    assert overview["totalReports"] == 0
    assert overview["resolutionRate"] == 0


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
