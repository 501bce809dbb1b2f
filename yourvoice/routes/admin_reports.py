from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from yourvoice.errors import ValidationFailedException
from yourvoice.extensions import get_db
from yourvoice.routes.admin_auth import require_admin
from yourvoice.schemas.request import UpdateReportRequest
from yourvoice.services.evidence_service import remove_evidence_files
from yourvoice.services.report_service import (
    list_reports, get_report, update_report, delete_report, report_to_dict
)
from yourvoice.services.stats_service import get_dashboard_stats, invalidate_dashboard_stats
from yourvoice.utils.response import success_response
from yourvoice.utils.validation import validate_status, validate_progress, validate_uuid

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin reports"], dependencies=[Depends(require_admin)])


@router.get("/reports")
async def get_reports(
    id: Optional[str] = Query(None, description="Single report ID"),
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """
    List reports for the dashboard

    With id: that single report and no pagination.
    Otherwise: filtered by status/category/title search, newest first.
    """
    if id:
        report = get_report(db, id)
        reports = [report] if report else []
        return success_response(data={
            "reports": [report_to_dict(r, include_relations=True) for r in reports],
            "pagination": None
        })

    reports, pagination = list_reports(
        db, status=status, category=category, search=search, page=page, limit=limit
    )
    return success_response(data={
        "reports": [report_to_dict(r, include_relations=True) for r in reports],
        "pagination": pagination
    })


@router.patch("/reports")
async def patch_report(request_data: UpdateReportRequest, db: Session = Depends(get_db)):
    """Update status, progress and optionally append a timeline entry"""
    if request_data.status and not validate_status(request_data.status):
        raise ValidationFailedException("Status tidak valid")

    if not validate_progress(request_data.progress):
        raise ValidationFailedException("Progress harus antara 0-100")

    timeline = request_data.addTimeline
    report = update_report(
        db,
        request_data.id,
        status=request_data.status,
        progress=request_data.progress,
        timeline_title=timeline.title if timeline else None,
        timeline_description=timeline.description if timeline else None,
        timeline_active=timeline.isActive if timeline else False
    )
    invalidate_dashboard_stats()

    return success_response(msg="Laporan berhasil diperbarui", data=report_to_dict(report))


@router.delete("/reports")
async def remove_report(
    id: Optional[str] = Query(None, description="Report ID"),
    db: Session = Depends(get_db)
):
    """Delete a report, its timeline, evidence rows and stored files"""
    if not id:
        raise ValidationFailedException("ID laporan diperlukan")
    if not validate_uuid(id):
        raise ValidationFailedException("ID tidak valid")

    file_paths = delete_report(db, id)
    remove_evidence_files(file_paths)
    invalidate_dashboard_stats()

    return success_response(msg="Laporan berhasil dihapus")


@router.get("/admin/dashboard/stats")
async def dashboard_stats(db: Session = Depends(get_db)):
    """Dashboard statistics, cached for STATS_CACHE_SECONDS"""
    return success_response(data=get_dashboard_stats(db))
