from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging

from yourvoice.config import settings
from yourvoice.errors import RateLimitedException, ValidationFailedException, ReportNotFoundException
from yourvoice.extensions import get_db
from yourvoice.schemas.request import SubmitReportRequest
from yourvoice.schemas.response import (
    SubmitReportResponse, ReportSummaryResponse, ReportStatusResponse, AccessKeyResponse
)
from yourvoice.services.evidence_service import store_evidence_files
from yourvoice.services.rate_limit_service import (
    SUBMIT_ENDPOINT, STATUS_ENDPOINT, check_rate_limit, record_request
)
from yourvoice.services.report_service import (
    NewReport, create_report, get_report_by_access_key, build_status_payload
)
from yourvoice.services.stats_service import invalidate_dashboard_stats
from yourvoice.utils.access_key import (
    AccessKeyError, generate_access_key, parse_access_key, format_access_key
)
from yourvoice.utils.client_ip import get_client_ip, hash_ip
from yourvoice.utils.response import success_response, created_response
from yourvoice.utils.timeutil import to_iso
from yourvoice.utils.validation import (
    ReportValidationError, validate_category, validate_title, validate_description,
    validate_location, validate_files
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"], prefix="/reports")


def _validated_report(request_data: SubmitReportRequest) -> NewReport:
    try:
        if request_data.accessKey:
            access_key = parse_access_key(request_data.accessKey)
        else:
            access_key = generate_access_key()

        new_report = NewReport(
            access_key=access_key,
            category=validate_category(request_data.category),
            title=validate_title(request_data.title),
            description=validate_description(request_data.description),
            location=validate_location(request_data.location)
        )
        validate_files(request_data.files, settings.EVIDENCE_MAX_SIZE_MB, settings.EVIDENCE_ALLOWED_TYPES)
    except (AccessKeyError, ReportValidationError) as e:
        raise ValidationFailedException(str(e))
    return new_report


@router.post("/submit", status_code=201)
async def submit_report(
    request_data: SubmitReportRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Submit an anonymous report

    Flow:
    1. rate limit per IP (429 when exceeded)
    2. validate fields (400)
    3. insert the report and its first timeline entry (409 on key reuse)
    4. count the request and store evidence files

    Returns the access key, which is the only way back to the report.
    """
    ip_hash = hash_ip(get_client_ip(request))

    limit = check_rate_limit(
        db, ip_hash, SUBMIT_ENDPOINT,
        settings.SUBMIT_RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_MINUTES
    )
    if not limit.allowed:
        logger.warning(f"Submit rate limit exceeded, retry in {limit.wait_seconds}s")
        raise RateLimitedException(limit.wait_seconds)

    new_report = _validated_report(request_data)
    report = create_report(db, new_report)

    record_request(db, ip_hash, SUBMIT_ENDPOINT, settings.RATE_LIMIT_WINDOW_MINUTES)

    uploaded = store_evidence_files(db, report, request_data.files)
    if request_data.files and uploaded < len(request_data.files):
        logger.warning(f"Report {report.id}: stored {uploaded} of {len(request_data.files)} evidence files")

    invalidate_dashboard_stats()

    result = SubmitReportResponse(
        accessKey=report.access_key,
        formattedKey=format_access_key(report.access_key),
        uploadedFiles=uploaded,
        report=ReportSummaryResponse(
            id=report.id,
            category=report.category,
            title=report.title,
            status=report.status,
            createdAt=to_iso(report.created_at)
        )
    )
    return JSONResponse(
        status_code=201,
        content=created_response(data=result.model_dump(), msg="Laporan berhasil dikirim")
    )


@router.get("/status")
async def report_status(
    request: Request,
    key: Optional[str] = Query(None, description="Access key"),
    db: Session = Depends(get_db)
):
    """
    Report status for a citizen holding the access key

    Requests are counted per IP but never refused; an excess is only logged.
    """
    try:
        access_key = parse_access_key(key)
    except AccessKeyError as e:
        raise ValidationFailedException(str(e))

    ip_hash = hash_ip(get_client_ip(request))
    limit = check_rate_limit(
        db, ip_hash, STATUS_ENDPOINT,
        settings.STATUS_RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_MINUTES
    )
    if not limit.allowed:
        logger.warning("Status lookups above the rate limit from one client")

    report = get_report_by_access_key(db, access_key)
    if not report:
        raise ReportNotFoundException(
            "Laporan tidak ditemukan. Pastikan kode akses yang Anda masukkan benar."
        )

    payload = ReportStatusResponse(**build_status_payload(db, report))

    record_request(db, ip_hash, STATUS_ENDPOINT, settings.RATE_LIMIT_WINDOW_MINUTES)

    return JSONResponse(
        status_code=200,
        content=success_response(data=payload.model_dump()),
        headers={"Cache-Control": "private, max-age=60"}
    )


@router.get("/access-key")
async def new_access_key():
    """Mint an access key; uniqueness is enforced only when a report is inserted"""
    key = generate_access_key()
    return success_response(data=AccessKeyResponse(accessKey=key, formattedKey=format_access_key(key)))
