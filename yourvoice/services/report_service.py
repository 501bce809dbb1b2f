import math
from dataclasses import dataclass
from typing import Optional, List, Tuple
from urllib.parse import quote
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from yourvoice.config import settings
from yourvoice.errors import AccessKeyConflictException, ReportNotFoundException
from yourvoice.models.report import Report, ReportTimeline, ReportEvidence
from yourvoice.utils.timeline import (
    STATUS_LABELS, CATEGORY_LABELS, status_title, status_template,
    resolve_entry_status, extract_admin_note
)
from yourvoice.utils.timeutil import to_iso, format_date_long_id, format_datetime_short_id, utcnow
import logging

logger = logging.getLogger(__name__)


@dataclass
class NewReport:
    access_key: str
    category: str
    title: str
    description: str
    location: Optional[str] = None


def create_report(db: Session, new_report: NewReport) -> Report:
    """
    Insert a pending report with its first timeline entry

    The access key is not checked beforehand; a duplicate surfaces as the
    unique constraint violation and is reported as a conflict.
    """
    report = Report(
        access_key=new_report.access_key,
        category=new_report.category,
        title=new_report.title,
        description=new_report.description,
        location=new_report.location,
        status="pending",
        progress=0
    )
    report.timeline.append(ReportTimeline(
        title=status_title("pending"),
        description=status_template("pending"),
        status="pending",
        is_completed=True,
        is_active=True,
        position=1
    ))
    db.add(report)

    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Report insert rejected, access key already used: {e.orig}")
        raise AccessKeyConflictException() from e

    db.refresh(report)
    logger.info(f"Report created: id={report.id}, category={report.category}")
    return report


def get_report_by_access_key(db: Session, access_key: str) -> Optional[Report]:
    return db.query(Report).filter(Report.access_key == access_key).first()


def get_report(db: Session, report_id: str) -> Optional[Report]:
    return db.query(Report).options(
        selectinload(Report.timeline),
        selectinload(Report.evidence)
    ).filter(Report.id == report_id).first()


def evidence_url(file_path: str, access_key: str) -> str:
    return f"{settings.API_PREFIX}/evidence/{quote(file_path)}?key={access_key}"


def format_timeline_item(item: ReportTimeline) -> dict:
    """Timeline entry as the citizen sees it: canonical title, template, admin note"""
    status = resolve_entry_status(item.status, item.description)
    return {
        "id": item.id,
        "title": status_title(status),
        "description": status_template(status),
        "note": extract_admin_note(item.title, item.description, status),
        "date": format_datetime_short_id(item.created_at),
        "isCompleted": bool(item.is_completed),
        "isActive": bool(item.is_active),
    }


def format_evidence_item(item: ReportEvidence, access_key: str) -> dict:
    return {
        "id": item.id,
        "fileName": item.file_name,
        "filePath": item.file_path,
        "fileSize": item.file_size,
        "mimeType": item.mime_type,
        "uploadedAt": format_datetime_short_id(item.uploaded_at),
        "url": evidence_url(item.file_path, access_key),
    }


def build_status_payload(db: Session, report: Report) -> dict:
    """Status page data for a citizen holding the access key"""
    timeline = db.query(ReportTimeline).filter(
        ReportTimeline.report_id == report.id
    ).order_by(ReportTimeline.created_at.asc(), ReportTimeline.position.asc()).all()

    evidence = db.query(ReportEvidence).filter(
        ReportEvidence.report_id == report.id
    ).order_by(ReportEvidence.uploaded_at.asc()).all()

    return {
        "id": report.id,
        "accessKey": report.access_key,
        "title": report.title,
        "category": report.category,
        "categoryLabel": CATEGORY_LABELS.get(report.category, report.category),
        "status": report.status,
        "statusLabel": STATUS_LABELS.get(report.status, report.status),
        "createdAt": format_date_long_id(report.created_at),
        "description": report.description,
        "location": report.location or None,
        "progress": report.progress,
        "timeline": [format_timeline_item(item) for item in timeline],
        "evidence": [format_evidence_item(item, report.access_key) for item in evidence],
    }


def timeline_to_dict(item: ReportTimeline) -> dict:
    return {
        "id": item.id,
        "report_id": item.report_id,
        "title": item.title,
        "description": item.description,
        "status": item.status,
        "is_completed": item.is_completed,
        "is_active": item.is_active,
        "created_at": to_iso(item.created_at),
    }


def evidence_to_dict(item: ReportEvidence) -> dict:
    return {
        "id": item.id,
        "report_id": item.report_id,
        "file_name": item.file_name,
        "file_path": item.file_path,
        "file_size": item.file_size,
        "mime_type": item.mime_type,
        "uploaded_at": to_iso(item.uploaded_at),
    }


def report_to_dict(report: Report, include_relations: bool = False) -> dict:
    """Admin view of a report row"""
    data = {
        "id": report.id,
        "access_key": report.access_key,
        "category": report.category,
        "title": report.title,
        "description": report.description,
        "location": report.location,
        "status": report.status,
        "progress": report.progress,
        "created_at": to_iso(report.created_at),
        "updated_at": to_iso(report.updated_at),
    }
    if include_relations:
        data["report_timeline"] = [timeline_to_dict(item) for item in report.timeline]
        data["report_evidence"] = [evidence_to_dict(item) for item in report.evidence]
    return data


def list_reports(
    db: Session,
    status: Optional[str] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20
) -> Tuple[List[Report], dict]:
    """
    Filtered, paginated report list, newest first

    status/category equal to 'all' are ignored; search matches the title
    case-insensitively.
    """
    query = db.query(Report)
    if status and status != "all":
        query = query.filter(Report.status == status)
    if category and category != "all":
        query = query.filter(Report.category == category)
    if search:
        query = query.filter(Report.title.ilike(f"%{search}%"))

    total = query.count()
    reports = query.options(
        selectinload(Report.timeline),
        selectinload(Report.evidence)
    ).order_by(Report.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
    return reports, pagination


def update_report(
    db: Session,
    report_id: str,
    status: Optional[str] = None,
    progress: Optional[int] = None,
    timeline_title: Optional[str] = None,
    timeline_description: Optional[str] = None,
    timeline_active: bool = False
) -> Report:
    """
    Apply an admin update

    The timeline entry is written after the report update; if that insert
    fails it is logged and the update still stands.
    """
    report = db.query(Report).filter(Report.id == report_id).first()
    if not report:
        raise ReportNotFoundException()

    if status:
        report.status = status
    if progress is not None:
        report.progress = progress
    report.updated_at = utcnow()
    db.commit()

    if timeline_title:
        try:
            last_position = db.query(func.max(ReportTimeline.position)).filter(
                ReportTimeline.report_id == report.id
            ).scalar() or 0
            db.add(ReportTimeline(
                report_id=report.id,
                title=timeline_title,
                description=timeline_description or None,
                status=status or "unknown",
                is_completed=True,
                is_active=timeline_active,
                position=last_position + 1
            ))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to add timeline entry to report {report_id}: {e}")

    db.refresh(report)
    logger.info(f"Report updated: id={report.id}, status={report.status}, progress={report.progress}")
    return report


def delete_report(db: Session, report_id: str) -> List[str]:
    """Delete a report with its timeline and evidence rows; returns the evidence storage keys"""
    report = get_report(db, report_id)
    if not report:
        raise ReportNotFoundException()

    file_paths = [item.file_path for item in report.evidence]
    db.delete(report)
    db.commit()
    logger.info(f"Report deleted: id={report_id}, evidence files={len(file_paths)}")
    return file_paths
