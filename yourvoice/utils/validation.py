import re
import uuid
from typing import Optional, List
from yourvoice.models import REPORT_CATEGORIES, REPORT_STATUSES

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


class ReportValidationError(ValueError):
    """Raised with a user-facing message when submitted report data is rejected"""


def validate_email(email: Optional[str]) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def validate_uuid(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def validate_category(category: Optional[str]) -> str:
    if category not in REPORT_CATEGORIES:
        raise ReportValidationError("Kategori tidak valid")
    return category


def validate_status(status: Optional[str]) -> bool:
    return status in REPORT_STATUSES


def validate_title(title: Optional[str]) -> str:
    trimmed = (title or "").strip()
    if not trimmed:
        raise ReportValidationError("Judul diperlukan")
    if len(trimmed) < 5:
        raise ReportValidationError("Judul minimal 5 karakter")
    if len(trimmed) > 255:
        raise ReportValidationError("Judul maksimal 255 karakter")
    return trimmed


def validate_description(description: Optional[str]) -> str:
    trimmed = (description or "").strip()
    if not trimmed:
        raise ReportValidationError("Deskripsi diperlukan")
    if len(trimmed) < 10:
        raise ReportValidationError("Deskripsi minimal 10 karakter")
    if len(trimmed) > 5000:
        raise ReportValidationError("Deskripsi maksimal 5000 karakter")
    return trimmed


def validate_location(location: Optional[str]) -> Optional[str]:
    """Blank locations become None"""
    trimmed = (location or "").strip()
    if not trimmed:
        return None
    if len(trimmed) > 255:
        raise ReportValidationError("Lokasi maksimal 255 karakter")
    return trimmed


def validate_files(files: Optional[List], max_mb: int, allowed_types: List[str]) -> None:
    """Check declared size and MIME type of every evidence file"""
    if not files:
        return
    max_bytes = max_mb * 1024 * 1024
    for file in files:
        if file.size > max_bytes:
            raise ReportValidationError(f"File {file.name} terlalu besar (max {max_mb}MB)")
        if file.type not in allowed_types:
            raise ReportValidationError(f"File {file.name} tidak didukung")


def validate_progress(progress: Optional[int]) -> bool:
    return progress is None or 0 <= progress <= 100
