"""
Time helpers.

Timestamps are stored as naive UTC datetimes; MySQL DATETIME and SQLite
both drop tzinfo, so everything read back from the database is naive.
"""
import math
from datetime import datetime, timezone
from typing import Optional

MONTHS_LONG_ID = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]
MONTHS_SHORT_ID = [
    "Jan", "Feb", "Mar", "Apr", "Mei", "Jun",
    "Jul", "Agu", "Sep", "Okt", "Nov", "Des",
]


def utcnow() -> datetime:
    """Current UTC time as a naive datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ensure_naive_utc(dt: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive input is assumed UTC"""
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_naive_utc(dt).isoformat() + "Z"


def ceil_seconds(delta_seconds: float) -> int:
    return int(math.ceil(delta_seconds))


def subtract_months(dt: datetime, months: int) -> datetime:
    """Same day-of-month `months` earlier, clamped to the end of shorter months"""
    month_index = dt.month - 1 - months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    days_in_month = [31, 29 if _is_leap(year) else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]
    return dt.replace(year=year, month=month, day=min(dt.day, days_in_month[month - 1]))


def _is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def format_date_long_id(dt: datetime) -> str:
    """19 Oktober 2026"""
    return f"{dt.day} {MONTHS_LONG_ID[dt.month - 1]} {dt.year}"


def format_datetime_short_id(dt: datetime) -> str:
    """19 Okt 2026 10.40"""
    return f"{dt.day} {MONTHS_SHORT_ID[dt.month - 1]} {dt.year} {dt.hour:02d}.{dt.minute:02d}"


def format_month_key_id(dt: datetime) -> str:
    """Okt 2026"""
    return f"{MONTHS_SHORT_ID[dt.month - 1]} {dt.year}"
