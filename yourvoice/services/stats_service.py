import math
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from yourvoice.config import settings
from yourvoice.models.report import Report, REPORT_CATEGORIES
from yourvoice.services.report_service import report_to_dict
from yourvoice.utils.cache import cache_manager
from yourvoice.utils.timeutil import utcnow, to_iso, subtract_months, format_month_key_id
import logging

logger = logging.getLogger(__name__)

STATS_CACHE_PREFIX = "stats"
STATS_CACHE_KEY = "dashboard"


def compute_dashboard_stats(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Dashboard statistics

    - overview: totals per status and resolution rate (resolved / total, %)
    - byCategory: counts per category
    - recentReports: 10 newest reports
    - monthlyTrends: report counts per month over the last 6 months
    """
    now = now or utcnow()

    status_counts = dict(
        db.query(Report.status, func.count(Report.id)).group_by(Report.status).all()
    )
    total = sum(status_counts.values())
    resolved = status_counts.get("resolved", 0)

    category_counts = dict(
        db.query(Report.category, func.count(Report.id)).group_by(Report.category).all()
    )
    by_category = {category: category_counts.get(category, 0) for category in REPORT_CATEGORIES}

    recent = db.query(Report).order_by(Report.created_at.desc()).limit(10).all()

    since = subtract_months(now, 6)
    monthly_trends = {}
    for (created_at,) in db.query(Report.created_at).filter(Report.created_at >= since).order_by(Report.created_at.asc()):
        month = format_month_key_id(created_at)
        monthly_trends[month] = monthly_trends.get(month, 0) + 1

    return {
        "overview": {
            "totalReports": total,
            "pendingReports": status_counts.get("pending", 0),
            "inProgressReports": status_counts.get("in_progress", 0),
            "resolvedReports": resolved,
            "closedReports": status_counts.get("closed", 0),
            "resolutionRate": math.floor(resolved / total * 100 + 0.5) if total > 0 else 0,
        },
        "byCategory": by_category,
        "recentReports": [report_to_dict(report) for report in recent],
        "monthlyTrends": monthly_trends,
        "generatedAt": to_iso(now),
    }


def get_dashboard_stats(db: Session) -> dict:
    """Cached dashboard statistics"""
    cached = cache_manager.get(STATS_CACHE_PREFIX, STATS_CACHE_KEY)
    if cached is not None:
        return cached

    stats = compute_dashboard_stats(db)
    cache_manager.set(STATS_CACHE_PREFIX, STATS_CACHE_KEY, stats, settings.STATS_CACHE_SECONDS)
    return stats


def invalidate_dashboard_stats() -> None:
    cache_manager.delete(STATS_CACHE_PREFIX, STATS_CACHE_KEY)
