"""Model exports, used by Alembic and application code"""
from .base import Base
from .report import Report, ReportTimeline, ReportEvidence, REPORT_CATEGORIES, REPORT_STATUSES
from .login_attempt import LoginAttempt
from .rate_limit import RateLimit

__all__ = [
    "Base", "Report", "ReportTimeline", "ReportEvidence",
    "LoginAttempt", "RateLimit", "REPORT_CATEGORIES", "REPORT_STATUSES",
]
