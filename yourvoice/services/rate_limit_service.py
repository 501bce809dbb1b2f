"""
Public endpoint rate limiting

One row per (hashed IP, endpoint). A request inside the window increments
request_count, a request after the window resets it to 1. last_request
moves on every request, so the window slides with activity.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from yourvoice.models.rate_limit import RateLimit
from yourvoice.utils.timeutil import utcnow, ceil_seconds
import logging

logger = logging.getLogger(__name__)

SUBMIT_ENDPOINT = "api_report_submit"
STATUS_ENDPOINT = "api_report_status"


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    wait_seconds: int = 0


def check_rate_limit(
    db: Session,
    ip_hash: str,
    endpoint: str,
    max_requests: int,
    window_minutes: int,
    now: Optional[datetime] = None
) -> RateLimitResult:
    """Decide whether a request is allowed; does not count it"""
    now = now or utcnow()
    window = timedelta(minutes=window_minutes)

    try:
        record = db.query(RateLimit).filter(
            RateLimit.ip_hash == ip_hash,
            RateLimit.endpoint == endpoint
        ).first()
    except SQLAlchemyError as e:
        # fail open
        logger.warning(f"Rate limit check failed for {endpoint}: {e}")
        return RateLimitResult(allowed=True, remaining=max_requests)

    if not record:
        return RateLimitResult(allowed=True, remaining=max_requests)

    elapsed = now - record.last_request
    if elapsed >= window:
        return RateLimitResult(allowed=True, remaining=max_requests)

    if record.request_count >= max_requests:
        return RateLimitResult(
            allowed=False,
            remaining=0,
            wait_seconds=ceil_seconds((window - elapsed).total_seconds())
        )

    return RateLimitResult(allowed=True, remaining=max_requests - record.request_count)


def record_request(
    db: Session,
    ip_hash: str,
    endpoint: str,
    window_minutes: int,
    now: Optional[datetime] = None
) -> int:
    """
    Count a request

    Returns the new request_count: 1 when the window has elapsed (or no row
    exists), otherwise the previous count plus one.
    """
    now = now or utcnow()
    window = timedelta(minutes=window_minutes)

    try:
        record = db.query(RateLimit).filter(
            RateLimit.ip_hash == ip_hash,
            RateLimit.endpoint == endpoint
        ).first()

        if not record:
            record = RateLimit(ip_hash=ip_hash, endpoint=endpoint, request_count=1, last_request=now)
            db.add(record)
        elif now - record.last_request >= window:
            record.request_count = 1
            record.last_request = now
        else:
            record.request_count = (record.request_count or 0) + 1
            record.last_request = now

        db.commit()
        return record.request_count
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to record request for {endpoint}: {e}")
        return 0
