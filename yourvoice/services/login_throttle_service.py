"""
Admin login throttle

Failed logins are counted per (hashed client IP, lowercased email). From the
second failure on, the pair is locked for 5 minutes plus 1 minute for every
failure beyond the second. A successful login deletes the counter.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from yourvoice.config import settings
from yourvoice.models.login_attempt import LoginAttempt
from yourvoice.utils.timeutil import utcnow, ceil_seconds
import logging

logger = logging.getLogger(__name__)


@dataclass
class LockStatus:
    locked: bool
    remaining_seconds: int
    attempts: int
    locked_until: Optional[datetime] = None

    @property
    def remaining_time(self) -> str:
        return format_remaining_time(self.remaining_seconds)


def calculate_lockout_minutes(attempts: int) -> int:
    """
    Lockout length for a given failure count

    - attempts <= 2: base lockout (5 minutes)
    - attempts > 2: base + (attempts - 2) * 1 minute, uncapped
    """
    threshold = settings.LOGIN_MAX_ATTEMPTS_BEFORE_LOCKOUT
    base = settings.LOGIN_BASE_LOCKOUT_MINUTES
    if attempts <= threshold:
        return base
    return base + (attempts - threshold) * settings.LOGIN_ADDITIONAL_MINUTES_PER_ATTEMPT


def format_remaining_time(seconds: int) -> str:
    """125 -> '2:05'"""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def get_login_attempt(db: Session, ip_hash: str, email: str) -> Optional[LoginAttempt]:
    return db.query(LoginAttempt).filter(
        LoginAttempt.ip_hash == ip_hash,
        LoginAttempt.email == email.lower()
    ).first()


def check_locked(db: Session, ip_hash: str, email: str, now: Optional[datetime] = None) -> LockStatus:
    """
    Lockout status for (ip_hash, email)

    Unlocked with zero remaining when there is no record or the window
    has elapsed.
    """
    now = now or utcnow()
    attempt = get_login_attempt(db, ip_hash, email)
    if not attempt:
        return LockStatus(locked=False, remaining_seconds=0, attempts=0)

    if attempt.locked_until and now < attempt.locked_until:
        remaining = ceil_seconds((attempt.locked_until - now).total_seconds())
        return LockStatus(
            locked=True,
            remaining_seconds=remaining,
            attempts=attempt.attempts,
            locked_until=attempt.locked_until
        )

    return LockStatus(locked=False, remaining_seconds=0, attempts=attempt.attempts or 0)


def record_attempt(
    db: Session,
    ip_hash: str,
    email: str,
    success: bool,
    now: Optional[datetime] = None
) -> LockStatus:
    """
    Record the outcome of a credential check

    - success: delete the counter row
    - failure: increment the counter (creating the row if absent) and, from
      the second failure on, set locked_until = now + lockout minutes

    Database errors are logged and rolled back, never raised. The
    read-modify-write is not transactional; concurrent failures may
    under-count.
    """
    now = now or utcnow()
    email = email.lower()

    try:
        attempt = get_login_attempt(db, ip_hash, email)

        if success:
            if attempt:
                db.delete(attempt)
                db.commit()
            return LockStatus(locked=False, remaining_seconds=0, attempts=0)

        if not attempt:
            attempt = LoginAttempt(ip_hash=ip_hash, email=email, attempts=0)
            db.add(attempt)

        attempt.attempts = (attempt.attempts or 0) + 1
        attempt.last_attempt = now

        if attempt.attempts >= settings.LOGIN_MAX_ATTEMPTS_BEFORE_LOCKOUT:
            lockout_minutes = calculate_lockout_minutes(attempt.attempts)
            attempt.locked_until = now + timedelta(minutes=lockout_minutes)
        else:
            attempt.locked_until = None

        db.commit()
        db.refresh(attempt)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record login attempt: {e}")
        return LockStatus(locked=False, remaining_seconds=0, attempts=0)

    if attempt.locked_until:
        return LockStatus(
            locked=True,
            remaining_seconds=ceil_seconds((attempt.locked_until - now).total_seconds()),
            attempts=attempt.attempts,
            locked_until=attempt.locked_until
        )
    return LockStatus(locked=False, remaining_seconds=0, attempts=attempt.attempts)
