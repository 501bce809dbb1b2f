"""
Single-admin authentication

The admin identity comes from configuration, is validated once at startup
and handed to the login handler as an AdminCredentials object.

Session tokens are base64("<epoch-ms>:<64 hex chars>") and are accepted
while younger than SESSION_MAX_AGE_HOURS. They carry no signature and
there is no revocation list.
"""
import base64
import binascii
import hmac
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional
from pydantic import BaseModel, field_validator
from yourvoice.config import Settings
from yourvoice.utils.validation import validate_email
import logging

logger = logging.getLogger(__name__)

ADMIN_COOKIE_NAME = "admin_token"
TOKEN_RANDOM_HEX_LENGTH = 64


class AdminConfigError(RuntimeError):
    """Admin credentials missing or invalid in configuration"""


class AdminCredentials(BaseModel):
    """The one admin identity"""
    email: str
    password: str
    session_max_age_hours: int = 24

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not value:
            raise ValueError("ADMIN_EMAIL is not set")
        if not validate_email(value):
            raise ValueError("ADMIN_EMAIL is not a valid email address")
        return value

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if not value:
            raise ValueError("ADMIN_PASSWORD is not set")
        if len(value) < 8:
            raise ValueError("ADMIN_PASSWORD must be at least 8 characters")
        return value


def load_admin_credentials(config: Settings) -> AdminCredentials:
    """Build and validate the admin identity; raises AdminConfigError"""
    try:
        return AdminCredentials(
            email=config.ADMIN_EMAIL,
            password=config.ADMIN_PASSWORD,
            session_max_age_hours=config.SESSION_MAX_AGE_HOURS
        )
    except ValueError as e:
        raise AdminConfigError(f"Invalid admin configuration: {e}") from e


@dataclass
class LoginResult:
    success: bool
    token: Optional[str] = None
    error: Optional[str] = None


def _constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def admin_login(credentials: AdminCredentials, email: str, password: str) -> LoginResult:
    """
    Check credentials and issue a session token

    Format problems (bad email, short password) are reported as failures
    too, so they count towards the login throttle.
    """
    if not validate_email(email):
        return LoginResult(success=False, error="Format email tidak valid")

    if not password or len(password) < 6:
        return LoginResult(success=False, error="Password minimal 6 karakter")

    now_iso = datetime.now(timezone.utc).isoformat()

    if not _constant_time_equals(email.lower(), credentials.email.lower()):
        logger.warning(f"Failed login attempt - invalid email: {email} at {now_iso}")
        return LoginResult(success=False, error="Email atau password salah")

    if not _constant_time_equals(password, credentials.password):
        logger.warning(f"Failed login attempt - invalid password for: {email} at {now_iso}")
        return LoginResult(success=False, error="Email atau password salah")

    logger.info(f"Admin login successful: {email} at {now_iso}")
    return LoginResult(success=True, token=generate_session_token())


def generate_session_token(now_ms: Optional[int] = None) -> str:
    """base64('<epoch-ms>:<64 random hex chars>')"""
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    token_data = f"{timestamp}:{secrets.token_hex(TOKEN_RANDOM_HEX_LENGTH // 2)}"
    return base64.b64encode(token_data.encode("utf-8")).decode("ascii")


def _decode_token_timestamp(token: str) -> Optional[int]:
    try:
        decoded = base64.b64decode(token.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return None

    timestamp, sep, random_hex = decoded.partition(":")
    if not sep or not timestamp or len(random_hex) != TOKEN_RANDOM_HEX_LENGTH:
        return None
    try:
        return int(timestamp)
    except ValueError:
        return None


def verify_session_token(token: Optional[str], max_age_hours: int = 24, now_ms: Optional[int] = None) -> bool:
    """Valid when well formed and younger than max_age_hours"""
    if not token or not isinstance(token, str):
        return False

    timestamp = _decode_token_timestamp(token)
    if timestamp is None:
        return False

    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return now_ms - timestamp < max_age_hours * 60 * 60 * 1000


def get_token_expiration(token: str, max_age_hours: int = 24) -> Optional[datetime]:
    """Expiry instant of a token (UTC), None when the token is malformed"""
    timestamp = _decode_token_timestamp(token)
    if timestamp is None:
        return None
    issued = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return issued + timedelta(hours=max_age_hours)
