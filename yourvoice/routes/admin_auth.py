from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import logging

from yourvoice.config import settings
from yourvoice.errors import RateLimitedException, UnauthorizedException, ServerErrorException
from yourvoice.extensions import get_db
from yourvoice.schemas.request import LoginRequest
from yourvoice.schemas.response import LockStatusResponse
from yourvoice.services.admin_auth_service import (
    ADMIN_COOKIE_NAME, AdminCredentials, admin_login, verify_session_token,
    get_token_expiration
)
from yourvoice.services.login_throttle_service import (
    check_locked, record_attempt, calculate_lockout_minutes, format_remaining_time
)
from yourvoice.utils.client_ip import get_client_ip, hash_ip
from yourvoice.utils.response import success_response, unauthorized_response
from yourvoice.utils.timeutil import to_iso

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin authentication"], prefix="/admin")


def get_admin_credentials(request: Request) -> AdminCredentials:
    """Admin identity validated at startup and kept on app.state"""
    credentials = getattr(request.app.state, "admin_credentials", None)
    if credentials is None:
        logger.error("Admin credentials are not loaded")
        raise ServerErrorException("Sistem login tidak dikonfigurasi dengan benar. Hubungi administrator.")
    return credentials


def is_admin_request(request: Request, credentials: AdminCredentials) -> bool:
    token = request.cookies.get(ADMIN_COOKIE_NAME)
    return verify_session_token(token, credentials.session_max_age_hours)


def require_admin(
    request: Request,
    credentials: AdminCredentials = Depends(get_admin_credentials)
) -> None:
    """Reject requests without a valid admin_token cookie"""
    token = request.cookies.get(ADMIN_COOKIE_NAME)
    if not token:
        raise UnauthorizedException("Token tidak ditemukan")
    if not verify_session_token(token, credentials.session_max_age_hours):
        raise UnauthorizedException("Token expired atau tidak valid")


def _lockout_exception(remaining_seconds: int) -> RateLimitedException:
    return RateLimitedException(
        wait_seconds=remaining_seconds,
        msg=f"Terlalu banyak percobaan gagal. Silakan tunggu {format_remaining_time(remaining_seconds)}.",
        data={"lockout": True, "remainingSeconds": remaining_seconds}
    )


def _set_session_cookie(response: JSONResponse, token: str) -> None:
    # no max_age: the cookie ends with the browser session
    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
        path="/"
    )


def _throttled_login(
    request_data: LoginRequest,
    request: Request,
    db: Session,
    credentials: AdminCredentials
) -> JSONResponse:
    """
    Login guarded by the (IP, email) throttle

    1. reject while the pair is locked (429)
    2. check credentials
    3. failure: count it; lock from the second failure (429), else 401
    4. success: clear the counter and set the session cookie
    """
    ip_hash = hash_ip(get_client_ip(request))
    email = request_data.email.strip()

    lock = check_locked(db, ip_hash, email)
    if lock.locked:
        raise _lockout_exception(lock.remaining_seconds)

    result = admin_login(credentials, email, request_data.password)

    if not result.success:
        state = record_attempt(db, ip_hash, email, success=False)
        if state.locked:
            raise _lockout_exception(calculate_lockout_minutes(state.attempts) * 60)
        raise UnauthorizedException(result.error or "Email atau password salah")

    record_attempt(db, ip_hash, email, success=True)

    response = JSONResponse(status_code=200, content=success_response(
        msg="Login berhasil",
        data={"email": email}
    ))
    _set_session_cookie(response, result.token)
    return response


@router.post("/login")
async def login(
    request_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    credentials: AdminCredentials = Depends(get_admin_credentials)
):
    """
    Admin login

    Returns:
    - 200 and the admin_token cookie on success
    - 401 on wrong credentials
    - 429 with remainingSeconds while locked out
    """
    return _throttled_login(request_data, request, db, credentials)


@router.get("/login/status")
async def login_status(
    request: Request,
    email: str = Query(..., min_length=1, description="Email to check"),
    db: Session = Depends(get_db)
):
    """Lockout status of the calling IP for an email"""
    ip_hash = hash_ip(get_client_ip(request))
    lock = check_locked(db, ip_hash, email.strip())

    return success_response(data=LockStatusResponse(
        locked=lock.locked,
        remainingSeconds=lock.remaining_seconds,
        remainingTime=lock.remaining_time,
        attempts=lock.attempts
    ))


@router.get("/auth")
async def auth_status(
    request: Request,
    credentials: AdminCredentials = Depends(get_admin_credentials)
):
    """Whether the admin_token cookie is valid, and until when"""
    if not is_admin_request(request, credentials):
        return JSONResponse(
            status_code=401,
            content=unauthorized_response(data={"isAuthenticated": False})
        )

    expires_at = get_token_expiration(
        request.cookies.get(ADMIN_COOKIE_NAME), credentials.session_max_age_hours
    )
    return success_response(data={"isAuthenticated": True, "expiresAt": to_iso(expires_at)})


@router.post("/auth")
async def auth_login(
    request_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    credentials: AdminCredentials = Depends(get_admin_credentials)
):
    """Login through the auth endpoint, same throttle as /admin/login"""
    return _throttled_login(request_data, request, db, credentials)


def _clear_session_cookie(response: JSONResponse) -> None:
    response.delete_cookie(
        key=ADMIN_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict"
    )


def _logout_response() -> JSONResponse:
    response = JSONResponse(status_code=200, content=success_response(msg="Logout berhasil"))
    _clear_session_cookie(response)
    return response


@router.post("/logout")
async def logout():
    """Clear the admin session cookie"""
    return _logout_response()


@router.post("/auth/logout")
async def auth_logout():
    return _logout_response()


@router.get("/auth/check")
async def auth_check(
    request: Request,
    credentials: AdminCredentials = Depends(get_admin_credentials)
):
    """Cookie check; an expired or malformed cookie is cleared"""
    token = request.cookies.get(ADMIN_COOKIE_NAME)
    if not token:
        return JSONResponse(
            status_code=401,
            content=unauthorized_response(msg="Token tidak ditemukan", data={"isAuthenticated": False})
        )

    if not verify_session_token(token, credentials.session_max_age_hours):
        response = JSONResponse(
            status_code=401,
            content=unauthorized_response(msg="Token expired", data={"isAuthenticated": False})
        )
        _clear_session_cookie(response)
        return response

    return success_response(data={"isAuthenticated": True})
