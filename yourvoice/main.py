from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .config import settings
from .extensions import engine
from .errors import CustomHTTPException
from contextlib import asynccontextmanager
from yourvoice.models import Base
from yourvoice.services.admin_auth_service import AdminConfigError, load_admin_credentials
from yourvoice.utils.response import error_response, bad_request_response, server_error_response
import yourvoice.routes.health as health_router
import yourvoice.routes.public_reports as public_reports_router
import yourvoice.routes.admin_auth as admin_auth_router
import yourvoice.routes.admin_reports as admin_reports_router
import yourvoice.routes.evidence as evidence_router
import logging

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle
    - startup: create missing tables, load and validate the admin identity
    - shutdown: nothing to release, the engine pool closes itself
    """
    try:
        logger.info("Creating database tables if missing...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ready")
    except SQLAlchemyError as e:
        logger.error("=" * 60)
        logger.error("Database initialisation failed")
        logger.error(f"Details: {e}")
        logger.error("Check DATABASE_URL and that the database server is running")
        logger.error("=" * 60)
        raise RuntimeError(f"Database initialisation failed: {e}") from e

    try:
        app.state.admin_credentials = load_admin_credentials(settings)
        logger.info("Admin credentials loaded")
    except AdminConfigError as e:
        logger.error(f"{e}. Set ADMIN_EMAIL and ADMIN_PASSWORD (at least 8 characters).")
        raise

    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CustomHTTPException)
async def custom_http_exception_handler(request: Request, exc: CustomHTTPException):
    headers = {}
    if exc.status_code == 429 and isinstance(exc.data, dict) and "retryAfter" in exc.data:
        headers["Retry-After"] = str(exc.data["retryAfter"])
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.msg, exc.data),
        headers=headers or None
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    msg = f"Data tidak valid: {field}" if field else "Data tidak valid"
    return JSONResponse(status_code=400, content=bad_request_response(msg))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=server_error_response())


app.include_router(health_router.router)
app.include_router(public_reports_router.router, prefix=settings.API_PREFIX)
app.include_router(admin_auth_router.router, prefix=settings.API_PREFIX)
app.include_router(admin_reports_router.router, prefix=settings.API_PREFIX)
app.include_router(evidence_router.router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    """API information"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }
