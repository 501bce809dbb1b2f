from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from yourvoice.config import settings
from yourvoice.utils.cache import cache_manager
from yourvoice.utils.response import success_response
from yourvoice.utils.timeutil import utcnow, to_iso
from yourvoice.extensions import get_db

router = APIRouter(tags=["System"])

@router.get("/health")
async def check_health(db: Session = Depends(get_db)):
    """
    Service health check
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        error_msg = str(e)
        if len(error_msg) > 50:
            error_msg = error_msg[:50] + "..."
        db_status = f"disconnected ({error_msg})"

    return success_response(data={
        "status": "healthy",
        "database": db_status,
        "cache": "redis" if cache_manager.uses_redis else "memory",
        "timestamp": to_iso(utcnow()),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION
    })
