"""
Start the YourVoice API server after checking its environment

Checks, in order:
1. database reachable through DATABASE_URL
2. admin credentials valid
3. Redis reachable (only when REDIS_ENABLED; failure is a warning)
"""
import sys
import os
import logging
import re

# project root on the path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import redis
import uvicorn
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from yourvoice.config import settings
from yourvoice.services.admin_auth_service import AdminConfigError, load_admin_credentials


class AccessLogFilter(logging.Filter):
    """Drop access log lines of frequently polled endpoints"""
    FILTERED_PATTERNS = [
        r'/health',
        r'/api/admin/auth/check',
    ]

    def filter(self, record):
        message = record.getMessage()
        for pattern in self.FILTERED_PATTERNS:
            if re.search(pattern, message):
                return False
        return True


def check_database() -> bool:
    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        print(f"[✗] Database connection failed: {e}")
        return False
    finally:
        engine.dispose()


def check_admin() -> bool:
    try:
        load_admin_credentials(settings)
        return True
    except AdminConfigError as e:
        print(f"[✗] {e}")
        print("   Set ADMIN_EMAIL and ADMIN_PASSWORD (at least 8 characters) in .env")
        return False


def check_redis() -> bool:
    client = redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        password=settings.REDIS_PASSWORD or None,
        socket_connect_timeout=2
    )
    try:
        client.ping()
        return True
    except redis.RedisError as e:
        print(f"[✗] Redis connection failed: {e}")
        return False


if __name__ == "__main__":
    print("=" * 50)
    print("    Environment check")
    print("=" * 50)

    if not check_database():
        print("Check DATABASE_URL and that the database server is running")
        sys.exit(1)
    print("[✓] Database connection OK")

    if not check_admin():
        sys.exit(1)
    print("[✓] Admin credentials OK")

    if settings.REDIS_ENABLED:
        if check_redis():
            print("[✓] Redis connection OK")
        else:
            print("   Statistics will be cached in memory")
    else:
        print("   Redis disabled, statistics cached in memory")

    print("=" * 50)

    logging.getLogger("uvicorn.access").addFilter(AccessLogFilter())

    try:
        uvicorn.run(
            "yourvoice.main:app",
            host="0.0.0.0",
            port=8000,
            reload=settings.DEBUG,
            log_level=settings.LOG_LEVEL.lower(),
            access_log=True
        )
    except KeyboardInterrupt:
        print("\nServer stopped")
