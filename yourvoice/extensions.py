from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from yourvoice.config import settings

DATABASE_URL = settings.DATABASE_URL

# SQLite is only used for local runs and the test suite
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=False,  # do not connect at import time
    pool_recycle=3600,
    connect_args=connect_args,
    echo=False
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
