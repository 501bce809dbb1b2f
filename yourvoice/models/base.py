from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base
from yourvoice.utils.timeutil import utcnow

# All models inherit from this declarative base
Base = declarative_base()

class BaseModel(Base):
    """Shared timestamp columns"""
    __abstract__ = True

    created_at = Column(DateTime, default=utcnow, nullable=False, comment="Created at (UTC)")
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        comment="Updated at (UTC)"
    )
