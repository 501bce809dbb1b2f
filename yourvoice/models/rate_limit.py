from sqlalchemy import Column, String, Integer, DateTime
from .base import Base
from yourvoice.utils.timeutil import utcnow

class RateLimit(Base):
    """Request counter per (hashed IP, endpoint)"""
    __tablename__ = "rate_limits"

    ip_hash = Column(String(64), primary_key=True, comment="SHA-256 of the client IP")
    endpoint = Column(String(64), primary_key=True, comment="Logical endpoint name")
    last_request = Column(DateTime, default=utcnow, nullable=False, comment="Last request (UTC)")
    request_count = Column(Integer, default=1, nullable=False, comment="Requests in the current window")

    def __repr__(self):
        return f"<RateLimit(endpoint={self.endpoint}, request_count={self.request_count})>"
