from sqlalchemy import Column, String, Integer, DateTime
from .base import Base
from yourvoice.utils.timeutil import utcnow

class LoginAttempt(Base):
    """Failed admin login counter per (hashed IP, email)"""
    __tablename__ = "login_attempts"

    ip_hash = Column(String(64), primary_key=True, comment="SHA-256 of the client IP")
    email = Column(String(255), primary_key=True, comment="Attempted email, lowercased")
    attempts = Column(Integer, default=0, nullable=False, comment="Consecutive failures")
    locked_until = Column(DateTime, nullable=True, comment="Lockout end (UTC)")
    last_attempt = Column(DateTime, default=utcnow, nullable=False, comment="Last failure (UTC)")

    def __repr__(self):
        return f"<LoginAttempt(email={self.email}, attempts={self.attempts}, locked_until={self.locked_until})>"
