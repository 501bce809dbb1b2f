import uuid
from sqlalchemy import (
    Column, String, Integer, BigInteger, Text, Boolean, DateTime, Enum,
    ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship
from .base import Base, BaseModel
from yourvoice.utils.timeutil import utcnow

REPORT_CATEGORIES = ("bullying", "idea")
REPORT_STATUSES = ("pending", "in_progress", "resolved", "closed")


def _uuid() -> str:
    return str(uuid.uuid4())


class Report(BaseModel):
    """Citizen report, reachable anonymously only through its access key"""
    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_reports_progress_range"),
    )

    id = Column(String(36), primary_key=True, default=_uuid, comment="Report UUID")
    access_key = Column(String(12), unique=True, nullable=False, index=True, comment="12-char capability token")
    category = Column(Enum(*REPORT_CATEGORIES, name="report_category"), nullable=False, comment="Report category")
    title = Column(String(255), nullable=False, comment="Title")
    description = Column(Text, nullable=False, comment="Description")
    location = Column(String(255), nullable=True, comment="Optional location")
    status = Column(
        Enum(*REPORT_STATUSES, name="report_status"),
        default="pending",
        nullable=False,
        comment="Handling status"
    )
    progress = Column(Integer, default=0, nullable=False, comment="Handling progress 0-100")

    timeline = relationship(
        "ReportTimeline",
        back_populates="report",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[ReportTimeline.created_at, ReportTimeline.position]"
    )
    evidence = relationship(
        "ReportEvidence",
        back_populates="report",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReportEvidence.uploaded_at"
    )

    def __repr__(self):
        return f"<Report(id={self.id}, category={self.category}, status={self.status})>"


class ReportTimeline(BaseModel):
    """Timeline entry shown to the citizen on the status page"""
    __tablename__ = "report_timeline"

    id = Column(String(36), primary_key=True, default=_uuid)
    report_id = Column(String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False, comment="Entry title, may carry an admin note")
    description = Column(Text, nullable=True, comment="Entry description, may carry an admin note")
    status = Column(String(20), nullable=False, default="unknown", comment="Report status when written")
    is_completed = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=1, nullable=False, comment="Insertion order within the report")

    report = relationship("Report", back_populates="timeline")

    def __repr__(self):
        return f"<ReportTimeline(id={self.id}, report_id={self.report_id}, status={self.status})>"


class ReportEvidence(Base):
    """Uploaded evidence file, stored in the evidence bucket"""
    __tablename__ = "report_evidence"

    id = Column(String(36), primary_key=True, default=_uuid)
    report_id = Column(String(36), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False, comment="Original file name")
    file_path = Column(String(512), unique=True, nullable=False, comment="Storage key inside the bucket")
    file_size = Column(BigInteger, nullable=False, comment="Size in bytes")
    mime_type = Column(String(100), nullable=False)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)

    report = relationship("Report", back_populates="evidence")

    def __repr__(self):
        return f"<ReportEvidence(id={self.id}, file_path={self.file_path})>"
