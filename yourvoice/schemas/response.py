from pydantic import BaseModel
from typing import Optional, List


class TimelineItemResponse(BaseModel):
    """Timeline entry as shown to the citizen"""
    id: str
    title: str
    description: str
    note: str
    date: str
    isCompleted: bool
    isActive: bool


class EvidenceItemResponse(BaseModel):
    """Evidence entry as shown to the citizen"""
    id: str
    fileName: str
    filePath: str
    fileSize: int
    mimeType: str
    uploadedAt: str
    url: str


class ReportStatusResponse(BaseModel):
    """Report status page"""
    id: str
    accessKey: str
    title: str
    category: str
    categoryLabel: str
    status: str
    statusLabel: str
    createdAt: str
    description: str
    location: Optional[str] = None
    progress: int
    timeline: List[TimelineItemResponse]
    evidence: List[EvidenceItemResponse]


class ReportSummaryResponse(BaseModel):
    """Submission receipt"""
    id: str
    category: str
    title: str
    status: str
    createdAt: str


class SubmitReportResponse(BaseModel):
    """Submission result"""
    accessKey: str
    formattedKey: str
    uploadedFiles: int
    report: ReportSummaryResponse


class LockStatusResponse(BaseModel):
    """Login lockout status"""
    locked: bool
    remainingSeconds: int
    remainingTime: str
    attempts: int


class AccessKeyResponse(BaseModel):
    """Freshly minted access key"""
    accessKey: str
    formattedKey: str
