from pydantic import BaseModel, Field
from typing import Optional, List


class LoginRequest(BaseModel):
    """Admin login"""
    email: str = Field(..., min_length=1, max_length=255, description="Admin email")
    password: str = Field(..., min_length=1, max_length=255, description="Admin password")


class EvidenceFile(BaseModel):
    """Evidence file sent inline with a submission"""
    name: str = Field(..., min_length=1, max_length=255, description="Original file name")
    type: str = Field(..., max_length=100, description="MIME type")
    size: int = Field(..., ge=0, description="Declared size in bytes")
    data: str = Field(..., description="Base64 encoded content")


class SubmitReportRequest(BaseModel):
    """Citizen report submission

    Field-level rules (lengths, category, key alphabet) are checked by the
    submit handler so that every rejection carries its own message.
    """
    category: str = Field(..., description="bullying | idea")
    title: str = Field(..., description="5-255 characters")
    description: str = Field(..., description="10-5000 characters")
    location: Optional[str] = Field(None, description="Optional, up to 255 characters")
    accessKey: Optional[str] = Field(None, description="Client generated access key; generated by the server when omitted")
    files: Optional[List[EvidenceFile]] = Field(None, description="Evidence files")


class TimelineEntryRequest(BaseModel):
    """Timeline entry added by an admin"""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    isActive: bool = False


class UpdateReportRequest(BaseModel):
    """Admin report update"""
    id: str = Field(..., min_length=1, description="Report ID")
    status: Optional[str] = Field(None, description="pending | in_progress | resolved | closed")
    progress: Optional[int] = Field(None, description="0-100")
    addTimeline: Optional[TimelineEntryRequest] = None
