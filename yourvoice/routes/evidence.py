import posixpath
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session
import logging

from yourvoice.errors import (
    ValidationFailedException, UnauthorizedException, EvidenceNotFoundException
)
from yourvoice.extensions import get_db
from yourvoice.routes.admin_auth import get_admin_credentials, is_admin_request
from yourvoice.services.admin_auth_service import AdminCredentials
from yourvoice.services.evidence_service import (
    TRANSPARENT_PIXEL, StorageError, evidence_storage, find_evidence,
    content_type_for, is_image_path
)
from yourvoice.utils.access_key import normalize_access_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Evidence"], prefix="/evidence")


def _key_owns_evidence(db: Session, key: Optional[str], file_path: str) -> bool:
    if not key:
        return False
    evidence = find_evidence(db, file_path)
    if not evidence or not evidence.report:
        return False
    return evidence.report.access_key == normalize_access_key(key)


@router.get("/{file_path:path}")
async def get_evidence(
    file_path: str,
    request: Request,
    key: Optional[str] = Query(None, description="Access key of the owning report"),
    db: Session = Depends(get_db),
    credentials: AdminCredentials = Depends(get_admin_credentials)
):
    """
    Serve a stored evidence file

    Allowed for an admin session or for the access key of the report the
    file belongs to. A missing image is answered with a transparent pixel
    so that thumbnails do not break.
    """
    if not file_path:
        raise ValidationFailedException("Path file diperlukan")

    if not is_admin_request(request, credentials) and not _key_owns_evidence(db, key, file_path):
        raise UnauthorizedException("Akses ditolak")

    try:
        content = evidence_storage.download(file_path)
    except StorageError as e:
        logger.warning(f"Evidence object unavailable: {file_path}: {e}")
        if is_image_path(file_path):
            return Response(
                content=TRANSPARENT_PIXEL,
                media_type="image/png",
                headers={"Cache-Control": "no-cache"}
            )
        raise EvidenceNotFoundException()

    return Response(
        content=content,
        media_type=content_type_for(file_path),
        headers={
            "Cache-Control": "public, max-age=3600",
            "Content-Disposition": f'inline; filename="{posixpath.basename(file_path)}"',
        }
    )
