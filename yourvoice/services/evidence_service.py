"""
Evidence storage

Files live in an S3-compatible bucket (EVIDENCE_BUCKET), keyed by
'{accessKey}/{epoch-ms}-{sanitized name}'. Keys are relative paths; absolute
keys and '..' segments are rejected.
"""
import base64
import binascii
import os
import re
import time
from typing import Optional, List
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from yourvoice.config import settings
from yourvoice.models.report import Report, ReportEvidence
import logging

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "pdf": "application/pdf",
}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}

# 1x1 transparent PNG served when an image object is missing
TRANSPARENT_PIXEL = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

_UNSAFE_NAME_CHARS = re.compile(r'[^a-zA-Z0-9.-]')
_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


class StorageError(Exception):
    """Object could not be read or written"""


class EvidenceStorage:
    """S3/MinIO bucket for evidence objects

    The boto3 client is created on first use, and the bucket is created
    then if it does not exist yet.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: str = "us-east-1"
    ):
        self.bucket_name = bucket
        self.endpoint_url = endpoint_url or None
        self.access_key_id = access_key_id or None
        self.secret_access_key = secret_access_key or None
        self.region = region
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self.access_key_id,
                aws_secret_access_key=self.secret_access_key,
                region_name=self.region
            )
            self._ensure_bucket_exists()
        return self._client

    def _ensure_bucket_exists(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket_name)
            return
        except ClientError as e:
            if _error_code(e) not in _MISSING_OBJECT_CODES | {"NoSuchBucket"}:
                raise StorageError(f"Bucket {self.bucket_name} unavailable: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Bucket {self.bucket_name} unavailable: {e}") from e

        try:
            if self.region == "us-east-1":
                self._client.create_bucket(Bucket=self.bucket_name)
            else:
                self._client.create_bucket(
                    Bucket=self.bucket_name,
                    CreateBucketConfiguration={"LocationConstraint": self.region}
                )
            logger.info(f"Created evidence bucket: {self.bucket_name}")
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to create bucket {self.bucket_name}: {e}") from e

    @staticmethod
    def _check_key(key: str) -> str:
        if not key or key.startswith("/") or ".." in key.split("/"):
            raise StorageError(f"Invalid storage key: {key!r}")
        return key

    def upload(self, key: str, content: bytes, content_type: Optional[str] = None, upsert: bool = False) -> None:
        self._check_key(key)
        if not upsert and self.exists(key):
            raise StorageError(f"Object already exists: {key}")

        extra_args = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket_name, Key=key, Body=content, **extra_args)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e
        logger.info(f"Uploaded evidence object: {key}")

    def download(self, key: str) -> bytes:
        self._check_key(key)
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to download {key}: {e}") from e

    def exists(self, key: str) -> bool:
        try:
            self._check_key(key)
            self.client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except StorageError:
            return False
        except ClientError as e:
            if _error_code(e) in _MISSING_OBJECT_CODES:
                return False
            raise StorageError(f"Failed to check {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to check {key}: {e}") from e

    def remove(self, key: str) -> None:
        self._check_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e
        logger.info(f"Deleted evidence object: {key}")


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


evidence_storage = EvidenceStorage(
    settings.EVIDENCE_BUCKET,
    endpoint_url=settings.S3_ENDPOINT_URL,
    access_key_id=settings.S3_ACCESS_KEY_ID,
    secret_access_key=settings.S3_SECRET_ACCESS_KEY,
    region=settings.S3_REGION
)


def sanitize_filename(name: str) -> str:
    """Replace every character outside [a-zA-Z0-9.-] with '_'"""
    return _UNSAFE_NAME_CHARS.sub("_", name)


def build_storage_key(access_key: str, file_name: str, now_ms: Optional[int] = None) -> str:
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{access_key}/{timestamp}-{sanitize_filename(file_name)}"


def file_extension(path: str) -> str:
    _, ext = os.path.splitext(path)
    return ext.lstrip(".").lower()


def content_type_for(path: str) -> str:
    return CONTENT_TYPES.get(file_extension(path), "application/octet-stream")


def is_image_path(path: str) -> bool:
    return file_extension(path) in IMAGE_EXTENSIONS


def store_evidence_files(db: Session, report: Report, files: Optional[List]) -> int:
    """
    Store submitted evidence files for a report

    A file that fails to decode, upload or register is logged and skipped;
    the submission itself is not failed. Returns the number stored.
    """
    if not files:
        return 0

    max_bytes = settings.EVIDENCE_MAX_SIZE_MB * 1024 * 1024
    stored = 0
    for file in files:
        key = build_storage_key(report.access_key, file.name)
        try:
            content = base64.b64decode(file.data, validate=True)
            if len(content) > max_bytes:
                raise StorageError(f"Decoded content of {file.name} exceeds {settings.EVIDENCE_MAX_SIZE_MB}MB")

            evidence_storage.upload(key, content, content_type=file.type)

            db.add(ReportEvidence(
                report_id=report.id,
                file_name=file.name,
                file_path=key,
                file_size=file.size,
                mime_type=file.type
            ))
            db.commit()
            stored += 1
        except (binascii.Error, ValueError, StorageError) as e:
            logger.error(f"Evidence upload failed for report {report.id}, file {file.name}: {e}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Evidence record failed for report {report.id}, file {file.name}: {e}")
            try:
                evidence_storage.remove(key)
            except StorageError as cleanup_error:
                logger.warning(f"Orphaned evidence object {key}: {cleanup_error}")

    return stored


def remove_evidence_files(paths: List[str]) -> None:
    """Delete stored objects; failures are logged"""
    for path in paths:
        try:
            evidence_storage.remove(path)
        except StorageError as e:
            logger.error(f"Failed to remove evidence object {path}: {e}")


def find_evidence(db: Session, file_path: str) -> Optional[ReportEvidence]:
    return db.query(ReportEvidence).filter(ReportEvidence.file_path == file_path).first()
