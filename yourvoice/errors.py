from fastapi import HTTPException
from typing import Any, Optional

class CustomHTTPException(HTTPException):
    def __init__(self, status_code=400, detail="Permintaan tidak valid", code=None, msg=None, data: Any = None):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code if code is not None else status_code
        self.msg = msg if msg is not None else detail
        self.data = data

class ValidationFailedException(CustomHTTPException):
    def __init__(self, msg: str):
        super().__init__(status_code=400, detail=msg)

class UnauthorizedException(CustomHTTPException):
    def __init__(self, msg: str = "Unauthorized"):
        super().__init__(status_code=401, detail=msg)

class ReportNotFoundException(CustomHTTPException):
    def __init__(self, msg: str = "Laporan tidak ditemukan"):
        super().__init__(status_code=404, detail=msg)

class EvidenceNotFoundException(CustomHTTPException):
    def __init__(self):
        super().__init__(status_code=404, detail="File tidak ditemukan")

class AccessKeyConflictException(CustomHTTPException):
    def __init__(self):
        super().__init__(status_code=409, detail="Kode akses sudah digunakan")

class RateLimitedException(CustomHTTPException):
    def __init__(self, wait_seconds: int, msg: Optional[str] = None, data: Optional[dict] = None):
        payload = {"retryAfter": wait_seconds}
        if data:
            payload.update(data)
        super().__init__(
            status_code=429,
            detail=msg or f"Terlalu banyak permintaan. Tunggu {wait_seconds} detik.",
            data=payload
        )
        self.wait_seconds = wait_seconds

class ServerErrorException(CustomHTTPException):
    def __init__(self, msg: str = "Terjadi kesalahan server"):
        super().__init__(status_code=500, detail=msg)
