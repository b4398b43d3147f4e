# ============================================================================
# FILE: app/schemas/upload.py
# ============================================================================
from typing import List, Optional
from app.schemas.base import CamelModel

class FileImportResult(CamelModel):
    """Outcome of importing one history file"""
    filename: str
    records_imported: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

class UploadResponse(CamelModel):
    """Schema for the upload endpoint response"""
    success: bool
    user_id: int
    username: str
    records_imported: int
    files: List[FileImportResult] = []
    errors: List[str] = []
