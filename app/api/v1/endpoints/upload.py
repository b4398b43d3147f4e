# ============================================================================
# FILE: app/api/v1/endpoints/upload.py
# Multipart upload of Spotify streaming-history exports
# ============================================================================
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import uuid4
from app.db.session import get_db
from app.api.dependencies import get_auth_context
from app.schemas.auth import AuthContext
from app.schemas.upload import UploadResponse
from app.services.user_service import user_service
from app.services.ingestion_service import ingestion_service
from app.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

def _resolve_target_user(db: Session, username: Optional[str], auth: AuthContext) -> User:
    """Explicit username, else the signed-in user, else a fresh generated account"""
    if username and username.strip():
        return user_service.get_or_create_user(db, username)
    if auth.is_authenticated:
        user = user_service.get_user(db, auth.user_id)
        if user:
            return user
    return user_service.get_or_create_user(db, f"User_{uuid4().hex[:8]}")

@router.post("", response_model=UploadResponse)
async def upload_history(
    files: Optional[List[UploadFile]] = File(None),
    username: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context)
):
    """
    Import one or more streaming-history JSON files

    Files are processed in order. A file that fails to parse or insert is
    reported in `errors` and the remaining files are still imported.
    """
    if not files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files uploaded")

    try:
        user = _resolve_target_user(db, username, auth)
    except Exception as e:
        logger.error(f"Upload user resolution error: {e}")
        raise HTTPException(status_code=500, detail="Failed to resolve user")

    payloads = []
    for upload in files:
        payloads.append((upload.filename or "upload.json", await upload.read()))

    results = ingestion_service.import_files(db, user.id, payloads)
    errors = [r.error for r in results if r.failed]
    succeeded = len(results) - len(errors)

    return UploadResponse(
        success=succeeded > 0 or not errors,
        user_id=user.id,
        username=user.username,
        records_imported=sum(r.records_imported for r in results),
        files=results,
        errors=errors,
    )
