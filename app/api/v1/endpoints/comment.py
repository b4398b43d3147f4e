# ============================================================================
# FILE: app/api/v1/endpoints/comment.py
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import require_auth_context
from app.schemas.auth import AuthContext
from app.schemas.comment import LikeResponse
from app.services.comment_service import comment_service
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/{comment_id}/like", response_model=LikeResponse)
async def like_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth_context)
):
    """
    Like a comment; liking it again changes nothing
    Requires authentication
    """
    try:
        likes = comment_service.like_comment(db, comment_id, auth.user_id)
    except Exception as e:
        logger.error(f"Like error: {e}")
        raise HTTPException(status_code=500, detail="Failed to like comment")

    if likes is None:
        raise HTTPException(status_code=404, detail="Comment not found")
    return LikeResponse(likes=likes)
