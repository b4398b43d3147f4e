# ============================================================================
# FILE: app/api/v1/endpoints/artist.py
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import get_auth_context, require_auth_context
from app.schemas.auth import AuthContext
from app.schemas.artist import ArtistInfo, ArtistPage
from app.schemas.comment import CommentCreate, CommentResponse
from app.services.stats_service import stats_service
from app.services.comment_service import comment_service
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/{artist_name}", response_model=ArtistPage)
async def get_artist_page(
    artist_name: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context)
):
    """
    Leaderboard of top listeners plus recent comments for an artist
    The caller's own row is flagged with isCurrentUser
    """
    try:
        leaderboard = stats_service.get_artist_leaderboard(db, artist_name, auth)
        comments = comment_service.get_artist_comments(db, artist_name)
    except Exception as e:
        logger.error(f"Error fetching artist {artist_name}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load artist")

    return ArtistPage(
        artist=ArtistInfo(name=artist_name),
        leaderboard=leaderboard,
        comments=comments,
    )

@router.post("/{artist_name}/comment", response_model=CommentResponse)
async def post_comment(
    artist_name: str,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth_context)
):
    """
    Post a comment on an artist page
    Requires authentication
    """
    try:
        return comment_service.add_comment(db, auth.user_id, artist_name, payload.content)
    except Exception as e:
        logger.error(f"Comment error: {e}")
        raise HTTPException(status_code=500, detail="Failed to post comment")
