# ============================================================================
# FILE: app/api/v1/endpoints/user.py
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import require_current_user
from app.schemas.user import AvatarUpdate, UserResponse
from app.schemas.stats import UserProfile
from app.services.user_service import user_service
from app.services.stats_service import stats_service
from app.db.models.user import User, AVATARS
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/me", response_model=UserProfile)
async def get_my_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Profile and listening stats for the current user
    Requires authentication
    """
    return stats_service.get_user_profile(db, current_user)

@router.put("/avatar", response_model=UserResponse)
async def update_avatar(
    payload: AvatarUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Pick one of the animal avatars
    Requires authentication
    """
    user = user_service.set_avatar(db, current_user, payload.avatar)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown avatar. Choose one of: {', '.join(AVATARS)}"
        )
    return user

@router.get("/{user_ref}", response_model=UserProfile)
async def get_user_profile(
    user_ref: str,
    db: Session = Depends(get_db)
):
    """
    Profile and listening stats by numeric id or username
    Usernames match case-insensitively
    """
    user = user_service.get_user_by_ref(db, user_ref)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return stats_service.get_user_profile(db, user)
