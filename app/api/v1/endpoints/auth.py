# ============================================================================
# FILE: app/api/v1/endpoints/auth.py
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from datetime import timedelta
from app.db.session import get_db
from app.api.dependencies import get_auth_context, require_current_user
from app.schemas.auth import AuthContext
from app.schemas.user import (
    UserCreate,
    UserLogin,
    PasswordSet,
    AuthResponse,
    CurrentUserResponse,
    MeResponse,
)
from app.services.user_service import user_service
from app.core.security import create_access_token, verify_password
from app.config import settings
from app.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

def _issue_session(response: Response, user: User) -> AuthResponse:
    """Create a token for the user and set it as an HTTP-only cookie"""
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(data={"sub": user.username}, expires_delta=expires)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        max_age=int(expires.total_seconds()),
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite="lax",
    )
    return AuthResponse(
        user=CurrentUserResponse.model_validate(user),
        access_token=access_token,
    )

@router.post("/signup", response_model=AuthResponse)
async def signup(
    user_data: UserCreate,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Register a new account (password optional) and sign in
    """
    existing_user = user_service.get_user_by_username(db, user_data.username)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already taken"
        )

    try:
        user = user_service.create_user(db, user_data)
    except Exception as e:
        logger.error(f"Signup error: {e}")
        raise HTTPException(status_code=500, detail="Failed to create user")

    return _issue_session(response, user)

@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Login with username and, for protected accounts, a password
    Accounts created by an upload have no password until one is set
    """
    user = user_service.get_user_by_username(db, credentials.username)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.has_password:
        if not credentials.password:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Password required",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not verify_password(credentials.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect username or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

    logger.info(f"User logged in: {user.id}")
    return _issue_session(response, user)

@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie"""
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    return {"success": True}

@router.get("/me", response_model=MeResponse)
async def get_me(
    auth: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db)
):
    """
    Current account, or null for anonymous callers
    """
    if not auth.is_authenticated:
        return MeResponse(user=None)
    user = user_service.get_user(db, auth.user_id)
    if user is None:
        return MeResponse(user=None)
    return MeResponse(user=CurrentUserResponse.model_validate(user))

@router.post("/set-password", response_model=MeResponse)
async def set_password(
    payload: PasswordSet,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Set or change the password on the current account
    Requires authentication
    """
    try:
        user = user_service.set_password(db, current_user, payload.password)
    except Exception as e:
        logger.error(f"Set password error: {e}")
        raise HTTPException(status_code=500, detail="Failed to set password")
    return MeResponse(user=CurrentUserResponse.model_validate(user))
