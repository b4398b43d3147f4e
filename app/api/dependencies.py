# ============================================================================
# FILE: app/api/dependencies.py
# ============================================================================
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.security import decode_access_token
from app.config import settings
from app.db.models.user import User
from app.schemas.auth import AuthContext
from app.services.user_service import user_service
from typing import Optional

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

def _read_token(request: Request, bearer_token: Optional[str]) -> Optional[str]:
    """Bearer header wins; otherwise fall back to the session cookie"""
    if bearer_token:
        return bearer_token
    return request.cookies.get(settings.AUTH_COOKIE_NAME)

def get_auth_context(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> AuthContext:
    """
    Resolve the caller's identity from a JWT (header or cookie)
    Returns an anonymous context if no token or an invalid token
    """
    token = _read_token(request, token)
    if not token:
        return AuthContext.anonymous()

    try:
        payload = decode_access_token(token)
    except HTTPException:
        return AuthContext.anonymous()

    username = payload.get("sub")
    if not isinstance(username, str) or not username:
        return AuthContext.anonymous()

    user = user_service.get_user_by_username(db, username)
    if user is None:
        return AuthContext.anonymous()
    return AuthContext(user_id=user.id, username=user.username)

def require_auth_context(
    auth: AuthContext = Depends(get_auth_context)
) -> AuthContext:
    """
    Require an authenticated caller (raises 401 if anonymous)
    Use this dependency for endpoints that act on behalf of a user
    """
    if not auth.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth

def require_current_user(
    auth: AuthContext = Depends(require_auth_context),
    db: Session = Depends(get_db)
) -> User:
    """Load the authenticated user's row"""
    user = user_service.get_user(db, auth.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
