# ============================================================================
# FILE: app/api/v1/router.py
# ============================================================================
from fastapi import APIRouter
from app.api.v1.endpoints import auth, user, users, artist, comment, upload

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(user.router, prefix="/user", tags=["user"])
api_router.include_router(users.router, prefix="/users", tags=["user"])
api_router.include_router(artist.router, prefix="/artist", tags=["artist"])
api_router.include_router(comment.router, prefix="/comment", tags=["comment"])
api_router.include_router(upload.router, prefix="/upload", tags=["upload"])
