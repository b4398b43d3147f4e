# ============================================================================
# FILE: app/api/v1/endpoints/users.py
# ============================================================================
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.schemas.user import UserSearchResult
from app.services.user_service import user_service

router = APIRouter()

@router.get("/search", response_model=List[UserSearchResult])
async def search_users(
    q: str = Query("", max_length=255, description="Part of a username"),
    db: Session = Depends(get_db)
):
    """
    Find up to 10 users whose name contains the query
    """
    return user_service.search_users(db, q.strip())
