# ============================================================================
# FILE: app/schemas/artist.py
# ============================================================================
from pydantic import BaseModel
from typing import List
from app.schemas.base import CamelModel
from app.schemas.comment import CommentResponse

class ArtistInfo(BaseModel):
    name: str

class LeaderboardEntry(CamelModel):
    """One listener's position on an artist leaderboard"""
    rank: int
    user_id: int
    username: str
    avatar: str
    minutes: int
    song_count: int
    is_current_user: bool = False

class ArtistPage(CamelModel):
    artist: ArtistInfo
    leaderboard: List[LeaderboardEntry] = []
    comments: List[CommentResponse] = []
