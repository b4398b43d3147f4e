# ============================================================================
# FILE: app/schemas/stats.py
# ============================================================================
from typing import List, Optional
from app.schemas.base import CamelModel
from app.schemas.user import UserResponse

class ProfileStats(CamelModel):
    total_minutes: int
    total_songs: int

class TopArtist(CamelModel):
    name: str
    minutes: int
    plays: int

class TopSong(CamelModel):
    name: str
    artist: Optional[str] = None
    minutes: int
    plays: int

class UserProfile(CamelModel):
    """Profile page payload: account, totals, and top lists"""
    user: UserResponse
    stats: ProfileStats
    top_artists: List[TopArtist] = []
    top_songs: List[TopSong] = []
