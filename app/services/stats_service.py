# ============================================================================
# FILE: app/services/stats_service.py
# Read-only aggregation: profile totals, top lists, artist leaderboards
# ============================================================================
import math
from typing import List, Optional
from sqlalchemy import func, select, distinct
from sqlalchemy.orm import Session
from app.db.models.user import User
from app.db.models.stream_event import StreamEvent
from app.schemas.auth import AuthContext
from app.schemas.stats import ProfileStats, TopArtist, TopSong, UserProfile
from app.schemas.user import UserResponse
from app.schemas.artist import LeaderboardEntry
import logging

logger = logging.getLogger(__name__)

TOP_LIST_LIMIT = 10
LEADERBOARD_LIMIT = 10

def ms_to_minutes(total_ms: Optional[int]) -> int:
    """Milliseconds to whole minutes, rounding halves up"""
    if not total_ms:
        return 0
    return int(math.floor(int(total_ms) / 60000 + 0.5))

class StatsService:
    """Service layer for listening statistics"""

    def get_profile_stats(self, db: Session, user_id: int) -> ProfileStats:
        """Total minutes listened and number of distinct tracks"""
        row = db.execute(
            select(
                func.coalesce(func.sum(StreamEvent.ms_played), 0).label("total_ms"),
                func.count(distinct(StreamEvent.track_name)).label("total_songs"),
            ).where(StreamEvent.user_id == user_id)
        ).one()
        return ProfileStats(
            total_minutes=ms_to_minutes(row.total_ms),
            total_songs=int(row.total_songs or 0),
        )

    def get_top_artists(self, db: Session, user_id: int, limit: int = TOP_LIST_LIMIT) -> List[TopArtist]:
        """Artists by summed play time; ties broken by artist name"""
        total_ms = func.sum(StreamEvent.ms_played).label("total_ms")
        rows = db.execute(
            select(
                StreamEvent.artist_name,
                total_ms,
                func.count().label("plays"),
            )
            .where(StreamEvent.user_id == user_id, StreamEvent.artist_name.is_not(None))
            .group_by(StreamEvent.artist_name)
            .order_by(total_ms.desc(), StreamEvent.artist_name.asc())
            .limit(limit)
        ).all()
        return [
            TopArtist(name=r.artist_name, minutes=ms_to_minutes(r.total_ms), plays=r.plays)
            for r in rows
        ]

    def get_top_songs(self, db: Session, user_id: int, limit: int = TOP_LIST_LIMIT) -> List[TopSong]:
        """Tracks by summed play time; ties broken by track then artist name"""
        total_ms = func.sum(StreamEvent.ms_played).label("total_ms")
        rows = db.execute(
            select(
                StreamEvent.track_name,
                StreamEvent.artist_name,
                total_ms,
                func.count().label("plays"),
            )
            .where(StreamEvent.user_id == user_id, StreamEvent.track_name.is_not(None))
            .group_by(StreamEvent.track_name, StreamEvent.artist_name)
            .order_by(total_ms.desc(), StreamEvent.track_name.asc(), StreamEvent.artist_name.asc())
            .limit(limit)
        ).all()
        return [
            TopSong(
                name=r.track_name,
                artist=r.artist_name,
                minutes=ms_to_minutes(r.total_ms),
                plays=r.plays,
            )
            for r in rows
        ]

    def get_user_profile(self, db: Session, user: User) -> UserProfile:
        """Assemble the full profile payload for a user"""
        return UserProfile(
            user=UserResponse.model_validate(user),
            stats=self.get_profile_stats(db, user.id),
            top_artists=self.get_top_artists(db, user.id),
            top_songs=self.get_top_songs(db, user.id),
        )

    def get_artist_leaderboard(
        self,
        db: Session,
        artist_name: str,
        auth: AuthContext,
        limit: int = LEADERBOARD_LIMIT,
    ) -> List[LeaderboardEntry]:
        """
        Top listeners of an artist (matched case-insensitively)
        Ranked by summed play time, ties broken by username
        """
        total_ms = func.sum(StreamEvent.ms_played).label("total_ms")
        rows = db.execute(
            select(
                User.id.label("user_id"),
                User.username,
                User.avatar,
                total_ms,
                func.count(distinct(StreamEvent.track_name)).label("song_count"),
            )
            .select_from(StreamEvent)
            .join(User, StreamEvent.user_id == User.id)
            .where(func.lower(StreamEvent.artist_name) == artist_name.lower())
            .group_by(User.id, User.username, User.avatar)
            .order_by(total_ms.desc(), User.username.asc())
            .limit(limit)
        ).all()

        return [
            LeaderboardEntry(
                rank=index + 1,
                user_id=r.user_id,
                username=r.username,
                avatar=r.avatar,
                minutes=ms_to_minutes(r.total_ms),
                song_count=r.song_count,
                is_current_user=auth.user_id == r.user_id,
            )
            for index, r in enumerate(rows)
        ]

# Create singleton instance
stats_service = StatsService()
