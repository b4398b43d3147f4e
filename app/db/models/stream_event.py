# ============================================================================
# FILE: app/db/models/stream_event.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship, backref
from datetime import datetime
from app.db.base import Base
from app.db.models.user import User

class StreamEvent(Base):
    """One playback record from a streaming-history export"""
    __tablename__ = "streaming_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    ts = Column(DateTime, nullable=False)
    track_name = Column(String(500), nullable=True)
    artist_name = Column(String(500), nullable=True, index=True)
    album_name = Column(String(500), nullable=True)
    ms_played = Column(Integer, default=0, nullable=False)
    spotify_track_uri = Column(String(255), nullable=True)
    platform = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship(User, backref=backref("stream_events", passive_deletes=True))
