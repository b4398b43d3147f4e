# ============================================================================
# FILE: app/db/models/user.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime
from app.db.base import Base

AVATARS = ["goat", "cow", "sheep", "pig", "horse", "chicken", "duck", "rabbit"]

class User(Base):
    """Listener account; password is optional for accounts created by an upload"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    spotify_id = Column(String(255), nullable=True)
    spotify_connected = Column(Boolean, default=False, nullable=False)
    avatar = Column(String(50), default="goat", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)
