# ============================================================================
# FILE: app/services/user_service.py
# ============================================================================
from typing import List, Optional
from sqlalchemy import func, select, exists
from sqlalchemy.orm import Session
from app.db.models.user import User, AVATARS
from app.db.models.stream_event import StreamEvent
from app.db.upsert import insert_ignore
from app.schemas.user import UserCreate
from app.core.security import get_password_hash, verify_password
from app.config import settings
import logging

logger = logging.getLogger(__name__)

class UserResolutionError(Exception):
    """A user row could not be found or created"""

class UserService:
    """Service layer for user operations"""

    def create_user(self, db: Session, user_data: UserCreate) -> User:
        """Create a new user account"""
        try:
            password_hash = get_password_hash(user_data.password) if user_data.password else None
            user = User(
                username=user_data.username,
                password_hash=password_hash,
                avatar=settings.DEFAULT_AVATAR,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"User created: {user.username}")
            return user
        except Exception as e:
            db.rollback()
            logger.error(f"Error creating user: {e}")
            raise

    def get_user(self, db: Session, user_id: int) -> Optional[User]:
        """Get user by id"""
        return db.get(User, user_id)

    def get_user_by_username(self, db: Session, username: str) -> Optional[User]:
        """Get user by username, ignoring case"""
        return db.query(User).filter(
            func.lower(User.username) == username.strip().lower()
        ).order_by(User.id).first()

    def get_user_by_ref(self, db: Session, ref: str) -> Optional[User]:
        """Resolve a profile reference: numeric id first, then username"""
        if ref.isdigit():
            user = self.get_user(db, int(ref))
            if user:
                return user
        return self.get_user_by_username(db, ref)

    def get_or_create_user(self, db: Session, username: str) -> User:
        """
        Return the user with this name, creating it if absent
        Creation tolerates a concurrent insert of the same name
        """
        user = self.get_user_by_username(db, username)
        if user:
            return user

        name = username.strip()
        try:
            inserted = insert_ignore(db, User, {
                "username": name,
                "avatar": settings.DEFAULT_AVATAR,
                "spotify_connected": False,
            })
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error resolving user {name}: {e}")
            raise

        if inserted:
            logger.info(f"User created on first sight: {name}")
        user = self.get_user_by_username(db, name)
        if user is None:
            raise UserResolutionError(f"User {name} could not be resolved after insert")
        return user

    def authenticate_user(self, db: Session, username: str, password: str) -> Optional[User]:
        """Authenticate user with username and password"""
        user = self.get_user_by_username(db, username)
        if not user:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    def set_password(self, db: Session, user: User, password: str) -> User:
        """Set or replace the password on an account"""
        try:
            user.password_hash = get_password_hash(password)
            db.commit()
            db.refresh(user)
            logger.info(f"Password updated for user {user.id}")
            return user
        except Exception as e:
            db.rollback()
            logger.error(f"Error setting password: {e}")
            raise

    def set_avatar(self, db: Session, user: User, avatar: str) -> Optional[User]:
        """Change the avatar; returns None if the avatar is not a known one"""
        if avatar not in AVATARS:
            return None
        try:
            user.avatar = avatar
            db.commit()
            db.refresh(user)
            return user
        except Exception as e:
            db.rollback()
            logger.error(f"Error updating avatar: {e}")
            raise

    def search_users(self, db: Session, query: str, limit: int = 10) -> List[User]:
        """Find users whose name contains the query, ignoring case"""
        return db.query(User).filter(
            User.username.ilike(f"%{query}%")
        ).order_by(User.username).limit(limit).all()

    def has_stream_events(self, db: Session, user_id: int) -> bool:
        """True once at least one StreamEvent has been persisted for the user"""
        return db.scalar(select(exists().where(StreamEvent.user_id == user_id)))

# Create singleton instance
user_service = UserService()
