# ============================================================================
# FILE: app/services/comment_service.py
# ============================================================================
from typing import List, Optional
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session
from app.db.models.comment import Comment, CommentLike
from app.db.models.user import User
from app.db.upsert import insert_ignore
from app.schemas.comment import CommentResponse
import logging

logger = logging.getLogger(__name__)

COMMENTS_LIMIT = 20

def _to_response(comment: Comment, user: User) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        likes=comment.likes,
        created_at=comment.created_at,
        username=user.username,
        avatar=user.avatar,
    )

class CommentService:
    """Service layer for artist-page comments and likes"""

    def add_comment(self, db: Session, user_id: int, artist_name: str, content: str) -> CommentResponse:
        """Post a comment on an artist page"""
        try:
            comment = Comment(user_id=user_id, artist_name=artist_name, content=content, likes=0)
            db.add(comment)
            db.commit()
            db.refresh(comment)
            logger.info(f"Comment {comment.id} posted on {artist_name} by user {user_id}")
            return _to_response(comment, comment.user)
        except Exception as e:
            db.rollback()
            logger.error(f"Error adding comment: {e}")
            raise

    def get_artist_comments(self, db: Session, artist_name: str, limit: int = COMMENTS_LIMIT) -> List[CommentResponse]:
        """Newest comments for an artist, matched case-insensitively"""
        rows = db.execute(
            select(Comment, User)
            .select_from(Comment)
            .join(User, Comment.user_id == User.id)
            .where(func.lower(Comment.artist_name) == artist_name.lower())
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .limit(limit)
        ).all()
        return [_to_response(comment, user) for comment, user in rows]

    def like_comment(self, db: Session, comment_id: int, user_id: int) -> Optional[int]:
        """
        Record a like and return the comment's like count
        Liking twice is a no-op; the count is recomputed from comment_likes
        Returns None if the comment does not exist
        """
        if db.get(Comment, comment_id) is None:
            return None

        like_count = (
            select(func.count(CommentLike.id))
            .where(CommentLike.comment_id == comment_id)
            .scalar_subquery()
        )
        try:
            insert_ignore(db, CommentLike, {"comment_id": comment_id, "user_id": user_id})
            db.execute(
                update(Comment)
                .where(Comment.id == comment_id)
                .values(likes=like_count)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error liking comment {comment_id}: {e}")
            raise

        return db.scalar(select(Comment.likes).where(Comment.id == comment_id))

# Create singleton instance
comment_service = CommentService()
