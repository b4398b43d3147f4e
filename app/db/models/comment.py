# ============================================================================
# FILE: app/db/models/comment.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship, backref
from datetime import datetime
from app.db.base import Base
from app.db.models.user import User

class Comment(Base):
    """Comment on an artist page; artist_name is free text, not a foreign key"""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    artist_name = Column(String(500), nullable=False, index=True)
    content = Column(Text, nullable=False)
    likes = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship(User, backref=backref("comments", passive_deletes=True))
    like_rows = relationship("CommentLike", back_populates="comment", passive_deletes=True)

class CommentLike(Base):
    """At most one like per user per comment"""
    __tablename__ = "comment_likes"

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (UniqueConstraint("comment_id", "user_id", name="uq_comment_like_user"),)

    # Relationships
    comment = relationship("Comment", back_populates="like_rows")
