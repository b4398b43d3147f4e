# ============================================================================
# FILE: app/db/init_db.py
# ============================================================================
from sqlalchemy.engine import Engine
from app.db.base import Base
import logging

# Models must be imported so they register on Base.metadata
from app.db.models.user import User  # noqa: F401
from app.db.models.stream_event import StreamEvent  # noqa: F401
from app.db.models.comment import Comment, CommentLike  # noqa: F401

logger = logging.getLogger(__name__)

def init_db(bind: Engine) -> None:
    """Create all tables and indexes that do not exist yet"""
    Base.metadata.create_all(bind=bind)
    logger.info(f"Database schema ready ({bind.dialect.name})")
