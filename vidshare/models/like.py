"""Like/dislike edge from a user to exactly one target (video, comment or reply)."""
import enum
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Index
from vidshare.database import Base


class LikeTargetType(str, enum.Enum):
    VIDEO = "VIDEO"
    COMMENT = "COMMENT"
    REPLY = "REPLY"


class LikeType(str, enum.Enum):
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"


class Like(Base):
    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    target_type = Column(String(20), nullable=False)
    target_id = Column(Integer, nullable=False)
    type = Column(String(20), nullable=False, default=LikeType.LIKE.value)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        # One like per user per target; toggles rely on this
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_likes_user_target"),
        Index("ix_likes_target", "target_type", "target_id"),
    )
