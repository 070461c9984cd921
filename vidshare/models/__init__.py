from vidshare.models.user import User, UserRole
from vidshare.models.video import Video, VideoStatus
from vidshare.models.comment import Comment, Reply
from vidshare.models.like import Like, LikeTargetType, LikeType
from vidshare.models.subscription import Subscription
from vidshare.models.rating import Rating
from vidshare.models.trivia import Trivia
from vidshare.models.audit_log import AuditLog

__all__ = [
    "User", "UserRole", "Video", "VideoStatus", "Comment", "Reply",
    "Like", "LikeTargetType", "LikeType", "Subscription", "Rating", "Trivia", "AuditLog",
]
