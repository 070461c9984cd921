"""
Video moderation: PENDING -> APPROVED/REJECTED, APPROVED -> PENDING (unpublish).
Allowed transitions come from settings.video_status_transitions.
Every transition requires admin capability on the acting user.
"""
import logging
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session

from vidshare.auth import is_admin
from vidshare.config import get_settings
from vidshare.core.exceptions import AuthorizationError, InvalidTransition, ValidationError, VideoNotFound
from vidshare.models.user import User
from vidshare.models.video import Video, VideoStatus

logger = logging.getLogger(__name__)


def allowed_transitions() -> dict[str, set[str]]:
    return {k.upper(): {v.upper() for v in targets} for k, targets in get_settings().video_status_transitions.items()}


def _require_admin(actor: User) -> None:
    if actor is None or not is_admin(actor.role):
        raise AuthorizationError("Admin privileges required to moderate videos")


def _load_for_transition(db: Session, video_id: int, actor: User, target: VideoStatus) -> Video:
    _require_admin(actor)
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video:
        raise VideoNotFound("Video not found")
    if target.value not in allowed_transitions().get(video.status, set()):
        raise InvalidTransition(f"Cannot move video from {video.status} to {target.value}")
    return video


def approve_video(db: Session, video_id: int, actor: User) -> Video:
    video = _load_for_transition(db, video_id, actor, VideoStatus.APPROVED)
    video.status = VideoStatus.APPROVED.value
    video.approved_at = datetime.utcnow()
    db.commit()
    db.refresh(video)
    logger.info("Video %s approved by user %s", video.id, actor.id)
    return video


def reject_video(db: Session, video_id: int, actor: User, reason: str | None = None) -> Video:
    video = _load_for_transition(db, video_id, actor, VideoStatus.REJECTED)
    video.status = VideoStatus.REJECTED.value
    video.rejected_at = datetime.utcnow()
    video.rejection_reason = reason
    db.commit()
    db.refresh(video)
    logger.info("Video %s rejected by user %s", video.id, actor.id)
    return video


def unpublish_video(db: Session, video_id: int, actor: User) -> Video:
    video = _load_for_transition(db, video_id, actor, VideoStatus.PENDING)
    video.status = VideoStatus.PENDING.value
    video.approved_at = None
    db.commit()
    db.refresh(video)
    logger.info("Video %s unpublished by user %s", video.id, actor.id)
    return video


def list_videos_by_status(db: Session, status: str) -> list[Video]:
    status = (status or "").upper()
    if status not in VideoStatus.__members__:
        raise ValidationError("status must be PENDING, APPROVED or REJECTED")
    order = {
        VideoStatus.PENDING.value: Video.created_at.desc(),
        VideoStatus.APPROVED.value: Video.approved_at.desc(),
        VideoStatus.REJECTED.value: Video.rejected_at.desc(),
    }[status]
    return db.query(Video).filter(Video.status == status).order_by(order).all()


def get_video_for_review(db: Session, video_id: int) -> Video:
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video:
        raise VideoNotFound("Video not found")
    return video


def dashboard_counts(db: Session) -> dict:
    rows = dict(db.query(Video.status, func.count(Video.id)).group_by(Video.status).all())
    return {
        "pending_videos": rows.get(VideoStatus.PENDING.value, 0),
        "approved_videos": rows.get(VideoStatus.APPROVED.value, 0),
        "rejected_videos": rows.get(VideoStatus.REJECTED.value, 0),
        "total_users": db.query(func.count(User.id)).scalar() or 0,
    }
