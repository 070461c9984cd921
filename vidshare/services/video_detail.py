"""
Video detail (aggregate read) and public listings.

get_video_detail composes the video, owner, comment tree, trivia, like/rating
counts and the requesting user's own state from separate queries. They are not
read in one snapshot, so counts can skew slightly under concurrent writes.
Unapproved videos are only shown to their owner and to admins; anyone else gets
the same 404 as for a missing id. Every served detail read bumps the view counter.
"""
import logging
from datetime import datetime, timedelta
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from vidshare.auth import is_admin
from vidshare.config import get_settings
from vidshare.core.exceptions import VideoNotFound
from vidshare.models.comment import Comment, Reply
from vidshare.models.like import Like, LikeTargetType, LikeType
from vidshare.models.rating import Rating
from vidshare.models.subscription import Subscription
from vidshare.models.user import User
from vidshare.models.video import Video, VideoStatus
from vidshare.services.interactions import count_subscribers, list_trivia, rating_stats

logger = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "profile_picture": user.profile_picture,
    }


def _thread_targets(comment_ids: list[int], reply_ids: list[int]) -> list:
    clauses = []
    if comment_ids:
        clauses.append(and_(Like.target_type == LikeTargetType.COMMENT.value, Like.target_id.in_(comment_ids)))
    if reply_ids:
        clauses.append(and_(Like.target_type == LikeTargetType.REPLY.value, Like.target_id.in_(reply_ids)))
    return clauses


def _like_counts(db: Session, comment_ids: list[int], reply_ids: list[int]) -> dict[tuple[str, int], int]:
    clauses = _thread_targets(comment_ids, reply_ids)
    if not clauses:
        return {}
    rows = (
        db.query(Like.target_type, Like.target_id, func.count(Like.id))
        .filter(or_(*clauses))
        .group_by(Like.target_type, Like.target_id)
        .all()
    )
    return {(t, i): n for t, i, n in rows}


def _liked_by(db: Session, user_id: int | None, comment_ids: list[int], reply_ids: list[int]) -> set[tuple[str, int]]:
    clauses = _thread_targets(comment_ids, reply_ids)
    if not user_id or not clauses:
        return set()
    rows = (
        db.query(Like.target_type, Like.target_id)
        .filter(Like.user_id == user_id, Like.type == LikeType.LIKE.value, or_(*clauses))
        .all()
    )
    return {(t, i) for t, i in rows}


def _comment_tree(
    comments: list[Comment],
    replies: list[Reply],
    counts: dict[tuple[str, int], int],
    liked: set[tuple[str, int]],
) -> list[dict]:
    reply_key = LikeTargetType.REPLY.value
    nodes: dict[int, dict] = {}
    for r in replies:
        nodes[r.id] = {
            "id": r.id,
            "text": r.text,
            "created_at": _iso(r.created_at),
            "comment_id": r.comment_id,
            "parent_reply_id": r.parent_reply_id,
            "user": user_summary(r.user),
            "like_count": counts.get((reply_key, r.id), 0),
            "liked": (reply_key, r.id) in liked,
            "replies": [],
        }

    top_level: dict[int, list[dict]] = {}
    reply_totals: dict[int, int] = {}
    for r in replies:
        node = nodes[r.id]
        reply_totals[r.comment_id] = reply_totals.get(r.comment_id, 0) + 1
        parent = nodes.get(r.parent_reply_id) if r.parent_reply_id else None
        if parent is not None:
            parent["replies"].append(node)
        else:
            top_level.setdefault(r.comment_id, []).append(node)

    comment_key = LikeTargetType.COMMENT.value
    return [
        {
            "id": c.id,
            "text": c.text,
            "created_at": _iso(c.created_at),
            "user": user_summary(c.user),
            "like_count": counts.get((comment_key, c.id), 0),
            "liked": (comment_key, c.id) in liked,
            "reply_count": reply_totals.get(c.id, 0),
            "replies": top_level.get(c.id, []),
        }
        for c in comments
    ]


def increment_views(db: Session, video_id: int) -> None:
    db.query(Video).filter(Video.id == video_id).update(
        {Video.views: Video.views + 1}, synchronize_session=False
    )
    db.commit()


def can_view(video: Video, viewer: User | None) -> bool:
    if video.status == VideoStatus.APPROVED.value:
        return True
    return viewer is not None and (viewer.id == video.user_id or is_admin(viewer.role))


def get_video_detail(
    db: Session,
    video_id: int,
    requesting_user_id: int | None = None,
    viewer: User | None = None,
) -> dict:
    """viewer is the authenticated caller; requesting_user_id only selects whose like/rating state is shown."""
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video or not can_view(video, viewer):
        raise VideoNotFound("Video not found")
    owner = video.user

    comments = (
        db.query(Comment)
        .filter(Comment.video_id == video_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )
    replies = (
        db.query(Reply)
        .filter(Reply.video_id == video_id)
        .order_by(Reply.created_at, Reply.id)
        .all()
    )
    comment_ids = [c.id for c in comments]
    reply_ids = [r.id for r in replies]
    counts = _like_counts(db, comment_ids, reply_ids)
    liked = _liked_by(db, requesting_user_id, comment_ids, reply_ids)

    video_votes = dict(
        db.query(Like.type, func.count(Like.id))
        .filter(Like.target_type == LikeTargetType.VIDEO.value, Like.target_id == video_id)
        .group_by(Like.type)
        .all()
    )
    average_rating, rating_count = rating_stats(db, video_id)
    subscriber_count = count_subscribers(db, video.user_id)

    user_like_type = None
    user_rating = None
    is_subscribed = False
    if requesting_user_id:
        user_like_type = (
            db.query(Like.type)
            .filter(
                Like.user_id == requesting_user_id,
                Like.target_type == LikeTargetType.VIDEO.value,
                Like.target_id == video_id,
            )
            .scalar()
        )
        user_rating = (
            db.query(Rating.value)
            .filter(Rating.user_id == requesting_user_id, Rating.video_id == video_id)
            .scalar()
        )
        is_subscribed = (
            db.query(Subscription.id)
            .filter(Subscription.user_id == requesting_user_id, Subscription.creator_id == video.user_id)
            .first()
            is not None
        )

    trivia = [
        {"id": t.id, "text": t.text, "created_at": _iso(t.created_at), "user": user_summary(t.user)}
        for t in list_trivia(db, video_id)
    ]

    detail = {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "genre": video.genre,
        "year": video.year,
        "synopsis": video.synopsis,
        "thumbnail": video.thumbnail,
        "video_url": video.video_url,
        "status": video.status,
        "views": video.views,
        "created_at": _iso(video.created_at),
        "updated_at": _iso(video.updated_at),
        "user_id": video.user_id,
        "user": {**(user_summary(owner) or {}), "subscriber_count": subscriber_count},
        "comments": _comment_tree(comments, replies, counts, liked),
        "trivia": trivia,
        "like_count": video_votes.get(LikeType.LIKE.value, 0),
        "dislike_count": video_votes.get(LikeType.DISLIKE.value, 0),
        "average_rating": average_rating,
        "rating_count": rating_count,
        "user_like_type": user_like_type,
        "user_rating": user_rating,
        "is_subscribed": is_subscribed,
    }

    increment_views(db, video_id)
    return detail


# ---------- Listings ----------


def _approved(db: Session):
    return db.query(Video).filter(Video.status == VideoStatus.APPROVED.value)


def _window_start() -> datetime:
    return datetime.utcnow() - timedelta(days=get_settings().premium_window_days)


def list_recent_videos(db: Session) -> list[Video]:
    """Approved videos uploaded within the premium window."""
    return _approved(db).filter(Video.created_at >= _window_start()).order_by(Video.created_at.desc()).all()


def list_trending_videos(db: Session) -> list[Video]:
    """Approved videos older than the premium window."""
    return _approved(db).filter(Video.created_at < _window_start()).order_by(Video.views.desc()).all()


def list_approved_videos(db: Session) -> list[Video]:
    return _approved(db).order_by(Video.approved_at.desc()).all()
