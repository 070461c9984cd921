"""
Interaction graph: likes (video/comment/reply), comments, threaded replies,
creator subscriptions, ratings and trivia.

Toggles (like, subscribe) do not check-then-write. They insert inside a
SAVEPOINT and let the unique constraint decide: an IntegrityError means the
edge already exists, so it is deleted instead. Ratings are a single
INSERT ... ON CONFLICT DO UPDATE.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy import func
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidshare.core.exceptions import (
    AuthorizationError,
    CommentNotFound,
    InvalidRating,
    ParentReplyNotFound,
    StorageError,
    TargetNotFound,
    UserNotFound,
    ValidationError,
    VideoMismatch,
    VideoNotFound,
)
from vidshare.models.comment import Comment, Reply
from vidshare.models.like import Like, LikeTargetType, LikeType
from vidshare.models.rating import Rating
from vidshare.models.subscription import Subscription
from vidshare.models.trivia import Trivia
from vidshare.models.user import User
from vidshare.models.video import Video

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 10

TARGET_MODELS = {
    LikeTargetType.VIDEO: Video,
    LikeTargetType.COMMENT: Comment,
    LikeTargetType.REPLY: Reply,
}


@dataclass(frozen=True)
class LikeTarget:
    kind: LikeTargetType
    id: int

    @classmethod
    def from_ids(
        cls,
        video_id: int | None = None,
        comment_id: int | None = None,
        reply_id: int | None = None,
    ) -> "LikeTarget":
        """Exactly one id must be given; it decides the target kind."""
        given = [
            (kind, target_id)
            for kind, target_id in (
                (LikeTargetType.VIDEO, video_id),
                (LikeTargetType.COMMENT, comment_id),
                (LikeTargetType.REPLY, reply_id),
            )
            if target_id is not None
        ]
        if not given:
            raise ValidationError("Missing required fields: one of video_id, comment_id or reply_id")
        if len(given) > 1:
            raise ValidationError("Provide exactly one of video_id, comment_id or reply_id")
        kind, target_id = given[0]
        return cls(kind, target_id)


@dataclass
class LikeResult:
    action: str  # "created" | "removed"
    liked: bool
    like_count: int
    target_type: str


@dataclass
class SubscriptionResult:
    action: str  # "subscribed" | "unsubscribed"
    subscribed: bool
    creator_id: int
    subscriber_count: int


@dataclass
class RatingResult:
    rating: Rating
    average: float
    count: int


def round_rating(total: int | None, count: int) -> float:
    """Average to one decimal, half-up."""
    if not count:
        return 0.0
    avg = Decimal(total or 0) / Decimal(count)
    return float(avg.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _require_text(text: str | None) -> str:
    value = (text or "").strip()
    if not value:
        raise ValidationError("Missing required fields: text")
    return value


def _get_video(db: Session, video_id: int) -> Video:
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video:
        raise VideoNotFound()
    return video


# ---------- Likes ----------


def count_likes(db: Session, target: LikeTarget, like_type: LikeType | None = None) -> int:
    q = db.query(func.count(Like.id)).filter(
        Like.target_type == target.kind.value,
        Like.target_id == target.id,
    )
    if like_type is not None:
        q = q.filter(Like.type == like_type.value)
    return q.scalar() or 0


def toggle_like(
    db: Session,
    user_id: int,
    target: LikeTarget,
    like_type: LikeType | str = LikeType.LIKE,
) -> LikeResult:
    try:
        like_type = LikeType(like_type)
    except ValueError:
        raise ValidationError("type must be LIKE or DISLIKE")

    model = TARGET_MODELS[target.kind]
    if db.query(model.id).filter(model.id == target.id).first() is None:
        raise TargetNotFound()

    try:
        with db.begin_nested():
            db.add(Like(
                user_id=user_id,
                target_type=target.kind.value,
                target_id=target.id,
                type=like_type.value,
            ))
        created = True
    except IntegrityError:
        # (user, target) already present: this call is an unlike
        db.query(Like).filter(
            Like.user_id == user_id,
            Like.target_type == target.kind.value,
            Like.target_id == target.id,
        ).delete(synchronize_session=False)
        created = False
    db.commit()

    return LikeResult(
        action="created" if created else "removed",
        liked=created,
        like_count=count_likes(db, target),
        target_type=target.kind.value,
    )


# ---------- Comments & replies ----------


def create_comment(db: Session, user_id: int, video_id: int, text: str) -> Comment:
    text = _require_text(text)
    _get_video(db, video_id)
    comment = Comment(user_id=user_id, video_id=video_id, text=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


def create_reply(
    db: Session,
    user_id: int,
    video_id: int,
    text: str,
    comment_id: int | None = None,
    parent_reply_id: int | None = None,
) -> Reply:
    """
    Reply to a comment or to another reply. Replies to replies are flattened:
    comment_id is always the root comment, parent_reply_id the immediate parent.
    """
    text = _require_text(text)
    if not comment_id and not parent_reply_id:
        raise ValidationError("Missing required fields: either comment_id or parent_reply_id")

    if db.query(User.id).filter(User.id == user_id).first() is None:
        raise UserNotFound()
    if db.query(Video.id).filter(Video.id == video_id).first() is None:
        raise VideoNotFound()

    resolved_comment_id = comment_id
    if parent_reply_id:
        parent = db.query(Reply).filter(Reply.id == parent_reply_id).first()
        if not parent:
            raise ParentReplyNotFound()
        if parent.video_id != video_id:
            raise VideoMismatch("The parent reply does not belong to this video")
        resolved_comment_id = parent.comment_id

    comment = db.query(Comment).filter(Comment.id == resolved_comment_id).first()
    if not comment:
        raise CommentNotFound()
    if comment.video_id != video_id:
        raise VideoMismatch("The comment does not belong to this video")

    reply = Reply(
        user_id=user_id,
        video_id=video_id,
        comment_id=resolved_comment_id,
        parent_reply_id=parent_reply_id or None,
        text=text,
    )
    db.add(reply)
    db.commit()
    db.refresh(reply)
    return reply


# ---------- Subscriptions ----------


def count_subscribers(db: Session, creator_id: int) -> int:
    return db.query(func.count(Subscription.id)).filter(Subscription.creator_id == creator_id).scalar() or 0


def _delete_subscription(db: Session, user_id: int, creator_id: int) -> None:
    db.query(Subscription).filter(
        Subscription.user_id == user_id,
        Subscription.creator_id == creator_id,
    ).delete(synchronize_session=False)


def toggle_subscription(
    db: Session,
    user_id: int,
    video_id: int,
    subscribe: bool | None = None,
) -> SubscriptionResult:
    """
    Subscribe to the creator of video_id. The edge is creator-scoped: any of the
    creator's videos reaches the same (user, creator) pair.
    subscribe=None toggles; True/False force the end state.
    """
    video = _get_video(db, video_id)
    creator_id = video.user_id

    if subscribe is False:
        _delete_subscription(db, user_id, creator_id)
        subscribed = False
    else:
        try:
            with db.begin_nested():
                db.add(Subscription(user_id=user_id, creator_id=creator_id, video_id=video_id))
            subscribed = True
        except IntegrityError:
            if subscribe is None:
                _delete_subscription(db, user_id, creator_id)
                subscribed = False
            else:
                subscribed = True
    db.commit()

    return SubscriptionResult(
        action="subscribed" if subscribed else "unsubscribed",
        subscribed=subscribed,
        creator_id=creator_id,
        subscriber_count=count_subscribers(db, creator_id),
    )


# ---------- Ratings ----------


def _upsert_rating_stmt(dialect: str, user_id: int, video_id: int, value: int):
    now = datetime.utcnow()
    values = dict(user_id=user_id, video_id=video_id, value=value, created_at=now, updated_at=now)
    if dialect in ("postgresql", "sqlite"):
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = insert(Rating).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=["user_id", "video_id"],
            set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
        )
    if dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(Rating).values(**values)
        return stmt.on_duplicate_key_update(value=stmt.inserted.value, updated_at=stmt.inserted.updated_at)
    raise StorageError(f"Rating upsert is not supported on {dialect}")


def rating_stats(db: Session, video_id: int) -> tuple[float, int]:
    total, count = db.query(func.sum(Rating.value), func.count(Rating.id)).filter(
        Rating.video_id == video_id
    ).one()
    return round_rating(total, count), count or 0


def rate_video(db: Session, user_id: int, video_id: int, value: int) -> RatingResult:
    # Range check first: out-of-range values are rejected even for unknown videos
    if isinstance(value, bool) or not isinstance(value, int) or not RATING_MIN <= value <= RATING_MAX:
        raise InvalidRating()
    _get_video(db, video_id)

    db.execute(_upsert_rating_stmt(db.get_bind().dialect.name, user_id, video_id, value))
    db.commit()

    rating = db.query(Rating).filter(Rating.user_id == user_id, Rating.video_id == video_id).one()
    average, count = rating_stats(db, video_id)
    return RatingResult(rating=rating, average=average, count=count)


# ---------- Trivia & synopsis ----------


def create_trivia(db: Session, user_id: int, video_id: int, text: str) -> Trivia:
    text = _require_text(text)
    _get_video(db, video_id)
    trivia = Trivia(user_id=user_id, video_id=video_id, text=text)
    db.add(trivia)
    db.commit()
    db.refresh(trivia)
    return trivia


def list_trivia(db: Session, video_id: int) -> list[Trivia]:
    return (
        db.query(Trivia)
        .filter(Trivia.video_id == video_id)
        .order_by(Trivia.created_at.desc(), Trivia.id.desc())
        .all()
    )


def update_synopsis(db: Session, video_id: int, user: User, synopsis: str | None) -> Video:
    video = _get_video(db, video_id)
    if video.user_id != user.id:
        raise AuthorizationError("Unauthorized to edit this video")
    video.synopsis = synopsis
    db.commit()
    db.refresh(video)
    return video
