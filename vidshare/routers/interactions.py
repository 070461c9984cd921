"""Likes, comments, replies, subscriptions, ratings and trivia. Acting user comes from the token."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from vidshare.auth import get_current_user
from vidshare.database import get_db
from vidshare.models.user import User
from vidshare.schemas.interaction import (
    CommentRequest,
    CommentResponse,
    LikeRequest,
    LikeResponse,
    RateRequest,
    RateResponse,
    RatingOut,
    ReplyRequest,
    ReplyResponse,
    SubscribeRequest,
    SubscribeResponse,
    TriviaRequest,
    TriviaResponse,
)
from vidshare.services import interactions
from vidshare.services.interactions import LikeTarget

router = APIRouter(prefix="/api/interactions", tags=["interactions"])


@router.post("/like", response_model=LikeResponse)
def like(
    body: LikeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Toggle a like/dislike on a video, comment or reply."""
    target = LikeTarget.from_ids(body.video_id, body.comment_id, body.reply_id)
    result = interactions.toggle_like(db, user.id, target, body.type)
    return LikeResponse(
        action=result.action,
        liked=result.liked,
        like_count=result.like_count,
        type=result.target_type,
    )


@router.post("/comment", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def comment(
    body: CommentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return interactions.create_comment(db, user.id, body.video_id, body.text)


@router.post("/reply", response_model=ReplyResponse, status_code=status.HTTP_201_CREATED)
def reply(
    body: ReplyRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Reply to a comment (comment_id) or to another reply (parent_reply_id)."""
    return interactions.create_reply(
        db,
        user.id,
        body.video_id,
        body.text,
        comment_id=body.comment_id,
        parent_reply_id=body.parent_reply_id,
    )


@router.post("/subscribe", response_model=SubscribeResponse)
def subscribe(
    body: SubscribeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Subscribe to (or unsubscribe from) the creator of the given video."""
    result = interactions.toggle_subscription(db, user.id, body.video_id, body.subscribe)
    return SubscribeResponse(
        action=result.action,
        subscribed=result.subscribed,
        creator_id=result.creator_id,
        subscriber_count=result.subscriber_count,
    )


@router.post("/rate", response_model=RateResponse)
def rate(
    body: RateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rate 1-10. Re-rating overwrites the previous value."""
    result = interactions.rate_video(db, user.id, body.video_id, body.value)
    return RateResponse(
        rating=RatingOut.model_validate(result.rating),
        average=result.average,
        count=result.count,
    )


@router.post("/trivia", response_model=TriviaResponse, status_code=status.HTTP_201_CREATED)
def trivia(
    body: TriviaRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return interactions.create_trivia(db, user.id, body.video_id, body.text)
