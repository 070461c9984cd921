from datetime import datetime
from pydantic import BaseModel, StrictInt
from vidshare.models.like import LikeType
from vidshare.schemas.user import UserSummary


class LikeRequest(BaseModel):
    """Exactly one of video_id, comment_id or reply_id names the target."""
    video_id: int | None = None
    comment_id: int | None = None
    reply_id: int | None = None
    type: LikeType = LikeType.LIKE


class LikeResponse(BaseModel):
    action: str  # created | removed
    liked: bool
    like_count: int
    type: str  # VIDEO | COMMENT | REPLY


class CommentRequest(BaseModel):
    video_id: int
    text: str


class CommentResponse(BaseModel):
    id: int
    video_id: int
    user_id: int
    text: str
    created_at: datetime
    user: UserSummary | None = None

    class Config:
        from_attributes = True


class ReplyRequest(BaseModel):
    video_id: int
    text: str
    comment_id: int | None = None
    parent_reply_id: int | None = None


class ReplyResponse(BaseModel):
    id: int
    video_id: int
    user_id: int
    comment_id: int
    parent_reply_id: int | None
    text: str
    created_at: datetime
    user: UserSummary | None = None

    class Config:
        from_attributes = True


class SubscribeRequest(BaseModel):
    video_id: int
    subscribe: bool | None = None  # None toggles


class SubscribeResponse(BaseModel):
    action: str  # subscribed | unsubscribed
    subscribed: bool
    creator_id: int
    subscriber_count: int


class RateRequest(BaseModel):
    video_id: int
    value: StrictInt  # 8.5 and true are rejected, not coerced


class RatingOut(BaseModel):
    id: int
    user_id: int
    video_id: int
    value: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RateResponse(BaseModel):
    success: bool = True
    rating: RatingOut
    average: float
    count: int


class TriviaRequest(BaseModel):
    video_id: int
    text: str


class TriviaResponse(BaseModel):
    id: int
    video_id: int
    user_id: int
    text: str
    created_at: datetime
    user: UserSummary | None = None

    class Config:
        from_attributes = True
