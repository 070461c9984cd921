from datetime import datetime
from pydantic import BaseModel
from vidshare.schemas.user import UserSummary


class VideoResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None
    genre: str | None
    year: int | None
    synopsis: str | None
    thumbnail: str
    video_url: str
    status: str
    approved_at: datetime | None
    rejected_at: datetime | None
    rejection_reason: str | None
    views: int
    created_at: datetime
    updated_at: datetime
    user: UserSummary | None = None

    class Config:
        from_attributes = True


class VideoListItem(BaseModel):
    id: int
    title: str
    description: str | None
    genre: str | None
    year: int | None
    thumbnail: str
    video_url: str
    status: str
    views: int
    created_at: datetime
    approved_at: datetime | None
    user: UserSummary | None = None
    uploader_name: str = ""


class VideoUploadResponse(BaseModel):
    message: str
    video: VideoListItem


class RejectRequest(BaseModel):
    reason: str | None = None


class SynopsisRequest(BaseModel):
    synopsis: str | None = None


class SynopsisResponse(BaseModel):
    id: int
    title: str
    synopsis: str | None


class DashboardResponse(BaseModel):
    pending_videos: int
    approved_videos: int
    rejected_videos: int
    total_users: int
