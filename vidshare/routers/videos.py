"""
Video upload (any logged-in, non-banned user; lands in PENDING), public
listings, the aggregated detail view, trivia and synopsis edits.
"""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from vidshare.auth import get_current_user, get_optional_user
from vidshare.database import get_db
from vidshare.models.user import User
from vidshare.models.video import Video
from vidshare.schemas.interaction import TriviaResponse
from vidshare.schemas.user import UserSummary
from vidshare.schemas.video import SynopsisRequest, SynopsisResponse, VideoListItem, VideoUploadResponse
from vidshare.services import interactions
from vidshare.services.storage import LocalFileStore, get_file_store
from vidshare.services.video_detail import (
    get_video_detail,
    list_approved_videos,
    list_recent_videos,
    list_trending_videos,
)
from vidshare.services.video_upload import submit_video

router = APIRouter(prefix="/api/videos", tags=["videos"])


def video_list_item(v: Video) -> VideoListItem:
    return VideoListItem(
        id=v.id,
        title=v.title,
        description=v.description,
        genre=v.genre,
        year=v.year,
        thumbnail=v.thumbnail,
        video_url=v.video_url,
        status=v.status,
        views=v.views,
        created_at=v.created_at,
        approved_at=v.approved_at,
        user=UserSummary.model_validate(v.user) if v.user else None,
        uploader_name=v.user.full_name if v.user else "",
    )


@router.post("", response_model=VideoUploadResponse, status_code=status.HTTP_201_CREATED)
def upload_video(
    title: str = Form(""),
    description: str | None = Form(None),
    genre: str | None = Form(None),
    release_date: str | None = Form(None),
    thumbnail: UploadFile | None = File(None),
    video: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Upload thumbnail + video. The video waits in PENDING until an admin approves it."""
    created = submit_video(
        db,
        store,
        user,
        title=title,
        description=description,
        genre=genre,
        release_date=release_date,
        thumbnail=thumbnail,
        media=video,
    )
    return VideoUploadResponse(
        message="Video uploaded successfully and pending approval",
        video=video_list_item(created),
    )


# ---------- Public listings (must be before /{video_id}) ----------


@router.get("/premium", response_model=list[VideoListItem])
def premium_videos(db: Session = Depends(get_db)):
    """Approved videos uploaded recently."""
    return [video_list_item(v) for v in list_recent_videos(db)]


@router.get("/trending", response_model=list[VideoListItem])
def trending_videos(db: Session = Depends(get_db)):
    """Approved videos older than the recent window, most viewed first."""
    return [video_list_item(v) for v in list_trending_videos(db)]


@router.get("/approved", response_model=list[VideoListItem])
def approved_videos(db: Session = Depends(get_db)):
    return [video_list_item(v) for v in list_approved_videos(db)]


# ---------- Detail ----------


@router.get("/{video_id}")
def video_detail(
    video_id: int,
    user_id: int | None = None,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Full video view: owner, comment tree, trivia, counts and the requesting user's
    like/rating/subscription state. With a bearer token the token's user is used,
    otherwise ?user_id=. Unapproved videos are 404 unless the token belongs to the
    owner or an admin. Increments the view counter.
    """
    requesting_user_id = viewer.id if viewer else user_id
    return get_video_detail(db, video_id, requesting_user_id, viewer=viewer)


@router.get("/{video_id}/trivia", response_model=list[TriviaResponse])
def video_trivia(video_id: int, db: Session = Depends(get_db)):
    return interactions.list_trivia(db, video_id)


@router.post("/{video_id}/synopsis", response_model=SynopsisResponse)
def update_synopsis(
    video_id: int,
    body: SynopsisRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Owner only."""
    video = interactions.update_synopsis(db, video_id, user, body.synopsis)
    return SynopsisResponse(id=video.id, title=video.title, synopsis=video.synopsis)
