"""
Admin console: moderation queue and user management.

Every route needs an admin token. Role changes, admin bans and admin account
management additionally require SUPER_ADMIN (checked in the accounts service or
by the super admin dependency).
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from vidshare.auth import get_current_user_admin, get_current_user_super_admin
from vidshare.database import get_db
from vidshare.models.user import User
from vidshare.routers.videos import video_list_item
from vidshare.schemas.user import (
    AdminListItem,
    AdminRegisterRequest,
    AdminUserListItem,
    BanRequest,
    ChangePasswordRequest,
    PromoteRequest,
    UserResponse,
    UserUpdate,
)
from vidshare.schemas.video import DashboardResponse, RejectRequest, VideoListItem, VideoResponse
from vidshare.services import accounts, moderation

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return moderation.dashboard_counts(db)


# ---------- Videos ----------


@router.get("/videos/pending", response_model=list[VideoListItem])
def pending_videos(
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return [video_list_item(v) for v in moderation.list_videos_by_status(db, "PENDING")]


@router.get("/videos/approved", response_model=list[VideoListItem])
def approved_videos(
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return [video_list_item(v) for v in moderation.list_videos_by_status(db, "APPROVED")]


@router.get("/videos/rejected", response_model=list[VideoListItem])
def rejected_videos(
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return [video_list_item(v) for v in moderation.list_videos_by_status(db, "REJECTED")]


@router.get("/videos/{video_id}", response_model=VideoResponse)
def review_video(
    video_id: int,
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return moderation.get_video_for_review(db, video_id)


@router.post("/videos/{video_id}/approve", response_model=VideoResponse)
def approve_video(
    video_id: int,
    admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return moderation.approve_video(db, video_id, admin)


@router.post("/videos/{video_id}/reject", response_model=VideoResponse)
def reject_video(
    video_id: int,
    body: RejectRequest | None = None,
    admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    reason = body.reason if body else None
    return moderation.reject_video(db, video_id, admin, reason)


@router.post("/videos/{video_id}/unpublish", response_model=VideoResponse)
def unpublish_video(
    video_id: int,
    admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    """Send an approved video back to PENDING."""
    return moderation.unpublish_video(db, video_id, admin)


# ---------- Users ----------


@router.get("/users", response_model=list[AdminUserListItem])
def list_users(
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return accounts.list_users(db)


@router.get("/admins", response_model=list[AdminListItem])
def list_admins(
    _admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return [AdminListItem.model_validate(a, from_attributes=True) for a in accounts.list_admins(db)]


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UserUpdate,
    admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return accounts.update_user(db, user_id, admin, body)


@router.post("/users/{user_id}/ban", response_model=UserResponse)
def ban_user(
    user_id: int,
    body: BanRequest | None = None,
    admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    is_banned = body.is_banned if body else True
    return accounts.set_ban(db, user_id, admin, is_banned)


@router.post("/users/{user_id}/unban", response_model=UserResponse)
def unban_user(
    user_id: int,
    admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    return accounts.set_ban(db, user_id, admin, False)


# ---------- Admin accounts (super admin) ----------


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register_admin(
    body: AdminRegisterRequest,
    actor: User = Depends(get_current_user_super_admin),
    db: Session = Depends(get_db),
):
    return accounts.register_admin(db, actor, body)


@router.post("/promote-to-super", response_model=UserResponse)
def promote_to_super(
    body: PromoteRequest,
    actor: User = Depends(get_current_user_super_admin),
    db: Session = Depends(get_db),
):
    return accounts.promote_to_super_admin(db, body.user_id, actor)


@router.delete("/admins/{admin_id}")
def delete_admin(
    admin_id: int,
    actor: User = Depends(get_current_user_super_admin),
    db: Session = Depends(get_db),
):
    accounts.delete_admin(db, admin_id, actor)
    return {"message": "Admin deleted successfully"}


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    admin: User = Depends(get_current_user_admin),
    db: Session = Depends(get_db),
):
    accounts.change_password(db, admin, body.current_password, body.new_password)
    return {"message": "Password changed successfully"}
