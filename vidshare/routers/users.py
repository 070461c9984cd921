from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from vidshare.auth import get_current_user, get_optional_user
from vidshare.database import get_db
from vidshare.models.user import User
from vidshare.schemas.user import ProfileUpdate, UserResponse
from vidshare.services import accounts
from vidshare.services.storage import LocalFileStore, get_file_store

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}/profile")
def get_profile(
    user_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Public profile: user info, videos with like/comment counts, totals."""
    return accounts.get_profile(db, user_id, viewer)


@router.put("/{user_id}", response_model=UserResponse)
def update_profile(
    user_id: int,
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update own name, email and bio."""
    return accounts.update_profile(db, user_id, user, body)


@router.post("/{user_id}/profile-picture", response_model=UserResponse)
def upload_profile_picture(
    user_id: int,
    profile_picture: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    return accounts.set_profile_picture(db, store, user_id, user, profile_picture)
