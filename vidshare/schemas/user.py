from datetime import datetime
from pydantic import BaseModel
from vidshare.models.user import UserRole


class UserResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    is_admin: bool
    is_banned: bool
    bio: str | None = None
    profile_picture: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """Author/owner info embedded in videos, comments and replies."""
    id: int
    first_name: str
    last_name: str
    profile_picture: str | None = None

    class Config:
        from_attributes = True


class AdminUserListItem(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    is_banned: bool
    created_at: datetime
    video_count: int


class AdminListItem(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    profile_picture: str | None
    created_at: datetime
    last_login: datetime | None


class UserUpdate(BaseModel):
    """Admin update. role is honoured for SUPER_ADMIN only."""
    first_name: str
    last_name: str
    email: str
    role: UserRole | None = None


class ProfileUpdate(BaseModel):
    first_name: str
    last_name: str
    email: str
    bio: str | None = None


class BanRequest(BaseModel):
    is_banned: bool = True


class PromoteRequest(BaseModel):
    user_id: int


class AdminRegisterRequest(BaseModel):
    first_name: str
    last_name: str
    email: str
    password: str
    role: UserRole = UserRole.ADMIN


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class TokenPayload(BaseModel):
    sub: int  # user id
    role: str
    iat: int | None = None
    exp: int
    type: str = "access"


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    token_type: str = "bearer"
