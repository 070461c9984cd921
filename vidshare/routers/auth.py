from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from vidshare.auth import create_access_token, get_current_user
from vidshare.database import get_db
from vidshare.models.user import User
from vidshare.schemas.user import AuthResponse, LoginRequest, UserResponse
from vidshare.services import accounts
from vidshare.services.storage import LocalFileStore, get_file_store

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(user.id, user.role)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    profile_picture: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Register a regular user (multipart, optional profile picture) and log them in."""
    user = accounts.register_user(
        db,
        store,
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        profile_picture=profile_picture,
    )
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Login with email and password."""
    user = accounts.authenticate(db, body.email, body.password)
    return _auth_response(user)


@router.post("/admin/login", response_model=AuthResponse)
def admin_login(body: LoginRequest, db: Session = Depends(get_db)):
    """Same as /login but only accepts ADMIN or SUPER_ADMIN accounts."""
    user = accounts.authenticate(db, body.email, body.password, require_admin=True)
    return _auth_response(user)


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return user
