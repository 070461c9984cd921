"""
Accounts: registration/login, profiles, and admin management of users.

Role rules:
- any admin may edit names/email and ban regular users
- only SUPER_ADMIN may change roles, ban admins, register/promote/delete admins
- a SUPER_ADMIN account is never banned or deleted through these paths
"""
import logging
from datetime import datetime
from fastapi import UploadFile
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from vidshare.auth import hash_password, is_admin, is_super_admin, verify_password
from vidshare.config import get_settings
from vidshare.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StorageError,
    UserNotFound,
    ValidationError,
)
from vidshare.models.audit_log import AuditLog
from vidshare.models.comment import Comment
from vidshare.models.like import Like, LikeTargetType, LikeType
from vidshare.models.subscription import Subscription
from vidshare.models.user import User, UserRole
from vidshare.models.video import Video, VideoStatus
from vidshare.schemas.user import AdminRegisterRequest, ProfileUpdate, UserUpdate
from vidshare.services.storage import IMAGE_EXTENSIONS, LocalFileStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _check_password(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFound("User not found")
    return user


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    q = db.query(User.id).filter(func.lower(User.email) == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


def _commit_unique(db: Session, message: str) -> None:
    """Commit; a unique-constraint race on email surfaces as ConflictError."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(message, code="EMAIL_IN_USE")


def _audit(db: Session, action: str, actor_id: int | None, target_user_id: int | None, details: str) -> None:
    db.add(AuditLog(action=action, user_id=actor_id, target_user_id=target_user_id, details=details))


# ---------- Registration & login ----------


def register_user(
    db: Session,
    store: LocalFileStore,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    profile_picture: UploadFile | None = None,
) -> User:
    """Self-registration. Always role USER, whatever the client sends."""
    email = _normalize_email(email)
    if not (first_name or "").strip() or not (last_name or "").strip() or not email or not password:
        raise ValidationError("All fields are required")
    _check_password(password)
    if _email_taken(db, email):
        raise ConflictError("Email already in use", code="EMAIL_IN_USE")

    written: list[str] = []
    try:
        user = User(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            password=hash_password(password),
            role=UserRole.USER.value,
        )
        if profile_picture is not None and profile_picture.filename:
            written.append(store.save(profile_picture, "profile", IMAGE_EXTENSIONS))
            user.profile_picture = written[0]
        db.add(user)
        _commit_unique(db, "Email already in use")
        db.refresh(user)
    except (ValidationError, ConflictError):
        db.rollback()
        store.cleanup(written)
        raise
    except (SQLAlchemyError, OSError) as e:
        db.rollback()
        logger.exception("Registration failed for %s", email)
        store.cleanup(written)
        raise StorageError("Failed to register user") from e
    return user


def authenticate(db: Session, email: str, password: str, *, require_admin: bool = False) -> User:
    email = _normalize_email(email)
    if not email or not password:
        raise ValidationError("Email and password are required")
    user = db.query(User).filter(func.lower(User.email) == email).first()
    if not user or not verify_password(password, user.password):
        raise AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")
    if require_admin and not is_admin(user.role):
        raise AuthenticationError("Invalid admin credentials", code="INVALID_CREDENTIALS")
    if user.is_banned:
        raise AuthorizationError("Account suspended", code="ACCOUNT_BANNED")
    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return user


# ---------- Profiles ----------


def get_profile(db: Session, user_id: int, viewer: User | None = None) -> dict:
    """Public profile with videos and totals. Unapproved videos only for the owner or admins."""
    user = _get_user(db, user_id)
    q = db.query(Video).filter(Video.user_id == user_id)
    if viewer is None or (viewer.id != user_id and not is_admin(viewer.role)):
        q = q.filter(Video.status == VideoStatus.APPROVED.value)
    videos = q.order_by(Video.created_at.desc()).all()
    ids = [v.id for v in videos]

    likes: dict[int, int] = {}
    comments: dict[int, int] = {}
    if ids:
        likes = dict(
            db.query(Like.target_id, func.count(Like.id))
            .filter(
                Like.target_type == LikeTargetType.VIDEO.value,
                Like.type == LikeType.LIKE.value,
                Like.target_id.in_(ids),
            )
            .group_by(Like.target_id)
            .all()
        )
        comments = dict(
            db.query(Comment.video_id, func.count(Comment.id))
            .filter(Comment.video_id.in_(ids))
            .group_by(Comment.video_id)
            .all()
        )
    subscribers = db.query(func.count(Subscription.id)).filter(Subscription.creator_id == user_id).scalar() or 0

    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "profile_picture": user.profile_picture,
        "bio": user.bio,
        "role": user.role,
        "created_at": user.created_at.isoformat(),
        "videos": [
            {
                "id": v.id,
                "title": v.title,
                "description": v.description,
                "thumbnail": v.thumbnail,
                "video_url": v.video_url,
                "genre": v.genre,
                "status": v.status,
                "views": v.views,
                "created_at": v.created_at.isoformat(),
                "like_count": likes.get(v.id, 0),
                "comment_count": comments.get(v.id, 0),
            }
            for v in videos
        ],
        "stats": {
            "videos": len(videos),
            "views": sum(v.views for v in videos),
            "likes": sum(likes.values()),
            "subscribers": subscribers,
        },
    }


def update_profile(db: Session, user_id: int, actor: User, body: ProfileUpdate) -> User:
    if actor.id != user_id:
        raise AuthorizationError("Unauthorized to update this profile")
    email = _normalize_email(body.email)
    if not body.first_name.strip() or not body.last_name.strip() or not email:
        raise ValidationError("First name, last name and email are required")
    user = _get_user(db, user_id)
    if _email_taken(db, email, exclude_id=user_id):
        raise ConflictError("Email already in use", code="EMAIL_IN_USE")
    user.first_name = body.first_name.strip()
    user.last_name = body.last_name.strip()
    user.email = email
    user.bio = body.bio
    _commit_unique(db, "Email already in use")
    db.refresh(user)
    return user


def set_profile_picture(db: Session, store: LocalFileStore, user_id: int, actor: User, upload: UploadFile | None) -> User:
    if actor.id != user_id:
        raise AuthorizationError("Unauthorized to update this profile")
    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded")
    user = _get_user(db, user_id)
    old = user.profile_picture
    url = store.save(upload, "profile", IMAGE_EXTENSIONS)
    try:
        user.profile_picture = url
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Profile picture update failed for user %s", user_id)
        store.cleanup([url])
        raise StorageError("Failed to upload profile picture") from e
    if old:
        store.cleanup([old])
    db.refresh(user)
    return user


# ---------- Admin: users ----------


def list_users(db: Session) -> list[dict]:
    rows = (
        db.query(User, func.count(Video.id))
        .outerjoin(Video, Video.user_id == User.id)
        .group_by(User.id)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return [
        {
            "id": u.id,
            "first_name": u.first_name,
            "last_name": u.last_name,
            "email": u.email,
            "role": u.role,
            "is_banned": u.is_banned,
            "created_at": u.created_at,
            "video_count": n,
        }
        for u, n in rows
    ]


def list_admins(db: Session) -> list[User]:
    return (
        db.query(User)
        .filter(User.role.in_([UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value]))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def update_user(db: Session, user_id: int, actor: User, body: UserUpdate) -> User:
    email = _normalize_email(body.email)
    if not body.first_name.strip() or not body.last_name.strip() or not email:
        raise ValidationError("All fields are required")
    user = _get_user(db, user_id)
    if _email_taken(db, email, exclude_id=user_id):
        raise ConflictError("Email already in use", code="EMAIL_IN_USE")
    if body.role is not None and body.role.value != user.role:
        if not is_super_admin(actor.role):
            raise AuthorizationError("Only super admins can change roles")
        _audit(db, "CHANGE_ROLE", actor.id, user.id, f"Changed role of {user.email} from {user.role} to {body.role.value}")
        logger.info("User %s role %s -> %s by %s", user.id, user.role, body.role.value, actor.id)
        user.role = body.role.value
    user.first_name = body.first_name.strip()
    user.last_name = body.last_name.strip()
    user.email = email
    _commit_unique(db, "Email already in use")
    db.refresh(user)
    return user


def set_ban(db: Session, user_id: int, actor: User, is_banned: bool) -> User:
    user = _get_user(db, user_id)
    if is_banned:
        if user.id == actor.id:
            raise ValidationError("You cannot ban yourself")
        if is_super_admin(user.role):
            raise AuthorizationError("Super admins cannot be banned")
        if is_admin(user.role) and not is_super_admin(actor.role):
            raise AuthorizationError("Only super admins can ban other admins")
    user.is_banned = is_banned
    action = "BAN_USER" if is_banned else "UNBAN_USER"
    _audit(db, action, actor.id, user.id, f"{action} {user.email}")
    db.commit()
    db.refresh(user)
    logger.info("User %s %s by %s", user.id, "banned" if is_banned else "unbanned", actor.id)
    return user


# ---------- Super admin ----------


def _require_super_admin(actor: User) -> None:
    if not is_super_admin(actor.role):
        raise AuthorizationError("Super admin privileges required")


def promote_to_super_admin(db: Session, user_id: int, actor: User) -> User:
    _require_super_admin(actor)
    user = _get_user(db, user_id)
    user.role = UserRole.SUPER_ADMIN.value
    _audit(db, "PROMOTE_TO_SUPER_ADMIN", actor.id, user.id, f"Promoted user {user.email} to Super Admin")
    db.commit()
    db.refresh(user)
    logger.info("User %s promoted to super admin by %s", user.id, actor.id)
    return user


def register_admin(db: Session, actor: User, body: AdminRegisterRequest) -> User:
    _require_super_admin(actor)
    email = _normalize_email(body.email)
    if not body.first_name.strip() or not body.last_name.strip() or not email or not body.password:
        raise ValidationError("All fields are required")
    if not is_admin(body.role.value):
        raise ValidationError("role must be ADMIN or SUPER_ADMIN")
    _check_password(body.password)
    if _email_taken(db, email):
        raise ConflictError("Email already exists", code="EMAIL_IN_USE")
    admin = User(
        first_name=body.first_name.strip(),
        last_name=body.last_name.strip(),
        email=email,
        password=hash_password(body.password),
        role=body.role.value,
    )
    db.add(admin)
    db.flush()
    _audit(db, "REGISTER_ADMIN", actor.id, admin.id, f"Registered {body.role.value} {email}")
    _commit_unique(db, "Email already exists")
    db.refresh(admin)
    return admin


def delete_admin(db: Session, admin_id: int, actor: User) -> None:
    _require_super_admin(actor)
    target = db.query(User).filter(User.id == admin_id).first()
    if not target or not is_admin(target.role):
        raise NotFoundError("Admin not found")
    if is_super_admin(target.role):
        raise AuthorizationError("Cannot delete super admin")
    _audit(db, "DELETE_ADMIN", actor.id, target.id, f"Deleted admin {target.email}")
    db.delete(target)
    db.commit()
    logger.info("Admin %s deleted by %s", admin_id, actor.id)


def change_password(db: Session, actor: User, current_password: str, new_password: str) -> None:
    if not current_password or not new_password:
        raise ValidationError("Current and new password are required")
    if not verify_password(current_password, actor.password):
        raise AuthenticationError("Current password is incorrect", code="INVALID_CREDENTIALS")
    _check_password(new_password)
    actor.password = hash_password(new_password)
    db.commit()


def ensure_super_admin(db: Session) -> User | None:
    """Create the configured initial super admin if it does not exist yet."""
    settings = get_settings()
    email = _normalize_email(settings.superadmin_email)
    if not email or not settings.superadmin_password:
        return None
    existing = db.query(User).filter(func.lower(User.email) == email).first()
    if existing:
        return existing
    user = User(
        first_name="Super",
        last_name="Admin",
        email=email,
        password=hash_password(settings.superadmin_password),
        role=UserRole.SUPER_ADMIN.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Initial super admin created: %s", email)
    return user
