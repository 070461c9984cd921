from datetime import datetime, timedelta
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from vidshare.config import get_settings
from vidshare.core.exceptions import AuthenticationError, AuthorizationError, InvalidToken, TokenExpired
from vidshare.database import get_db
from vidshare.models.user import ADMIN_ROLES, User, UserRole
from vidshare.schemas.user import TokenPayload

settings = get_settings()
security = HTTPBearer(auto_error=False)

# Use Argon2 for password hashing
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# Uniform message for banned users (used by every authenticated endpoint)
BANNED_MESSAGE = "Account suspended. This account has been banned by administrators."


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def is_admin(role: str) -> bool:
    return role in ADMIN_ROLES


def is_super_admin(role: str) -> bool:
    return role == UserRole.SUPER_ADMIN.value


def create_access_token(user_id: int, role: str, expires_minutes: int | None = None) -> str:
    now = datetime.utcnow()
    expire = now + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    )
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> TokenPayload:
    """Raises TokenExpired past expiry, InvalidToken for anything else that doesn't verify."""
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except ExpiredSignatureError:
        raise TokenExpired()
    except JWTError:
        raise InvalidToken()
    if payload.get("type") != "access":
        raise InvalidToken()
    try:
        return TokenPayload(
            sub=int(payload["sub"]),
            role=payload["role"],
            iat=payload.get("iat"),
            exp=payload["exp"],
        )
    except (KeyError, TypeError, ValueError):
        raise InvalidToken()


def _user_from_credentials(
    credentials: HTTPAuthorizationCredentials | None,
    db: Session,
) -> User:
    if not credentials:
        raise AuthenticationError("Authentication required")
    payload = decode_token(credentials.credentials)
    # Live record: role and ban state come from the database, not the token
    user = db.query(User).filter(User.id == payload.sub).first()
    if not user:
        raise AuthenticationError("Invalid token - user not found", code="INVALID_TOKEN")
    if user.is_banned:
        raise AuthorizationError(BANNED_MESSAGE, code="ACCOUNT_BANNED")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    return _user_from_credentials(credentials, db)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User | None:
    """For public reads that personalise when a token is sent."""
    if not credentials:
        return None
    return _user_from_credentials(credentials, db)


def get_current_user_admin(
    user: User = Depends(get_current_user),
) -> User:
    """User must be logged in and have ADMIN or SUPER_ADMIN role."""
    if not is_admin(user.role):
        raise AuthorizationError("Admin privileges required")
    return user


def get_current_user_super_admin(
    user: User = Depends(get_current_user),
) -> User:
    """User must be logged in and have SUPER_ADMIN role."""
    if not is_super_admin(user.role):
        raise AuthorizationError("Super admin privileges required")
    return user
