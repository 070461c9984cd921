"""
Domain errors. Services raise these; main.py maps them to JSON responses
({"error": code, "message": message}) with the matching HTTP status.
"""


class AppError(Exception):
    status_code = 500
    code = "SERVER_ERROR"
    message = "Internal server error"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.message
        if code:
            self.code = code
        super().__init__(self.message)


# ---------- 400 ----------


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class InvalidRating(ValidationError):
    code = "INVALID_RATING"
    message = "Rating must be between 1 and 10"


class InvalidDate(ValidationError):
    code = "INVALID_DATE"
    message = "Invalid release date format"


class MissingAsset(ValidationError):
    code = "MISSING_ASSET"
    message = "Both thumbnail and video files are required"


class VideoMismatch(ValidationError):
    code = "VIDEO_MISMATCH"
    message = "The referenced item does not belong to this video"


# ---------- 401 ----------


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"
    message = "Not authenticated"


class InvalidToken(AuthenticationError):
    code = "INVALID_TOKEN"
    message = "Invalid token"


class TokenExpired(AuthenticationError):
    code = "TOKEN_EXPIRED"
    message = "Token expired"


# ---------- 403 ----------


class AuthorizationError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Not allowed"


# ---------- 404 ----------


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class TargetNotFound(NotFoundError):
    code = "TARGET_NOT_FOUND"
    message = "The item you're trying to like no longer exists"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    message = "The user does not exist"


class VideoNotFound(NotFoundError):
    code = "VIDEO_NOT_FOUND"
    message = "The video does not exist"


class CommentNotFound(NotFoundError):
    code = "COMMENT_NOT_FOUND"
    message = "The comment you are replying to does not exist"


class ParentReplyNotFound(NotFoundError):
    code = "PARENT_REPLY_NOT_FOUND"
    message = "The reply you are responding to does not exist"


# ---------- 409 ----------


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    message = "Conflict"


class InvalidTransition(ConflictError):
    code = "INVALID_TRANSITION"
    message = "Status transition not allowed"


# ---------- 500 ----------


class StorageError(AppError):
    status_code = 500
    code = "STORAGE_ERROR"
    message = "Storage failure"
