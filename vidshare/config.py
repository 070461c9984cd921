from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./vidshare.db"

    # JWT
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 1 day, every login path

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Uploads: absolute path to file store folder (empty = <repo>/uploads)
    upload_dir: str = ""
    upload_url_prefix: str = "/uploads"
    max_upload_size_mb: int = 100

    # Moderation: allowed status transitions (status -> target statuses)
    video_status_transitions: dict[str, list[str]] = {
        "PENDING": ["APPROVED", "REJECTED"],
        "APPROVED": ["APPROVED", "PENDING"],
        "REJECTED": [],
    }

    # Videos newer than this many days are listed as "premium", older as "trending"
    premium_window_days: int = 30

    # Initial super admin, created at startup when both are set
    superadmin_email: str = ""
    superadmin_password: str = ""

    # "development" exposes storage error details in responses
    environment: str = "production"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
