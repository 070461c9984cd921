"""
Local file store for uploaded assets (thumbnails, videos, profile pictures).
Files land under upload_dir and are referenced by URL (upload_url_prefix/<name>).
"""
import logging
import uuid
from pathlib import Path
from fastapi import UploadFile
from vidshare.config import get_settings
from vidshare.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MB

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".webm", ".ogg", ".mov", ".mkv"}


def upload_dir() -> Path:
    settings = get_settings()
    if settings.upload_dir:
        return Path(settings.upload_dir)
    return Path(__file__).resolve().parent.parent.parent / "uploads"


class LocalFileStore:
    def __init__(self, base_dir: Path, url_prefix: str = "/uploads", max_bytes: int | None = None):
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def _safe_filename(self, prefix: str, original: str | None, allowed: set[str]) -> str:
        ext = Path(original or "").suffix.lower()
        if ext not in allowed:
            raise ValidationError(
                f"Unsupported file type '{ext or original}'. Allowed: {', '.join(sorted(allowed))}",
                code="UNSUPPORTED_FILE_TYPE",
            )
        return f"{prefix}-{uuid.uuid4().hex}{ext}"

    def save(self, file: UploadFile, prefix: str, allowed: set[str]) -> str:
        """Write the upload to disk in chunks and return its URL."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        name = self._safe_filename(prefix, file.filename, allowed)
        path = self.base_dir / name
        written = 0
        try:
            with path.open("wb") as f:
                while chunk := file.file.read(CHUNK_SIZE):
                    written += len(chunk)
                    if self.max_bytes is not None and written > self.max_bytes:
                        raise ValidationError("File too large", code="FILE_TOO_LARGE")
                    f.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise
        logger.info("Stored upload %s (%d bytes)", name, written)
        return f"{self.url_prefix}/{name}"

    def path_for(self, url: str) -> Path | None:
        """Resolve a stored URL back to a path under base_dir. None if it points elsewhere."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        base = self.base_dir.resolve()
        try:
            full = (base / url[len(self.url_prefix) + 1:]).resolve()
            full.relative_to(base)  # raises ValueError if path escaped
        except (ValueError, OSError):
            return None
        return full

    def delete(self, url: str) -> None:
        path = self.path_for(url)
        if path is not None:
            path.unlink(missing_ok=True)

    def cleanup(self, urls: list[str]) -> None:
        """Best-effort removal after a failed metadata write. Failures are logged only."""
        for url in urls:
            try:
                self.delete(url)
            except OSError as e:
                logger.warning("Failed to clean up uploaded file %s: %s", url, e)


def get_file_store() -> LocalFileStore:
    settings = get_settings()
    return LocalFileStore(
        upload_dir(),
        url_prefix=settings.upload_url_prefix,
        max_bytes=settings.max_upload_size_mb * 1024 * 1024,
    )
