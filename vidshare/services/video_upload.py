"""Video submission: store thumbnail + media, create the Video in PENDING."""
import logging
import re
from datetime import datetime
from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vidshare.core.exceptions import InvalidDate, MissingAsset, StorageError, ValidationError
from vidshare.models.user import User
from vidshare.models.video import Video, VideoStatus
from vidshare.services.storage import IMAGE_EXTENSIONS, VIDEO_EXTENSIONS, LocalFileStore

logger = logging.getLogger(__name__)

YEAR_ONLY = re.compile(r"^\d{4}$")


def parse_release_year(release_date: str | None) -> int:
    """Accepts an ISO date/datetime ("2021-06-30", "2021-06-30T10:00:00Z") or a bare year."""
    value = (release_date or "").strip()
    if not value:
        raise InvalidDate()
    if YEAR_ONLY.match(value):
        return int(value)
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).year
    except ValueError:
        raise InvalidDate()


def _has_file(file: UploadFile | None) -> bool:
    return file is not None and bool(file.filename)


def submit_video(
    db: Session,
    store: LocalFileStore,
    owner: User,
    *,
    title: str,
    description: str | None,
    genre: str | None,
    release_date: str | None,
    thumbnail: UploadFile | None,
    media: UploadFile | None,
) -> Video:
    """
    Create a PENDING video. Files are written first; if anything after that fails,
    the written files are removed before the error is reported.
    """
    if not _has_file(thumbnail) or not _has_file(media):
        raise MissingAsset()
    if not (title or "").strip():
        raise ValidationError("Title is required")
    year = parse_release_year(release_date)

    written: list[str] = []
    try:
        written.append(store.save(thumbnail, "thumbnail", IMAGE_EXTENSIONS))
        written.append(store.save(media, "video", VIDEO_EXTENSIONS))
        video = Video(
            user_id=owner.id,
            title=title.strip(),
            description=description,
            genre=genre,
            year=year,
            thumbnail=written[0],
            video_url=written[1],
            status=VideoStatus.PENDING.value,
        )
        db.add(video)
        db.commit()
        db.refresh(video)
    except ValidationError:
        db.rollback()
        store.cleanup(written)
        raise
    except (SQLAlchemyError, OSError) as e:
        db.rollback()
        logger.exception("Video upload failed for user %s", owner.id)
        store.cleanup(written)
        raise StorageError("Video upload failed") from e

    logger.info("Video %s submitted by user %s (pending approval)", video.id, owner.id)
    return video
