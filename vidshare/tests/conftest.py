"""
Test configuration and fixtures
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vidshare.auth import create_access_token, hash_password
from vidshare.database import Base, build_engine, get_db
from vidshare.main import app
from vidshare.models.user import User, UserRole
from vidshare.models.video import Video, VideoStatus
from vidshare.services.storage import LocalFileStore, get_file_store

TEST_PASSWORD = "secret123"


@pytest.fixture
def test_engine():
    """In-memory SQLite built with the production engine factory"""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(test_engine):
    """One session shared by fixtures and request handlers"""
    session = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)()
    yield session
    session.close()


@pytest.fixture
def store(tmp_path) -> LocalFileStore:
    return LocalFileStore(tmp_path / "uploads", url_prefix="/uploads", max_bytes=1024 * 1024)


@pytest.fixture
def client(db, store):
    """Test client with database and file store overrides (lifespan is not run)"""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.USER, is_banned: bool = False, first_name: str = "Test") -> User:
        counter["n"] += 1
        user = User(
            first_name=first_name,
            last_name=f"User{counter['n']}",
            email=f"{role.value.lower()}{counter['n']}@example.com",
            password=hash_password(TEST_PASSWORD),
            role=role.value,
            is_banned=is_banned,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def test_user(make_user) -> User:
    return make_user(first_name="Viewer")


@pytest.fixture
def creator(make_user) -> User:
    return make_user(first_name="Creator")


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user(UserRole.ADMIN, first_name="Admin")


@pytest.fixture
def super_admin(make_user) -> User:
    return make_user(UserRole.SUPER_ADMIN, first_name="Root")


@pytest.fixture
def make_video(db, creator):
    def _make(owner: User | None = None, status: VideoStatus = VideoStatus.APPROVED, title: str = "Clip", **kwargs) -> Video:
        video = Video(
            user_id=(owner or creator).id,
            title=title,
            thumbnail="/uploads/thumbnail-test.png",
            video_url="/uploads/video-test.mp4",
            status=status.value,
            year=2021,
            **kwargs,
        )
        db.add(video)
        db.commit()
        db.refresh(video)
        return video

    return _make


@pytest.fixture
def video(make_video) -> Video:
    return make_video()


@pytest.fixture
def auth_headers():
    """Bearer header for a user"""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _headers
