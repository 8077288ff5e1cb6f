"""
Shared fixtures: in-memory database, fake Redis and dependency overrides.
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="parley-static-"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parley.core.security import TokenIssuer, get_password_hash
from parley.db.base import Base
from parley.db.cache import VerificationCache, get_cache
from parley.db.session import get_db
from parley.main import app
from parley.models.user import User, UserRole
from parley.services.email_service import EmailSender, get_mailer
from parley.services.storage_service import AvatarStorage, get_storage

import parley.models  # noqa: F401

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "password123"


class RecordingMailer(EmailSender):
    """Keeps sent codes in memory instead of talking to SMTP."""

    def __init__(self):
        super().__init__(host="")
        self.sent = []

    def send(self, to_address: str, code: str) -> None:
        self.sent.append((to_address, code))

    def last_code(self, to_address: str) -> str:
        return [code for address, code in self.sent if address == to_address][-1]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    return VerificationCache(fakeredis.FakeRedis(decode_responses=True))


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def storage(tmp_path):
    return AvatarStorage(base_dir=str(tmp_path / "img"))


@pytest.fixture
def client(db, cache, mailer, storage):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory creating users directly in the database."""
    def _make_user(username: str, email: str = None, password: str = DEFAULT_PASSWORD, role=UserRole.MEMBER):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=get_password_hash(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth_headers(user: User) -> dict:
    """Bearer header for ``user``."""
    return {"Authorization": f"Bearer {TokenIssuer().issue({'id': user.id})}"}


def befriend(client: TestClient, sender: User, receiver: User) -> dict:
    """Send and accept a friend request, returning the accepted edge."""
    response = client.post(
        "/api/v1/friends/send-request",
        json={"email": receiver.email},
        headers=auth_headers(sender)
    )
    assert response.status_code == 201
    request_id = response.json()["id"]
    response = client.patch(f"/api/v1/friends/{request_id}/accept", headers=auth_headers(receiver))
    assert response.status_code == 200
    return response.json()
