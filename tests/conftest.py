"""
Shared fixtures: an in-memory database per test, a TestClient bound to it,
and an adapter that lets the client data layer talk to the app in-process.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from daily_review.auth import create_session_token, hash_password, username_to_email
from daily_review.database import Base, get_db, init_db
from daily_review.main import app
from daily_review.models import InviteCode, User, UserProfile
from daily_review.routes.review import get_report_generator
from daily_review.services.review_service import ReviewReportGenerator


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(db_factory):
    session = db_factory()
    yield session
    session.close()


def offline_generator():
    """Generator that never calls upstream and always renders the fallback."""
    generator = ReviewReportGenerator()
    generator.client = None
    return generator


@pytest.fixture
def client(db_factory):
    def override_get_db():
        session = db_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_report_generator] = offline_generator
    # Not used as a context manager, so the startup hook never touches a real database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(username="alice", password="secret123", with_profile=True):
        user = User(
            email=username_to_email(username),
            username=username,
            password_hash=hash_password(password),
        )
        db.add(user)
        db.flush()
        if with_profile:
            db.add(UserProfile(id=user.id, display_name=username, username=username.lower()))
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_invite(db):
    def _make_invite(code="WELCOME1", is_used=False):
        invite = InviteCode(code=code, is_used=is_used)
        db.add(invite)
        db.commit()
        db.refresh(invite)
        return invite
    return _make_invite


@pytest.fixture
def auth_header():
    def _auth_header(user):
        return {"Authorization": f"Bearer {create_session_token(user.id)}"}
    return _auth_header


class TestClientHttp:
    """requests-style ``http`` object for ApiClient backed by a TestClient."""

    def __init__(self, client):
        self.client = client

    def request(self, method, url, timeout=None, **kwargs):
        return self.client.request(method, url, **kwargs)


@pytest.fixture
def http(client):
    return TestClientHttp(client)
