# tests/conftest.py
import os
import sys
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
sys.path.append(os.path.abspath("."))

from contact_manager.database import Base, get_db
from contact_manager.core import get_settings
from contact_manager.images import get_image_service
from contact_manager.limits import login_limiter, register_limiter
from contact_manager.mail import get_email_service
from contact_manager.models import Provider, User
from contact_manager.security import get_password_hash
from main import app


# DB (SQLite in-memory for tests)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session", autouse=True)
def adjust_settings_env():
    settings = get_settings()
    settings.CLOUDINARY_URL = None
    settings.BASE_URL = "http://testserver"
    return settings


class FakeEmailService:
    """Records emails instead of sending them."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []

    def send_email(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))


class FakeImageService:
    """Pretends to upload pictures."""

    def __init__(self):
        self.uploads: list[str] = []

    def upload_image(self, file, public_id: str) -> str:
        self.uploads.append(public_id)
        return f"https://images.example.com/{public_id}.png"


@pytest.fixture()
def mailer():
    return FakeEmailService()


@pytest.fixture()
def images():
    return FakeImageService()


# Client fixture: override DB and outside collaborators per test
@pytest.fixture()
def client(db_session, mailer, images):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: mailer
    app.dependency_overrides[get_image_service] = lambda: images
    app.dependency_overrides[login_limiter] = lambda: None
    app.dependency_overrides[register_limiter] = lambda: None

    c = TestClient(app)
    try:
        yield c
    finally:
        app.dependency_overrides.clear()
        c.close()


def create_user(
    db_session,
    email="user@example.com",
    password="secret123",
    enabled=True,
    provider=Provider.SELF,
    name="Test User",
):
    user = User(
        id=str(uuid.uuid4()),
        name=name,
        email=email,
        password=get_password_hash(password),
        about="about me",
        phone_number="1234567890",
        enabled=enabled,
        email_verified=enabled,
        provider=provider,
        email_token=str(uuid.uuid4()),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def login(client, email, password="secret123"):
    response = client.post(
        "/authenticate",
        data={"email": email, "password": password},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/user/profile"
    return response
