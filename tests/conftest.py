import os
import tempfile
from pathlib import Path

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="contact_tool_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["SESSION_SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "dev"

from fastapi.testclient import TestClient

from src.contact_tool.database import SessionLocal, engine
from src.contact_tool.main import app
from src.contact_tool.models import Base
from src.contact_tool.models.user import User, UserRole
from src.contact_tool.services.password import hash_password

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, email: str, role: UserRole) -> User:
    user = User(
        email=email,
        name=email.split("@")[0],
        role=role,
        password_hash=hash_password(TEST_PASSWORD),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_user(db) -> User:
    return _make_user(db, "admin@acme.co.jp", UserRole.ADMIN)


@pytest.fixture
def cs_user(db) -> User:
    return _make_user(db, "cs@acme.co.jp", UserRole.CS)


@pytest.fixture
def viewer_user(db) -> User:
    return _make_user(db, "viewer@acme.co.jp", UserRole.VIEWER)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _login(client: TestClient, user: User) -> None:
    response = client.post("/api/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    assert response.status_code == 200, response.text


@pytest.fixture
def admin_client(client, admin_user):
    _login(client, admin_user)
    return client


@pytest.fixture
def cs_client(client, cs_user):
    _login(client, cs_user)
    return client


@pytest.fixture
def login_as(client):
    def _do(user: User) -> TestClient:
        _login(client, user)
        return client
    return _do
