"""
Pytest configuration and fixtures.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DEBUG"] = "false"

import pytest
from fastapi.testclient import TestClient

import campusops.models  # noqa: F401
from campusops.core.security import hash_password
from campusops.db.base import Base
from campusops.db.seeds.seed_roles import seed_roles
from campusops.db.session import SessionLocal, engine
from campusops.models.user import User


@pytest.fixture
def db():
    """Fresh schema per test on the shared in-memory engine."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def roles(db):
    """Seeded role matrix as {role name: Role}."""
    from campusops.services.role_service import role_service

    ids = seed_roles(db)
    return {name: role_service.get_role(db, role_id) for name, role_id in ids.items()}


@pytest.fixture
def make_user(db, roles):
    def _make(email, role="STUDENT", password="pw", is_active=True, name=None):
        user = User(
            email=email.lower(),
            name=name or email.split("@")[0],
            hashed_password=hash_password(password),
            role_id=roles[role].id,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin@campus.edu", role="PROGRAM_OFFICE")


@pytest.fixture
def student(make_user):
    return make_user("student@campus.edu", role="STUDENT")


@pytest.fixture
def client(db):
    from campusops.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    """Log in through the API and return bearer headers for that user."""
    def _headers(email, password="pw"):
        resp = client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['token']}"}
    return _headers
