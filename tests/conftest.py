"""
Shared fixtures for the complaints API tests.

Tests run against an in-memory SQLite database. Storage is left
unconfigured so uploaded images fall back to inline data URLs, and push
delivery is disabled.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE"] = ""
os.environ["VAPID_PRIVATE_KEY"] = ""
os.environ["VAPID_PUBLIC_KEY"] = ""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_db
from app.core.security import get_current_user
from app.models import complaint as complaint_models, feedback, notification, push  # noqa: F401
from app.models.complaint import Complaint, ComplaintCategory, ComplaintStatus
from app.models.user import User, UserRole

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    """Factory fixture creating users of a given role."""
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.citizen, name: str | None = None, is_active: bool = True) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"{role.value}{n}@example.com",
            name=name or f"{role.value.replace('_', ' ').title()} {n}",
            hashed_password="not-a-real-hash",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def citizen(make_user):
    return make_user(UserRole.citizen, name="Asha")


@pytest.fixture
def officer(make_user):
    return make_user(UserRole.municipal_officer, name="Officer Rao")


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.admin, name="Admin Iyer")


@pytest.fixture
def make_complaint(db):
    """Factory fixture inserting a complaint row directly, without fan-out."""

    def _make(
        citizen: User,
        title: str = "Pothole on 5th Main",
        category: ComplaintCategory = ComplaintCategory.road,
        status: ComplaintStatus = ComplaintStatus.pending,
        created_at: datetime | None = None,
        resolved_at: datetime | None = None,
        assigned_to: User | None = None,
    ) -> Complaint:
        created_at = created_at or datetime.now(timezone.utc)
        obj = Complaint(
            title=title,
            description="Deep pothole near the bus stop",
            category=category,
            status=status,
            latitude=12.9,
            longitude=77.6,
            address="5th Main, Indiranagar",
            citizen_id=citizen.id,
            citizen_name=citizen.name,
            assigned_to_id=assigned_to.id if assigned_to else None,
            assigned_officer_name=assigned_to.name if assigned_to else None,
            created_at=created_at,
            updated_at=created_at,
            resolved_at=resolved_at,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    return _make


@pytest.fixture
def client_as(db):
    """
    Factory fixture returning a TestClient authenticated as the given user.

    The database dependency is bound to the test session.
    """
    from app.main import app

    def _override_db():
        yield db

    def _create_client(user: User | None) -> TestClient:
        app.dependency_overrides[get_db] = _override_db
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user
        else:
            app.dependency_overrides.pop(get_current_user, None)
        return TestClient(app)

    yield _create_client
    app.dependency_overrides.clear()
