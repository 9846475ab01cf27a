"""
Shared pytest fixtures.

The application engine is pointed at an in-memory SQLite database before
the package is imported; every test gets freshly created tables.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import email_validator  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from telecalling.core.config import settings  # noqa: E402
from telecalling.core.database import Base, SessionLocal, engine  # noqa: E402
from telecalling.core.security import hash_password, issue_token_for  # noqa: E402
from telecalling.main import app  # noqa: E402
from telecalling.models import Interaction, InteractionType, Lead, User, UserRole  # noqa: E402


# Fixture addresses use the reserved .test TLD, which email-validator only
# accepts in its documented test mode
email_validator.TEST_ENVIRONMENT = True

PASSWORD = "password123"
# Hashing is slow on purpose; hash once for every fixture user
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


# =============================================================================
# Factories
# =============================================================================

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.AGENT, name: str = None, email: str = None) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"{role.value.title()} {n}",
            email=email or f"{role.value}{n}@college.test",
            password_hash=PASSWORD_HASH,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_lead(db):
    counter = {"n": 0}

    def _make(assigned_to: User = None, **fields) -> Lead:
        counter["n"] += 1
        n = counter["n"]
        values = {
            "name": f"Student {n}",
            "email": f"student{n}@mail.test",
            "phone": f"98765{n:05d}",
            "course_interested": "B.Tech",
        }
        values.update(fields)
        lead = Lead(assigned_to=assigned_to.id if assigned_to else None, **values)
        db.add(lead)
        db.commit()
        db.refresh(lead)
        return lead

    return _make


@pytest.fixture
def make_interaction(db):
    def _make(lead: Lead, agent: User, **fields) -> Interaction:
        values = {
            "type": InteractionType.CALL,
            "remarks": "Spoke to student",
            "status_before": lead.status,
            "status_after": lead.status,
        }
        values.update(fields)
        interaction = Interaction(lead_id=lead.id, agent_id=agent.id if agent else None, **values)
        db.add(interaction)
        db.commit()
        db.refresh(interaction)
        return interaction

    return _make


# =============================================================================
# Users & auth headers
# =============================================================================

def auth_headers(user: User) -> dict:
    return {"x-auth-token": issue_token_for(user)}


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, name="Admin", email="admin@college.test")


@pytest.fixture
def agent(make_user):
    return make_user(UserRole.AGENT, name="Asha Agent", email="asha@college.test")


@pytest.fixture
def other_agent(make_user):
    return make_user(UserRole.AGENT, name="Omar Agent", email="omar@college.test")


@pytest.fixture
def lead_user(make_user):
    return make_user(UserRole.LEAD, name="Lena Lead", email="lena@college.test")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def agent_headers(agent):
    return auth_headers(agent)


@pytest.fixture
def other_agent_headers(other_agent):
    return auth_headers(other_agent)


@pytest.fixture
def lead_user_headers(lead_user):
    return auth_headers(lead_user)


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def password():
    return PASSWORD
