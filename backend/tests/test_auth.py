"""Login, token handling and public registration."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from telecalling.core.config import settings
from telecalling.core.security import TOKEN_ALGORITHM, issue_token_for, read_token_subject, sign_session_token
from telecalling.models import User, UserRole


def test_login_returns_token_and_user(client, agent, password):
    resp = client.post("/api/auth", json={"email": agent.email, "password": password})

    assert resp.status_code == 200
    body = resp.json()
    assert body["token"]
    assert body["user"]["email"] == agent.email
    assert body["user"]["role"] == "agent"
    assert "passwordHash" not in body["user"]


def test_login_email_is_case_insensitive(client, agent, password):
    resp = client.post("/api/auth", json={"email": agent.email.upper(), "password": password})
    assert resp.status_code == 200


def test_login_failure_does_not_say_which_field(client, agent, password):
    wrong_password = client.post("/api/auth", json={"email": agent.email, "password": "nope-nope"})
    unknown_email = client.post("/api/auth", json={"email": "ghost@college.test", "password": password})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"msg": "Invalid credentials"}


def test_current_user(client, agent, agent_headers):
    resp = client.get("/api/auth", headers=agent_headers)

    assert resp.status_code == 200
    assert resp.json()["id"] == str(agent.id)


def test_bearer_header_is_accepted(client, agent, agent_headers):
    token = agent_headers["x-auth-token"]
    resp = client.get("/api/auth", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200


def test_missing_token(client):
    resp = client.get("/api/auth")

    assert resp.status_code == 401
    assert resp.json() == {"msg": "No token, authorization denied"}


def test_garbage_token(client):
    resp = client.get("/api/auth", headers={"x-auth-token": "not-a-jwt"})

    assert resp.status_code == 401
    assert resp.json() == {"msg": "Token is not valid"}


def test_expired_token(client, agent):
    token = issue_token_for(agent, expires_in=timedelta(minutes=-5))
    resp = client.get("/api/auth", headers={"x-auth-token": token})

    assert resp.status_code == 401
    assert resp.json() == {"msg": "Token is not valid"}


def test_token_for_deleted_user_is_rejected(client, db, agent, agent_headers):
    db.delete(agent)
    db.commit()

    resp = client.get("/api/auth", headers=agent_headers)

    assert resp.status_code == 401
    assert resp.json() == {"msg": "Token is not valid"}


def test_role_comes_from_the_database_not_the_token(client, agent):
    forged = sign_session_token({"sub": str(agent.id), "role": "admin"})
    resp = client.get("/api/users", headers={"x-auth-token": forged})
    assert resp.status_code == 403


def test_token_subject_is_the_user_id(agent):
    assert read_token_subject(issue_token_for(agent)) == agent.id


def test_signing_always_stamps_session_type(agent):
    token = sign_session_token({"sub": str(agent.id), "type": "reset"})
    assert read_token_subject(token) == agent.id


def test_non_session_jwt_is_rejected(client, agent):
    other_purpose = jwt.encode(
        {"sub": str(agent.id), "type": "reset", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        settings.secret_key,
        algorithm=TOKEN_ALGORITHM,
    )

    assert read_token_subject(other_purpose) is None
    resp = client.get("/api/auth", headers={"x-auth-token": other_purpose})
    assert resp.status_code == 401
    assert resp.json() == {"msg": "Token is not valid"}


def test_non_uuid_subject_is_rejected(client):
    token = sign_session_token({"sub": "admin@college.test"})

    assert read_token_subject(token) is None
    assert client.get("/api/auth", headers={"x-auth-token": token}).status_code == 401


# =============================================================================
# Registration
# =============================================================================

def test_register_agent(client, db):
    resp = client.post(
        "/api/auth/register",
        json={"name": "New Agent", "email": "new@college.test", "password": "secret1", "role": "agent"},
    )

    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "agent"
    user = db.query(User).filter(User.email == "new@college.test").one()
    assert user.role == UserRole.AGENT
    assert user.password_hash != "secret1"


def test_register_cannot_create_admin(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Sneaky", "email": "sneaky@college.test", "password": "secret1", "role": "admin"},
    )

    assert resp.status_code == 400
    assert resp.json()["errors"][0]["param"] == "role"


def test_register_duplicate_email(client, agent):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Copy", "email": agent.email, "password": "secret1", "role": "agent"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"errors": [{"msg": "User already exists", "param": "email"}]}


def test_register_validation_errors(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "", "email": "not-an-email", "password": "123", "role": "agent"},
    )

    assert resp.status_code == 400
    params = {e["param"] for e in resp.json()["errors"]}
    assert params == {"name", "email", "password"}
