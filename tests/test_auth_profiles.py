from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from stockroom.models.enums import AppRole
from stockroom.models.identity import Identity, Profile
from stockroom.services import lifecycle_hooks
from stockroom.services.identity_service import create_identity
from stockroom.services.lifecycle_hooks import IDENTITY_CREATED, LifecycleHooks, provision_profile


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_register_provisions_exactly_one_profile(test_context):
    client, session_local = test_context

    res = client.post(
        "/auth/register",
        json={"email": "Alice@Example.com", "password": "password123", "full_name": "Alice"},
    )
    assert res.status_code == 200, res.text
    token = res.json()["access_token"]

    me = client.get("/auth/me", headers=_auth_headers(token))
    assert me.status_code == 200, me.text
    body = me.json()
    assert body["full_name"] == "Alice"
    assert body["email"] == "alice@example.com"
    assert body["roles"] == []

    with session_local() as db:
        identity = db.execute(select(Identity)).scalar_one()
        assert body["id"] == identity.id
        assert db.execute(select(func.count()).select_from(Profile)).scalar_one() == 1


def test_register_without_full_name_gets_empty_name(test_context):
    client, _ = test_context

    res = client.post("/auth/register", json={"email": "noname@example.com", "password": "password123"})
    assert res.status_code == 200, res.text

    me = client.get("/auth/me", headers=_auth_headers(res.json()["access_token"]))
    assert me.status_code == 200
    assert me.json()["full_name"] == ""


def test_duplicate_email_is_rejected_case_insensitively(test_context):
    client, _ = test_context

    first = client.post("/auth/register", json={"email": "dup@example.com", "password": "password123"})
    assert first.status_code == 200
    second = client.post("/auth/register", json={"email": "DUP@example.com", "password": "password123"})
    assert second.status_code == 400
    assert second.json()["error"]["message"] == "Email already registered"


def test_login_and_token_endpoints(test_context):
    client, _ = test_context
    client.post("/auth/register", json={"email": "bob@example.com", "password": "password123"})

    login = client.post("/auth/login", json={"email": "bob@example.com", "password": "password123"})
    assert login.status_code == 200
    assert login.json()["token_type"] == "bearer"

    form = client.post("/auth/token", data={"username": "bob@example.com", "password": "password123"})
    assert form.status_code == 200

    bad = client.post("/auth/login", json={"email": "bob@example.com", "password": "wrong-password"})
    assert bad.status_code == 401
    assert bad.json()["error"]["code"] == "unauthorized"


def test_me_requires_token(test_context):
    client, _ = test_context

    res = client.get("/auth/me")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "unauthorized"

    res = client.get("/auth/me", headers=_auth_headers("not-a-token"))
    assert res.status_code == 401


def test_me_reports_resolved_roles(test_context, login_as):
    client, _ = test_context
    _, headers = login_as("mgr@example.com", AppRole.MANAGER, AppRole.STAFF)

    res = client.get("/auth/me", headers=headers)
    assert res.status_code == 200
    assert res.json()["roles"] == ["manager", "staff"]


def test_profile_update_stamps_updated_at(test_context, login_as, monkeypatch):
    client, session_local = test_context
    user_id, headers = login_as("carol@example.com", full_name="Carol")
    stamped = datetime(2030, 1, 1, tzinfo=timezone.utc)
    monkeypatch.setattr(lifecycle_hooks, "utcnow", lambda: stamped)

    res = client.patch("/auth/me", json={"full_name": "  Carol Jones "}, headers=headers)
    assert res.status_code == 200, res.text
    assert res.json()["full_name"] == "Carol Jones"

    with session_local() as db:
        profile = db.get(Profile, user_id)
        assert profile.full_name == "Carol Jones"
        assert profile.updated_at.replace(tzinfo=timezone.utc) == stamped
        assert profile.created_at.replace(tzinfo=timezone.utc) != stamped


def test_failed_provisioning_rolls_back_identity(test_context):
    _, session_local = test_context
    lifecycle = LifecycleHooks()
    lifecycle.register(IDENTITY_CREATED, provision_profile)

    def explode(db, identity):
        raise RuntimeError("profile store unavailable")

    lifecycle.register(IDENTITY_CREATED, explode)

    with session_local() as db:
        with pytest.raises(RuntimeError):
            create_identity(db, email="ghost@example.com", password="password123", lifecycle=lifecycle)
        db.rollback()

    with session_local() as db:
        assert db.execute(select(func.count()).select_from(Identity)).scalar_one() == 0
        assert db.execute(select(func.count()).select_from(Profile)).scalar_one() == 0


def test_deleting_identity_cascades_to_profile(test_context, login_as):
    _, session_local = test_context
    user_id, _ = login_as("leaver@example.com", AppRole.STAFF)

    with session_local() as db:
        db.delete(db.get(Identity, user_id))
        db.commit()

    with session_local() as db:
        assert db.get(Profile, user_id) is None
