from __future__ import annotations
from ebes.core.config import settings


def test_login_me_and_logout(client):
    res = client.post(
        "/api/v1/auth/login",
        json={"email": settings.bootstrap_admin_email.upper(), "password": settings.bootstrap_admin_password},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"

    headers = {"Authorization": f"Bearer {body['access_token']}"}
    me = client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["email"] == settings.bootstrap_admin_email

    assert client.post("/api/v1/auth/logout", headers=headers).json() == {"success": True}


def test_login_rejects_bad_password(client):
    res = client.post("/api/v1/auth/login", json={"email": settings.bootstrap_admin_email, "password": "nope"})
    assert res.status_code == 401


def test_missing_or_invalid_token_is_401(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_wrong_role_is_403(client, make_user, auth_headers):
    recruiter = make_user("recruiter")
    assert client.get("/api/v1/am/roles", headers=auth_headers(recruiter)).status_code == 403
    assert client.get("/api/v1/settings/scoring", headers=auth_headers(recruiter)).status_code == 403


def test_deactivated_user_is_403(client, db_session, make_user, auth_headers):
    manager = make_user("account_manager", email="am@example.com")
    headers = auth_headers(manager)
    manager.is_active = False
    db_session.commit()

    assert client.get("/api/v1/am/roles", headers=headers).status_code == 403
    res = client.post("/api/v1/auth/login", json={"email": "am@example.com", "password": "secret"})
    assert res.status_code == 403


def test_health(client):
    assert client.get("/api/v1/health").json()["status"] == "ok"
