import pytest

from app.models.audit_log import AuditLog

pytestmark = pytest.mark.asyncio

USER = {"name": "Misty", "email": "Misty@Example.com", "password": "starmie"}


async def test_signup_creates_user_and_session(client):
    r = await client.post("/api/auth/signup", json=USER)
    assert r.status_code == 201
    body = r.json()
    assert body["email"] == "misty@example.com"
    assert body["role"] == "user"
    assert "password" not in body and "password_hash" not in body
    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["id"] == body["id"]
    assert await AuditLog.find(AuditLog.event_type == "user_created").count() == 1


async def test_signup_duplicate_email(client):
    await client.post("/api/auth/signup", json=USER)
    r = await client.post("/api/auth/signup", json={**USER, "email": "misty@example.com"})
    assert r.status_code == 409
    assert r.json()["error"]["message"] == "Email already registered"


async def test_signup_missing_fields(client):
    r = await client.post("/api/auth/signup", json={"email": "a@b.c"})
    assert r.status_code == 400


async def test_login_does_not_reveal_which_part_failed(client):
    await client.post("/api/auth/signup", json=USER)
    wrong_password = await client.post("/api/auth/login", json={"email": USER["email"], "password": "nope"})
    unknown_email = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "nope"})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json()["error"]["message"] == unknown_email.json()["error"]["message"]


async def test_login_ok_and_logout(client):
    await client.post("/api/auth/signup", json=USER)
    await client.post("/api/auth/logout")
    assert (await client.get("/api/auth/me")).status_code == 401
    r = await client.post("/api/auth/login", json={"email": "MISTY@example.com", "password": USER["password"]})
    assert r.status_code == 200
    assert r.json()["email"] == "misty@example.com"
    assert (await client.get("/api/auth/me")).status_code == 200


async def test_login_missing_credentials(client):
    r = await client.post("/api/auth/login", json={"email": "misty@example.com"})
    assert r.status_code == 400
