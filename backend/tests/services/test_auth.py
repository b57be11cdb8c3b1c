"""Auth Routes — signup, login, bearer sessions and account status.

Invariants:
    - Signup returns a token once; /me resolves it
    - Missing/invalid/revoked tokens → 401 with the {error, status} envelope
    - Suspended accounts cannot log in or use existing sessions (403)
"""

from sqlalchemy import select

from venturenet.models.auth_session import AuthSession
from venturenet.models.profile import Profile
from venturenet.services.auth_service import hash_password, verify_password


async def _signup(client, email="founder@example.com", role="startup"):
    return await client.post("/api/v1/auth/signup", json={
        "email": email, "password": "s3cret-pass", "role": role, "full_name": "Ada Founder",
    })


async def test_signup_returns_session(client):
    res = await _signup(client)
    assert res.status_code == 201
    body = res.json()
    assert body["status"] == 201
    assert body["data"]["token"]
    assert body["data"]["profile"]["role"] == "startup"
    assert body["data"]["profile"]["email"] == "founder@example.com"


async def test_signup_normalizes_email_and_rejects_duplicate(client):
    await _signup(client, email="Founder@Example.com")
    res = await _signup(client, email="founder@example.com")
    assert res.status_code == 400
    assert res.json()["error"] == "Email already registered"
    assert res.json()["status"] == 400


async def test_signup_cannot_create_admin(client):
    res = await _signup(client, role="admin")
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


async def test_token_is_stored_as_digest(client, test_db):
    res = await _signup(client)
    token = res.json()["data"]["token"]
    digests = (await test_db.execute(select(AuthSession.token_digest))).scalars().all()
    assert len(digests) == 1
    assert digests[0] != token


async def test_login_and_me(client, auth):
    await _signup(client)
    res = await client.post("/api/v1/auth/login", json={
        "email": "founder@example.com", "password": "s3cret-pass",
    })
    assert res.status_code == 200
    token = res.json()["data"]["token"]

    me = await client.get("/api/v1/auth/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["data"]["profile"]["full_name"] == "Ada Founder"
    assert me.json()["data"]["role_profile"] is None


async def test_login_wrong_password(client):
    await _signup(client)
    res = await client.post("/api/v1/auth/login", json={
        "email": "founder@example.com", "password": "nope-nope",
    })
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid email or password"


async def test_missing_token_is_401(client):
    res = await client.get("/api/v1/auth/me")
    assert res.status_code == 401
    assert res.json()["status"] == 401


async def test_unknown_token_is_401(client, auth):
    res = await client.get("/api/v1/auth/me", headers=auth("not-a-real-token"))
    assert res.status_code == 401
    assert res.json()["error"] == "Invalid or expired session"


async def test_logout_revokes_token(client, make_user, auth):
    _, token = await make_user("mentor")
    res = await client.post("/api/v1/auth/logout", headers=auth(token))
    assert res.status_code == 200
    again = await client.get("/api/v1/auth/me", headers=auth(token))
    assert again.status_code == 401


async def test_suspended_user_is_locked_out(client, make_user, auth, test_db):
    profile, token = await make_user("investor")
    await test_db.execute(
        Profile.__table__.update().where(Profile.id == profile.id).values(status="suspended"),
    )
    await test_db.commit()
    res = await client.get("/api/v1/auth/me", headers=auth(token))
    assert res.status_code == 403
    assert res.json()["error"] == "Account is suspended"


async def test_signup_stores_scrypt_hash(client, test_db):
    await _signup(client)
    stored = (await test_db.execute(select(Profile.password_hash))).scalar_one()
    assert stored.startswith("scrypt:")
    assert "s3cret-pass" not in stored


def test_verify_password_accepts_other_stored_methods():
    stored = hash_password("pw-123456", method="pbkdf2:sha256:1000")
    assert verify_password("pw-123456", stored)
    assert not verify_password("wrong", stored)
