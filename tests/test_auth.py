# tests/test_auth.py
import pytest

from app.repositories import users as users_repo
from app.services import auth as auth_service
from conftest import PASSWORD


@pytest.mark.asyncio
async def test_register_login_and_me(client):
    r = await client.post("/auth/register", json={
        "firstName": "Sam", "lastName": "Lee", "email": "Sam.Lee@Acme.io", "password": PASSWORD,
    })
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "success"
    user = body["data"]["user"]
    assert user["email"] == "sam.lee@acme.io"
    assert user["role"] == "candidate"
    assert "passwordHash" not in user and "password_hash" not in user
    assert body["data"]["token"] and body["data"]["refreshToken"]

    r2 = await client.post("/auth/login", json={"email": "sam.lee@acme.io", "password": PASSWORD})
    assert r2.status_code == 200
    token = r2.json()["data"]["token"]
    assert r2.json()["data"]["user"]["lastLogin"] is not None

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["data"]["user"]["id"] == user["id"]
    assert me.json()["data"]["savedJobs"] == []


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(client, register):
    await register(email="dup@acme.io")
    r = await client.post("/auth/register", json={
        "firstName": "Jane", "lastName": "Doe", "email": "dup@acme.io", "password": PASSWORD,
    })
    assert r.status_code == 409
    assert r.json()["status"] == "fail"
    assert r.json()["code"] == "CONFLICT"


@pytest.mark.asyncio
@pytest.mark.parametrize("password", ["short1!", "alllowercase1!", "NoDigits!!", "NoSpecial123"])
async def test_weak_passwords_are_rejected(client, password):
    r = await client.post("/auth/register", json={
        "firstName": "Jane", "lastName": "Doe", "email": "weak@acme.io", "password": password,
    })
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_FAILED"
    assert any(e.startswith("password") for e in r.json()["errors"])


@pytest.mark.asyncio
async def test_admin_role_cannot_be_self_assigned(client):
    r = await client.post("/auth/register", json={
        "firstName": "Eve", "lastName": "Root", "email": "eve@acme.io", "password": PASSWORD, "role": "admin",
    })
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_wrong_password_is_unauthenticated(client, register):
    user = await register()
    r = await client.post("/auth/login", json={"email": user["email"], "password": "Wrong123!"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_is_rate_limited_after_repeated_failures(client, register, fake_redis):
    user = await register()
    for _ in range(5):
        r = await client.post("/auth/login", json={"email": user["email"], "password": "Wrong123!"})
        assert r.status_code == 401

    # even the right password is refused until the window expires
    r = await client.post("/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert r.status_code == 429
    assert r.json()["code"] == "RATE_LIMITED"
    assert "15 minutes" in r.json()["message"]

    fake_redis.values.clear()
    r = await client.post("/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_successful_login_resets_failure_count(client, register, fake_redis):
    user = await register()
    for _ in range(3):
        await client.post("/auth/login", json={"email": user["email"], "password": "Wrong123!"})
    r = await client.post("/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert r.status_code == 200
    assert fake_redis.values == {}


@pytest.mark.asyncio
async def test_refresh_token_exchange(client, register):
    user = await register()
    r = await client.post("/auth/refresh-token", json={"refreshToken": user["refresh_token"]})
    assert r.status_code == 200
    new_token = r.json()["data"]["token"]
    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {new_token}"})
    assert me.status_code == 200

    # an access token is not a refresh token
    r = await client.post("/auth/refresh-token", json={"refreshToken": user["token"]})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_protected_routes_require_a_valid_token(client):
    r = await client.get("/auth/me")
    assert r.status_code == 401
    assert r.json()["code"] == "UNAUTHENTICATED"

    r = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_deactivated_account_cannot_log_in(client, register):
    user = await register()
    await users_repo.update_user(user["id"], {"is_active": False})
    r = await client.post("/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert r.status_code == 401
    me = await client.get("/auth/me", headers=user["headers"])
    assert me.status_code == 401


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client, register):
    user = await register()
    r = await client.post("/auth/forgot-password", json={"email": "nobody@acme.io"})
    assert r.status_code == 200
    assert "data" not in r.json()

    token = await auth_service.forgot_password(user["email"])
    stored = await users_repo.get_user(user["id"])
    assert stored.password_reset_token and stored.password_reset_token != token

    r = await client.post("/auth/reset-password", json={"token": token, "password": "NewSecret9$"})
    assert r.status_code == 200
    assert r.json()["data"]["token"]

    # single use
    r = await client.post("/auth/reset-password", json={"token": token, "password": "Other123$x"})
    assert r.status_code == 400

    r = await client.post("/auth/login", json={"email": user["email"], "password": "NewSecret9$"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_logout(client, register):
    user = await register()
    r = await client.post("/auth/logout", headers=user["headers"])
    assert r.status_code == 200
    assert r.json() == {"status": "success", "message": "Logout successful"}
