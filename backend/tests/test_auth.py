"""
Authentication flow tests: register, login, refresh rotation, logout,
password reset, email verification, the current-user profile and avatar.
"""

import pytest

from tests.helpers import API, PASSWORD, auth, register, unique_email


@pytest.mark.asyncio
async def test_register_returns_token_pair(client):
    resp = await client.post(
        f"{API}/auth/register",
        json={"email": unique_email("reg"), "password": PASSWORD, "name": "Rita"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"] and body["refresh_token"]
    assert body["expires_in"] == 15 * 60


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client):
    email = unique_email("dup")
    await register(client, email)
    resp = await client.post(
        f"{API}/auth/register",
        json={"email": email.upper(), "password": PASSWORD, "name": "Again"},
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "EMAIL_TAKEN"


@pytest.mark.asyncio
async def test_register_password_needs_a_digit(client):
    resp = await client.post(
        f"{API}/auth/register",
        json={"email": unique_email("weak"), "password": "passwordonly", "name": "Weak"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    email = unique_email("login")
    await register(client, email)
    resp = await client.post(f"{API}/auth/login", json={"email": email, "password": "wrong1234"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    resp = await client.post(
        f"{API}/auth/login", json={"email": unique_email("ghost"), "password": PASSWORD}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_token(client):
    resp = await client.get(f"{API}/auth/me")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "MISSING_TOKEN"


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client):
    resp = await client.get(f"{API}/auth/me", headers=auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_me_and_profile_update(client):
    email = unique_email("me")
    token = await register(client, email, name="Mia")

    resp = await client.get(f"{API}/auth/me", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["email"] == email
    assert resp.json()["name"] == "Mia"
    assert resp.json()["welcomed"] is False

    resp = await client.patch(
        f"{API}/auth/me",
        json={"phone": "+1 555 0100", "department": "Design", "welcomed": True},
        headers=auth(token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["phone"] == "+1 555 0100"
    assert body["department"] == "Design"
    assert body["welcomed"] is True
    assert body["name"] == "Mia"


@pytest.mark.asyncio
async def test_refresh_rotates_tokens(client):
    email = unique_email("refresh")
    resp = await client.post(
        f"{API}/auth/register", json={"email": email, "password": PASSWORD, "name": "Ray"}
    )
    refresh_token = resp.json()["refresh_token"]

    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": refresh_token})
    assert resp.status_code == 200
    assert resp.json()["refresh_token"] != refresh_token

    # The old refresh token was consumed by the rotation
    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": refresh_token})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "TOKEN_REVOKED"


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client):
    token = await register(client, unique_email("wrongtype"))
    resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": token})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_logout_revokes_access_and_refresh(client):
    email = unique_email("logout")
    resp = await client.post(
        f"{API}/auth/register", json={"email": email, "password": PASSWORD, "name": "Leo"}
    )
    tokens = resp.json()

    resp = await client.post(
        f"{API}/auth/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers=auth(tokens["access_token"]),
    )
    assert resp.status_code == 200

    resp = await client.get(f"{API}/auth/me", headers=auth(tokens["access_token"]))
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "TOKEN_REVOKED"

    resp = await client.post(
        f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_forgot_password_unknown_email_is_silent(client, sent_emails):
    resp = await client.post(
        f"{API}/auth/forgot-password", json={"email": unique_email("nobody")}
    )
    assert resp.status_code == 202
    assert sent_emails["password_reset"] == []


@pytest.mark.asyncio
async def test_password_reset_flow(client, sent_emails):
    email = unique_email("reset")
    await register(client, email)

    resp = await client.post(f"{API}/auth/forgot-password", json={"email": email})
    assert resp.status_code == 202
    assert len(sent_emails["password_reset"]) == 1
    reset_token = sent_emails["password_reset"][0]["reset_token"]

    resp = await client.post(
        f"{API}/auth/reset-password",
        json={"token": reset_token, "new_password": "newpassword9"},
    )
    assert resp.status_code == 200

    resp = await client.post(f"{API}/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 401
    resp = await client.post(
        f"{API}/auth/login", json={"email": email, "password": "newpassword9"}
    )
    assert resp.status_code == 200

    # Tokens are single use
    resp = await client.post(
        f"{API}/auth/reset-password",
        json={"token": reset_token, "new_password": "another123"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_register_queues_verification_email(client, sent_emails):
    email = unique_email("verify")
    token = await register(client, email)

    assert len(sent_emails["verification"]) == 1
    assert sent_emails["verification"][0]["to_email"] == email

    resp = await client.get(f"{API}/auth/me", headers=auth(token))
    assert resp.json()["email_verified"] is False


@pytest.mark.asyncio
async def test_verify_email_flow(client, sent_emails):
    token = await register(client, unique_email("verify"))
    verify_token = sent_emails["verification"][0]["verify_token"]

    resp = await client.post(f"{API}/auth/verify-email", json={"token": verify_token})
    assert resp.status_code == 200
    assert resp.json()["email_verified"] is True

    resp = await client.get(f"{API}/auth/me", headers=auth(token))
    assert resp.json()["email_verified"] is True

    # Tokens are single use
    resp = await client.post(f"{API}/auth/verify-email", json={"token": verify_token})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_verify_email_unknown_token(client):
    resp = await client.post(f"{API}/auth/verify-email", json={"token": "not-a-real-token"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_resend_verification(client, sent_emails):
    token = await register(client, unique_email("again"))

    resp = await client.post(f"{API}/auth/resend-verification", headers=auth(token))
    assert resp.status_code == 202
    assert len(sent_emails["verification"]) == 2
    latest = sent_emails["verification"][1]["verify_token"]
    assert latest != sent_emails["verification"][0]["verify_token"]

    resp = await client.post(f"{API}/auth/verify-email", json={"token": latest})
    assert resp.status_code == 200

    resp = await client.post(f"{API}/auth/resend-verification", headers=auth(token))
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "EMAIL_ALREADY_VERIFIED"


# ---------------------------------------------------------------------------
# Avatar
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_avatar_upload_sets_avatar_url(client, fake_storage):
    token = await register(client, unique_email("avatar"))

    resp = await client.post(
        f"{API}/auth/me/avatar",
        files={"file": ("me.png", b"\x89PNG fake image bytes", "image/png")},
        headers=auth(token),
    )
    assert resp.status_code == 200
    avatar_url = resp.json()["avatar_url"]
    assert avatar_url.startswith("https://cdn.test/profile-pictures/")
    assert fake_storage.uploads[-1]["filename"] == "me.png"

    resp = await client.get(f"{API}/auth/me", headers=auth(token))
    assert resp.json()["avatar_url"] == avatar_url


@pytest.mark.asyncio
async def test_avatar_upload_rejects_non_image(client, fake_storage):
    token = await register(client, unique_email("avatar"))

    resp = await client.post(
        f"{API}/auth/me/avatar",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth(token),
    )
    assert resp.status_code == 415
    assert resp.json()["detail"]["code"] == "INVALID_FILE_TYPE"
    assert fake_storage.uploads == []


@pytest.mark.asyncio
async def test_avatar_upload_too_large(client, fake_storage):
    token = await register(client, unique_email("avatar"))
    too_big = b"\x00" * (2 * 1024 * 1024 + 1)
    resp = await client.post(
        f"{API}/auth/me/avatar",
        files={"file": ("big.png", too_big, "image/png")},
        headers=auth(token),
    )
    assert resp.status_code == 413
    assert resp.json()["detail"]["code"] == "FILE_TOO_LARGE"


@pytest.mark.asyncio
async def test_avatar_upload_requires_auth(client):
    resp = await client.post(
        f"{API}/auth/me/avatar",
        files={"file": ("me.png", b"png", "image/png")},
    )
    assert resp.status_code == 401
