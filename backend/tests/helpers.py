"""
Request helpers shared by the API tests.
"""

import uuid

import httpx

API = "/api/v1"
PASSWORD = "password123"


def unique_email(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(
    client: httpx.AsyncClient,
    email: str,
    password: str = PASSWORD,
    name: str = "Test User",
) -> str:
    """Register a user and return their access token."""
    resp = await client.post(
        f"{API}/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert resp.status_code == 201, f"Register failed: {resp.text}"
    return resp.json()["access_token"]


async def create_org(client: httpx.AsyncClient, token: str, name: str = "Acme Agency") -> dict:
    resp = await client.post(f"{API}/organizations", json={"name": name}, headers=auth(token))
    assert resp.status_code == 201, f"Create org failed: {resp.text}"
    return resp.json()


async def invite(
    client: httpx.AsyncClient,
    token: str,
    org_id: str,
    email: str,
    role: str = "member",
) -> dict:
    resp = await client.post(
        f"{API}/organizations/{org_id}/invites",
        json={"email": email, "role": role},
        headers=auth(token),
    )
    assert resp.status_code == 201, f"Invite failed: {resp.text}"
    return resp.json()


async def accept(
    client: httpx.AsyncClient,
    invite_token: str,
    password: str = PASSWORD,
    name: str = "Invited User",
) -> httpx.Response:
    return await client.post(
        f"{API}/invites/{invite_token}/accept",
        json={"name": name, "password": password, "confirm_password": password},
    )


async def owner_with_org(client: httpx.AsyncClient, prefix: str = "owner") -> tuple[str, dict]:
    """Register an owner and create their organization. Returns (token, org)."""
    token = await register(client, unique_email(prefix), name="Olivia Owner")
    org = await create_org(client, token)
    return token, org


async def add_member(
    client: httpx.AsyncClient,
    owner_token: str,
    org_id: str,
    role: str = "member",
    prefix: str = "member",
) -> tuple[str, dict]:
    """Invite a fresh email and accept it. Returns (token, accept response body)."""
    email = unique_email(prefix)
    created = await invite(client, owner_token, org_id, email, role)
    resp = await accept(client, created["token"])
    assert resp.status_code == 200, f"Accept failed: {resp.text}"
    body = resp.json()
    return body["access_token"], body


async def member_user_id(client: httpx.AsyncClient, token: str) -> str:
    resp = await client.get(f"{API}/auth/me", headers=auth(token))
    assert resp.status_code == 200
    return resp.json()["id"]
