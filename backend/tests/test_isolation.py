"""
Cross-tenant isolation and security tests.

Verifies that:
- Users cannot access resources from other organizations
- Resource ids from another organization resolve to 404 inside your own
- Role enforcement works correctly within an org
- Invitation tokens cannot be reused
- Removed members lose access immediately
"""

import pytest

from tests.helpers import (
    API,
    accept,
    add_member,
    auth,
    invite,
    member_user_id,
    owner_with_org,
    unique_email,
)


async def two_orgs(client) -> tuple[str, dict, str, dict]:
    """Returns (token_a, org_a, token_b, org_b) for two unrelated owners."""
    token_a, org_a = await owner_with_org(client, prefix="orga")
    token_b, org_b = await owner_with_org(client, prefix="orgb")
    return token_a, org_a, token_b, org_b


# ---------------------------------------------------------------------------
# 1. Basic Cross-Org Isolation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cannot_access_other_org(client):
    token_a, _, _, org_b = await two_orgs(client)

    resp = await client.get(f"{API}/organizations/{org_b['id']}", headers=auth(token_a))
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NOT_A_MEMBER"


@pytest.mark.asyncio
async def test_cannot_list_other_org_members(client):
    token_a, _, _, org_b = await two_orgs(client)

    resp = await client.get(f"{API}/organizations/{org_b['id']}/members", headers=auth(token_a))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_unauthenticated_request_rejected(client):
    _, org = await owner_with_org(client)
    resp = await client.get(f"{API}/organizations/{org['id']}")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_orgs_only_shows_own(client):
    token_a, org_a, _, _ = await two_orgs(client)

    resp = await client.get(f"{API}/organizations", headers=auth(token_a))
    assert [o["id"] for o in resp.json()["organizations"]] == [org_a["id"]]


# ---------------------------------------------------------------------------
# 2. Resource Isolation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cannot_list_other_org_tasks(client):
    token_a, _, token_b, org_b = await two_orgs(client)
    await client.post(
        f"{API}/organizations/{org_b['id']}/tasks",
        json={"title": "Secret"},
        headers=auth(token_b),
    )

    resp = await client.get(f"{API}/organizations/{org_b['id']}/tasks", headers=auth(token_a))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_foreign_task_id_is_not_found_in_own_org(client):
    token_a, org_a, token_b, org_b = await two_orgs(client)
    foreign = (
        await client.post(
            f"{API}/organizations/{org_b['id']}/tasks",
            json={"title": "Secret"},
            headers=auth(token_b),
        )
    ).json()
    url = f"{API}/organizations/{org_a['id']}/tasks/{foreign['id']}"

    assert (await client.get(url, headers=auth(token_a))).status_code == 404
    resp = await client.patch(url, json={"title": "Mine now"}, headers=auth(token_a))
    assert resp.status_code == 404
    assert (await client.delete(url, headers=auth(token_a))).status_code == 404

    resp = await client.get(
        f"{API}/organizations/{org_b['id']}/tasks/{foreign['id']}", headers=auth(token_b)
    )
    assert resp.json()["title"] == "Secret"


@pytest.mark.asyncio
async def test_foreign_client_and_invoice_ids_are_not_found(client):
    token_a, org_a, token_b, org_b = await two_orgs(client)
    foreign_client = (
        await client.post(
            f"{API}/organizations/{org_b['id']}/clients",
            json={"name": "Globex", "email": "ap@globex.test"},
            headers=auth(token_b),
        )
    ).json()
    foreign_invoice = (
        await client.post(
            f"{API}/organizations/{org_b['id']}/invoices",
            json={
                "client_id": foreign_client["id"],
                "issue_date": "2026-10-01",
                "due_date": "2026-10-31",
                "items": [{"description": "Audit", "quantity": 1, "unit_price": 900}],
            },
            headers=auth(token_b),
        )
    ).json()

    resp = await client.get(
        f"{API}/organizations/{org_a['id']}/clients/{foreign_client['id']}", headers=auth(token_a)
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "CLIENT_NOT_FOUND"

    resp = await client.post(
        f"{API}/organizations/{org_a['id']}/invoices/{foreign_invoice['id']}/mark-paid",
        headers=auth(token_a),
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "INVOICE_NOT_FOUND"


@pytest.mark.asyncio
async def test_cannot_invoice_another_orgs_client(client):
    token_a, org_a, token_b, org_b = await two_orgs(client)
    foreign_client = (
        await client.post(
            f"{API}/organizations/{org_b['id']}/clients",
            json={"name": "Globex"},
            headers=auth(token_b),
        )
    ).json()

    resp = await client.post(
        f"{API}/organizations/{org_a['id']}/invoices",
        json={
            "client_id": foreign_client["id"],
            "issue_date": "2026-10-01",
            "due_date": "2026-10-31",
            "items": [{"description": "Audit", "quantity": 1, "unit_price": 900}],
        },
        headers=auth(token_a),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_CLIENT"


@pytest.mark.asyncio
async def test_foreign_chat_room_is_not_found(client):
    token_a, org_a, token_b, org_b = await two_orgs(client)
    room = (
        await client.post(
            f"{API}/organizations/{org_b['id']}/chat/rooms",
            json={"name": "Private", "type": "group", "participant_ids": []},
            headers=auth(token_b),
        )
    ).json()

    resp = await client.get(
        f"{API}/organizations/{org_a['id']}/chat/rooms/{room['id']}/messages",
        headers=auth(token_a),
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "ROOM_NOT_FOUND"


# ---------------------------------------------------------------------------
# 3. Role Enforcement
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_admin_of_one_org_cannot_invite_into_another(client):
    token_a, _, _, org_b = await two_orgs(client)

    resp = await client.post(
        f"{API}/organizations/{org_b['id']}/invites",
        json={"email": unique_email("sneaky"), "role": "member"},
        headers=auth(token_a),
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_member_cannot_change_roles(client):
    owner_token, org = await owner_with_org(client)
    member_token, accepted = await add_member(client, owner_token, org["id"])

    resp = await client.patch(
        f"{API}/organizations/{org['id']}/members/{accepted['member_id']}",
        json={"role": "admin"},
        headers=auth(member_token),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
async def test_cannot_manage_member_of_another_org(client):
    token_a, org_a, token_b, org_b = await two_orgs(client)
    _, accepted = await add_member(client, token_b, org_b["id"])

    resp = await client.delete(
        f"{API}/organizations/{org_a['id']}/members/{accepted['member_id']}",
        headers=auth(token_a),
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "MEMBER_NOT_FOUND"


@pytest.mark.asyncio
async def test_cannot_revoke_another_orgs_invite(client):
    token_a, org_a, token_b, org_b = await two_orgs(client)
    created = await invite(client, token_b, org_b["id"], unique_email("target"))

    resp = await client.delete(
        f"{API}/organizations/{org_a['id']}/invites/{created['id']}", headers=auth(token_a)
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "INVITE_NOT_FOUND"


# ---------------------------------------------------------------------------
# 4. Invitation Tokens
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_invite_token_cannot_be_reused(client):
    owner_token, org = await owner_with_org(client)
    created = await invite(client, owner_token, org["id"], unique_email("once"))

    first = await accept(client, created["token"])
    assert first.status_code == 200

    second = await accept(client, created["token"], name="Someone Else")
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "INVITE_NOT_PENDING"


@pytest.mark.asyncio
async def test_invite_only_grants_the_inviting_org(client):
    token_a, org_a, token_b, org_b = await two_orgs(client)
    member_token, _ = await add_member(client, token_a, org_a["id"])

    resp = await client.get(f"{API}/organizations/{org_b['id']}", headers=auth(member_token))
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# 5. Membership Revocation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_removed_member_loses_access_to_resources(client):
    owner_token, org = await owner_with_org(client)
    member_token, accepted = await add_member(client, owner_token, org["id"])
    member_id = await member_user_id(client, member_token)
    task = (
        await client.post(
            f"{API}/organizations/{org['id']}/tasks",
            json={"title": "Handover", "assignee_id": member_id},
            headers=auth(owner_token),
        )
    ).json()

    resp = await client.delete(
        f"{API}/organizations/{org['id']}/members/{accepted['member_id']}",
        headers=auth(owner_token),
    )
    assert resp.status_code == 200

    resp = await client.get(
        f"{API}/organizations/{org['id']}/tasks/{task['id']}", headers=auth(member_token)
    )
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NOT_A_MEMBER"

    resp = await client.get(f"{API}/organizations", headers=auth(member_token))
    assert resp.json()["total"] == 0
