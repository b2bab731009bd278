"""
Task and client endpoint tests.
"""

import logging

import pytest

from tests.helpers import API, add_member, auth, member_user_id, owner_with_org


async def _create_task(client, token, org_id, **fields):
    body = {"title": "Design homepage", **fields}
    resp = await client.post(f"{API}/organizations/{org_id}/tasks", json=body, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _create_client(client, token, org_id, **fields):
    body = {"name": "Globex", "email": "Billing@Globex.test", **fields}
    resp = await client.post(
        f"{API}/organizations/{org_id}/clients", json=body, headers=auth(token)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_task_defaults(client):
    token, org = await owner_with_org(client)
    task = await _create_task(client, token, org["id"], tags=["web", "q3"])

    assert task["status"] == "todo"
    assert task["priority"] == "medium"
    assert task["tags"] == ["web", "q3"]
    assert task["organization_id"] == org["id"]
    assert task["created_by"] == await member_user_id(client, token)


@pytest.mark.asyncio
async def test_assigning_a_member_notifies_them(client):
    owner_token, org = await owner_with_org(client)
    member_token, _ = await add_member(client, owner_token, org["id"])
    member_id = await member_user_id(client, member_token)

    task = await _create_task(client, owner_token, org["id"], assignee_id=member_id)
    assert task["assignee_id"] == member_id

    resp = await client.get(f"{API}/notifications", headers=auth(member_token))
    body = resp.json()
    assert body["unread_count"] == 1
    assert body["data"][0]["title"] == "New task assigned"
    assert body["data"][0]["link"] == f"/tasks/{task['id']}"


@pytest.mark.asyncio
async def test_assignee_must_be_a_member(client):
    owner_token, org = await owner_with_org(client)
    other_token, _ = await owner_with_org(client, prefix="outsider")
    outsider_id = await member_user_id(client, other_token)

    resp = await client.post(
        f"{API}/organizations/{org['id']}/tasks",
        json={"title": "Nope", "assignee_id": outsider_id},
        headers=auth(owner_token),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_ASSIGNEE"


@pytest.mark.asyncio
async def test_list_tasks_filters(client):
    token, org = await owner_with_org(client)
    await _create_task(client, token, org["id"], title="Write copy", priority="high")
    await _create_task(client, token, org["id"], title="Ship site", status="done")
    await _create_task(client, token, org["id"], title="Fix footer", description="copy tweaks")

    url = f"{API}/organizations/{org['id']}/tasks"
    resp = await client.get(url, headers=auth(token))
    assert resp.json()["total"] == 3

    resp = await client.get(url, params={"status": "done"}, headers=auth(token))
    assert [t["title"] for t in resp.json()["data"]] == ["Ship site"]

    resp = await client.get(url, params={"priority": "high"}, headers=auth(token))
    assert [t["title"] for t in resp.json()["data"]] == ["Write copy"]

    resp = await client.get(url, params={"search": "COPY"}, headers=auth(token))
    assert {t["title"] for t in resp.json()["data"]} == {"Write copy", "Fix footer"}

    resp = await client.get(url, params={"limit": 2}, headers=auth(token))
    assert resp.json()["total"] == 3
    assert len(resp.json()["data"]) == 2


@pytest.mark.asyncio
async def test_update_task_patch(client):
    token, org = await owner_with_org(client)
    task = await _create_task(client, token, org["id"], description="first draft")

    resp = await client.patch(
        f"{API}/organizations/{org['id']}/tasks/{task['id']}",
        json={"status": "in_progress", "due_date": "2026-11-01"},
        headers=auth(token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "in_progress"
    assert body["due_date"] == "2026-11-01"
    assert body["description"] == "first draft"
    assert body["title"] == "Design homepage"


@pytest.mark.asyncio
async def test_only_creator_or_admin_deletes_task(client):
    owner_token, org = await owner_with_org(client)
    member_token, _ = await add_member(client, owner_token, org["id"])
    owners_task = await _create_task(client, owner_token, org["id"])
    members_task = await _create_task(client, member_token, org["id"], title="Mine")

    resp = await client.delete(
        f"{API}/organizations/{org['id']}/tasks/{owners_task['id']}", headers=auth(member_token)
    )
    assert resp.status_code == 403

    resp = await client.delete(
        f"{API}/organizations/{org['id']}/tasks/{members_task['id']}", headers=auth(member_token)
    )
    assert resp.status_code == 204

    resp = await client.delete(
        f"{API}/organizations/{org['id']}/tasks/{owners_task['id']}", headers=auth(owner_token)
    )
    assert resp.status_code == 204

    resp = await client.get(
        f"{API}/organizations/{org['id']}/tasks/{owners_task['id']}", headers=auth(owner_token)
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "TASK_NOT_FOUND"


@pytest.mark.asyncio
async def test_task_deletion_is_logged(client, caplog):
    token, org = await owner_with_org(client)
    task = await _create_task(client, token, org["id"])

    with caplog.at_level(logging.INFO, logger="agencyos.services.task_service"):
        resp = await client.delete(
            f"{API}/organizations/{org['id']}/tasks/{task['id']}", headers=auth(token)
        )
    assert resp.status_code == 204
    assert any(
        r.name == "agencyos.services.task_service" and task["id"] in r.getMessage()
        for r in caplog.records
    )


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_client_crud(client):
    token, org = await owner_with_org(client)
    created = await _create_client(client, token, org["id"], contact_person="Hank")
    assert created["email"] == "billing@globex.test"
    assert created["status"] == "active"

    url = f"{API}/organizations/{org['id']}/clients/{created['id']}"
    resp = await client.patch(url, json={"status": "inactive", "city": "Springfield"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "inactive"
    assert resp.json()["city"] == "Springfield"
    assert resp.json()["contact_person"] == "Hank"

    resp = await client.get(
        f"{API}/organizations/{org['id']}/clients",
        params={"status": "active"},
        headers=auth(token),
    )
    assert resp.json()["total"] == 0

    resp = await client.get(
        f"{API}/organizations/{org['id']}/clients",
        params={"search": "glob"},
        headers=auth(token),
    )
    assert resp.json()["total"] == 1

    assert (await client.delete(url, headers=auth(token))).status_code == 204
    assert (await client.get(url, headers=auth(token))).status_code == 404


@pytest.mark.asyncio
async def test_client_deletion_is_logged(client, caplog):
    token, org = await owner_with_org(client)
    created = await _create_client(client, token, org["id"])

    with caplog.at_level(logging.INFO, logger="agencyos.services.client_service"):
        resp = await client.delete(
            f"{API}/organizations/{org['id']}/clients/{created['id']}", headers=auth(token)
        )
    assert resp.status_code == 204
    assert any(
        r.name == "agencyos.services.client_service" and created["id"] in r.getMessage()
        for r in caplog.records
    )


@pytest.mark.asyncio
async def test_task_client_must_belong_to_org(client):
    token_a, org_a = await owner_with_org(client, prefix="a")
    token_b, org_b = await owner_with_org(client, prefix="b")
    foreign = await _create_client(client, token_b, org_b["id"])

    resp = await client.post(
        f"{API}/organizations/{org_a['id']}/tasks",
        json={"title": "Cross link", "client_id": foreign["id"]},
        headers=auth(token_a),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_CLIENT"

    own = await _create_client(client, token_a, org_a["id"], name="Initech")
    task = await _create_task(client, token_a, org_a["id"], client_id=own["id"])
    resp = await client.get(
        f"{API}/organizations/{org_a['id']}/tasks",
        params={"client_id": own["id"]},
        headers=auth(token_a),
    )
    assert [t["id"] for t in resp.json()["data"]] == [task["id"]]
