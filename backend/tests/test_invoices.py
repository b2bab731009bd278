"""
Invoice tests: server-side totals, per-organization numbering and the
draft -> sent -> paid transitions.
"""

import pytest

from agencyos.services import invoice_service
from agencyos.services.invoice_service import compute_totals, format_invoice_number
from tests.helpers import API, add_member, auth, owner_with_org


def test_compute_totals_applies_tax_after_discount():
    subtotal, tax_amount, total = compute_totals([(10, 300), (1, 500)], discount=0, tax_rate=10)
    assert subtotal == 3500
    assert tax_amount == 350
    assert total == 3850

    assert compute_totals([(1, 1500), (20, 100)], discount=0, tax_rate=10) == (3500, 350, 3850)

    subtotal, tax_amount, total = compute_totals([(2, 50)], discount=20, tax_rate=25)
    assert subtotal == 100
    assert tax_amount == 20
    assert total == 100


def test_format_invoice_number():
    assert format_invoice_number(1) == "INV-001"
    assert format_invoice_number(42) == "INV-042"
    assert format_invoice_number(1234) == "INV-1234"


async def _client_id(client, token, org_id, email="ap@globex.test"):
    body = {"name": "Globex"}
    if email:
        body["email"] = email
    resp = await client.post(
        f"{API}/organizations/{org_id}/clients", json=body, headers=auth(token)
    )
    return resp.json()["id"]


async def _create_invoice(client, token, org_id, client_id, **fields):
    body = {
        "client_id": client_id,
        "issue_date": "2026-10-01",
        "due_date": "2026-10-31",
        "items": [
            {"description": "Design", "quantity": 10, "unit_price": 300},
            {"description": "Hosting", "quantity": 1, "unit_price": 500},
        ],
        "tax_rate": 10,
        **fields,
    }
    resp = await client.post(
        f"{API}/organizations/{org_id}/invoices", json=body, headers=auth(token)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_invoice_totals_are_computed(client):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    invoice = await _create_invoice(client, token, org["id"], cid)

    assert invoice["number"] == "INV-001"
    assert invoice["status"] == "draft"
    assert invoice["subtotal"] == 3500
    assert invoice["tax_amount"] == 350
    assert invoice["total"] == 3850
    assert [item["amount"] for item in invoice["items"]] == [3000, 500]


@pytest.mark.asyncio
async def test_numbers_are_sequential_per_org(client):
    token_a, org_a = await owner_with_org(client, prefix="a")
    token_b, org_b = await owner_with_org(client, prefix="b")
    cid_a = await _client_id(client, token_a, org_a["id"])
    cid_b = await _client_id(client, token_b, org_b["id"])

    first = await _create_invoice(client, token_a, org_a["id"], cid_a)
    second = await _create_invoice(client, token_a, org_a["id"], cid_a)
    other = await _create_invoice(client, token_b, org_b["id"], cid_b)

    assert first["number"] == "INV-001"
    assert second["number"] == "INV-002"
    assert other["number"] == "INV-001"


@pytest.mark.asyncio
async def test_number_skips_taken_after_delete(client):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    first = await _create_invoice(client, token, org["id"], cid)
    await _create_invoice(client, token, org["id"], cid)

    resp = await client.delete(
        f"{API}/organizations/{org['id']}/invoices/{first['id']}", headers=auth(token)
    )
    assert resp.status_code == 204

    third = await _create_invoice(client, token, org["id"], cid)
    assert third["number"] == "INV-003"


@pytest.mark.asyncio
async def test_due_date_before_issue_date_rejected(client):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    resp = await client.post(
        f"{API}/organizations/{org['id']}/invoices",
        json={
            "client_id": cid,
            "issue_date": "2026-10-10",
            "due_date": "2026-10-01",
            "items": [{"description": "x", "quantity": 1, "unit_price": 1}],
        },
        headers=auth(token),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_recomputes_totals(client):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    invoice = await _create_invoice(client, token, org["id"], cid)

    resp = await client.patch(
        f"{API}/organizations/{org['id']}/invoices/{invoice['id']}",
        json={"items": [{"description": "Retainer", "quantity": 2, "unit_price": 1000}], "discount": 200},
        headers=auth(token),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["subtotal"] == 2000
    assert body["tax_amount"] == 180
    assert body["total"] == 1980
    assert len(body["items"]) == 1

    resp = await client.patch(
        f"{API}/organizations/{org['id']}/invoices/{invoice['id']}",
        json={"due_date": "2026-09-01"},
        headers=auth(token),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVALID_DATES"


@pytest.mark.asyncio
async def test_send_then_mark_paid(client, sent_emails):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    invoice = await _create_invoice(client, token, org["id"], cid)
    base = f"{API}/organizations/{org['id']}/invoices/{invoice['id']}"

    resp = await client.post(f"{base}/send", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "sent"
    assert sent_emails["invoice"][0]["to_email"] == "ap@globex.test"
    assert sent_emails["invoice"][0]["invoice_number"] == "INV-001"

    resp = await client.post(f"{base}/send", headers=auth(token))
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "INVOICE_NOT_DRAFT"

    resp = await client.post(f"{base}/mark-paid", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "paid"
    assert resp.json()["paid_at"] is not None


@pytest.mark.asyncio
async def test_send_without_recipient(client):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"], email=None)
    invoice = await _create_invoice(client, token, org["id"], cid)

    resp = await client.post(
        f"{API}/organizations/{org['id']}/invoices/{invoice['id']}/send", headers=auth(token)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "NO_RECIPIENT"


@pytest.mark.asyncio
async def test_send_failure_leaves_draft(client, monkeypatch):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    invoice = await _create_invoice(client, token, org["id"], cid)
    base = f"{API}/organizations/{org['id']}/invoices/{invoice['id']}"

    def broken_queue(**kwargs):
        raise ConnectionError("broker unavailable")

    monkeypatch.setattr(invoice_service, "_queue_invoice_email", broken_queue)

    resp = await client.post(f"{base}/send", headers=auth(token))
    assert resp.status_code == 502
    resp = await client.get(base, headers=auth(token))
    assert resp.json()["status"] == "draft"


@pytest.mark.asyncio
async def test_cancelled_invoice_cannot_be_paid(client):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    invoice = await _create_invoice(client, token, org["id"], cid, status="cancelled")

    resp = await client.post(
        f"{API}/organizations/{org['id']}/invoices/{invoice['id']}/mark-paid",
        headers=auth(token),
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "INVOICE_CANCELLED"


@pytest.mark.asyncio
async def test_list_invoices_by_status(client):
    token, org = await owner_with_org(client)
    cid = await _client_id(client, token, org["id"])
    await _create_invoice(client, token, org["id"], cid)
    await _create_invoice(client, token, org["id"], cid, status="paid")

    resp = await client.get(
        f"{API}/organizations/{org['id']}/invoices",
        params={"status": "paid"},
        headers=auth(token),
    )
    assert resp.json()["total"] == 1
    assert resp.json()["data"][0]["paid_at"] is not None


@pytest.mark.asyncio
async def test_member_cannot_delete_someone_elses_invoice(client):
    owner_token, org = await owner_with_org(client)
    member_token, _ = await add_member(client, owner_token, org["id"])
    cid = await _client_id(client, owner_token, org["id"])
    invoice = await _create_invoice(client, owner_token, org["id"], cid)

    resp = await client.delete(
        f"{API}/organizations/{org['id']}/invoices/{invoice['id']}",
        headers=auth(member_token),
    )
    assert resp.status_code == 403
