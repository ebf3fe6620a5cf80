"""Invoice endpoints."""
from models import UserRole
from tests.conftest import auth_headers


def _occupy(client, seed):
    body = {
        "tenant_id": seed.tenant,
        "lease_start_date": "2025-01-01",
        "lease_end_date": "2025-12-31",
        "monthly_rent": "1000.00",
    }
    resp = client.post(
        f"/api/move-in/{seed.property}/{seed.unit_a}", json=body, headers=auth_headers(seed.owner, UserRole.OWNER)
    )
    assert resp.status_code == 201


def test_generate_is_idempotent(client, seed):
    _occupy(client, seed)
    owner = auth_headers(seed.owner, UserRole.OWNER)

    resp = client.post("/api/invoices/generate", json={"period": "2025-10"}, headers=owner)
    assert resp.status_code == 201
    assert resp.json() == {"period": "2025-10", "created": 1}

    resp = client.post("/api/invoices/generate", json={"period": "2025-10"}, headers=owner)
    assert resp.json()["created"] == 0


def test_generate_rejects_bad_period_and_tenants(client, seed):
    owner = auth_headers(seed.owner, UserRole.OWNER)
    assert client.post("/api/invoices/generate", json={"period": "2025-13"}, headers=owner).status_code == 400
    assert client.post(
        "/api/invoices/generate", json={"period": "2025-10"}, headers=auth_headers(seed.tenant, UserRole.TENANT)
    ).status_code == 403


def test_list_and_get(client, seed):
    _occupy(client, seed)
    client.post("/api/invoices/generate", json={"period": "2025-10"}, headers=auth_headers(seed.admin, UserRole.ADMIN))

    resp = client.get("/api/invoices", headers=auth_headers(seed.tenant, UserRole.TENANT))
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    invoice = data["invoices"][0]
    assert invoice["period"] == "2025-10"
    assert invoice["due_date"] == "2025-10-05"
    assert invoice["status"] == "PENDING"

    assert client.get("/api/invoices", headers=auth_headers(seed.tenant2, UserRole.TENANT)).json()["total"] == 0
    assert client.get(
        f"/api/invoices/{invoice['id']}", headers=auth_headers(seed.tenant2, UserRole.TENANT)
    ).status_code == 403
    assert client.get(
        f"/api/invoices/{invoice['id']}", headers=auth_headers(seed.owner, UserRole.OWNER)
    ).status_code == 200
    assert client.get("/api/invoices/9999", headers=auth_headers(seed.admin, UserRole.ADMIN)).status_code == 404


def test_mark_overdue_is_admin_only(client, seed):
    assert client.post("/api/invoices/mark-overdue", headers=auth_headers(seed.owner, UserRole.OWNER)).status_code == 403
    resp = client.post("/api/invoices/mark-overdue", headers=auth_headers(seed.admin, UserRole.ADMIN))
    assert resp.status_code == 200
    assert resp.json() == {"marked_overdue": 0}
