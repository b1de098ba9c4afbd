"""Public contact form and the admin potential-customer inbox."""

import pytest
from sqlalchemy import func, select

from loyal_auto.app.routes.contacts import admin_router, router as contact_router
from loyal_auto.domain.models import Contact


@pytest.fixture
async def admin(make_user):
    return await make_user(role="admin")


@pytest.fixture
async def operator(make_user):
    return await make_user(role="operator")


@pytest.fixture
def client(make_client):
    return make_client(contact_router, admin_router)


LEAD = {
    "first_name": "Carlos",
    "last_name": "Mendes",
    "email": "carlos@example.com",
    "phone": "+15553334444",
}


async def _create_lead(ac, **extra):
    resp = await ac.post("/api/contact", json={**LEAD, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestPublicForm:

    async def test_new_lead_is_pending_and_unread(self, client, make_vehicle):
        vehicle = await make_vehicle(status="for_sale")
        async with client as ac:
            body = await _create_lead(ac, vehicle_id=vehicle.id)
        assert body["status"] == "pending"
        assert body["is_read"] is False
        assert body["vehicle"] == {"brand": "Toyota", "model": "Corolla", "year": 2020}

    @pytest.mark.parametrize("field", ["first_name", "last_name", "email", "phone"])
    async def test_missing_field_is_400(self, client, db_session, field):
        payload = {k: v for k, v in LEAD.items() if k != field}
        async with client as ac:
            resp = await ac.post("/api/contact", json=payload)
        assert resp.status_code == 400
        assert field in resp.json()["detail"]
        assert (await db_session.execute(select(func.count(Contact.id)))).scalar_one() == 0

    async def test_blank_field_is_400(self, client):
        async with client as ac:
            resp = await ac.post("/api/contact", json={**LEAD, "phone": "   "})
        assert resp.status_code == 400

    async def test_unknown_vehicle_is_404(self, client):
        async with client as ac:
            resp = await ac.post("/api/contact", json={**LEAD, "vehicle_id": "missing"})
        assert resp.status_code == 404


class TestInbox:

    async def test_admin_only(self, client, operator, auth_headers):
        async with client as ac:
            anonymous = await ac.get("/api/potential-customers")
            as_operator = await ac.get("/api/potential-customers", headers=auth_headers(operator))
        assert anonymous.status_code == 401
        assert as_operator.status_code == 403

    async def test_list_and_filter(self, client, admin, auth_headers):
        async with client as ac:
            first = await _create_lead(ac)
            await _create_lead(ac, email="second@example.com")
            await ac.patch(
                f"/api/potential-customers/{first['id']}/read",
                json={"is_read": True},
                headers=auth_headers(admin),
            )
            everything = await ac.get("/api/potential-customers", headers=auth_headers(admin))
            unread = await ac.get(
                "/api/potential-customers", params={"is_read": "false"}, headers=auth_headers(admin)
            )

        assert len(everything.json()) == 2
        assert [c["email"] for c in unread.json()] == ["second@example.com"]

    async def test_read_flag_and_pipeline_are_independent(self, client, admin, auth_headers):
        async with client as ac:
            lead = await _create_lead(ac)
            read = await ac.patch(
                f"/api/potential-customers/{lead['id']}/read",
                json={"is_read": True},
                headers=auth_headers(admin),
            )
            contacted = await ac.patch(
                f"/api/potential-customers/{lead['id']}/status",
                json={"status": "contacted"},
                headers=auth_headers(admin),
            )
            unread = await ac.patch(
                f"/api/potential-customers/{lead['id']}/read",
                json={"is_read": False},
                headers=auth_headers(admin),
            )

        assert read.json()["is_read"] is True
        assert read.json()["status"] == "pending"
        assert contacted.json()["is_read"] is True
        assert contacted.json()["status"] == "contacted"
        assert unread.json()["status"] == "contacted"

    @pytest.mark.parametrize("status", ["read", "unread", "archived"])
    async def test_invalid_pipeline_status(self, client, admin, auth_headers, status):
        async with client as ac:
            lead = await _create_lead(ac)
            resp = await ac.patch(
                f"/api/potential-customers/{lead['id']}/status",
                json={"status": status},
                headers=auth_headers(admin),
            )
        assert resp.status_code == 400

    async def test_delete(self, client, admin, auth_headers, db_session):
        async with client as ac:
            lead = await _create_lead(ac)
            resp = await ac.delete(f"/api/potential-customers/{lead['id']}", headers=auth_headers(admin))
            again = await ac.delete(f"/api/potential-customers/{lead['id']}", headers=auth_headers(admin))
        assert resp.status_code == 204
        assert again.status_code == 404
        assert (await db_session.execute(select(func.count(Contact.id)))).scalar_one() == 0
