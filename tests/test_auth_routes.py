"""Login, token handling and admin user administration."""

import pytest
from sqlalchemy import select

from loyal_auto.app.routes.auth import router as auth_router
from loyal_auto.app.routes.users import router as users_router
from loyal_auto.domain.models import User
from loyal_auto.services.auth_service import (
    create_access_token,
    decode_token,
    generate_password,
    verify_password,
)

PASSWORD = "secret123"


@pytest.fixture
async def admin(make_user):
    return await make_user(role="admin", email="admin@loyal.test", name="Andre")


@pytest.fixture
async def operator(make_user):
    return await make_user(role="operator", email="op@loyal.test", name="Olga")


@pytest.fixture
def client(make_client):
    return make_client(auth_router, users_router)


class TestTokens:

    def test_claims(self):
        user = User(id="u-1", email="a@b.c", name="A", role="admin")
        payload = decode_token(create_access_token(user))
        assert payload["sub"] == "u-1"
        assert payload["role"] == "admin"
        assert payload["email"] == "a@b.c"
        assert "exp" in payload

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_bad_tokens_decode_to_none(self, token):
        assert decode_token(token) is None

    def test_generated_password(self):
        password = generate_password()
        assert len(password) == 8
        assert password.isalnum()


class TestLogin:

    async def test_success(self, client, operator, db_session):
        async with client as ac:
            resp = await ac.post(
                "/api/auth/login", json={"email": " OP@loyal.test ", "password": PASSWORD}
            )
        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "op@loyal.test"
        assert decode_token(body["access_token"])["sub"] == operator.id
        assert body["user"]["last_login_at"] is not None

    @pytest.mark.parametrize(
        "email,password",
        [("op@loyal.test", "wrong-pass"), ("nobody@loyal.test", PASSWORD)],
    )
    async def test_bad_credentials(self, client, operator, email, password):
        async with client as ac:
            resp = await ac.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 401

    async def test_inactive_user_cannot_login(self, client, make_user):
        await make_user(email="gone@loyal.test", is_active=False)
        async with client as ac:
            resp = await ac.post(
                "/api/auth/login", json={"email": "gone@loyal.test", "password": PASSWORD}
            )
        assert resp.status_code == 401


class TestCurrentUser:

    async def test_me(self, client, operator, auth_headers):
        async with client as ac:
            resp = await ac.get("/api/auth/me", headers=auth_headers(operator))
        assert resp.status_code == 200
        assert resp.json()["name"] == "Olga"

    @pytest.mark.parametrize(
        "headers",
        [{}, {"Authorization": "Token abc"}, {"Authorization": "Bearer not-a-jwt"}],
    )
    async def test_missing_or_invalid_token(self, client, headers):
        async with client as ac:
            resp = await ac.get("/api/auth/me", headers=headers)
        assert resp.status_code == 401

    async def test_deactivated_user_token_rejected(self, client, operator, auth_headers, db_session):
        headers = auth_headers(operator)
        operator.is_active = False
        await db_session.flush()
        async with client as ac:
            resp = await ac.get("/api/auth/me", headers=headers)
        assert resp.status_code == 401

    async def test_change_password(self, client, operator, auth_headers):
        async with client as ac:
            wrong = await ac.post(
                "/api/auth/change-password",
                json={"current_password": "nope", "new_password": "brand-new-1"},
                headers=auth_headers(operator),
            )
            ok = await ac.post(
                "/api/auth/change-password",
                json={"current_password": PASSWORD, "new_password": "brand-new-1"},
                headers=auth_headers(operator),
            )
            login = await ac.post(
                "/api/auth/login", json={"email": "op@loyal.test", "password": "brand-new-1"}
            )
        assert wrong.status_code == 400
        assert ok.status_code == 200
        assert login.status_code == 200


class TestUserAdministration:

    async def test_operator_forbidden(self, client, operator, auth_headers):
        async with client as ac:
            resp = await ac.get("/api/users", headers=auth_headers(operator))
        assert resp.status_code == 403

    async def test_create_and_list(self, client, admin, auth_headers):
        async with client as ac:
            created = await ac.post(
                "/api/users",
                json={"name": "Nina", "email": "Nina@Loyal.test", "password": "pass1234"},
                headers=auth_headers(admin),
            )
            duplicate = await ac.post(
                "/api/users",
                json={"name": "Nina 2", "email": "nina@loyal.test", "password": "pass1234"},
                headers=auth_headers(admin),
            )
            listed = await ac.get("/api/users", headers=auth_headers(admin))

        assert created.status_code == 201
        assert created.json()["email"] == "nina@loyal.test"
        assert created.json()["role"] == "operator"
        assert duplicate.status_code == 400
        assert {u["email"] for u in listed.json()} == {"admin@loyal.test", "nina@loyal.test"}

    async def test_create_with_bad_role(self, client, admin, auth_headers):
        async with client as ac:
            resp = await ac.post(
                "/api/users",
                json={"name": "X", "email": "x@loyal.test", "password": "pass1234", "role": "owner"},
                headers=auth_headers(admin),
            )
        assert resp.status_code == 400

    async def test_reset_password(self, client, admin, operator, auth_headers, db_session):
        async with client as ac:
            resp = await ac.post(f"/api/users/{operator.id}/reset-password", headers=auth_headers(admin))
        assert resp.status_code == 200
        new_password = resp.json()["new_password"]
        assert len(new_password) == 8
        stored = (await db_session.execute(
            select(User.password_hash).where(User.id == operator.id)
        )).scalar_one()
        assert verify_password(new_password, stored)

    async def test_toggle_active(self, client, admin, operator, auth_headers):
        async with client as ac:
            off = await ac.patch(
                f"/api/users/{operator.id}/active", json={"active": False}, headers=auth_headers(admin)
            )
            login = await ac.post(
                "/api/auth/login", json={"email": "op@loyal.test", "password": PASSWORD}
            )
            on = await ac.patch(
                f"/api/users/{operator.id}/active", json={"active": True}, headers=auth_headers(admin)
            )
        assert off.json()["is_active"] is False
        assert login.status_code == 401
        assert on.json()["is_active"] is True

    async def test_admin_cannot_deactivate_self(self, client, admin, auth_headers):
        async with client as ac:
            resp = await ac.patch(
                f"/api/users/{admin.id}/active", json={"active": False}, headers=auth_headers(admin)
            )
        assert resp.status_code == 400

    async def test_change_role(self, client, admin, operator, auth_headers):
        async with client as ac:
            promoted = await ac.patch(
                f"/api/users/{operator.id}/role", json={"role": "admin"}, headers=auth_headers(admin)
            )
            demote_self = await ac.patch(
                f"/api/users/{admin.id}/role", json={"role": "operator"}, headers=auth_headers(admin)
            )
        assert promoted.json()["role"] == "admin"
        assert demote_self.status_code == 400

    async def test_unknown_user(self, client, admin, auth_headers):
        async with client as ac:
            resp = await ac.post("/api/users/nope/reset-password", headers=auth_headers(admin))
        assert resp.status_code == 404
