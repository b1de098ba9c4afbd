"""Error taxonomy to HTTP mapping."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError

from loyal_auto.app.error_handlers import GENERIC_ERROR, register_exception_handlers
from loyal_auto.domain.enums import VehicleStatus
from loyal_auto.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
)


class _Body(BaseModel):
    amount: float


def _build_app() -> FastAPI:
    test_app = FastAPI()
    register_exception_handlers(test_app)

    @test_app.get("/not-found")
    async def not_found():
        raise NotFoundError("Vehicle not found")

    @test_app.get("/forbidden")
    async def forbidden():
        raise PermissionDeniedError("Access denied")

    @test_app.get("/conflict")
    async def conflict():
        raise ConflictError("Vehicle has customers attached and cannot be deleted")

    @test_app.get("/transition")
    async def transition():
        raise InvalidTransitionError(VehicleStatus.SOLD, VehicleStatus.ACQUIRED, "No transitions allowed from sold")

    @test_app.get("/persistence")
    async def persistence():
        raise PersistenceError("disk full at /var/lib/db")

    @test_app.get("/database")
    async def database():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    @test_app.post("/body")
    async def body(data: _Body):
        return data

    return test_app


@pytest.fixture
def client():
    return AsyncClient(transport=ASGITransport(app=_build_app()), base_url="http://testserver")


@pytest.mark.parametrize(
    "path,status,detail",
    [
        ("/not-found", 404, "Vehicle not found"),
        ("/forbidden", 403, "Access denied"),
        ("/conflict", 409, "Vehicle has customers attached and cannot be deleted"),
        ("/transition", 400, "Invalid transition from sold to acquired: No transitions allowed from sold"),
        ("/persistence", 500, GENERIC_ERROR),
        ("/database", 500, GENERIC_ERROR),
    ],
)
async def test_error_mapping(client, path, status, detail):
    async with client as ac:
        resp = await ac.get(path)
    assert resp.status_code == status
    assert resp.json() == {"detail": detail}


async def test_request_validation_is_400(client):
    async with client as ac:
        resp = await ac.post("/body", json={"amount": "lots"})
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("amount:")
