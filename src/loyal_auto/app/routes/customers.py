"""Customer routes: intake, listing, admin edits, status workflow, passport files."""

import re

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.app.routes.auth import get_current_user_dep, require_admin
from loyal_auto.domain.errors import NotFoundError
from loyal_auto.domain.models import User
from loyal_auto.domain.schemas import (
    CustomerCreate,
    CustomerResponse,
    CustomerStatusHistoryResponse,
    CustomerUpdate,
    StatusUpdate,
    UploadedFileResponse,
)
from loyal_auto.infra.database import get_db
from loyal_auto.infra.storage import (
    DOCUMENT_CONTENT_TYPES,
    LocalFileStorage,
    content_type_for,
    get_storage,
)
from loyal_auto.services.customer_service import CustomerService, serialize_customer

router = APIRouter(prefix="/api/customers", tags=["customers"])

PASSPORT_FOLDER = "passports"


def _passport_filename(customer, suffix: str) -> str:
    name = re.sub(r"[^A-Za-z0-9]+", "_", customer.full_name).strip("_") or customer.id
    return f"passport_{name}{suffix}"


@router.post("/passport", response_model=UploadedFileResponse, status_code=201)
async def upload_passport(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user_dep),
    storage: LocalFileStorage = Depends(get_storage),
):
    """Store the passport scan before the customer form is submitted."""
    url = await storage.save(file, PASSPORT_FOLDER, DOCUMENT_CONTENT_TYPES)
    return UploadedFileResponse(url=url)


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    data: CustomerCreate,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).create_customer(user, data)
    await db.commit()
    return serialize_customer(customer)


@router.get("", response_model=list[CustomerResponse])
async def list_customers(
    status: str | None = Query(None),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    customers = await CustomerService(db).list_customers(user, status)
    return [serialize_customer(c) for c in customers]


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).get_customer(user, customer_id)
    return serialize_customer(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).update_customer(customer_id, data)
    await db.commit()
    return serialize_customer(customer)


@router.delete("/{customer_id}", status_code=204)
async def delete_customer(
    customer_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await CustomerService(db).delete_customer(customer_id)
    await db.commit()


@router.patch("/{customer_id}/status", response_model=CustomerResponse)
async def update_status(
    customer_id: str,
    data: StatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    customer = await CustomerService(db).update_status(admin, customer_id, data.status)
    await db.commit()
    return serialize_customer(customer)


@router.get("/{customer_id}/history", response_model=list[CustomerStatusHistoryResponse])
async def get_history(
    customer_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    history = await CustomerService(db).get_history(user, customer_id)
    return [CustomerStatusHistoryResponse.model_validate(h) for h in history]


@router.post("/{customer_id}/passport", response_model=CustomerResponse)
async def replace_passport(
    customer_id: str,
    file: UploadFile = File(...),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
):
    service = CustomerService(db)
    await service.get_customer(user, customer_id)
    url = await storage.save(file, PASSPORT_FOLDER, DOCUMENT_CONTENT_TYPES)
    customer = await service.set_passport(user, customer_id, url)
    await db.commit()
    return serialize_customer(customer)


@router.get("/{customer_id}/passport")
async def download_passport(
    customer_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
):
    customer = await CustomerService(db).get_customer(user, customer_id)
    path = storage.resolve(customer.passport_url)
    if path is None:
        raise NotFoundError("Passport file not found")
    filename = _passport_filename(customer, path.suffix)
    return FileResponse(
        path,
        media_type=content_type_for(path),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
