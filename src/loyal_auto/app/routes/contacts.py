"""Public contact form and the admin inbox of potential customers."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.app.routes.auth import require_admin
from loyal_auto.domain.models import User
from loyal_auto.domain.schemas import (
    ContactCreate,
    ContactReadUpdate,
    ContactResponse,
    StatusUpdate,
)
from loyal_auto.infra.database import get_db
from loyal_auto.services.contact_service import ContactService

router = APIRouter(prefix="/api/contact", tags=["contact"])

# Admin inbox, mounted separately
admin_router = APIRouter(prefix="/api/potential-customers", tags=["potential-customers"])


@router.post("", response_model=ContactResponse, status_code=201)
async def submit_contact(data: ContactCreate, db: AsyncSession = Depends(get_db)):
    """Unauthenticated lead capture from the marketing site."""
    contact = await ContactService(db).create_contact(data)
    await db.commit()
    return ContactResponse.model_validate(contact)


@admin_router.get("", response_model=list[ContactResponse])
async def list_contacts(
    is_read: bool | None = Query(None),
    status: str | None = Query(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    contacts = await ContactService(db).list_contacts(is_read=is_read, status=status)
    return [ContactResponse.model_validate(c) for c in contacts]


@admin_router.patch("/{contact_id}/read", response_model=ContactResponse)
async def mark_read(
    contact_id: str,
    data: ContactReadUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    contact = await ContactService(db).set_read(contact_id, data.is_read)
    await db.commit()
    return ContactResponse.model_validate(contact)


@admin_router.patch("/{contact_id}/status", response_model=ContactResponse)
async def update_status(
    contact_id: str,
    data: StatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    contact = await ContactService(db).update_status(contact_id, data.status)
    await db.commit()
    return ContactResponse.model_validate(contact)


@admin_router.delete("/{contact_id}", status_code=204)
async def delete_contact(
    contact_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await ContactService(db).delete_contact(contact_id)
    await db.commit()
