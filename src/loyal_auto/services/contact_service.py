"""Leads from the public contact form and their follow-up by admins."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from loyal_auto.domain.enums import ContactStatus
from loyal_auto.domain.errors import NotFoundError, ValidationError
from loyal_auto.domain.models import Contact, Vehicle, utcnow
from loyal_auto.domain.schemas import ContactCreate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("first_name", "last_name", "email", "phone")


def parse_contact_status(value) -> ContactStatus:
    try:
        return ContactStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


class ContactService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_contact(self, data: ContactCreate) -> Contact:
        """Store a lead as ``pending`` and unread."""
        values = {name: (getattr(data, name) or "").strip() for name in REQUIRED_FIELDS}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ValidationError("Missing required fields: " + ", ".join(missing))

        if data.vehicle_id:
            result = await self.db.execute(select(Vehicle.id).where(Vehicle.id == data.vehicle_id))
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Vehicle not found")

        contact = Contact(
            **values,
            vehicle_id=data.vehicle_id or None,
            status=ContactStatus.PENDING.value,
            is_read=False,
        )
        self.db.add(contact)
        await self.db.flush()
        logger.info("Contact %s received (vehicle=%s)", contact.id, contact.vehicle_id)
        return await self.get_contact(contact.id)

    async def list_contacts(
        self,
        is_read: bool | None = None,
        status: str | None = None,
    ) -> list[Contact]:
        query = select(Contact).options(selectinload(Contact.vehicle))
        if is_read is not None:
            query = query.where(Contact.is_read == is_read)
        if status:
            query = query.where(Contact.status == parse_contact_status(status).value)
        result = await self.db.execute(query.order_by(Contact.created_at.desc()))
        return list(result.scalars().all())

    async def get_contact(self, contact_id: str) -> Contact:
        result = await self.db.execute(
            select(Contact)
            .where(Contact.id == contact_id)
            .options(selectinload(Contact.vehicle))
            .execution_options(populate_existing=True)
        )
        contact = result.scalar_one_or_none()
        if not contact:
            raise NotFoundError("Contact not found")
        return contact

    async def set_read(self, contact_id: str, is_read: bool) -> Contact:
        """Flip the inbox flag only; the pipeline status is left alone."""
        contact = await self.get_contact(contact_id)
        contact.is_read = is_read
        contact.updated_at = utcnow()
        await self.db.flush()
        return await self.get_contact(contact_id)

    async def update_status(self, contact_id: str, status: str) -> Contact:
        target = parse_contact_status(status)
        contact = await self.get_contact(contact_id)
        contact.status = target.value
        contact.updated_at = utcnow()
        await self.db.flush()
        logger.info("Contact %s moved to %s", contact_id, target.value)
        return await self.get_contact(contact_id)

    async def delete_contact(self, contact_id: str) -> None:
        contact = await self.get_contact(contact_id)
        await self.db.delete(contact)
        await self.db.flush()
