"""Customer Service - credit applications and their status history.

Operators see only the customers they entered; admins see and manage all.
Every status change (including the initial ``new``) appends a history row in
the same flush as the change itself.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from loyal_auto.domain.enums import Actor, CustomerStatus, ResidenceType, UserRole
from loyal_auto.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from loyal_auto.domain.models import (
    Customer,
    CustomerStatusHistory,
    User,
    Vehicle,
    naive_utc,
    utcnow,
)
from loyal_auto.domain.schemas import (
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
    OperatorSummary,
)
from loyal_auto.services.customer_state_machine import (
    CustomerStateMachine,
    parse_customer_status,
)
from loyal_auto.services.vehicle_views import vehicle_summary

logger = logging.getLogger(__name__)

state_machine = CustomerStateMachine()

_CUSTOMER_LOAD_OPTIONS = (
    selectinload(Customer.operator),
    selectinload(Customer.vehicle).selectinload(Vehicle.images),
    selectinload(Customer.vehicle).selectinload(Vehicle.market_price),
)

_COLUMNS = [c.name for c in Customer.__table__.columns]


def serialize_customer(customer: Customer) -> CustomerResponse:
    data = {name: getattr(customer, name) for name in _COLUMNS}
    data["operator"] = OperatorSummary.model_validate(customer.operator) if customer.operator else None
    data["vehicle"] = vehicle_summary(customer.vehicle) if customer.vehicle else None
    return CustomerResponse.model_validate(data)


def _parse_residence_type(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    try:
        return ResidenceType(value.upper()).value
    except ValueError:
        raise ValidationError(f"Invalid residence type: {value}")


def _is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value


class CustomerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, customer_id: str) -> Customer:
        result = await self.db.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .options(*_CUSTOMER_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        customer = result.scalar_one_or_none()
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    async def list_customers(self, user: User, status: str | None = None) -> list[Customer]:
        query = select(Customer).options(*_CUSTOMER_LOAD_OPTIONS)
        if not _is_admin(user):
            query = query.where(Customer.operator_id == user.id)
        if status:
            query = query.where(Customer.status == parse_customer_status(status).value)
        result = await self.db.execute(query.order_by(Customer.created_at.desc()))
        return list(result.scalars().all())

    async def get_customer(self, user: User, customer_id: str) -> Customer:
        """Fetch one customer; operators may only read their own."""
        customer = await self._load(customer_id)
        if not _is_admin(user) and customer.operator_id != user.id:
            raise PermissionDeniedError("Access denied")
        return customer

    async def create_customer(self, operator: User, data: CustomerCreate) -> Customer:
        """Create the customer in ``new`` with its first history row."""
        vehicle = await self.db.execute(select(Vehicle.id).where(Vehicle.id == data.vehicle_id))
        if vehicle.scalar_one_or_none() is None:
            raise NotFoundError("Vehicle not found")

        fields = data.model_dump()
        fields["residence_type"] = _parse_residence_type(data.residence_type)
        fields["birth_date"] = naive_utc(data.birth_date)
        if data.email:
            fields["email"] = data.email.strip().lower()

        now = utcnow()
        customer = Customer(
            **fields,
            status=CustomerStatus.NEW.value,
            status_updated_at=now,
            operator_id=operator.id,
        )
        self.db.add(customer)
        await self.db.flush()

        self.db.add(
            CustomerStatusHistory(
                customer_id=customer.id,
                status=CustomerStatus.NEW.value,
                updated_by=operator.id,
                created_at=now,
            )
        )
        await self.db.flush()

        logger.info("Customer %s created by operator %s", customer.id, operator.id)
        return await self._load(customer.id)

    async def update_customer(self, customer_id: str, data: CustomerUpdate) -> Customer:
        customer = await self._load(customer_id)
        for name, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if name == "birth_date":
                value = naive_utc(value)
            setattr(customer, name, value)
        customer.updated_at = utcnow()
        await self.db.flush()
        return await self._load(customer_id)

    async def set_passport(self, user: User, customer_id: str, url: str) -> Customer:
        customer = await self.get_customer(user, customer_id)
        customer.passport_url = url
        customer.updated_at = utcnow()
        await self.db.flush()
        return await self._load(customer_id)

    async def delete_customer(self, customer_id: str) -> None:
        """Remove the history rows, then the customer."""
        await self._load(customer_id)
        await self.db.execute(
            delete(CustomerStatusHistory).where(CustomerStatusHistory.customer_id == customer_id)
        )
        await self.db.execute(delete(Customer).where(Customer.id == customer_id))
        self.db.expunge_all()
        logger.info("Customer %s deleted", customer_id)

    async def update_status(self, acting_user: User, customer_id: str, status: str) -> Customer:
        target = parse_customer_status(status)
        customer = await self._load(customer_id)
        current = CustomerStatus(customer.status)
        actor = Actor.ADMIN if acting_user.role == UserRole.ADMIN.value else Actor.OPERATOR
        state_machine.validate_transition(current, target, actor)

        now = utcnow()
        customer.status = target.value
        customer.status_updated_at = now
        customer.updated_at = now
        self.db.add(
            CustomerStatusHistory(
                customer_id=customer.id,
                status=target.value,
                updated_by=acting_user.id,
                created_at=now,
            )
        )
        await self.db.flush()

        logger.info(
            "Customer %s: %s -> %s (by %s)",
            customer.id,
            current.value,
            target.value,
            acting_user.id,
        )
        return await self._load(customer_id)

    async def get_history(self, user: User, customer_id: str) -> list[CustomerStatusHistory]:
        await self.get_customer(user, customer_id)
        result = await self.db.execute(
            select(CustomerStatusHistory)
            .where(CustomerStatusHistory.customer_id == customer_id)
            .order_by(CustomerStatusHistory.created_at, CustomerStatusHistory.id)
        )
        return list(result.scalars().all())
