"""SQLAlchemy ORM models for the dealership.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- Float for money (purchase, expense, sale and market prices)
- DateTime for timestamps, stored as naive UTC
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from loyal_auto.domain.enums import ContactStatus, CustomerStatus, UserRole, VehicleStatus
from loyal_auto.infra.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Auth / User
# ---------------------------------------------------------------------------


class User(Base):
    """Dealership staff account. Created by an admin, never hard-deleted."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.OPERATOR.value)  # admin, operator
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login_at = Column(DateTime, nullable=True)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


class Vehicle(Base):
    """A vehicle in inventory, from acquisition to sale."""

    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=_uuid)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    color = Column(String(50))
    vin = Column(String(50), index=True)
    mileage = Column(Float, default=0.0)
    purchase_price = Column(Float, nullable=False, default=0.0)
    commission_value = Column(Float, nullable=True)
    purchase_date = Column(DateTime, default=utcnow)
    status = Column(String(20), nullable=False, default=VehicleStatus.ACQUIRED.value, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    images = relationship("VehicleImage", back_populates="vehicle", order_by="VehicleImage.created_at")
    expenses = relationship("Expense", back_populates="vehicle", order_by="Expense.date.desc()")
    market_price = relationship("MarketPrice", back_populates="vehicle", uselist=False)
    sale_info = relationship("SaleInfo", back_populates="vehicle", uselist=False)


class VehicleImage(Base):
    __tablename__ = "vehicle_images"

    id = Column(String(36), primary_key=True, default=_uuid)
    url = Column(String(500), nullable=False)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    vehicle = relationship("Vehicle", back_populates="images")


class Expense(Base):
    """Money spent on a vehicle (repairs, transport, commission...)."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=_uuid)
    type = Column(String(50), nullable=False)
    description = Column(Text, nullable=False, default="")
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False, default=utcnow)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    vehicle = relationship("Vehicle", back_populates="expenses")
    receipts = relationship("ExpenseReceipt", back_populates="expense", order_by="ExpenseReceipt.created_at")


class ExpenseReceipt(Base):
    __tablename__ = "expense_receipts"

    id = Column(String(36), primary_key=True, default=_uuid)
    url = Column(String(500), nullable=False)
    expense_id = Column(String(36), ForeignKey("expenses.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    expense = relationship("Expense", back_populates="receipts")


class MarketPrice(Base):
    """Reference prices used to project profit before the vehicle sells."""

    __tablename__ = "market_prices"

    id = Column(String(36), primary_key=True, default=_uuid)
    wholesale = Column(Float, nullable=False, default=0.0)
    mmr = Column(Float, nullable=False, default=0.0)
    retail = Column(Float, nullable=False, default=0.0)
    repasse = Column(Float, nullable=False, default=0.0)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), unique=True, nullable=False)

    vehicle = relationship("Vehicle", back_populates="market_price")


class SaleInfo(Base):
    """Written exactly once, when the vehicle is sold."""

    __tablename__ = "sale_info"

    id = Column(String(36), primary_key=True, default=_uuid)
    sale_price = Column(Float, nullable=False)
    sale_date = Column(DateTime, nullable=False, default=utcnow)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), unique=True, nullable=False)

    vehicle = relationship("Vehicle", back_populates="sale_info")


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


class Customer(Base):
    """A buyer applying to purchase a vehicle, owned by the operator who entered it."""

    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=_uuid)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    birth_date = Column(DateTime, nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    passport_url = Column(String(500), nullable=False)
    address = Column(String(500))
    city = Column(String(100))
    state = Column(String(50))
    zip_code = Column(String(20))
    residence_type = Column(String(20))  # RENTAL, MORTGAGE, OWNED
    residence_years = Column(Integer, default=0)
    residence_months = Column(Integer, default=0)
    profession = Column(String(255))
    monthly_income = Column(Float, default=0.0)
    job_years = Column(Integer, default=0)
    job_months = Column(Integer, default=0)
    status = Column(String(20), nullable=False, default=CustomerStatus.NEW.value, index=True)
    status_updated_at = Column(DateTime, default=utcnow)
    operator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    operator = relationship("User")
    vehicle = relationship("Vehicle")
    status_history = relationship(
        "CustomerStatusHistory",
        back_populates="customer",
        order_by="CustomerStatusHistory.created_at",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CustomerStatusHistory(Base):
    """Append-only audit row, one per customer status change (including the initial 'new')."""

    __tablename__ = "customer_status_history"

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    updated_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    customer = relationship("Customer", back_populates="status_history")


# ---------------------------------------------------------------------------
# Public leads
# ---------------------------------------------------------------------------


class Contact(Base):
    """Lead captured by the public contact form.

    ``status`` is the follow-up stage; ``is_read`` is the inbox flag. The two
    are independent.
    """

    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=_uuid)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=ContactStatus.PENDING.value)
    is_read = Column(Boolean, nullable=False, default=False)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    vehicle = relationship("Vehicle")
