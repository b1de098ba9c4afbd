"""Domain enumerations for the dealership.

All enums use the (str, Enum) pattern to ensure JSON serialization compatibility.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role carried in the access token and checked by every protected route."""

    ADMIN = "admin"
    OPERATOR = "operator"


class VehicleStatus(str, Enum):
    """Where a vehicle is in the inventory lifecycle."""

    ACQUIRED = "acquired"
    IN_PREPARATION = "in_preparation"
    FOR_SALE = "for_sale"
    SOLD = "sold"


class CustomerStatus(str, Enum):
    """Credit-application stage of a customer."""

    NEW = "new"
    ANALYSIS = "analysis"
    APPROVED = "approved"
    REJECTED = "rejected"


class ContactStatus(str, Enum):
    """Follow-up stage of a public contact-form lead."""

    PENDING = "pending"
    CONTACTED = "contacted"
    CLOSED = "closed"


class ResidenceType(str, Enum):
    RENTAL = "RENTAL"
    MORTGAGE = "MORTGAGE"
    OWNED = "OWNED"


class MarketPriceField(str, Enum):
    """Market price references a vehicle can be valued against."""

    WHOLESALE = "wholesale"
    MMR = "mmr"
    RETAIL = "retail"
    REPASSE = "repasse"


class Actor(str, Enum):
    """Who is driving a status transition."""

    ADMIN = "admin"
    OPERATOR = "operator"
    SYSTEM = "system"


# Expense type written for the automatic sales-commission expense
COMMISSION_EXPENSE_TYPE = "other"
COMMISSION_EXPENSE_DESCRIPTION = "Sales Commission"
