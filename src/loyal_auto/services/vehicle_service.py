"""Vehicle Service - inventory lifecycle, expenses, images and sales.

Business rules that used to live in individual route handlers are kept here:
status changes go through the VehicleStateMachine, the first expense on an
acquired vehicle moves it into preparation, and selling writes the SaleInfo,
the status change and the optional commission expense together.

All methods flush but never commit. The caller commits once per request so
every multi-row write lands in a single transaction.
"""

import logging
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from loyal_auto.domain.enums import (
    COMMISSION_EXPENSE_DESCRIPTION,
    COMMISSION_EXPENSE_TYPE,
    Actor,
    VehicleStatus,
)
from loyal_auto.domain.errors import ConflictError, NotFoundError, ValidationError
from loyal_auto.domain.models import (
    Contact,
    Customer,
    Expense,
    ExpenseReceipt,
    MarketPrice,
    SaleInfo,
    Vehicle,
    VehicleImage,
    naive_utc,
    utcnow,
)
from loyal_auto.domain.schemas import MarketPriceData, VehicleUpdate
from loyal_auto.services.vehicle_state_machine import VehicleStateMachine, parse_vehicle_status

logger = logging.getLogger(__name__)

state_machine = VehicleStateMachine()

_VEHICLE_LOAD_OPTIONS = (
    selectinload(Vehicle.images),
    selectinload(Vehicle.expenses),
    selectinload(Vehicle.market_price),
    selectinload(Vehicle.sale_info),
)

_UPDATABLE_FIELDS = (
    "brand",
    "model",
    "year",
    "color",
    "vin",
    "mileage",
    "purchase_price",
    "purchase_date",
    "commission_value",
    "description",
)


def _market_price_values(prices: MarketPriceData | dict) -> dict:
    """Normalise a market price payload; missing or null values become 0."""
    if isinstance(prices, MarketPriceData):
        prices = prices.model_dump()
    return {
        "wholesale": float(prices.get("wholesale") or 0),
        "mmr": float(prices.get("mmr") or 0),
        "retail": float(prices.get("retail") or 0),
        "repasse": float(prices.get("repasse") or 0),
    }


def check_new_vehicle(brand: str, model: str, purchase_price: float) -> None:
    """Raise a 400 for intake fields a vehicle cannot be created without."""
    if not brand or not brand.strip() or not model or not model.strip():
        raise ValidationError("Brand and model are required")
    if purchase_price is None or purchase_price < 0:
        raise ValidationError("Purchase price must be zero or positive")


class VehicleService:
    """Inventory operations on vehicles and everything they own."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_vehicles(self, status: str | None = None) -> list[Vehicle]:
        query = select(Vehicle).options(*_VEHICLE_LOAD_OPTIONS)
        if status:
            query = query.where(Vehicle.status == parse_vehicle_status(status).value)
        query = query.order_by(Vehicle.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_vehicle(self, vehicle_id: str) -> Vehicle:
        """Load a vehicle with all nested collections, re-reading rows already in the session."""
        result = await self.db.execute(
            select(Vehicle)
            .where(Vehicle.id == vehicle_id)
            .options(*_VEHICLE_LOAD_OPTIONS)
            .execution_options(populate_existing=True)
        )
        vehicle = result.scalar_one_or_none()
        if not vehicle:
            raise NotFoundError("Vehicle not found")
        return vehicle

    async def _get_status(self, vehicle_id: str) -> VehicleStatus:
        result = await self.db.execute(select(Vehicle.status).where(Vehicle.id == vehicle_id))
        status = result.scalar_one_or_none()
        if status is None:
            raise NotFoundError("Vehicle not found")
        return VehicleStatus(status)

    # ------------------------------------------------------------------
    # Create / update / delete
    # ------------------------------------------------------------------

    async def create_vehicle(
        self,
        brand: str,
        model: str,
        year: int,
        purchase_price: float,
        color: str | None = None,
        vin: str | None = None,
        mileage: float | None = None,
        purchase_date: datetime | None = None,
        commission_value: float | None = None,
        description: str | None = None,
        market_prices: MarketPriceData | dict | None = None,
        image_urls: list[str] | None = None,
    ) -> Vehicle:
        """Create a vehicle in ``acquired`` with its market prices and images."""
        check_new_vehicle(brand, model, purchase_price)

        vehicle = Vehicle(
            brand=brand.strip(),
            model=model.strip(),
            year=year,
            color=color,
            vin=vin.strip().upper() if vin else vin,
            mileage=mileage or 0.0,
            purchase_price=purchase_price,
            purchase_date=naive_utc(purchase_date) if purchase_date else utcnow(),
            commission_value=commission_value,
            description=description,
            status=VehicleStatus.ACQUIRED.value,
        )
        self.db.add(vehicle)
        await self.db.flush()

        self.db.add(MarketPrice(vehicle_id=vehicle.id, **_market_price_values(market_prices or {})))
        for url in image_urls or []:
            self.db.add(VehicleImage(vehicle_id=vehicle.id, url=url))
        await self.db.flush()

        logger.info("Vehicle %s created: %s %s %s", vehicle.id, vehicle.year, vehicle.brand, vehicle.model)
        return await self.get_vehicle(vehicle.id)

    async def update_vehicle(self, vehicle_id: str, data: VehicleUpdate) -> Vehicle:
        """Apply a partial update, upsert market prices and append new image URLs."""
        vehicle = await self.get_vehicle(vehicle_id)
        fields = data.model_dump(exclude_unset=True)

        for name in _UPDATABLE_FIELDS:
            value = fields.get(name)
            if value is None:
                continue
            if isinstance(value, datetime):
                value = naive_utc(value)
            setattr(vehicle, name, value)
        vehicle.updated_at = utcnow()

        if data.market_prices is not None:
            values = _market_price_values(data.market_prices)
            if vehicle.market_price is None:
                self.db.add(MarketPrice(vehicle_id=vehicle.id, **values))
            else:
                for name, value in values.items():
                    setattr(vehicle.market_price, name, value)

        for url in data.images or []:
            self.db.add(VehicleImage(vehicle_id=vehicle.id, url=url))

        await self.db.flush()
        return await self.get_vehicle(vehicle_id)

    async def delete_vehicle(self, vehicle_id: str) -> None:
        """Delete a vehicle and everything it owns, children before parent.

        Customers applying for the vehicle keep it referenced, so such a
        vehicle cannot be deleted. Contact-form leads just lose the link.
        """
        await self._get_status(vehicle_id)

        attached = await self.db.execute(
            select(Customer.id).where(Customer.vehicle_id == vehicle_id).limit(1)
        )
        if attached.scalar_one_or_none() is not None:
            raise ConflictError("Vehicle has customers attached and cannot be deleted")

        expense_ids = select(Expense.id).where(Expense.vehicle_id == vehicle_id)
        await self.db.execute(delete(ExpenseReceipt).where(ExpenseReceipt.expense_id.in_(expense_ids)))
        await self.db.execute(delete(Expense).where(Expense.vehicle_id == vehicle_id))
        await self.db.execute(delete(VehicleImage).where(VehicleImage.vehicle_id == vehicle_id))
        await self.db.execute(delete(MarketPrice).where(MarketPrice.vehicle_id == vehicle_id))
        await self.db.execute(delete(SaleInfo).where(SaleInfo.vehicle_id == vehicle_id))
        await self.db.execute(
            update(Contact).where(Contact.vehicle_id == vehicle_id).values(vehicle_id=None)
        )
        await self.db.execute(delete(Vehicle).where(Vehicle.id == vehicle_id))
        self.db.expunge_all()

        logger.info("Vehicle %s deleted", vehicle_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _transition(self, vehicle: Vehicle, target_status: VehicleStatus, actor: Actor) -> None:
        """Validate and apply a status change on a loaded vehicle."""
        current = VehicleStatus(vehicle.status)
        state_machine.validate_transition(current, target_status, actor)

        vehicle.status = target_status.value
        vehicle.updated_at = utcnow()

        logger.info(
            "Vehicle %s: %s -> %s (actor=%s)",
            vehicle.id,
            current.value,
            target_status.value,
            actor.value,
        )

    async def update_status(self, vehicle_id: str, status: str, actor: Actor) -> Vehicle:
        target = parse_vehicle_status(status)
        vehicle = await self.get_vehicle(vehicle_id)
        self._transition(vehicle, target, actor)
        await self.db.flush()
        return await self.get_vehicle(vehicle_id)

    async def sell(
        self,
        vehicle_id: str,
        sale_price: float,
        has_commission: bool = False,
        commission_value: float | None = None,
    ) -> tuple[SaleInfo, Vehicle]:
        """Record the sale: SaleInfo, status ``sold`` and the optional commission expense.

        The commission amount comes from the request when given, otherwise
        from the commission value stored on the vehicle.
        """
        if sale_price is None or sale_price < 0:
            raise ValidationError("Sale price must be zero or positive")

        vehicle = await self.get_vehicle(vehicle_id)

        commission = None
        if has_commission:
            commission = commission_value if commission_value is not None else vehicle.commission_value
            if commission is not None and commission < 0:
                raise ValidationError("Commission must be zero or positive")

        self._transition(vehicle, VehicleStatus.SOLD, Actor.SYSTEM)

        now = utcnow()
        sale_info = SaleInfo(vehicle_id=vehicle.id, sale_price=sale_price, sale_date=now)
        self.db.add(sale_info)

        if commission:
            self.db.add(
                Expense(
                    vehicle_id=vehicle.id,
                    type=COMMISSION_EXPENSE_TYPE,
                    description=COMMISSION_EXPENSE_DESCRIPTION,
                    amount=commission,
                    date=now,
                )
            )

        await self.db.flush()
        logger.info("Vehicle %s sold for %.2f (commission=%s)", vehicle.id, sale_price, commission)
        return sale_info, await self.get_vehicle(vehicle_id)

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def add_expense(
        self,
        vehicle_id: str,
        type: str,
        description: str,
        amount: float,
        date: datetime | None = None,
    ) -> tuple[Expense, Vehicle]:
        """Record an expense. The first expense on an acquired vehicle starts its preparation."""
        if not type or not type.strip():
            raise ValidationError("Expense type is required")
        if amount is None or amount <= 0:
            raise ValidationError("Expense amount must be greater than zero")

        vehicle = await self.get_vehicle(vehicle_id)

        expense = Expense(
            vehicle_id=vehicle.id,
            type=type.strip(),
            description=description or "",
            amount=amount,
            date=naive_utc(date) if date else utcnow(),
        )
        self.db.add(expense)

        if VehicleStatus(vehicle.status) == VehicleStatus.ACQUIRED:
            self._transition(vehicle, VehicleStatus.IN_PREPARATION, Actor.SYSTEM)

        await self.db.flush()
        return expense, await self.get_vehicle(vehicle_id)

    async def delete_expense(self, vehicle_id: str, expense_id: str | None) -> None:
        """Delete an expense of this vehicle, its receipts first."""
        if not expense_id:
            raise ValidationError("Expense id is required")

        result = await self.db.execute(
            select(Expense.id).where(Expense.id == expense_id, Expense.vehicle_id == vehicle_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Expense not found")

        await self.db.execute(delete(ExpenseReceipt).where(ExpenseReceipt.expense_id == expense_id))
        await self.db.execute(delete(Expense).where(Expense.id == expense_id))
        self.db.expunge_all()
        logger.info("Expense %s deleted from vehicle %s", expense_id, vehicle_id)

    async def get_expense(self, expense_id: str) -> Expense:
        result = await self.db.execute(
            select(Expense).where(Expense.id == expense_id).options(selectinload(Expense.receipts))
        )
        expense = result.scalar_one_or_none()
        if not expense:
            raise NotFoundError("Expense not found")
        return expense

    async def add_receipts(self, expense_id: str, urls: list[str]) -> list[ExpenseReceipt]:
        await self.get_expense(expense_id)
        receipts = [ExpenseReceipt(expense_id=expense_id, url=url) for url in urls]
        self.db.add_all(receipts)
        await self.db.flush()
        return receipts

    async def list_receipts(self, expense_id: str) -> list[ExpenseReceipt]:
        await self.get_expense(expense_id)
        result = await self.db.execute(
            select(ExpenseReceipt)
            .where(ExpenseReceipt.expense_id == expense_id)
            .order_by(ExpenseReceipt.created_at.desc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def add_images(self, vehicle_id: str, urls: list[str]) -> list[VehicleImage]:
        await self._get_status(vehicle_id)
        images = [VehicleImage(vehicle_id=vehicle_id, url=url) for url in urls]
        self.db.add_all(images)
        await self.db.flush()
        return images

    async def delete_image(self, vehicle_id: str, image_id: str | None) -> None:
        if not image_id:
            raise ValidationError("Image id is required")
        result = await self.db.execute(
            select(VehicleImage).where(
                VehicleImage.id == image_id, VehicleImage.vehicle_id == vehicle_id
            )
        )
        image = result.scalar_one_or_none()
        if not image:
            raise NotFoundError("Image not found")
        await self.db.delete(image)
        await self.db.flush()
