"""Inventory reporting: status buckets, period totals and market projections.

The aggregation functions are pure and take any iterable of vehicle-like
objects; ReportService only loads the vehicle set and hands it over.
"""

import logging
from collections import defaultdict
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from loyal_auto.domain.enums import CustomerStatus, MarketPriceField, VehicleStatus
from loyal_auto.domain.errors import ValidationError
from loyal_auto.domain.models import Contact, Customer, Vehicle
from loyal_auto.services.financials import profit_margin, total_cost, total_expenses
from loyal_auto.services.vehicle_views import public_vehicle

logger = logging.getLogger(__name__)

RECENT_VEHICLES_LIMIT = 5


def in_period(value: datetime | None, start: date | None, end: date | None) -> bool:
    """Whether a timestamp falls in [start, end], both days inclusive.

    Items without a date never count towards a period total.
    """
    if value is None:
        return False
    day = value.date()
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def count_by_status(vehicles) -> dict[str, int]:
    counts = {status.value: 0 for status in VehicleStatus}
    for vehicle in vehicles:
        counts[vehicle.status] = counts.get(vehicle.status, 0) + 1
    return counts


def market_projection(vehicles) -> dict[str, dict]:
    """Profit and average margin if unsold stock went at each market price.

    Only vehicles with a non-zero price for the field take part; the average
    margin is 0 when none do.
    """
    unsold = [v for v in vehicles if v.status != VehicleStatus.SOLD.value]
    projection = {}
    for field in MarketPriceField:
        priced = [
            v for v in unsold
            if v.market_price is not None and getattr(v.market_price, field.value)
        ]
        profit = 0.0
        margins = 0.0
        for vehicle in priced:
            price = getattr(vehicle.market_price, field.value)
            cost = total_cost(vehicle)
            profit += price - cost
            margins += profit_margin(price, cost)
        projection[field.value] = {
            "vehicle_count": len(priced),
            "total_profit": round(profit, 2),
            "average_margin": round(margins / len(priced), 2) if priced else 0.0,
        }
    return projection


def build_report(vehicles, start: date | None = None, end: date | None = None) -> dict:
    """Summarise the vehicle set for the period.

    Investment is the purchase price of every vehicle regardless of period;
    expenses and sales only count when their own date is in the period.
    """
    if start and end and start > end:
        raise ValidationError("start_date must not be after end_date")
    vehicles = list(vehicles)

    total_investment = sum((v.purchase_price or 0.0) for v in vehicles)

    expenses_by_type: dict[str, float] = defaultdict(float)
    for vehicle in vehicles:
        for expense in vehicle.expenses or []:
            if in_period(expense.date, start, end):
                expenses_by_type[expense.type] += expense.amount or 0.0
    period_expenses = sum(expenses_by_type.values())

    total_sales = sum(
        v.sale_info.sale_price or 0.0
        for v in vehicles
        if v.sale_info is not None and in_period(v.sale_info.sale_date, start, end)
    )

    return {
        "start_date": start,
        "end_date": end,
        "vehicles_by_status": count_by_status(vehicles),
        "total_vehicles": len(vehicles),
        "total_investment": round(total_investment, 2),
        "total_expenses": round(period_expenses, 2),
        "total_sales": round(total_sales, 2),
        "total_profit": round(total_sales - total_investment - period_expenses, 2),
        "expenses_by_type": {k: round(v, 2) for k, v in sorted(expenses_by_type.items())},
        "market_projection": market_projection(vehicles),
    }


def build_dashboard(vehicles) -> dict:
    """Headline numbers for the landing page, over all time.

    Investment here is the full cost basis (purchase plus expenses) and
    profit is revenue minus that basis.
    """
    vehicles = list(vehicles)
    investment = sum(total_cost(v) for v in vehicles)
    revenue = sum(v.sale_info.sale_price for v in vehicles if v.sale_info is not None)
    recent = [v for v in vehicles if v.images][:RECENT_VEHICLES_LIMIT]
    return {
        "vehicles_by_status": count_by_status(vehicles),
        "total_vehicles": len(vehicles),
        "total_investment": round(investment, 2),
        "total_revenue": round(revenue, 2),
        "total_expenses": round(sum(total_expenses(v) for v in vehicles), 2),
        "total_profit": round(revenue - investment, 2),
        "recent_vehicles": [public_vehicle(v) for v in recent],
    }


class ReportService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_vehicles(self) -> list[Vehicle]:
        result = await self.db.execute(
            select(Vehicle)
            .options(
                selectinload(Vehicle.images),
                selectinload(Vehicle.expenses),
                selectinload(Vehicle.market_price),
                selectinload(Vehicle.sale_info),
            )
            .order_by(Vehicle.created_at.desc())
        )
        return list(result.scalars().all())

    async def summary(self, start: date | None = None, end: date | None = None) -> dict:
        vehicles = await self.load_vehicles()
        report = build_report(vehicles, start, end)
        logger.info(
            "Report %s..%s over %d vehicles: profit %.2f",
            start, end, report["total_vehicles"], report["total_profit"],
        )
        return report

    async def dashboard(self) -> dict:
        data = build_dashboard(await self.load_vehicles())

        unread_contacts = await self.db.execute(
            select(func.count(Contact.id)).where(Contact.is_read.is_(False))
        )
        in_analysis = await self.db.execute(
            select(func.count(Customer.id)).where(Customer.status == CustomerStatus.ANALYSIS.value)
        )
        data["unread_contacts"] = unread_contacts.scalar_one()
        data["customers_in_analysis"] = in_analysis.scalar_one()
        return data
