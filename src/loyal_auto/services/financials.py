"""Vehicle financial figures, recomputed from persisted data on every read.

All functions accept ORM rows or any object with the same attribute names
(``purchase_price``, ``expenses[].amount``, ``market_price``, ``sale_info``).
"""

from loyal_auto.domain.enums import MarketPriceField


def total_expenses(vehicle) -> float:
    return sum((e.amount or 0.0) for e in (vehicle.expenses or []))


def total_cost(vehicle) -> float:
    """Purchase price plus every expense recorded against the vehicle."""
    return (vehicle.purchase_price or 0.0) + total_expenses(vehicle)


def market_value(vehicle, field: MarketPriceField) -> float | None:
    """The vehicle's market price for ``field``; None without a MarketPrice row."""
    if vehicle.market_price is None:
        return None
    return getattr(vehicle.market_price, MarketPriceField(field).value) or 0.0


def profit(vehicle, field: MarketPriceField) -> float | None:
    """Projected profit if sold at the given market price."""
    value = market_value(vehicle, field)
    if value is None:
        return None
    return value - total_cost(vehicle)


def profit_margin(revenue: float, cost: float) -> float:
    """Margin over cost, in percent. Zero cost yields zero rather than dividing."""
    if cost == 0:
        return 0.0
    return (revenue - cost) / cost * 100


def realized_profit(vehicle) -> float | None:
    """Sale price minus total cost; None until the vehicle has been sold."""
    if vehicle.sale_info is None:
        return None
    return vehicle.sale_info.sale_price - total_cost(vehicle)


def vehicle_financials(vehicle) -> dict:
    """All derived figures for one vehicle, in API shape."""
    cost = total_cost(vehicle)
    projected_profit: dict[str, float] = {}
    projected_margin: dict[str, float] = {}
    if vehicle.market_price is not None:
        for field in MarketPriceField:
            value = market_value(vehicle, field)
            projected_profit[field.value] = round(value - cost, 2)
            projected_margin[field.value] = round(profit_margin(value, cost), 2)

    realized = realized_profit(vehicle)
    realized_margin = None
    if realized is not None:
        realized_margin = round(profit_margin(vehicle.sale_info.sale_price, cost), 2)
        realized = round(realized, 2)

    return {
        "total_expenses": round(total_expenses(vehicle), 2),
        "total_cost": round(cost, 2),
        "projected_profit": projected_profit,
        "projected_margin": projected_margin,
        "realized_profit": realized,
        "realized_margin": realized_margin,
    }
