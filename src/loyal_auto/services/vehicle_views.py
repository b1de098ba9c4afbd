"""Response shapes for vehicles; nested collections must already be loaded."""

from loyal_auto.domain.schemas import (
    CustomerVehicleSummary,
    PublicVehicleResponse,
    VehicleImageResponse,
    VehicleResponse,
)
from loyal_auto.services.financials import vehicle_financials


def _retail_price(vehicle) -> float | None:
    if vehicle.market_price is None:
        return None
    return vehicle.market_price.retail


def serialize_vehicle(vehicle) -> dict:
    """Full vehicle plus its derived financials."""
    data = VehicleResponse.model_validate(vehicle).model_dump(mode="json")
    data["financials"] = vehicle_financials(vehicle)
    return data


def public_vehicle(vehicle) -> PublicVehicleResponse:
    """What the marketing site may see: no costs, no expenses."""
    return PublicVehicleResponse(
        id=vehicle.id,
        brand=vehicle.brand,
        model=vehicle.model,
        year=vehicle.year,
        color=vehicle.color,
        mileage=vehicle.mileage,
        images=[VehicleImageResponse.model_validate(img) for img in vehicle.images],
        retail_price=_retail_price(vehicle),
    )


def vehicle_summary(vehicle) -> CustomerVehicleSummary:
    return CustomerVehicleSummary(
        id=vehicle.id,
        brand=vehicle.brand,
        model=vehicle.model,
        year=vehicle.year,
        retail_price=_retail_price(vehicle),
        image_url=vehicle.images[0].url if vehicle.images else None,
    )
