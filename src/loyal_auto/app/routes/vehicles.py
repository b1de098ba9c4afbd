"""Vehicle inventory routes: CRUD, status, sale, expenses and images."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.app.routes.auth import actor_for, get_current_user_dep, require_admin
from loyal_auto.domain.enums import VehicleStatus
from loyal_auto.domain.errors import DealershipError
from loyal_auto.domain.models import User
from loyal_auto.domain.schemas import (
    ExpenseCreate,
    ExpenseResponse,
    ImageUrlCreate,
    MarketPriceData,
    PublicVehicleResponse,
    SaleInfoResponse,
    SellRequest,
    SellResponse,
    StatusUpdate,
    UploadedFileResponse,
    VehicleImageResponse,
    VehicleUpdate,
)
from loyal_auto.infra.database import get_db
from loyal_auto.infra.storage import LocalFileStorage, get_storage
from loyal_auto.services.vehicle_service import VehicleService, check_new_vehicle
from loyal_auto.services.vehicle_views import public_vehicle, serialize_vehicle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vehicles", tags=["vehicles"])

VEHICLE_IMAGE_FOLDER = "vehicles"


@router.get("")
async def list_vehicles(
    status: str | None = Query(None),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    vehicles = await VehicleService(db).list_vehicles(status)
    return [serialize_vehicle(v) for v in vehicles]


@router.post("", status_code=201)
async def create_vehicle(
    brand: str = Form(...),
    model: str = Form(...),
    year: int = Form(...),
    purchase_price: float = Form(..., allow_inf_nan=False),
    color: str | None = Form(None),
    vin: str | None = Form(None),
    mileage: float | None = Form(None, allow_inf_nan=False),
    purchase_date: datetime | None = Form(None),
    commission_value: float | None = Form(None, allow_inf_nan=False),
    description: str | None = Form(None),
    wholesale: float | None = Form(None, allow_inf_nan=False),
    mmr: float | None = Form(None, allow_inf_nan=False),
    retail: float | None = Form(None, allow_inf_nan=False),
    repasse: float | None = Form(None, allow_inf_nan=False),
    images: list[UploadFile] | None = File(None),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
):
    """Create a vehicle from the intake form, storing any attached photos."""
    check_new_vehicle(brand, model, purchase_price)

    image_urls = []
    if images:
        image_urls = await storage.save_many(images, VEHICLE_IMAGE_FOLDER)

    try:
        vehicle = await VehicleService(db).create_vehicle(
            brand=brand,
            model=model,
            year=year,
            purchase_price=purchase_price,
            color=color,
            vin=vin,
            mileage=mileage,
            purchase_date=purchase_date,
            commission_value=commission_value,
            description=description,
            market_prices=MarketPriceData(wholesale=wholesale, mmr=mmr, retail=retail, repasse=repasse),
            image_urls=image_urls,
        )
        await db.commit()
    except (DealershipError, SQLAlchemyError):
        # Drop photos of a vehicle that was not created
        for url in image_urls:
            storage.delete(url)
        raise
    return serialize_vehicle(vehicle)


@router.post("/upload", response_model=list[UploadedFileResponse], status_code=201)
async def upload_images(
    files: list[UploadFile] = File(...),
    user: User = Depends(get_current_user_dep),
    storage: LocalFileStorage = Depends(get_storage),
):
    """Store photos ahead of a create/update; returns their URLs."""
    urls = await storage.save_many(files, VEHICLE_IMAGE_FOLDER)
    return [UploadedFileResponse(url=url) for url in urls]


@router.get("/public", response_model=list[PublicVehicleResponse])
async def list_public_vehicles(db: AsyncSession = Depends(get_db)):
    """Vehicles currently for sale, without any cost data."""
    vehicles = await VehicleService(db).list_vehicles(VehicleStatus.FOR_SALE.value)
    return [public_vehicle(v) for v in vehicles]


@router.get("/public/{vehicle_id}", response_model=PublicVehicleResponse)
async def get_public_vehicle(vehicle_id: str, db: AsyncSession = Depends(get_db)):
    vehicle = await VehicleService(db).get_vehicle(vehicle_id)
    return public_vehicle(vehicle)


@router.get("/{vehicle_id}")
async def get_vehicle(
    vehicle_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    vehicle = await VehicleService(db).get_vehicle(vehicle_id)
    return serialize_vehicle(vehicle)


@router.put("/{vehicle_id}")
async def update_vehicle(
    vehicle_id: str,
    data: VehicleUpdate,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    vehicle = await VehicleService(db).update_vehicle(vehicle_id, data)
    await db.commit()
    return serialize_vehicle(vehicle)


@router.delete("/{vehicle_id}", status_code=204)
async def delete_vehicle(
    vehicle_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await VehicleService(db).delete_vehicle(vehicle_id)
    await db.commit()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.put("/{vehicle_id}/status")
async def update_status(
    vehicle_id: str,
    data: StatusUpdate,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    vehicle = await VehicleService(db).update_status(vehicle_id, data.status, actor_for(user))
    await db.commit()
    return serialize_vehicle(vehicle)


@router.post("/{vehicle_id}/sell", response_model=SellResponse)
async def sell_vehicle(
    vehicle_id: str,
    data: SellRequest,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    sale_info, vehicle = await VehicleService(db).sell(
        vehicle_id,
        sale_price=data.sale_price,
        has_commission=data.has_commission,
        commission_value=data.commission_value,
    )
    await db.commit()
    return SellResponse(
        sale_info=SaleInfoResponse.model_validate(sale_info),
        vehicle=serialize_vehicle(vehicle),
    )


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------


@router.post("/{vehicle_id}/expenses", status_code=201)
async def add_expense(
    vehicle_id: str,
    data: ExpenseCreate,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    expense, vehicle = await VehicleService(db).add_expense(
        vehicle_id,
        type=data.type,
        description=data.description,
        amount=data.amount,
        date=data.date,
    )
    await db.commit()
    return {
        "expense": ExpenseResponse.model_validate(expense).model_dump(mode="json"),
        "vehicle": serialize_vehicle(vehicle),
    }


@router.delete("/{vehicle_id}/expenses", status_code=204)
async def delete_expense(
    vehicle_id: str,
    expense_id: str | None = Query(None),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    await VehicleService(db).delete_expense(vehicle_id, expense_id)
    await db.commit()


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


@router.post("/{vehicle_id}/images", response_model=list[VehicleImageResponse], status_code=201)
async def add_image_url(
    vehicle_id: str,
    data: ImageUrlCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    images = await VehicleService(db).add_images(vehicle_id, [data.image_url])
    await db.commit()
    return [VehicleImageResponse.model_validate(img) for img in images]


@router.post(
    "/{vehicle_id}/images/upload",
    response_model=list[VehicleImageResponse],
    status_code=201,
)
async def upload_vehicle_images(
    vehicle_id: str,
    files: list[UploadFile] = File(...),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
):
    service = VehicleService(db)
    await service.get_vehicle(vehicle_id)
    urls = await storage.save_many(files, VEHICLE_IMAGE_FOLDER)
    images = await service.add_images(vehicle_id, urls)
    await db.commit()
    logger.info("Uploaded %d images for vehicle %s", len(images), vehicle_id)
    return [VehicleImageResponse.model_validate(img) for img in images]


@router.delete("/{vehicle_id}/images", status_code=204)
async def delete_image(
    vehicle_id: str,
    image_id: str | None = Query(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await VehicleService(db).delete_image(vehicle_id, image_id)
    await db.commit()
