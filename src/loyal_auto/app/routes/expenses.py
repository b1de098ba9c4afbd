"""Expense receipt routes."""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.app.routes.auth import get_current_user_dep, require_admin
from loyal_auto.domain.models import User
from loyal_auto.domain.schemas import ExpenseReceiptResponse
from loyal_auto.infra.database import get_db
from loyal_auto.infra.storage import DOCUMENT_CONTENT_TYPES, LocalFileStorage, get_storage
from loyal_auto.services.vehicle_service import VehicleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/expenses", tags=["expenses"])


@router.post(
    "/{expense_id}/receipts",
    response_model=list[ExpenseReceiptResponse],
    status_code=201,
)
async def upload_receipts(
    expense_id: str,
    files: list[UploadFile] = File(...),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    storage: LocalFileStorage = Depends(get_storage),
):
    service = VehicleService(db)
    await service.get_expense(expense_id)
    urls = await storage.save_many(files, "receipts", DOCUMENT_CONTENT_TYPES)
    receipts = await service.add_receipts(expense_id, urls)
    await db.commit()
    logger.info("Stored %d receipts for expense %s", len(receipts), expense_id)
    return [ExpenseReceiptResponse.model_validate(r) for r in receipts]


@router.get("/{expense_id}/receipts", response_model=list[ExpenseReceiptResponse])
async def list_receipts(
    expense_id: str,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    receipts = await VehicleService(db).list_receipts(expense_id)
    return [ExpenseReceiptResponse.model_validate(r) for r in receipts]
