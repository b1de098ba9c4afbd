"""Report routes: period summary, PDF export and dashboard headline numbers."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.app.config import get_settings
from loyal_auto.app.routes.auth import get_current_user_dep
from loyal_auto.domain.models import User
from loyal_auto.domain.schemas import DashboardResponse, ReportSummary
from loyal_auto.infra.database import get_db
from loyal_auto.services.report_pdf import render_report_pdf
from loyal_auto.services.report_service import ReportService, build_report

router = APIRouter(tags=["reports"])


@router.get("/api/reports/summary", response_model=ReportSummary)
async def report_summary(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService(db).summary(start_date, end_date)


@router.get("/api/reports/export.pdf")
async def export_report_pdf(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    vehicles = await ReportService(db).load_vehicles()
    report = build_report(vehicles, start_date, end_date)
    pdf = render_report_pdf(report, vehicles, get_settings().dealership_name)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": "inline; filename=inventory-report.pdf"},
    )


@router.get("/api/dashboard", response_model=DashboardResponse)
async def dashboard(
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService(db).dashboard()
