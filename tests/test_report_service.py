"""Report aggregation: pure functions plus the HTTP surface."""

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from loyal_auto.app.routes.reports import router as reports_router
from loyal_auto.domain.errors import ValidationError
from loyal_auto.services.report_pdf import render_report_pdf
from loyal_auto.services.report_service import (
    build_dashboard,
    build_report,
    in_period,
    market_projection,
)


def _expense(amount, when, type="repair"):
    return SimpleNamespace(amount=amount, date=when, type=type)


def _vehicle(status, purchase_price, expenses=(), market=None, sale=None, images=()):
    return SimpleNamespace(
        id=f"v-{purchase_price}",
        brand="Ford",
        model="Focus",
        year=2018,
        color=None,
        mileage=None,
        status=status,
        purchase_price=purchase_price,
        expenses=list(expenses),
        market_price=SimpleNamespace(**market) if market is not None else None,
        sale_info=SimpleNamespace(sale_price=sale[0], sale_date=sale[1]) if sale else None,
        images=[SimpleNamespace(id=f"img-{i}", url=u) for i, u in enumerate(images)],
    )


@pytest.fixture
def two_vehicles():
    """One sold vehicle and one listed vehicle."""
    return [
        _vehicle(
            "sold", 10000.0,
            expenses=[_expense(1000.0, datetime(2025, 3, 10))],
            sale=(13000.0, datetime(2025, 4, 1)),
        ),
        _vehicle(
            "for_sale", 8000.0,
            expenses=[_expense(500.0, datetime(2025, 5, 2), type="transport")],
        ),
    ]


class TestBuildReport:

    def test_unfiltered_totals(self, two_vehicles):
        report = build_report(two_vehicles)
        assert report["total_investment"] == 18000.0
        assert report["total_expenses"] == 1500.0
        assert report["total_sales"] == 13000.0
        assert report["total_profit"] == -6500.0
        assert report["total_vehicles"] == 2

    def test_status_buckets_cover_every_state(self, two_vehicles):
        counts = build_report(two_vehicles)["vehicles_by_status"]
        assert counts == {"acquired": 0, "in_preparation": 0, "for_sale": 1, "sold": 1}

    def test_expenses_by_type(self, two_vehicles):
        assert build_report(two_vehicles)["expenses_by_type"] == {"repair": 1000.0, "transport": 500.0}

    def test_period_filters_expenses_and_sales_but_not_investment(self, two_vehicles):
        report = build_report(two_vehicles, start=date(2025, 5, 1), end=date(2025, 5, 31))
        assert report["total_investment"] == 18000.0
        assert report["total_expenses"] == 500.0
        assert report["total_sales"] == 0.0
        assert report["total_profit"] == -18500.0
        assert report["expenses_by_type"] == {"transport": 500.0}

    def test_end_date_is_inclusive(self, two_vehicles):
        report = build_report(two_vehicles, start=date(2025, 4, 1), end=date(2025, 4, 1))
        assert report["total_sales"] == 13000.0

    def test_start_after_end_rejected(self, two_vehicles):
        with pytest.raises(ValidationError):
            build_report(two_vehicles, start=date(2025, 6, 1), end=date(2025, 5, 1))

    def test_empty_inventory(self):
        report = build_report([])
        assert report["total_profit"] == 0.0
        assert all(p["average_margin"] == 0.0 for p in report["market_projection"].values())


class TestInPeriod:

    def test_missing_date_never_counts(self):
        assert in_period(None, None, None) is False

    def test_open_range(self):
        assert in_period(datetime(2020, 1, 1), None, None) is True

    def test_late_in_end_day(self):
        assert in_period(datetime(2025, 5, 31, 23, 59), date(2025, 5, 1), date(2025, 5, 31)) is True

    def test_before_start(self):
        assert in_period(datetime(2025, 4, 30, 23, 59), date(2025, 5, 1), None) is False


class TestMarketProjection:

    def test_only_unsold_with_nonzero_price(self):
        vehicles = [
            _vehicle("for_sale", 10000.0, market={"wholesale": 9000.0, "mmr": 0.0, "retail": 12000.0, "repasse": 0.0}),
            _vehicle("acquired", 5000.0, market={"wholesale": 0.0, "mmr": 0.0, "retail": 6000.0, "repasse": 0.0}),
            _vehicle("sold", 7000.0, market={"wholesale": 1.0, "mmr": 1.0, "retail": 99999.0, "repasse": 1.0},
                     sale=(8000.0, datetime(2025, 1, 1))),
            _vehicle("in_preparation", 3000.0),
        ]
        projection = market_projection(vehicles)

        assert projection["retail"]["vehicle_count"] == 2
        assert projection["retail"]["total_profit"] == 3000.0
        # margins 20% and 20%
        assert projection["retail"]["average_margin"] == 20.0

        assert projection["wholesale"]["vehicle_count"] == 1
        assert projection["wholesale"]["total_profit"] == -1000.0
        assert projection["wholesale"]["average_margin"] == -10.0

        assert projection["mmr"] == {"vehicle_count": 0, "total_profit": 0.0, "average_margin": 0.0}


class TestDashboard:

    def test_totals_use_full_cost_basis(self, two_vehicles):
        data = build_dashboard(two_vehicles)
        assert data["total_investment"] == 19500.0
        assert data["total_revenue"] == 13000.0
        assert data["total_expenses"] == 1500.0
        assert data["total_profit"] == -6500.0

    def test_recent_vehicles_need_images(self):
        vehicles = [_vehicle("for_sale", float(i), images=["/uploads/vehicles/a.jpg"]) for i in range(1, 8)]
        vehicles.append(_vehicle("for_sale", 100.0))
        recent = build_dashboard(vehicles)["recent_vehicles"]
        assert len(recent) == 5
        assert all(v.images for v in recent)


class TestPdf:

    def test_renders_pdf(self, two_vehicles):
        pdf = render_report_pdf(build_report(two_vehicles), two_vehicles, "Loyal Auto Sales")
        assert pdf.startswith(b"%PDF")

    def test_many_vehicles_paginate(self):
        vehicles = [_vehicle("for_sale", float(i)) for i in range(1, 120)]
        pdf = render_report_pdf(build_report(vehicles), vehicles, "Loyal Auto Sales")
        assert pdf.startswith(b"%PDF")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
async def operator(make_user):
    return await make_user(role="operator")


@pytest.fixture
def client(make_client):
    return make_client(reports_router)


class TestReportRoutes:

    async def test_summary_requires_auth(self, client):
        async with client as ac:
            resp = await ac.get("/api/reports/summary")
        assert resp.status_code == 401

    async def test_summary_from_database(self, client, operator, auth_headers, make_vehicle):
        await make_vehicle(status="sold", purchase_price=10000.0, expenses=[1000.0], sale_price=13000.0)
        await make_vehicle(status="for_sale", purchase_price=8000.0, expenses=[500.0])

        async with client as ac:
            resp = await ac.get("/api/reports/summary", headers=auth_headers(operator))

        assert resp.status_code == 200
        body = resp.json()
        assert body["total_investment"] == 18000.0
        assert body["total_expenses"] == 1500.0
        assert body["total_sales"] == 13000.0
        assert body["total_profit"] == -6500.0

    async def test_summary_with_bad_range(self, client, operator, auth_headers):
        async with client as ac:
            resp = await ac.get(
                "/api/reports/summary",
                params={"start_date": "2025-06-01", "end_date": "2025-05-01"},
                headers=auth_headers(operator),
            )
        assert resp.status_code == 400

    async def test_summary_with_malformed_date(self, client, operator, auth_headers):
        async with client as ac:
            resp = await ac.get(
                "/api/reports/summary",
                params={"start_date": "yesterday"},
                headers=auth_headers(operator),
            )
        assert resp.status_code == 400

    async def test_export_pdf(self, client, operator, auth_headers, make_vehicle):
        await make_vehicle(status="for_sale", market_prices={"retail": 12000.0})
        async with client as ac:
            resp = await ac.get("/api/reports/export.pdf", headers=auth_headers(operator))
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")

    async def test_dashboard(self, client, operator, auth_headers, make_vehicle):
        await make_vehicle(status="acquired", purchase_price=5000.0, images=["/uploads/vehicles/x.jpg"])
        async with client as ac:
            resp = await ac.get("/api/dashboard", headers=auth_headers(operator))
        assert resp.status_code == 200
        body = resp.json()
        assert body["vehicles_by_status"]["acquired"] == 1
        assert body["total_investment"] == 5000.0
        assert body["unread_contacts"] == 0
        assert len(body["recent_vehicles"]) == 1
        assert "purchase_price" not in body["recent_vehicles"][0]
