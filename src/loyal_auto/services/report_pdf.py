"""Renders the inventory report as a landscape A4 PDF."""

from io import BytesIO

from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas

from loyal_auto.services.financials import total_cost, total_expenses

PAGE_WIDTH, PAGE_HEIGHT = landscape(A4)
TOP = PAGE_HEIGHT - 50
BOTTOM = 50
LINE = 15

# x offsets of the vehicle table columns
VEHICLE_COLUMNS = (
    ("Vehicle", 50),
    ("Status", 300),
    ("Purchase", 400),
    ("Expenses", 490),
    ("Total cost", 580),
    ("Sale price", 680),
)


def _money(value: float | None) -> str:
    if value is None:
        return "-"
    return f"${value:,.2f}"


class _Writer:
    """Tracks the cursor and starts a new page when it runs out of room."""

    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.y = TOP

    def ensure(self, height: float = LINE) -> None:
        if self.y - height < BOTTOM:
            self.c.showPage()
            self.y = TOP

    def line(self, text: str, x: float = 50, font: str = "Helvetica", size: int = 11) -> None:
        self.ensure()
        self.c.setFont(font, size)
        self.c.drawString(x, self.y, text)
        self.y -= LINE

    def row(self, cells: list[str], font: str = "Helvetica", size: int = 10) -> None:
        self.ensure()
        self.c.setFont(font, size)
        for (_, x), text in zip(VEHICLE_COLUMNS, cells):
            self.c.drawString(x, self.y, text)
        self.y -= LINE

    def gap(self, height: float = LINE) -> None:
        self.y -= height


def render_report_pdf(report: dict, vehicles, title: str) -> bytes:
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=landscape(A4))
    c.setTitle(f"{title} - Inventory report")
    w = _Writer(c)

    w.line(title, font="Helvetica-Bold", size=22)
    w.gap(5)
    period = "All time"
    if report.get("start_date") or report.get("end_date"):
        period = f"{report.get('start_date') or '...'} to {report.get('end_date') or '...'}"
    w.line(f"Inventory report: {period}", size=13)
    w.gap()

    w.line("Summary", font="Helvetica-Bold", size=14)
    counts = report["vehicles_by_status"]
    w.line(
        "Vehicles: {total} (acquired {acquired}, in preparation {in_preparation}, "
        "for sale {for_sale}, sold {sold})".format(total=report["total_vehicles"], **counts),
        x=70,
    )
    w.line(f"Total investment: {_money(report['total_investment'])}", x=70)
    w.line(f"Total expenses: {_money(report['total_expenses'])}", x=70)
    w.line(f"Total sales: {_money(report['total_sales'])}", x=70)
    w.line(f"Total profit: {_money(report['total_profit'])}", x=70)
    w.gap()

    if report["expenses_by_type"]:
        w.line("Expenses by type", font="Helvetica-Bold", size=14)
        for expense_type, amount in report["expenses_by_type"].items():
            w.line(f"- {expense_type}: {_money(amount)}", x=70)
        w.gap()

    w.line("Market projection (unsold stock)", font="Helvetica-Bold", size=14)
    for field, projection in report["market_projection"].items():
        w.line(
            f"- {field}: {projection['vehicle_count']} vehicles, profit "
            f"{_money(projection['total_profit'])}, average margin {projection['average_margin']:.1f}%",
            x=70,
        )
    w.gap()

    w.ensure(3 * LINE)
    w.line("Vehicles", font="Helvetica-Bold", size=14)
    w.row([name for name, _ in VEHICLE_COLUMNS], font="Helvetica-Bold")
    for vehicle in vehicles:
        sale_price = vehicle.sale_info.sale_price if vehicle.sale_info is not None else None
        w.row([
            f"{vehicle.year} {vehicle.brand} {vehicle.model}"[:45],
            vehicle.status,
            _money(vehicle.purchase_price),
            _money(total_expenses(vehicle)),
            _money(total_cost(vehicle)),
            _money(sale_price),
        ])

    c.showPage()
    c.save()
    return buffer.getvalue()
