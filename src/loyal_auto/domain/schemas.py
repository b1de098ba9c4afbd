"""Pydantic v2 schemas for API request/response validation."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Auth / Users
# ---------------------------------------------------------------------------


class UserLogin(BaseModel):
    """Schema for user login."""

    email: str
    password: str


class UserCreate(BaseModel):
    """Schema for an admin creating a new staff account."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    role: str = "operator"


class UserResponse(BaseModel):
    """Schema for user API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class TokenResponse(BaseModel):
    """Schema for JWT token responses."""

    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class PasswordResetResponse(BaseModel):
    success: bool = True
    new_password: str


class UserActiveToggle(BaseModel):
    active: bool


class UserRoleUpdate(BaseModel):
    role: str


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------


class MarketPriceData(BaseModel):
    """Market price references; missing values count as zero."""

    wholesale: float | None = Field(default=0.0, allow_inf_nan=False)
    mmr: float | None = Field(default=0.0, allow_inf_nan=False)
    retail: float | None = Field(default=0.0, allow_inf_nan=False)
    repasse: float | None = Field(default=0.0, allow_inf_nan=False)


class MarketPriceResponse(MarketPriceData):
    model_config = ConfigDict(from_attributes=True)

    id: str


class VehicleImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str


class ExpenseReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    expense_id: str
    created_at: datetime | None = None


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    description: str
    amount: float
    date: datetime
    vehicle_id: str


class SaleInfoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sale_price: float
    sale_date: datetime


class VehicleFinancials(BaseModel):
    """Figures derived from purchase price, expenses and market/sale prices."""

    total_expenses: float
    total_cost: float
    projected_profit: dict[str, float] = {}
    projected_margin: dict[str, float] = {}
    realized_profit: float | None = None
    realized_margin: float | None = None


class VehicleResponse(BaseModel):
    """Full vehicle with nested collections."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    brand: str
    model: str
    year: int
    color: str | None = None
    vin: str | None = None
    mileage: float | None = None
    purchase_price: float
    commission_value: float | None = None
    purchase_date: datetime | None = None
    status: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    images: list[VehicleImageResponse] = []
    expenses: list[ExpenseResponse] = []
    market_price: MarketPriceResponse | None = None
    sale_info: SaleInfoResponse | None = None


class PublicVehicleResponse(BaseModel):
    """Unauthenticated vehicle view for the marketing site."""

    id: str
    brand: str
    model: str
    year: int
    color: str | None = None
    mileage: float | None = None
    images: list[VehicleImageResponse] = []
    retail_price: float | None = None


class VehicleUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    brand: str | None = None
    model: str | None = None
    year: int | None = None
    color: str | None = None
    vin: str | None = None
    mileage: float | None = Field(default=None, allow_inf_nan=False)
    purchase_price: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    purchase_date: datetime | None = None
    commission_value: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    description: str | None = None
    market_prices: MarketPriceData | None = None
    images: list[str] | None = None


class StatusUpdate(BaseModel):
    """Raw status string; parsed against the entity's enum by the service."""

    status: str


class SellRequest(BaseModel):
    sale_price: float = Field(allow_inf_nan=False)
    has_commission: bool = False
    commission_value: float | None = Field(default=None, allow_inf_nan=False)


class SellResponse(BaseModel):
    sale_info: SaleInfoResponse
    vehicle: dict


class ExpenseCreate(BaseModel):
    type: str = Field(min_length=1)
    description: str = ""
    amount: float = Field(gt=0, allow_inf_nan=False)
    date: datetime | None = None


class ImageUrlCreate(BaseModel):
    image_url: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


class CustomerCreate(BaseModel):
    """Fields captured by the operator's intake form."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    birth_date: datetime
    phone: str = Field(min_length=1)
    email: str | None = None
    passport_url: str = Field(min_length=1)
    vehicle_id: str = Field(min_length=1)
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    residence_type: str | None = None
    residence_years: int = Field(default=0, ge=0)
    residence_months: int = Field(default=0, ge=0, le=11)
    profession: str | None = None
    monthly_income: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    job_years: int = Field(default=0, ge=0)
    job_months: int = Field(default=0, ge=0, le=11)


class CustomerUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    birth_date: datetime | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    profession: str | None = None
    monthly_income: float | None = Field(default=None, ge=0, allow_inf_nan=False)


class OperatorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class CustomerVehicleSummary(BaseModel):
    id: str
    brand: str
    model: str
    year: int
    retail_price: float | None = None
    image_url: str | None = None


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    birth_date: datetime
    phone: str
    email: str | None = None
    passport_url: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    residence_type: str | None = None
    residence_years: int | None = None
    residence_months: int | None = None
    profession: str | None = None
    monthly_income: float | None = None
    job_years: int | None = None
    job_months: int | None = None
    status: str
    status_updated_at: datetime | None = None
    operator_id: str
    vehicle_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    operator: OperatorSummary | None = None
    vehicle: CustomerVehicleSummary | None = None


class CustomerStatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    status: str
    updated_by: str
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Contacts (public leads)
# ---------------------------------------------------------------------------


class ContactCreate(BaseModel):
    """Public form; required fields are checked by the service so that an
    incomplete submission gets a plain 400."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    vehicle_id: str | None = None


class ContactVehicleSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    brand: str
    model: str
    year: int


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    status: str
    is_read: bool
    vehicle_id: str | None = None
    created_at: datetime | None = None
    vehicle: ContactVehicleSummary | None = None


class ContactReadUpdate(BaseModel):
    is_read: bool


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


class UploadedFileResponse(BaseModel):
    url: str


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class MarketProjection(BaseModel):
    """Projected result of selling the current stock at one market price."""

    vehicle_count: int
    total_profit: float
    average_margin: float


class ReportSummary(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    vehicles_by_status: dict[str, int]
    total_vehicles: int
    total_investment: float
    total_expenses: float
    total_sales: float
    total_profit: float
    expenses_by_type: dict[str, float]
    market_projection: dict[str, MarketProjection]


class DashboardResponse(BaseModel):
    vehicles_by_status: dict[str, int]
    total_vehicles: int
    total_investment: float
    total_revenue: float
    total_expenses: float
    total_profit: float
    unread_contacts: int
    customers_in_analysis: int
    recent_vehicles: list[PublicVehicleResponse] = []
