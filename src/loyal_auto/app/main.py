"""FastAPI application entry point for the Loyal Auto Sales API."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from loyal_auto.app.config import get_settings
from loyal_auto.app.error_handlers import register_exception_handlers
from loyal_auto.domain.schemas import HealthResponse
from loyal_auto.infra.database import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database on startup."""
    await init_db()
    logger.info("Database ready")
    yield


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="Loyal Auto Sales API",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware: any origin in debug mode
_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from loyal_auto.app.routes.auth import router as auth_router
from loyal_auto.app.routes.users import router as users_router
from loyal_auto.app.routes.vehicles import router as vehicles_router
from loyal_auto.app.routes.expenses import router as expenses_router
from loyal_auto.app.routes.customers import router as customers_router
from loyal_auto.app.routes.contacts import router as contact_router, admin_router as potential_customers_router
from loyal_auto.app.routes.reports import router as reports_router

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(vehicles_router)
app.include_router(expenses_router)
app.include_router(customers_router)
app.include_router(contact_router)
app.include_router(potential_customers_router)
app.include_router(reports_router)

# Static file mount for uploaded photos, receipts and passports
_uploads_dir = Path(settings.upload_dir)
_uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=str(_uploads_dir)), name="uploads")


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Return service health status."""
    return HealthResponse(status="ok", service="loyal-auto")


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "loyal_auto.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
