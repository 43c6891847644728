"""FastAPI application entry point."""

import logging
import structlog
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from garagehub.api.v1.admin import router as admin_router
from garagehub.api.v1.auth import router as auth_router
from garagehub.api.v1.bookings import router as bookings_router
from garagehub.api.v1.cart import router as cart_router
from garagehub.api.v1.chat import router as chat_router
from garagehub.api.v1.deliveries import router as deliveries_router
from garagehub.api.v1.inventory import router as inventory_router
from garagehub.api.v1.invoices import router as invoices_router
from garagehub.api.v1.jobs import router as jobs_router
from garagehub.api.v1.marketplace import router as marketplace_router
from garagehub.api.v1.notifications import router as notifications_router
from garagehub.api.v1.orders import router as orders_router
from garagehub.api.v1.parts import router as parts_router
from garagehub.api.v1.profiles import router as profiles_router
from garagehub.api.v1.reviews import router as reviews_router
from garagehub.api.v1.staff import router as staff_router
from garagehub.api.v1.towing import router as towing_router
from garagehub.api.v1.wallet import router as wallet_router
from garagehub.auth.rate_limit import limit_api_requests
from garagehub.config import settings
from garagehub.database import close_db, init_db
from garagehub.errors import GarageHubError
from garagehub.realtime.router import router as realtime_router
from garagehub.redis_client import close_redis

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer() if settings.environment == "development"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper(), logging.INFO)
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("app_starting", environment=settings.environment)
    await init_db()
    yield
    await close_redis()
    await close_db()
    logger.info("app_shutting_down")


app = FastAPI(
    title="GarageHub API",
    description="Marketplace for automotive workshops, parts suppliers, runners and towing",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GarageHubError)
async def garagehub_error_handler(request: Request, exc: GarageHubError) -> JSONResponse:
    logger.warning(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error=type(exc).__name__,
        detail=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers; every /api route shares the per-IP request limit
API_ROUTERS = (
    auth_router,
    profiles_router,
    marketplace_router,
    parts_router,
    cart_router,
    orders_router,
    deliveries_router,
    wallet_router,
    jobs_router,
    bookings_router,
    towing_router,
    chat_router,
    notifications_router,
    staff_router,
    inventory_router,
    reviews_router,
    invoices_router,
    admin_router,
)
for api_router in API_ROUTERS:
    app.include_router(api_router, dependencies=[Depends(limit_api_requests)])
app.include_router(realtime_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "GarageHub API",
        "version": "0.1.0",
        "status": "running",
    }
