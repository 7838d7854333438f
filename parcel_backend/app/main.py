"""
FastAPI Application Entry Point.

This is the main application file for the Parcel Delivery Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from parcel_backend.app.core.config import settings
from parcel_backend.app.api.v1.router import router as api_v1_router
from parcel_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from parcel_backend.app.core.redis_client import get_redis, ping_redis, redis_client
from parcel_backend.app.db.session import engine, Base
from parcel_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from parcel_backend.app.services.payment_gateway import StripePaymentGateway

# Import models to ensure they are registered with Base
from parcel_backend.app.models.user import User
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.payment import Payment
from parcel_backend.app.models.tracking_log import TrackingLog
from parcel_backend.app.models.audit_log import AuditLog
from parcel_backend.app.models.dlq import DeadLetterQueue

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.
    
    1. Creates database tables on startup.
    2. Builds the payment gateway client shared by all requests.
    3. Closes Redis and disposes the engine on shutdown.
    """
    configure_logging(settings.log_level)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    app.state.payment_gateway = StripePaymentGateway.from_settings()
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set; checkout calls will fail")
    
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    
    await redis_client.aclose()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel delivery management backend: parcels, riders, payments and tracking",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis=Depends(get_redis)):
    """
    Health check endpoint.
    
    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "redis": "connected" if await ping_redis(redis) else "unavailable",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


app.include_router(api_v1_router)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.
    
    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Parcel delivery server is running",
        "docs": "/docs",
        "health": "/health",
    }
