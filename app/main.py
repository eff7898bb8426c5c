# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Fruity API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   poetry run uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    FruityException,
    fruity_exception_handler,
    validation_exception_handler,
)
from app.routers import health, listings, messages, users
from app.routers import property as property_routes
from app.routers import requests as request_routes
from app.auth import routes as auth_routes
from lib.store import StoreError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs the effective configuration on startup.
    """
    logger.info(f"Starting Fruity API in {settings.ENVIRONMENT} mode")
    logger.info(f"Store backend: {settings.STORE_BACKEND}")
    logger.info(f"Geocoder: {'mapbox' if settings.use_mapbox else 'nominatim'}")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    yield

    logger.info("Shutting down Fruity API")


# Create FastAPI application
app = FastAPI(
    title="Fruity API",
    description="""
## Community Fruit Sharing

Neighbors with fruit trees list their surplus; others request a pickup.

### How It Works

1. **Verify your property** - Stand at your home and confirm its address
2. **List fruit** - Publish what's ripe, how much, and when it can be picked
3. **Request a pickup** - Browse nearby listings and ask for some
4. **Chat** - Coordinate through the request's message thread
5. **Complete** - Record how much was picked up and rate the experience

### Privacy

Listings are shown at an approximate location (about 500m off).
The exact address is only revealed to the owner and to a requester
whose pickup request was accepted.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Authentication endpoints for verifying JWT tokens",
        },
        {
            "name": "Listings",
            "description": "Browse and manage fruit listings",
        },
        {
            "name": "Requests",
            "description": "Pickup request lifecycle and chat threads",
        },
        {
            "name": "Messages",
            "description": "Chat threads addressed by request id",
        },
        {
            "name": "Property",
            "description": "Verified home location",
        },
        {
            "name": "Users",
            "description": "Public reputation",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(FruityException)
async def handle_fruity_exception(request: Request, exc: FruityException):
    """Handle custom Fruity exceptions."""
    return await fruity_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Handle malformed request bodies and query parameters."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(StoreError)
async def handle_store_error(request: Request, exc: StoreError):
    """Database failures the services didn't translate."""
    logger.error(f"Store error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content={
            "detail": "Database request failed",
            "code": "UPSTREAM_SERVICE_ERROR",
            "suggestion": "Please try again",
        }
    )


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Listing endpoints
app.include_router(
    listings.router,
    prefix="/api/v1/listings",
    tags=["Listings"]
)

# Pickup request endpoints
app.include_router(
    request_routes.router,
    prefix="/api/v1/requests",
    tags=["Requests"]
)

# Message endpoints
app.include_router(
    messages.router,
    prefix="/api/v1/messages",
    tags=["Messages"]
)

# Property endpoints
app.include_router(
    property_routes.router,
    prefix="/api/v1/property",
    tags=["Property"]
)

# User endpoints
app.include_router(
    users.router,
    prefix="/api/v1/users",
    tags=["Users"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Fruity API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
