# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Marketplace Admin API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    MarketplaceException,
    database_client_exception_handler,
    marketplace_exception_handler,
)
from app.routers import (
    admin,
    admin_businesses,
    business,
    database,
    health,
    onboarding,
    plaid,
    stripe_connect,
)
from app.auth import routes as auth_routes
from lib.supabase_client import SupabaseClientError

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

    Logs configuration on startup. Missing Stripe or Plaid credentials
    don't stop startup; their endpoints answer 500 until configured.
    """
    logger.info(f"Starting Marketplace Admin API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.stripe_configured:
        logger.warning("STRIPE_SECRET_KEY not set; Stripe Connect endpoints are disabled")
    if not settings.plaid_configured:
        logger.warning("Plaid credentials not set; bank linking endpoints are disabled")

    yield

    logger.info("Shutting down Marketplace Admin API")


# Create FastAPI application
app = FastAPI(
    title="Marketplace Admin API",
    description="""
## Marketplace Admin & Business Onboarding API

Backend for the admin console and the business onboarding portal.

### Onboarding Flow

1. **Business Info** - Owner submits the Phase 1 form
2. **Submit Application** - Consents given, application goes to review
3. **Approval** - Admin approves; the owner receives a Phase 2 link
4. **Phase 2 Wizard** - Profile, hours, Stripe payouts, bank account, services
5. **Final Review** - Business setup is complete

### Authentication

| Caller | Credential |
|--------|------------|
| **Admin** | Supabase JWT for a user in `admin_users` |
| **Owner** | Supabase JWT |
| **Phase 2 link** | `X-Phase2-Token` header |
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Verify Supabase sessions and admin rights",
        },
        {
            "name": "Onboarding",
            "description": "Phase 1 application and Phase 2 wizard progress",
        },
        {
            "name": "Business",
            "description": "Hours, tax info, services, categories, images and documents",
        },
        {
            "name": "Stripe",
            "description": "Stripe Connect payout accounts",
        },
        {
            "name": "Plaid",
            "description": "Bank account linking",
        },
        {
            "name": "Admin",
            "description": "Admin console: customers, businesses, providers, bookings",
        },
        {
            "name": "Database",
            "description": "Enum type maintenance",
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

@app.exception_handler(MarketplaceException)
async def handle_marketplace_exception(request: Request, exc: MarketplaceException):
    """Handle custom marketplace exceptions."""
    return await marketplace_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_database_client_error(request: Request, exc: SupabaseClientError):
    """Database failures outside a service's own DatabaseError wrapping."""
    logger.error(f"Database error on {request.url.path}: {exc.message}")
    return await database_client_exception_handler(request, exc)


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
    prefix="/api/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api",
    tags=["Health"]
)

# Phase 1 and Phase 2 onboarding
app.include_router(
    onboarding.router,
    prefix="/api/onboarding",
    tags=["Onboarding"]
)

# Owner-facing business settings
app.include_router(
    business.router,
    prefix="/api/business",
    tags=["Business"]
)

# Stripe Connect
app.include_router(
    stripe_connect.router,
    prefix="/api/stripe",
    tags=["Stripe"]
)

# Plaid bank linking
app.include_router(
    plaid.router,
    prefix="/api/plaid",
    tags=["Plaid"]
)

# Admin console
app.include_router(
    admin.router,
    prefix="/api/admin",
    tags=["Admin"]
)

app.include_router(
    admin_businesses.router,
    prefix="/api/admin",
    tags=["Admin"]
)

# Enum maintenance
app.include_router(
    database.router,
    prefix="/api/database",
    tags=["Database"]
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
        "name": "Marketplace Admin API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }
