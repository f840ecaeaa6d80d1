# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health        static status for load balancers
# /health/live   process liveness
# /health/ready  Supabase database and storage probes, plus whether the
#                Stripe and Plaid credentials are present
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "1.0.0"
HEALTHY = "healthy"


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class DependencyChecks(BaseModel):
    """Probe result per dependency: "healthy", "unhealthy: ..." or a config state."""
    database: str
    storage: str
    stripe: str
    plaid: str


class ReadinessResponse(BaseModel):
    status: str
    checks: DependencyChecks
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _probe(name: str, check: Callable[[], object]) -> str:
    try:
        check()
    except Exception as e:
        logger.warning(f"Readiness probe {name} failed: {e}")
        return f"unhealthy: {str(e)[:50]}"
    return HEALTHY


def _configured(flag: bool) -> str:
    return "configured" if flag else "not configured"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status=HEALTHY,
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    "ready" when the database and storage answer, otherwise "degraded".

    Missing Stripe or Plaid credentials are reported but don't degrade
    readiness.
    """
    checks = DependencyChecks(
        database=_probe(
            "database",
            lambda: SupabaseClient.get_client().table("business_profiles").select("id").limit(1).execute(),
        ),
        storage=_probe("storage", lambda: SupabaseClient.get_client().storage.list_buckets()),
        stripe=_configured(settings.stripe_configured),
        plaid=_configured(settings.plaid_configured),
    )
    ready = checks.database == HEALTHY and checks.storage == HEALTHY

    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=_now(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    return LivenessResponse(status="alive", timestamp=_now())
