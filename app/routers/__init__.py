# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - onboarding.py: Phase 1 application and Phase 2 wizard
# - business.py: Owner-facing business settings
# - stripe_connect.py: Stripe Connect payout accounts
# - plaid.py: Plaid bank linking
# - admin.py: Admin console (customers, providers, bookings, documents)
# - admin_businesses.py: Admin business management and approval
# - database.py: Enum maintenance
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import onboarding
from . import business
from . import stripe_connect
from . import plaid
from . import admin
from . import admin_businesses
from . import database

__all__ = [
    "health",
    "onboarding",
    "business",
    "stripe_connect",
    "plaid",
    "admin",
    "admin_businesses",
    "database",
]
