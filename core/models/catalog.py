# =============================================================================
# core/models/catalog.py - Service Catalogue Schemas
# =============================================================================
# A business offers platform catalogue services (services table) at its own
# price (business_services). Add-ons work the same way (business_addons).
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class DeliveryType(str, Enum):
    """Where a service is performed."""
    BUSINESS_LOCATION = "business_location"
    CUSTOMER_LOCATION = "customer_location"
    VIRTUAL = "virtual"
    BOTH_LOCATIONS = "both_locations"


class ServiceStatusFilter(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


# Booking states that block removing a service from a business
OPEN_BOOKING_STATUSES = ["pending", "confirmed", "in_progress"]


class BusinessServiceCreate(BaseModel):
    """
    Adds a catalogue service to a business.

    Example:
        {
            "business_id": "550e8400-...",
            "service_id": "660e8400-...",
            "business_price": 85.0,
            "delivery_type": "customer_location"
        }
    """

    business_id: str | None = None
    service_id: str | None = None
    business_price: float | None = None
    delivery_type: DeliveryType = DeliveryType.CUSTOMER_LOCATION
    is_active: bool = True


class BusinessServiceUpdate(BaseModel):
    """Only the fields that are present are updated."""

    business_id: str | None = None
    service_id: str | None = None
    business_price: float | None = None
    delivery_type: DeliveryType | None = None
    is_active: bool | None = None


class BusinessAddonUpdate(BaseModel):
    """Upserts a business's price and availability for one add-on."""

    business_id: str | None = None
    addon_id: str | None = None
    custom_price: float | None = Field(default=None, ge=0)
    is_available: bool = True
