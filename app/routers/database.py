# =============================================================================
# app/routers/database.py - Database Maintenance Endpoints
# =============================================================================
# Admin-only helpers for Postgres enum types.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from app.auth import AdminUser, get_admin_user
from core.models.admin import EnumValueRequest
from core.services.enum_service import EnumService

router = APIRouter()


@router.post("/add-enum-value")
async def add_enum_value(
    request: EnumValueRequest,
    admin: AdminUser = Depends(get_admin_user),
):
    """
    Add a value to an enum type.

    Example:
        {"enum_name": "booking_status", "enum_value": "no_show"}
    """
    return EnumService.add_enum_value(request.enum_name, request.enum_value)


@router.get("/enum-values/{enum_name}")
async def get_enum_values(
    enum_name: Annotated[str, Path(description="Postgres enum type name")],
    admin: AdminUser = Depends(get_admin_user),
):
    return EnumService.get_enum_values(enum_name)
