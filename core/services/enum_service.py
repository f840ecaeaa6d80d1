# =============================================================================
# core/services/enum_service.py - Postgres Enum Maintenance
# =============================================================================
# Lets admins add labels to database enum types (booking_status,
# business_type, ...) without a migration. The RPCs run ALTER TYPE on the
# database side; names are validated here because they end up in DDL.
# =============================================================================

import logging
import re
from typing import Any

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import missing_fields
from app.exceptions import DatabaseError, InvalidRequestError, MissingFieldsError

logger = logging.getLogger(__name__)

ENUM_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")
ENUM_VALUE_PATTERN = re.compile(r"^[A-Za-z0-9_ \-]{1,63}$")


def validate_enum_name(enum_name: str) -> None:
    if not ENUM_NAME_PATTERN.match(enum_name):
        raise InvalidRequestError(
            "Invalid enum name",
            details={"enum_name": enum_name},
            suggestion="Use lowercase letters, digits and underscores",
        )


class EnumService:
    """Service for database enum types."""

    @staticmethod
    def add_enum_value(enum_name: str | None, enum_value: str | None) -> dict[str, Any]:
        """
        Add a value to an enum type.

        Raises:
            MissingFieldsError: enum_name or enum_value missing
            InvalidRequestError: Name or value isn't a valid identifier / label
            DatabaseError: The RPC failed (message passed through)
        """
        required = ["enum_name", "enum_value"]
        missing = missing_fields({"enum_name": enum_name, "enum_value": enum_value}, required)
        if missing:
            raise MissingFieldsError(required, missing)

        validate_enum_name(enum_name)
        if not ENUM_VALUE_PATTERN.match(enum_value):
            raise InvalidRequestError(
                "Invalid enum value",
                details={"enum_value": enum_value},
                suggestion="Use up to 63 letters, digits, spaces, underscores or hyphens",
            )

        try:
            data = SupabaseClient.call_rpc("add_enum_value", {
                "p_enum_name": enum_name,
                "p_enum_value": enum_value,
            })
        except SupabaseClientError as e:
            logger.error(f"Failed to add '{enum_value}' to {enum_name}: {e}")
            raise DatabaseError("add enum value", e.message)

        logger.info(f"Added '{enum_value}' to enum {enum_name}")
        return {
            "success": True,
            "message": f"Successfully added '{enum_value}' to {enum_name} enum",
            "data": data,
        }

    @staticmethod
    def get_enum_values(enum_name: str) -> dict[str, Any]:
        """
        Raises:
            InvalidRequestError: Invalid enum name
            DatabaseError: The RPC failed
        """
        validate_enum_name(enum_name)

        try:
            data = SupabaseClient.call_rpc("get_enum_values", {"p_enum_name": enum_name})
        except SupabaseClientError as e:
            logger.error(f"Failed to read enum {enum_name}: {e}")
            raise DatabaseError("fetch enum values", e.message)

        values = [row["enum_value"] if isinstance(row, dict) else row for row in data or []]
        return {"enum_name": enum_name, "values": values}
