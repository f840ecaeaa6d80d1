# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

from datetime import datetime, timezone
from typing import Any
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Example:
        business_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        business_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Time Utilities
# =============================================================================

def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (what Postgres timestamptz accepts)."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Payload Utilities
# =============================================================================

def compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None so partial updates leave columns untouched."""
    return {key: value for key, value in data.items() if value is not None}


def missing_fields(data: dict[str, Any], required: list[str]) -> list[str]:
    """
    Return the required keys that are absent or empty.

    Mirrors the falsy checks the front-ends rely on: None, "" and []
    count as missing, while 0 and False do not.
    """
    missing = []
    for field in required:
        value = data.get(field)
        if value is None or value == "" or value == []:
            missing.append(field)
    return missing


def first_or_none(rows: list[dict[str, Any]] | None) -> dict[str, Any] | None:
    """First row of a PostgREST result, or None."""
    return rows[0] if rows else None
