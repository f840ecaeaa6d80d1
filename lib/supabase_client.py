# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides the lookups shared by every service:
# - Single-row fetches that treat "no rows" as None
# - Filtered multi-row fetches
# - Auth admin user lookups
# - RPC calls for database functions
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   business = SupabaseClient.fetch_one("business_profiles", "id", business_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import AuthApiError, create_client, Client

from app.config import settings

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST error code returned by .single() when no row matches
NO_ROWS_CODE = "PGRST116"

# Auth admin API statuses for an unknown or malformed user id
AUTH_USER_MISSING_STATUSES = (400, 404)


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Carries a code and an actionable suggestion alongside the driver message.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


def is_no_rows_error(error: Exception) -> bool:
    """Check whether an exception is PostgREST's "no rows returned" error."""
    return NO_ROWS_CODE in str(error)


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        business = SupabaseClient.fetch_one("business_profiles", "id", business_id)
        if business is None:
            raise NotFoundError("business", business_id)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        This is appropriate for server-side operations.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _normalize_uuid(cls, uuid_value: str | UUID) -> str:
        """Convert UUID to string for queries."""
        return str(uuid_value) if isinstance(uuid_value, UUID) else uuid_value

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_one(
        cls,
        table: str,
        column: str,
        value: str | UUID,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """
        Fetch a single row by one column value.

        Args:
            table: Table or view name
            column: Column to match
            value: Value to match
            columns: PostgREST select string
            filters: Extra equality filters

        Returns:
            Row dict, or None if no row matches

        Raises:
            SupabaseClientError: If the query fails for any other reason
        """
        client = cls.get_client()
        value_str = cls._normalize_uuid(value)

        try:
            query = client.table(table).select(columns).eq(column, value_str)
            for key, filter_value in (filters or {}).items():
                query = query.eq(key, filter_value)

            response = query.single().execute()
            return response.data

        except Exception as e:
            if is_no_rows_error(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_FAILED",
                suggestion=f"Check that the {table} table is accessible",
                details={"table": table, column: value_str}
            )

    @classmethod
    def fetch_many(
        cls,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        in_filters: dict[str, list[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch all rows matching equality and membership filters.

        Raises:
            SupabaseClientError: If the query fails
        """
        client = cls.get_client()

        try:
            query = client.table(table).select(columns)
            for key, value in (filters or {}).items():
                query = query.eq(key, value)
            for key, values in (in_filters or {}).items():
                query = query.in_(key, values)
            if order_by:
                query = query.order(order_by, desc=descending)

            response = query.execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_FAILED",
                details={"table": table, "filters": filters or {}}
            )

    # -------------------------------------------------------------------------
    # Auth Admin
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_auth_user(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """
        Look up an auth user by id via the admin API.

        Returns:
            Dict with id, email, user_metadata, last_sign_in_at;
            None if the user doesn't exist

        Raises:
            SupabaseClientError: The auth API failed for any other reason
        """
        client = cls.get_client()
        user_id_str = cls._normalize_uuid(user_id)

        try:
            response = client.auth.admin.get_user_by_id(user_id_str)
        except AuthApiError as e:
            if e.status in AUTH_USER_MISSING_STATUSES:
                logger.debug(f"No auth user {user_id_str}: {e}")
                return None
            raise SupabaseClientError(
                message=f"Auth user lookup failed: {e}",
                code="AUTH_LOOKUP_FAILED",
                details={"user_id": user_id_str, "status": e.status}
            )
        except Exception as e:
            raise SupabaseClientError(
                message=f"Auth user lookup failed: {e}",
                code="AUTH_LOOKUP_FAILED",
                details={"user_id": user_id_str}
            )

        user = getattr(response, "user", None)
        if user is None:
            return None

        return {
            "id": str(user.id),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None) or {},
            "last_sign_in_at": getattr(user, "last_sign_in_at", None),
        }

    # -------------------------------------------------------------------------
    # RPC
    # -------------------------------------------------------------------------

    @classmethod
    def call_rpc(cls, function_name: str, params: dict[str, Any] | None = None) -> Any:
        """
        Call a Postgres function exposed through PostgREST.

        Raises:
            SupabaseClientError: If the function call fails
        """
        client = cls.get_client()

        try:
            response = client.rpc(function_name, params or {}).execute()
            return response.data

        except Exception as e:
            raise SupabaseClientError(
                message=f"RPC {function_name} failed: {e}",
                code="RPC_FAILED",
                details={"function": function_name}
            )
