# =============================================================================
# lib/plaid_client.py - Plaid API Client
# =============================================================================
# Minimal client for the Plaid endpoints used by bank linking. Plaid's API
# is JSON over POST with the client id and secret in every body.
#
# Usage:
#   from lib.plaid_client import PlaidClient
#   response = PlaidClient.post("/item/public_token/exchange", {"public_token": token})
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class PlaidClientError(Exception):
    """
    Error returned by Plaid (or raised while reaching it).

    Carries Plaid's error_type / error_code when the API answered.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        error_type: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.error_type = error_type
        self.status_code = status_code

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class PlaidClient:
    """
    Class-level wrapper around one shared httpx.Client.

    The HTTP client is created lazily so tests can patch `post` without
    touching the network.
    """

    _http: httpx.Client | None = None

    @classmethod
    def get_http(cls) -> httpx.Client:
        if cls._http is None:
            cls._http = httpx.Client(
                base_url=settings.plaid_base_url,
                timeout=settings.PLAID_TIMEOUT_SECONDS,
                headers={"Content-Type": "application/json"},
            )
            logger.info(f"Plaid client initialized for {settings.PLAID_ENV}")
        return cls._http

    @classmethod
    def post(cls, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """
        POST to a Plaid endpoint.

        Args:
            path: Endpoint path, e.g. "/accounts/get"
            body: Request body without credentials

        Returns:
            Decoded JSON response

        Raises:
            PlaidClientError: Plaid answered with an error, or the request failed
        """
        payload = {
            "client_id": settings.PLAID_CLIENT_ID,
            "secret": settings.PLAID_SECRET,
            **body,
        }

        try:
            response = cls.get_http().post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Plaid request {path} failed: {e}")
            raise PlaidClientError(f"Plaid request failed: {e}", error_code="NETWORK_ERROR")

        if response.status_code >= 400:
            try:
                error = response.json()
            except ValueError:
                error = {}
            logger.warning(f"Plaid {path} returned {response.status_code}: {error.get('error_code')}")
            raise PlaidClientError(
                error.get("error_message") or f"Plaid returned HTTP {response.status_code}",
                error_code=error.get("error_code"),
                error_type=error.get("error_type"),
                status_code=response.status_code,
            )

        return response.json()
