# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Marketplace Admin API:
# - test_models.py: Unit tests for Pydantic model validation
# - test_business_hours.py, test_tokens.py, test_utils.py: lib/ helpers
# - test_*_service.py: Service logic against the in-memory FakeSupabase
# - test_api.py: Endpoint tests through the FastAPI TestClient
#
# Run tests with: pytest
# =============================================================================
