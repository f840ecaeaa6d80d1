# =============================================================================
# tests/test_catalog_service.py - Business Services and Add-ons Tests
# =============================================================================
# Covers:
#   - Listing and pagination of offered services
#   - Price checks against the catalogue minimum
#   - Removal blocked by open bookings
#   - Eligibility grouping and eligible services / add-ons
#
# Run with: pytest tests/test_catalog_service.py -v
# =============================================================================

import pytest

from app.exceptions import ConflictError, InvalidRequestError, MissingFieldsError, NotFoundError
from core.models.catalog import OPEN_BOOKING_STATUSES, ServiceStatusFilter
from core.services.catalog_service import CatalogService
from tests.conftest import BUSINESS_ID

FACIAL = {"id": "svc-1", "name": "Signature Facial", "min_price": 60}


class TestListBusinessServices:

    def test_stats_and_pagination(self, fake_db):
        fake_db.set_result("business_services", data=[
            {"id": "bs-1", "service_id": "svc-1", "business_price": 80, "is_active": True},
            {"id": "bs-2", "service_id": "svc-2", "business_price": 100, "is_active": False},
        ], count=12)
        fake_db.set_result("business_services", data=[], count=7)
        fake_db.set_result("services", data=[FACIAL])

        result = CatalogService.list_business_services(BUSINESS_ID, page=2, limit=2)

        assert result["stats"]["total_services"] == 12
        assert result["stats"]["active_services"] == 7
        assert result["stats"]["avg_price"] == 90
        assert result["pagination"] == {"page": 2, "limit": 2, "total": 12}
        assert result["services"][0]["services"]["name"] == "Signature Facial"
        assert result["services"][1]["services"] is None
        assert fake_db.calls("business_services")[0].options["range"] == (2, 3)

    def test_status_filter(self, fake_db):
        CatalogService.list_business_services(BUSINESS_ID, status=ServiceStatusFilter.INACTIVE)
        assert fake_db.calls("business_services")[0].eq_value("is_active") is False

    def test_limit_clamped(self, fake_db):
        result = CatalogService.list_business_services(BUSINESS_ID, page=0, limit=1000)
        assert result["pagination"]["limit"] == 100
        assert result["pagination"]["page"] == 1


class TestAddBusinessService:

    def request(self, **overrides):
        data = {"business_id": BUSINESS_ID, "service_id": "svc-1", "business_price": 75}
        data.update(overrides)
        return data

    def test_missing_price(self, fake_db):
        with pytest.raises(MissingFieldsError):
            CatalogService.add_business_service(self.request(business_price=None))

    @pytest.mark.parametrize("price", [0, -5, "80", True])
    def test_price_must_be_positive_number(self, fake_db, price):
        with pytest.raises(InvalidRequestError):
            CatalogService.add_business_service(self.request(business_price=price))

    def test_unknown_service(self, fake_db):
        with pytest.raises(NotFoundError):
            CatalogService.add_business_service(self.request())

    def test_price_below_minimum(self, fake_db):
        fake_db.set_result("services", data=[FACIAL])

        with pytest.raises(InvalidRequestError) as exc_info:
            CatalogService.add_business_service(self.request(business_price=50))
        assert exc_info.value.details["min_price"] == 60

    def test_already_offered(self, fake_db):
        fake_db.set_result("services", data=[FACIAL])
        fake_db.set_result("business_services", data=[{"id": "bs-1"}])

        with pytest.raises(ConflictError):
            CatalogService.add_business_service(self.request())

    def test_adds_service(self, fake_db):
        fake_db.set_result("services", data=[FACIAL])

        result = CatalogService.add_business_service(self.request())

        row = fake_db.calls("business_services", "insert")[0].payload
        assert row["delivery_type"] == "customer_location"
        assert row["is_active"] is True
        assert result["service"]["business_price"] == 75


class TestUpdateBusinessService:

    def test_nothing_to_update(self, fake_db):
        with pytest.raises(InvalidRequestError):
            CatalogService.update_business_service({"business_id": BUSINESS_ID, "service_id": "svc-1"})

    def test_not_offered(self, fake_db):
        fake_db.set_result("business_services", "update", data=[])

        with pytest.raises(NotFoundError):
            CatalogService.update_business_service({
                "business_id": BUSINESS_ID, "service_id": "svc-1", "is_active": False,
            })

    def test_price_rechecked(self, fake_db):
        fake_db.set_result("services", data=[FACIAL])

        with pytest.raises(InvalidRequestError):
            CatalogService.update_business_service({
                "business_id": BUSINESS_ID, "service_id": "svc-1", "business_price": 10,
            })


class TestRemoveBusinessService:

    def test_open_bookings_block_removal(self, fake_db):
        fake_db.set_result("bookings", data=[{"id": "b-1"}, {"id": "b-2"}])

        with pytest.raises(ConflictError) as exc_info:
            CatalogService.remove_business_service(BUSINESS_ID, "svc-1")

        assert exc_info.value.details == {"active_bookings": 2}
        assert ("in", "booking_status", OPEN_BOOKING_STATUSES) in fake_db.calls("bookings")[0].filters
        assert fake_db.calls("business_services", "delete") == []

    def test_removes(self, fake_db):
        result = CatalogService.remove_business_service(BUSINESS_ID, "svc-1")

        delete = fake_db.calls("business_services", "delete")[0]
        assert delete.eq_value("service_id") == "svc-1"
        assert result["message"] == "Service removed successfully"


class TestEligibility:

    def test_grouping(self, fake_db):
        fake_db.set_result("business_service_categories", data=[{
            "category_id": "cat-1",
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-02T00:00:00Z",
            "service_categories": {"id": "cat-1", "service_category_type": "beauty", "sort_order": 1},
        }])
        fake_db.set_result("business_service_subcategories", data=[
            {
                "category_id": "cat-1",
                "subcategory_id": "sub-1",
                "updated_at": "2024-01-03T00:00:00Z",
                "service_subcategories": {"id": "sub-1", "service_subcategory_type": "facials"},
            },
            {
                "category_id": "cat-9",
                "subcategory_id": "sub-9",
                "service_subcategories": {"id": "sub-9", "service_subcategory_type": "orphan"},
            },
        ])

        result = CatalogService.get_service_eligibility(BUSINESS_ID)

        categories = result["approved_categories"]
        assert [c["category_id"] for c in categories] == ["cat-1", "cat-9"]
        assert categories[0]["subcategories"][0]["subcategory_name"] == "facials"
        assert categories[1]["category_name"] == "Unknown Category"
        assert result["stats"] == {"total_categories": 2, "total_subcategories": 2}
        assert result["last_updated"] == "2024-01-03T00:00:00Z"
        assert result["additional_info"] is None

    def test_nothing_approved(self, fake_db):
        result = CatalogService.get_service_eligibility(BUSINESS_ID)

        assert result["approved_categories"] == []
        assert "No service categories" in result["additional_info"]


class TestEligibleServicesAndAddons:

    def test_no_subcategories(self, fake_db):
        assert CatalogService.list_eligible_services(BUSINESS_ID)["eligible_services"] == []
        assert CatalogService.list_eligible_addons(BUSINESS_ID)["addon_count"] == 0

    def test_services_marked_configured(self, fake_db):
        fake_db.set_result("business_service_subcategories", data=[{"subcategory_id": "sub-1"}])
        fake_db.set_result("services", data=[
            {**FACIAL, "subcategory_id": "sub-1"},
            {"id": "svc-2", "name": "Brow Shaping", "min_price": 20, "subcategory_id": "sub-1"},
        ])
        fake_db.set_result("business_services", data=[
            {"service_id": "svc-1", "business_price": 80, "is_active": True, "delivery_type": "both_locations"},
        ])

        result = CatalogService.list_eligible_services(BUSINESS_ID)

        assert result["service_count"] == 2
        assert result["eligible_services"][0]["is_configured"] is True
        assert result["eligible_services"][0]["business_price"] == 80
        assert result["eligible_services"][1]["is_configured"] is False

    def test_addons_deduplicated_and_inactive_skipped(self, fake_db):
        fake_db.set_result("business_service_subcategories", data=[{"subcategory_id": "sub-1"}])
        fake_db.set_result("services", data=[{"id": "svc-1"}, {"id": "svc-2"}])
        addon = {"id": "add-1", "name": "LED Mask", "is_active": True}
        service = {"id": "svc-1", "subcategory_id": "sub-1", "service_subcategories": {"service_subcategory_type": "facials"}}
        fake_db.set_result("service_addon_eligibility", data=[
            {"addon_id": "add-1", "service_id": "svc-1", "service_addons": addon, "services": service},
            {"addon_id": "add-1", "service_id": "svc-2", "service_addons": addon, "services": service},
            {"addon_id": "add-2", "service_id": "svc-1",
             "service_addons": {"id": "add-2", "name": "Retired", "is_active": False}, "services": service},
        ])
        fake_db.set_result("business_addons", data=[{"addon_id": "add-1", "custom_price": 15, "is_available": True}])

        result = CatalogService.list_eligible_addons(BUSINESS_ID)

        assert result["addon_count"] == 1
        assert result["eligible_addons"][0]["subcategory_name"] == "facials"
        assert result["eligible_addons"][0]["custom_price"] == 15

    def test_upsert_addon(self, fake_db):
        CatalogService.upsert_business_addon({"business_id": BUSINESS_ID, "addon_id": "add-1", "custom_price": 12.5})

        upsert = fake_db.calls("business_addons", "upsert")[0]
        assert upsert.options["on_conflict"] == "business_id,addon_id"
        assert upsert.payload["is_available"] is True
