# =============================================================================
# tests/test_tax_service.py - Tax Information Tests
# =============================================================================

import pytest

from app.exceptions import InvalidRequestError, NotFoundError
from core.services.tax_service import (
    TABLE,
    TaxInfoService,
    normalize_entity_type,
    normalize_tax_id_type,
)
from tests.conftest import BUSINESS_ID


class TestNormalization:

    @pytest.mark.parametrize("value,expected", [
        ("ssn", "SSN"),
        (" ein ", "EIN"),
        ("itin", "EIN"),
        (None, "EIN"),
    ])
    def test_tax_id_type(self, value, expected):
        assert normalize_tax_id_type(value) == expected

    def test_entity_type_defaults_to_llc(self):
        assert normalize_entity_type("partnership") == "partnership"
        assert normalize_entity_type("trust") == "llc"


class TestSaveTaxInfo:

    def test_business_id_required(self, fake_db):
        with pytest.raises(InvalidRequestError):
            TaxInfoService.save_tax_info({"tax_id": "12-3456789"})

    def test_unknown_business(self, fake_db):
        with pytest.raises(NotFoundError):
            TaxInfoService.save_tax_info({"business_id": BUSINESS_ID})

    def test_contact_from_business_profile(self, fake_db):
        fake_db.set_result("business_profiles", data=[
            {"business_name": "Glow Mobile Spa", "contact_email": "hello@glow.example.com"}
        ])

        result = TaxInfoService.save_tax_info({
            "business_id": BUSINESS_ID,
            "tax_id": "12-3456789",
            "tax_id_type": "ein",
            "tax_state": "",
        })

        row = fake_db.calls(TABLE, "upsert")[0].payload
        assert row["tax_contact_name"] == "Glow Mobile Spa"
        assert row["tax_contact_email"] == "hello@glow.example.com"
        assert row["tax_id_type"] == "EIN"
        assert row["tax_state"] is None
        assert row["tax_country"] == "US"
        assert result["message"] == "Saved"

    def test_contact_falls_back_to_owner(self, fake_db):
        fake_db.set_result("business_profiles", data=[{"business_name": "Glow", "contact_email": None}])
        fake_db.set_result("providers", data=[
            {"email": "ada@example.com", "first_name": "Ada", "last_name": "Lane"}
        ])

        TaxInfoService.save_tax_info({"business_id": BUSINESS_ID})

        row = fake_db.calls(TABLE, "upsert")[0].payload
        assert row["tax_contact_email"] == "ada@example.com"
        assert row["tax_contact_name"] == "Ada Lane"

    def test_no_email_anywhere(self, fake_db):
        fake_db.set_result("business_profiles", data=[{"business_name": "Glow", "contact_email": None}])

        with pytest.raises(InvalidRequestError, match="Contact email is required"):
            TaxInfoService.save_tax_info({"business_id": BUSINESS_ID})

    def test_explicit_contact_skips_lookup(self, fake_db):
        TaxInfoService.save_tax_info({
            "business_id": BUSINESS_ID,
            "tax_contact_name": "Accounts",
            "tax_contact_email": "accounts@example.com",
        })

        assert fake_db.calls("business_profiles") == []


def test_get_tax_info_without_row(fake_db):
    assert TaxInfoService.get_tax_info(BUSINESS_ID) == {"business_id": BUSINESS_ID, "tax_info": None}
