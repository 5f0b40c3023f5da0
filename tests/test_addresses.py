"""Tests for checkout address building."""

import pytest

from storefront.domain.addresses import build_address, parse_shipping_address
from storefront.domain.errors import InvalidAddress
from storefront.domain.schemas import CheckoutSession


def session(customer_details=None, metadata=None):
    return CheckoutSession.model_validate(
        {
            "id": "cs_addr",
            "amount_total": 1000,
            "customer_details": customer_details,
            "metadata": metadata,
        }
    )


class TestParseShippingAddress:
    def test_full_string(self):
        parsed = parse_shipping_address("Jane Doe, 1 Main St, Springfield, IL 62701, US")
        assert parsed.name == "Jane Doe"
        assert parsed.address_line_1 == "1 Main St"
        assert parsed.city == "Springfield"
        assert parsed.state == "IL"
        assert parsed.postal_code == "62701"
        assert parsed.country == "US"

    def test_multi_word_state(self):
        parsed = parse_shipping_address("Jane Doe, 1 Main St, Albany, New York 12207, US")
        assert parsed.state == "New York"
        assert parsed.postal_code == "12207"

    def test_state_without_postal(self):
        parsed = parse_shipping_address("Jane Doe, 1 Main St, Springfield, IL")
        assert parsed.state == "IL"
        assert parsed.postal_code == ""
        assert parsed.country == ""

    def test_empty(self):
        parsed = parse_shipping_address(None)
        assert parsed.address_line_1 == ""
        assert parsed.city == ""

    def test_comma_inside_street_shifts_fields(self):
        # znane ograniczenie formatu: przecinek w ulicy przesuwa pola
        parsed = parse_shipping_address("Jane Doe, 1 Main St, Apt 4, Springfield, IL 62701, US")
        assert parsed.city == "Apt 4"


class TestBuildAddress:
    def test_structured_fields_win(self):
        s = session(
            customer_details={
                "name": "Jane Doe",
                "phone": "+15550100",
                "address": {"line1": "1 Main St", "line2": "Apt 4", "city": "Springfield", "state": "IL", "postal_code": "62701", "country": "US"},
            },
            metadata={"shipping_address": "John Smith, 5 Oak Ave, Portland, OR 97201, US"},
        )

        address = build_address(s, "shipping")

        assert address.type == "shipping"
        assert address.first_name == "Jane"
        assert address.last_name == "Doe"
        assert address.address_line_1 == "1 Main St"
        assert address.address_line_2 == "Apt 4"
        assert address.city == "Springfield"
        assert address.phone == "+15550100"

    def test_metadata_fallback(self):
        s = session(metadata={"shipping_address": "John Smith, 5 Oak Ave, Portland, OR 97201, CA"})

        address = build_address(s, "billing")

        assert address.first_name == "John"
        assert address.address_line_1 == "5 Oak Ave"
        assert address.country == "CA"

    def test_country_defaults_to_us(self):
        s = session(customer_details={"name": "Jane", "address": {"line1": "1 Main St", "city": "Springfield"}})

        address = build_address(s, "billing")

        assert address.country == "US"
        assert address.first_name == "Jane"
        assert address.last_name == ""

    def test_no_street_and_no_city_rejected(self):
        with pytest.raises(InvalidAddress):
            build_address(session(customer_details={"email": "a@example.com"}), "billing")

    def test_blank_metadata_treated_as_missing(self):
        with pytest.raises(InvalidAddress):
            build_address(session(metadata={"shipping_address": "   "}), "shipping")
