from decimal import Decimal

import pytest

from pharmacy.money import cents_to_decimal, format_cents
from pharmacy.validation import ValidationError, coerce_int, enforce_rules_item, MAX_PRICE_CENTS


class TestMoney:
    def test_cents_to_decimal(self):
        assert cents_to_decimal(1050) == Decimal("10.50")
        assert cents_to_decimal(None) is None

    def test_format_cents(self):
        assert format_cents(5) == "0.05"
        assert format_cents(None) is None


class TestCoerceInt:
    @pytest.mark.parametrize("value,expected", [(5, 5), ("12", 12), (" -3 ", -3)])
    def test_accepts(self, value, expected):
        assert coerce_int("quantity", value) == expected

    @pytest.mark.parametrize("value", [True, 1.0, "1.5", "1e3", "", None, [1]])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_int("quantity", value)


class TestItemRules:
    def test_price_ceiling(self):
        enforce_rules_item({"unit_price_cents": MAX_PRICE_CENTS})
        with pytest.raises(ValidationError):
            enforce_rules_item({"unit_price_cents": MAX_PRICE_CENTS + 1})

    def test_partial_patch_only_checks_present_keys(self):
        enforce_rules_item({"description": None})
