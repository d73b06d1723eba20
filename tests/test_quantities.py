"""
Tests for quantity merge strategies and list item keys.
"""

from famops.reconcile.quantities import concat_quantities, format_quantity, item_key, sum_quantities


class TestItemKey:
    def test_trim_and_lowercase(self):
        assert item_key("  Milk ") == item_key("milk") == "milk"

    def test_none(self):
        assert item_key(None) == ""


class TestConcat:
    """Generation-time aggregation keeps units as text."""

    def test_joins_with_plus(self):
        assert concat_quantities("2 lbs", "1 lb") == "2 lbs + 1 lb"

    def test_chains(self):
        assert concat_quantities(concat_quantities("1", "2"), "3") == "1 + 2 + 3"


class TestSum:
    """Merge-time addition treats quantities as numbers."""

    def test_missing_incoming_adds_one(self):
        assert sum_quantities("2") == "3"

    def test_leading_number_is_used(self):
        assert sum_quantities("2 lbs", "1") == "3"

    def test_decimals(self):
        assert sum_quantities("1.5", "1") == "2.5"
        assert sum_quantities(".5", ".5") == "1"

    def test_non_numeric_resets_to_one(self):
        assert sum_quantities("a bunch", None) == "1"
        assert sum_quantities("2", "some") == "1"

    def test_empty_current_defaults_to_zero(self):
        assert sum_quantities("", None) == "1"
        assert sum_quantities(None, "2") == "2"

    def test_empty_current_override(self):
        assert sum_quantities(None, "2", empty_current=1.0) == "3"

    def test_format(self):
        assert format_quantity(3.0) == "3"
        assert format_quantity(2.25) == "2.25"
