"""
Unit tests for allocation validation.

Validates exact-sum comparison, advisory and strict policies, and
rejection of malformed allocation rows.
"""

import logging
from decimal import Decimal

import pytest

from allocation_validator import sum_allocations, validate_allocations
from budget_models import CategoryAllocation
from exceptions import ValidationError


def allocations_of(*amounts):
    return [CategoryAllocation(f"cat-{i}", amount) for i, amount in enumerate(amounts)]


class TestAllocationSums:
    """Tests for the sum comparison."""

    def test_allocations_matching_total_are_valid(self):
        """500 + 300 + 200 against 1000 is valid with no difference."""
        check = validate_allocations(1000, allocations_of(500, 300, 200))

        assert check.is_valid is True
        assert check.difference == Decimal("0")
        assert check.total_allocated == Decimal("1000")
        assert check.warnings == ()

    def test_partial_allocation_reports_difference(self, caplog):
        """500 + 300 against 1000 is invalid by 200 but only warns."""
        with caplog.at_level(logging.WARNING, logger="allocation_validator"):
            check = validate_allocations(1000, allocations_of(500, 300))

        assert check.is_valid is False
        assert check.difference == Decimal("200")
        assert len(check.warnings) == 1
        assert "fall short of" in check.warnings[0]
        assert any("fall short of" in record.message for record in caplog.records)

    def test_over_allocation_difference_is_absolute(self):
        check = validate_allocations(100, allocations_of(80, 40))
        assert check.difference == Decimal("20")
        assert "exceed" in check.warnings[0]

    def test_many_small_allocations_sum_exactly(self):
        """Ten allocations of 0.1 sum to exactly 1 with no float drift."""
        check = validate_allocations("1.00", allocations_of(*([0.1] * 10)))
        assert check.is_valid is True
        assert sum_allocations(allocations_of(*([0.1] * 10))) == Decimal("1")

    def test_empty_allocations_against_zero_total(self):
        check = validate_allocations(0, [])
        assert check.is_valid is True

    def test_strict_policy_rejects_mismatch(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_allocations(1000, allocations_of(500, 300), policy="strict")
        assert exc_info.value.details["difference"] == Decimal("200")

    def test_strict_policy_accepts_exact_match(self):
        check = validate_allocations(800, allocations_of(500, 300), policy="strict")
        assert check.is_valid is True

    def test_unknown_policy(self):
        with pytest.raises(ValidationError):
            validate_allocations(100, allocations_of(100), policy="lenient")


class TestMalformedAllocations:
    """Rows that must be rejected outright."""

    def test_negative_allocation(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_allocations(100, [CategoryAllocation("rent", -10)])
        assert "negative" in exc_info.value.message

    def test_negative_spent_amount(self):
        with pytest.raises(ValidationError):
            validate_allocations(100, [CategoryAllocation("rent", 100, spent_amount=-1)])

    @pytest.mark.parametrize("category", ["", "   ", None])
    def test_missing_category_reference(self, category):
        with pytest.raises(ValidationError) as exc_info:
            validate_allocations(100, [CategoryAllocation(category, 100)])
        assert exc_info.value.details["index"] == 0

    def test_duplicate_categories(self):
        allocations = [CategoryAllocation("rent", 50), CategoryAllocation("rent", 50)]
        with pytest.raises(ValidationError) as exc_info:
            validate_allocations(100, allocations)
        assert exc_info.value.details["category"] == "rent"

    def test_negative_total(self):
        with pytest.raises(ValidationError):
            validate_allocations(-5, allocations_of(5))

    def test_nan_total(self):
        with pytest.raises(ValidationError):
            validate_allocations(float("nan"), allocations_of(5))
