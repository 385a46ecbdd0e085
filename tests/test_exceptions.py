"""
Unit tests for the unified exception hierarchy.

Tests exception creation, attributes, string representations, and error context.
"""

from decimal import Decimal

import pytest
from exceptions import (
    BudgetCoreError,
    ConfigError,
    ValidationError,
    BudgetError,
    ReportError,
)


class TestBudgetCoreError:
    """Test base BudgetCoreError class."""

    def test_basic_exception_creation(self):
        """Test creating a basic BudgetCoreError."""
        error = BudgetCoreError("Test error message")
        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details == {}
        assert error.original_error is None

    def test_exception_with_details(self):
        """Test creating exception with details dictionary."""
        details = {"key1": "value1", "key2": 123}
        error = BudgetCoreError("Test error", details=details)
        assert error.details == details
        assert "key1=value1" in str(error)
        assert "key2=123" in str(error)

    def test_exception_with_original_error(self):
        """Test creating exception with original error chaining."""
        original = ValueError("Original error")
        error = BudgetCoreError("Wrapped error", original_error=original)
        assert error.original_error is original


class TestExceptionHierarchy:
    """Test specific exception subclasses."""

    @pytest.mark.parametrize("error_cls", [ConfigError, ValidationError, BudgetError, ReportError])
    def test_subclasses_share_base(self, error_cls):
        """Every application error can be caught as BudgetCoreError."""
        error = error_cls("failed", details={"field": "amount"})
        assert isinstance(error, BudgetCoreError)
        assert error.details["field"] == "amount"

    def test_validation_error_message(self):
        """ValidationError keeps its message and details in str()."""
        error = ValidationError(
            "Allocated amount cannot be negative",
            details={"category": "rent", "allocated_amount": -5}
        )
        assert "Allocated amount cannot be negative" in str(error)
        assert "category=rent" in str(error)

    def test_to_dict_stringifies_details(self):
        """to_dict output can be passed straight to json.dumps."""
        error = ValidationError("Bad total", details={"total_amount": Decimal("-5.00")})
        assert error.to_dict() == {
            "error": "ValidationError",
            "message": "Bad total",
            "details": {"total_amount": "-5.00"},
        }

    def test_validation_error_is_not_budget_error(self):
        """Input errors and operation errors stay distinguishable."""
        assert not issubclass(ValidationError, BudgetError)
        assert not issubclass(BudgetError, ValidationError)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
