"""
Exception hierarchy for the budget tracking core.

Every error raised by the analysis pipeline, configuration loading, budget
document I/O, and reporting derives from BudgetCoreError, so the command
line can turn any of them into a single error message and exit code.
"""

from typing import Any, Dict, Optional


class BudgetCoreError(Exception):
    """
    Base exception for budget tracking errors.

    Attributes:
        message: Human-readable error message
        details: Context such as the offending category or amounts
        original_error: Lower-level exception that caused this error, if any
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        """Message followed by key=value details, if any."""
        if not self.details:
            return self.message
        detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({detail_str})"

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-compatible description of the error.

        Detail values are stringified so Decimal amounts and dates serialize.
        """
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": {key: str(value) for key, value in self.details.items()},
        }


class ConfigError(BudgetCoreError):
    """Raised when the configuration file cannot be read or holds invalid values."""
    pass


class ValidationError(BudgetCoreError):
    """Raised when a budget, allocation, or amount violates its contract."""
    pass


class BudgetError(BudgetCoreError):
    """Raised when an operation cannot be applied to an otherwise valid budget."""
    pass


class ReportError(BudgetCoreError):
    """Raised when a report cannot be rendered or exported."""
    pass
