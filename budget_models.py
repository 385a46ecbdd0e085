"""
Domain models for budget periods, category allocations, and derived metrics.

Money amounts are held as Decimal so sums over many small allocations stay
exact. Derived rows (CategoryAnalysis, BudgetRollup, BudgetAnalysis) are
frozen dataclasses computed on demand and never persisted by this module.
"""

import enum
import logging
import math
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple, Union

from exceptions import ValidationError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]
DateLike = Union[date, datetime]


class PeriodKind(enum.Enum):
    """Enumeration of budgeting cycle lengths."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: Union["PeriodKind", str]) -> "PeriodKind":
        """
        Resolve a period kind from an enum member or a case-insensitive name.

        Raises:
            ValidationError: If the value names no known period.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValidationError(
                f"Unknown budget period '{value}'",
                details={"allowed": ", ".join(kind.value for kind in cls)},
                original_error=exc
            ) from exc


class BudgetStatus(enum.Enum):
    """Qualitative status of a category (or whole budget) against its allocation."""
    GOOD = "good"
    WARNING = "warning"
    OVER = "over"


def to_decimal(value: Number, field_name: str = "amount") -> Decimal:
    """
    Convert a numeric input to a finite Decimal.

    Floats are converted through their string form so 0.1 stays 0.1.

    Args:
        value: Decimal, int, float, or numeric string
        field_name: Name used in error details

    Returns:
        Finite Decimal value

    Raises:
        ValidationError: If the value is missing, boolean, non-numeric, NaN, or infinite
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a number",
            details={"field": field_name, "value": value}
        )

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(
                f"'{field_name}' is not a valid number",
                details={"field": field_name, "value": value},
                original_error=exc
            ) from exc

    if not result.is_finite():
        raise ValidationError(
            f"'{field_name}' must be a finite number",
            details={"field": field_name, "value": value}
        )
    return result


def quantize_money(amount: Decimal) -> Decimal:
    """Round a Decimal amount to cents (half-up)."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def as_naive_datetime(value: DateLike) -> datetime:
    """
    Normalize a date or datetime to a naive UTC datetime.

    Dates map to midnight; aware datetimes are converted to UTC first.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise ValidationError(
        "Expected a date or datetime",
        details={"value": value, "type": type(value).__name__}
    )


@dataclass(frozen=True)
class CategoryAllocation:
    """
    One category row within a budget period.

    Attributes:
        category_id: Opaque reference to the category
        allocated_amount: Amount assigned to the category
        spent_amount: Amount spent, aggregated by the caller from transactions
        rollover_amount: Amount carried from the prior period (may be negative)
        category_name: Display name copied through to analysis rows
        notes: Free-form notes
    """
    category_id: str
    allocated_amount: Decimal
    spent_amount: Decimal = ZERO
    rollover_amount: Optional[Decimal] = None
    category_name: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        # Sign and presence checks belong to the allocation validator.
        object.__setattr__(self, "category_id", "" if self.category_id is None else str(self.category_id))
        object.__setattr__(self, "allocated_amount", to_decimal(self.allocated_amount, "allocated_amount"))
        object.__setattr__(self, "spent_amount", to_decimal(self.spent_amount, "spent_amount"))
        if self.rollover_amount is not None:
            object.__setattr__(self, "rollover_amount", to_decimal(self.rollover_amount, "rollover_amount"))

    @property
    def display_name(self) -> str:
        """Category name for presentation, falling back to the id."""
        return self.category_name or self.category_id

    @property
    def adjusted_amount(self) -> Decimal:
        """Allocated amount plus any rollover from the prior period."""
        return self.allocated_amount + (self.rollover_amount or ZERO)


@dataclass(frozen=True)
class BudgetPeriod:
    """
    One budgeting cycle with its category allocations.

    The end date is inclusive: a January budget runs from Jan 1 to Jan 31
    and spans 31 days.
    """
    budget_id: str
    name: str
    total_amount: Decimal
    period: PeriodKind
    start_date: date
    end_date: date
    allocations: Tuple[CategoryAllocation, ...] = ()
    is_active: bool = True
    is_template: bool = False
    rollover_enabled: bool = False
    alert_threshold: Optional[float] = None
    currency: str = "USD"

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_amount", to_decimal(self.total_amount, "total_amount"))
        object.__setattr__(self, "period", PeriodKind.parse(self.period))
        object.__setattr__(self, "allocations", tuple(self.allocations))
        object.__setattr__(self, "currency", (self.currency or "USD").upper())

        for attr in ("start_date", "end_date"):
            value = getattr(self, attr)
            if isinstance(value, datetime):
                object.__setattr__(self, attr, value.date())
            elif not isinstance(value, date):
                raise ValidationError(
                    f"'{attr}' must be a date",
                    details={"budget": self.name, attr: value}
                )

        if self.end_date <= self.start_date:
            raise ValidationError(
                "End date must be after start date",
                details={
                    "budget": self.name,
                    "start_date": self.start_date.isoformat(),
                    "end_date": self.end_date.isoformat(),
                }
            )

        if self.total_amount < 0:
            raise ValidationError(
                "Total budget amount cannot be negative",
                details={"budget": self.name, "total_amount": self.total_amount}
            )

        if self.alert_threshold is not None:
            try:
                threshold = float(self.alert_threshold)
            except (TypeError, ValueError) as exc:
                raise ValidationError(
                    "Alert threshold must be a number",
                    details={"budget": self.name, "alert_threshold": self.alert_threshold},
                    original_error=exc
                ) from exc
            if math.isnan(threshold) or not 50 <= threshold <= 100:
                raise ValidationError(
                    "Alert threshold must be between 50% and 100%",
                    details={"budget": self.name, "alert_threshold": self.alert_threshold}
                )
            object.__setattr__(self, "alert_threshold", threshold)

    @property
    def total_days(self) -> int:
        """Number of days in the period, counting both ends."""
        return (self.end_date - self.start_date).days + 1

    @property
    def daily_budget(self) -> Decimal:
        """Total amount spread evenly over the period."""
        return self.total_amount / self.total_days

    def days_elapsed(self, now: DateLike) -> int:
        """
        Whole days elapsed since the start of the period, rounded up.

        Clamped to the range [0, total_days].
        """
        start = as_naive_datetime(self.start_date)
        delta = as_naive_datetime(now) - start
        elapsed = math.ceil(delta.total_seconds() / 86400)
        return min(max(0, elapsed), self.total_days)

    def days_remaining(self, now: DateLike) -> int:
        """Days left in the period after those already elapsed."""
        return max(0, self.total_days - self.days_elapsed(now))

    def period_progress(self, now: DateLike) -> float:
        """Percentage of the period elapsed, capped at 100."""
        return min(100.0, self.days_elapsed(now) / self.total_days * 100.0)


@dataclass(frozen=True)
class CategoryAnalysis:
    """Derived per-category utilization row."""
    category_id: str
    category_name: str
    budgeted: Decimal
    spent: Decimal
    remaining: Decimal
    utilization_percentage: float
    status: Optional[BudgetStatus] = None
    rollover_applied: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-compatible representation."""
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "budgeted": float(self.budgeted),
            "spent": float(self.spent),
            "remaining": float(self.remaining),
            "utilization_percentage": self.utilization_percentage,
            "status": self.status.value if self.status else None,
            "rollover_applied": float(self.rollover_applied),
        }


@dataclass(frozen=True)
class BudgetRollup:
    """Aggregate metrics across all categories of a budget period."""
    total_budgeted: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    budget_utilization: float
    total_days: int
    days_elapsed: int
    days_remaining: int
    average_daily_spend: Decimal
    projected_spend: Decimal
    savings_rate: float
    status_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-compatible representation."""
        return {
            "total_budgeted": float(self.total_budgeted),
            "total_spent": float(self.total_spent),
            "total_remaining": float(self.total_remaining),
            "budget_utilization": self.budget_utilization,
            "total_days": self.total_days,
            "days_elapsed": self.days_elapsed,
            "days_remaining": self.days_remaining,
            "average_daily_spend": float(self.average_daily_spend),
            "projected_spend": float(self.projected_spend),
            "savings_rate": self.savings_rate,
            "status_counts": dict(self.status_counts),
        }


@dataclass(frozen=True)
class AllocationCheck:
    """
    Result of checking category allocations against the budget total.

    Attributes:
        is_valid: True when allocations sum exactly to the total
        difference: Absolute difference between the sum and the total
        total_allocated: Exact sum of category allocations
        total_amount: Stated budget total
        warnings: Advisory messages produced during the check
    """
    is_valid: bool
    difference: Decimal
    total_allocated: Decimal
    total_amount: Decimal
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-compatible representation."""
        return {
            "is_valid": self.is_valid,
            "difference": float(self.difference),
            "total_allocated": float(self.total_allocated),
            "total_amount": float(self.total_amount),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class BudgetAnalysis:
    """Outputs of one run of the validate, aggregate, classify pipeline."""
    budget: BudgetPeriod
    check: AllocationCheck
    categories: Tuple[CategoryAnalysis, ...]
    rollup: BudgetRollup
    as_of: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-compatible representation with ISO-8601 dates."""
        return {
            "budget": {
                "id": self.budget.budget_id,
                "name": self.budget.name,
                "period": self.budget.period.value,
                "start_date": self.budget.start_date.isoformat(),
                "end_date": self.budget.end_date.isoformat(),
                "total_amount": float(self.budget.total_amount),
                "currency": self.budget.currency,
                "rollover_enabled": self.budget.rollover_enabled,
            },
            "as_of": self.as_of.isoformat(),
            "allocation_check": self.check.to_dict(),
            "categories": [row.to_dict() for row in self.categories],
            "rollup": self.rollup.to_dict(),
        }
