"""
Budget insights built on top of a BudgetAnalysis.

Provides period date helpers, pacing and variance metrics, overspend
violations, a 0-100 health score, rollover carry-forward between periods,
and creation of new budget periods from templates.
"""

import calendar
import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple, Union

from budget_models import (
    ZERO,
    BudgetAnalysis,
    BudgetPeriod,
    BudgetStatus,
    CategoryAllocation,
    DateLike,
    PeriodKind,
    quantize_money,
    to_decimal,
)
from budget_status import effective_warning_threshold
from config_manager import BudgetSettings
from exceptions import BudgetError

logger = logging.getLogger(__name__)

STATUS_OVER_BUDGET = "over-budget"
STATUS_WARNING = "warning"
STATUS_ON_TRACK = "on-track"

LEVEL_CRITICAL = "critical"
LEVEL_WARNING = "warning"


def _add_months(day: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def period_bounds(kind: Union[PeriodKind, str], anchor: date) -> Tuple[date, date]:
    """
    Get the calendar period containing the anchor date.

    Weeks run Monday to Sunday and quarters follow the calendar year. A
    daily period ends on the following day because a period's end must be
    after its start.

    Args:
        kind: Period kind
        anchor: Any date inside the desired period

    Returns:
        Tuple of (period_start, period_end), both inclusive
    """
    kind = PeriodKind.parse(kind)
    if kind is PeriodKind.DAILY:
        return anchor, anchor + timedelta(days=1)
    if kind is PeriodKind.WEEKLY:
        start = anchor - timedelta(days=anchor.weekday())
        return start, start + timedelta(days=6)
    if kind is PeriodKind.MONTHLY:
        start = anchor.replace(day=1)
        return start, _add_months(start, 1) - timedelta(days=1)
    if kind is PeriodKind.QUARTERLY:
        start = anchor.replace(month=3 * ((anchor.month - 1) // 3) + 1, day=1)
        return start, _add_months(start, 3) - timedelta(days=1)
    start = anchor.replace(month=1, day=1)
    return start, start.replace(year=start.year + 1) - timedelta(days=1)


def period_end_for(kind: Union[PeriodKind, str], start: date) -> date:
    """
    End date of a period of the given kind beginning on start.

    One period length after start, minus a day (daily periods end the next day).
    """
    kind = PeriodKind.parse(kind)
    if kind is PeriodKind.DAILY:
        return start + timedelta(days=1)
    if kind is PeriodKind.WEEKLY:
        return start + timedelta(days=6)
    months = {PeriodKind.MONTHLY: 1, PeriodKind.QUARTERLY: 3, PeriodKind.YEARLY: 12}[kind]
    return _add_months(start, months) - timedelta(days=1)


@dataclass(frozen=True)
class BudgetPerformance:
    """
    Pacing and variance metrics for a budget period.

    Attributes:
        period_progress: Percentage of the period's days elapsed
        daily_budget: Total budget spread evenly over the period
        expected_spend: Spend expected at this point if spending were even
        time_variance: Actual minus expected spend
        time_variance_percentage: time_variance relative to expected spend
        variance_amount: Actual spend minus total budget
        variance_percentage: variance_amount relative to total budget
        burn_rate: Percentage of the budget spent
        ideal_burn_rate: Burn rate matching period progress
        burn_rate_variance: burn_rate minus ideal_burn_rate
        is_on_track: True when burn_rate_variance is within tolerance
        projected_overrun: Projected spend above the budget (never negative)
        remaining_daily: Remaining budget per remaining day
        status: over-budget, warning, or on-track
    """
    period_progress: float
    daily_budget: Decimal
    expected_spend: Decimal
    time_variance: Decimal
    time_variance_percentage: float
    variance_amount: Decimal
    variance_percentage: float
    burn_rate: float
    ideal_burn_rate: float
    burn_rate_variance: float
    is_on_track: bool
    projected_overrun: Decimal
    remaining_daily: Decimal
    status: str

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-compatible representation."""
        return {
            "period_progress": self.period_progress,
            "daily_budget": float(self.daily_budget),
            "expected_spend": float(self.expected_spend),
            "time_variance": float(self.time_variance),
            "time_variance_percentage": self.time_variance_percentage,
            "variance_amount": float(self.variance_amount),
            "variance_percentage": self.variance_percentage,
            "burn_rate": self.burn_rate,
            "ideal_burn_rate": self.ideal_burn_rate,
            "burn_rate_variance": self.burn_rate_variance,
            "is_on_track": self.is_on_track,
            "projected_overrun": float(self.projected_overrun),
            "remaining_daily": float(self.remaining_daily),
            "status": self.status,
        }


def evaluate_performance(
    analysis: BudgetAnalysis,
    *,
    now: Optional[DateLike] = None,
    settings: Optional[BudgetSettings] = None
) -> BudgetPerformance:
    """
    Compare actual spending with even pacing across the period.

    Args:
        analysis: Result of analyze_budget
        now: Point in time (defaults to the analysis as_of time)
        settings: Policy values for the on-track tolerance and warning threshold

    Returns:
        BudgetPerformance
    """
    settings = settings or BudgetSettings()
    budget = analysis.budget
    rollup = analysis.rollup
    now = now if now is not None else analysis.as_of

    total_days = budget.total_days
    days_elapsed = budget.days_elapsed(now)
    days_remaining = budget.days_remaining(now)
    progress = budget.period_progress(now)

    budgeted = rollup.total_budgeted
    spent = rollup.total_spent

    expected_spend = budgeted * days_elapsed / total_days
    time_variance = spent - expected_spend
    time_variance_pct = float(time_variance / expected_spend * 100) if expected_spend > 0 else 0.0

    variance_amount = spent - budgeted
    variance_pct = float(variance_amount / budgeted * 100) if budgeted > 0 else 0.0

    burn_rate = rollup.budget_utilization
    burn_rate_variance = burn_rate - progress

    if days_remaining > 0:
        remaining_daily = rollup.total_remaining / days_remaining
    else:
        remaining_daily = ZERO

    threshold = effective_warning_threshold(budget, settings)
    if spent > budgeted:
        status = STATUS_OVER_BUDGET
    elif burn_rate >= threshold:
        status = STATUS_WARNING
    else:
        status = STATUS_ON_TRACK

    return BudgetPerformance(
        period_progress=progress,
        daily_budget=quantize_money(budgeted / total_days),
        expected_spend=quantize_money(expected_spend),
        time_variance=quantize_money(time_variance),
        time_variance_percentage=time_variance_pct,
        variance_amount=variance_amount,
        variance_percentage=variance_pct,
        burn_rate=burn_rate,
        ideal_burn_rate=progress,
        burn_rate_variance=burn_rate_variance,
        is_on_track=abs(burn_rate_variance) <= settings.on_track_tolerance,
        projected_overrun=max(ZERO, rollup.projected_spend - budgeted),
        remaining_daily=quantize_money(remaining_daily),
        status=status,
    )


@dataclass(frozen=True)
class BudgetViolation:
    """A budget-level or category-level overspend or warning."""
    kind: str
    level: str
    message: str
    percentage: float
    amount: Decimal = ZERO
    category_id: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-compatible representation."""
        return {
            "kind": self.kind,
            "level": self.level,
            "category_id": self.category_id,
            "amount": float(self.amount),
            "percentage": self.percentage,
            "message": self.message,
        }


def detect_violations(
    analysis: BudgetAnalysis,
    *,
    settings: Optional[BudgetSettings] = None,
    currency_symbol: str = "$"
) -> List[BudgetViolation]:
    """
    List overspend and warning conditions, budget-level first.

    Args:
        analysis: Result of analyze_budget
        settings: Policy values (warning threshold)
        currency_symbol: Symbol used in messages

    Returns:
        List of BudgetViolation (empty when everything is on track)
    """
    threshold = effective_warning_threshold(analysis.budget, settings)
    rollup = analysis.rollup
    violations: List[BudgetViolation] = []

    if rollup.total_spent > rollup.total_budgeted:
        over = rollup.total_spent - rollup.total_budgeted
        pct = float(over / rollup.total_budgeted * 100) if rollup.total_budgeted > 0 else 0.0
        violations.append(BudgetViolation(
            kind="budget_exceeded",
            level=LEVEL_CRITICAL,
            amount=over,
            percentage=pct,
            message=f"Budget exceeded by {currency_symbol}{over:,.2f}",
        ))
    elif rollup.budget_utilization >= threshold:
        violations.append(BudgetViolation(
            kind="budget_warning",
            level=LEVEL_WARNING,
            percentage=rollup.budget_utilization,
            message=f"{rollup.budget_utilization:.1f}% of budget used",
        ))

    for row in analysis.categories:
        if row.status is BudgetStatus.OVER:
            over = row.spent - row.budgeted
            pct = float(over / row.budgeted * 100) if row.budgeted > 0 else 0.0
            violations.append(BudgetViolation(
                kind="category_exceeded",
                level=LEVEL_CRITICAL,
                category_id=row.category_id,
                amount=over,
                percentage=pct,
                message=f"{row.category_name} exceeded by {currency_symbol}{over:,.2f}",
            ))
        elif row.status is BudgetStatus.WARNING:
            violations.append(BudgetViolation(
                kind="category_warning",
                level=LEVEL_WARNING,
                category_id=row.category_id,
                percentage=row.utilization_percentage,
                message=f"{row.utilization_percentage:.1f}% of {row.category_name} budget used",
            ))

    if violations:
        logger.info("Budget '%s' has %d violation(s)", analysis.budget.name, len(violations))
    return violations


@dataclass(frozen=True)
class HealthFactor:
    """One deduction applied to a health score."""
    factor: str
    impact: float
    description: str


@dataclass(frozen=True)
class HealthScore:
    """Overall budget health on a 0-100 scale."""
    score: int
    level: str
    factors: Tuple[HealthFactor, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        """Return a JSON-compatible representation."""
        return {
            "score": self.score,
            "level": self.level,
            "factors": [
                {"factor": f.factor, "impact": f.impact, "description": f.description}
                for f in self.factors
            ],
        }


def _health_level(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    if score >= 40:
        return "Poor"
    return "Critical"


def calculate_health_score(analysis: BudgetAnalysis, performance: BudgetPerformance) -> HealthScore:
    """
    Score a budget from 100 down, deducting for overspend, under-use,
    uneven pacing, and imbalance between categories.
    """
    score = 100.0
    factors: List[HealthFactor] = []
    utilization = analysis.rollup.budget_utilization

    if utilization > 100:
        penalty = min(30.0, (utilization - 100) * 2)
        score -= penalty
        factors.append(HealthFactor(
            "Over Budget", -penalty, f"{utilization - 100:.1f}% over budget"
        ))
    elif utilization < 50 and performance.period_progress > 75:
        penalty = 10.0
        score -= penalty
        factors.append(HealthFactor(
            "Under-Utilized", -penalty, "Significant unused budget allocation"
        ))

    if abs(performance.burn_rate_variance) > 20:
        penalty = min(20.0, abs(performance.burn_rate_variance) / 2)
        score -= penalty
        pace = "too fast" if performance.burn_rate_variance > 0 else "too slow"
        factors.append(HealthFactor("Poor Pacing", -penalty, f"Spending {pace}"))

    variances = [
        abs(row.utilization_percentage - 100)
        for row in analysis.categories
        if row.budgeted > 0
    ]
    if variances:
        average_variance = sum(variances) / len(variances)
        if average_variance > 25:
            penalty = min(15.0, average_variance / 5)
            score -= penalty
            factors.append(HealthFactor(
                "Category Imbalance", -penalty, "Uneven spending across categories"
            ))

    final_score = max(0, round(score))
    return HealthScore(score=final_score, level=_health_level(final_score), factors=tuple(factors))


def carry_forward(
    previous: BudgetAnalysis,
    *,
    include_overspend: Optional[bool] = None,
    settings: Optional[BudgetSettings] = None
) -> Dict[str, Decimal]:
    """
    Rollover amounts a previous period passes to the next one.

    Unspent remainders always carry. Overspend (negative remainders) carries
    only when include_overspend is set; when it is None the configured
    carry_overspend setting decides.

    Returns:
        Mapping of category id to rollover amount (zero remainders omitted)
    """
    if include_overspend is None:
        include_overspend = (settings or BudgetSettings()).carry_overspend

    amounts: Dict[str, Decimal] = {}
    for row in previous.categories:
        if row.remaining > 0 or (include_overspend and row.remaining < 0):
            amounts[row.category_id] = row.remaining
    return amounts


def apply_carry_forward(budget: BudgetPeriod, amounts: Mapping[str, Decimal]) -> BudgetPeriod:
    """
    Return a copy of budget with rollover amounts set on matching categories.

    Raises:
        BudgetError: If rollover is not enabled for the budget
    """
    if not budget.rollover_enabled:
        raise BudgetError(
            "Rollover is not enabled for this budget",
            details={"budget": budget.budget_id}
        )

    allocations = []
    for allocation in budget.allocations:
        key = allocation.category_id.strip()
        if key in amounts:
            allocation = replace(allocation, rollover_amount=to_decimal(amounts[key], "rollover_amount"))
        allocations.append(allocation)

    logger.info("Carried %d rollover amount(s) into budget '%s'", len(amounts), budget.name)
    return replace(budget, allocations=tuple(allocations))


def create_from_template(
    template: BudgetPeriod,
    *,
    budget_id: str,
    start_date: date,
    end_date: Optional[date] = None,
    name: Optional[str] = None,
    inflation_rate: Optional[float] = None
) -> BudgetPeriod:
    """
    Start a new budget period from an existing budget or template.

    Spent and rollover amounts are reset. With an inflation rate (percent),
    every allocation is scaled and rounded to cents and the total becomes
    the sum of the scaled allocations.

    Args:
        template: Source budget
        budget_id: Identifier for the new budget
        start_date: First day of the new period
        end_date: Last day (defaults to one period of the template's kind)
        name: New name (defaults to "<template name> - YYYY/MM")
        inflation_rate: Optional percentage increase applied to allocations

    Returns:
        New, active, non-template BudgetPeriod
    """
    multiplier = Decimal("1")
    if inflation_rate is not None:
        multiplier += to_decimal(inflation_rate, "inflation_rate") / 100

    allocations: List[CategoryAllocation] = []
    for allocation in template.allocations:
        allocations.append(replace(
            allocation,
            allocated_amount=quantize_money(allocation.allocated_amount * multiplier),
            spent_amount=ZERO,
            rollover_amount=None,
        ))

    if inflation_rate is not None:
        total = sum((a.allocated_amount for a in allocations), ZERO)
    else:
        total = template.total_amount

    budget = replace(
        template,
        budget_id=budget_id,
        name=name or f"{template.name} - {start_date.year}/{start_date.month:02d}",
        start_date=start_date,
        end_date=end_date or period_end_for(template.period, start_date),
        total_amount=total,
        allocations=tuple(allocations),
        is_active=True,
        is_template=False,
    )
    logger.info("Created budget '%s' from template '%s'", budget.name, template.name)
    return budget
