"""
Status classification and period rollup for budget analysis.

Applies the rollover policy, assigns a status to each category, and
computes the period-level totals and linear end-of-period projection.
The analyze_budget function runs the whole validate, aggregate, classify
pipeline for one budget period.
"""

import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import Dict, List, Optional, Sequence

from allocation_validator import validate_allocations
from budget_models import (
    ZERO,
    BudgetAnalysis,
    BudgetPeriod,
    BudgetRollup,
    BudgetStatus,
    CategoryAllocation,
    CategoryAnalysis,
    DateLike,
    as_naive_datetime,
    quantize_money,
)
from config_manager import BudgetSettings
from exceptions import ValidationError
from spend_aggregator import aggregate_spending, analyze_category, utilization_percentage

logger = logging.getLogger(__name__)

DEFAULT_WARNING_THRESHOLD = 80.0


def classify_status(
    utilization: float,
    *,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> BudgetStatus:
    """
    Map a utilization percentage to a status; first match wins.

    over: > 100. warning: >= warning_threshold and <= 100. good: otherwise.
    """
    if utilization > 100:
        return BudgetStatus.OVER
    if utilization >= warning_threshold:
        return BudgetStatus.WARNING
    return BudgetStatus.GOOD


def effective_warning_threshold(budget: BudgetPeriod, settings: Optional[BudgetSettings] = None) -> float:
    """Budget-level alert threshold if set, otherwise the configured one."""
    if budget.alert_threshold is not None:
        return budget.alert_threshold
    return (settings or BudgetSettings()).warning_threshold


def apply_rollover(
    analyses: Sequence[CategoryAnalysis],
    allocations: Sequence[CategoryAllocation],
    *,
    rollover_enabled: bool
) -> List[CategoryAnalysis]:
    """
    Recompute rows against allocated + rollover when rollover is enabled.

    A negative rollover (prior overspend) shrinks the effective budget and
    may take it below zero; utilization is then 0.

    Raises:
        ValidationError: If analyses and allocations do not line up
    """
    if len(analyses) != len(allocations):
        raise ValidationError(
            "Analysis rows do not match allocations",
            details={"analyses": len(analyses), "allocations": len(allocations)}
        )

    if not rollover_enabled:
        return list(analyses)

    adjusted: List[CategoryAnalysis] = []
    for row, allocation in zip(analyses, allocations):
        if row.category_id != allocation.category_id.strip():
            raise ValidationError(
                "Analysis row does not match allocation",
                details={"row": row.category_id, "allocation": allocation.category_id}
            )

        rollover = allocation.rollover_amount
        if not rollover:
            adjusted.append(row)
            continue

        effective = allocation.allocated_amount + rollover
        new_row = analyze_category(allocation, effective)
        adjusted.append(replace(new_row, rollover_applied=rollover))
        logger.debug(
            "Applied rollover %s to %s: effective budget %s",
            rollover, row.category_id, effective
        )
    return adjusted


def classify_categories(
    analyses: Sequence[CategoryAnalysis],
    allocations: Sequence[CategoryAllocation],
    *,
    rollover_enabled: bool = False,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
) -> List[CategoryAnalysis]:
    """Apply the rollover policy, then assign a status to every row."""
    rows = apply_rollover(analyses, allocations, rollover_enabled=rollover_enabled)
    return [
        replace(row, status=classify_status(row.utilization_percentage, warning_threshold=warning_threshold))
        for row in rows
    ]


def count_statuses(analyses: Sequence[CategoryAnalysis]) -> Dict[str, int]:
    """Number of categories in each status bucket (all buckets present)."""
    counts = {status.value: 0 for status in BudgetStatus}
    for row in analyses:
        if row.status is not None:
            counts[row.status.value] += 1
    return counts


def compute_rollup(
    budget: BudgetPeriod,
    analyses: Sequence[CategoryAnalysis],
    *,
    now: DateLike
) -> BudgetRollup:
    """
    Aggregate classified rows into period totals and projections.

    The projection is linear: current average daily spend continued over
    the remaining days.

    Args:
        budget: Budget period providing the date bounds
        analyses: Classified category rows
        now: Point in time the rollup is computed for

    Returns:
        BudgetRollup
    """
    total_budgeted = sum((row.budgeted for row in analyses), ZERO)
    total_spent = sum((row.spent for row in analyses), ZERO)
    total_remaining = total_budgeted - total_spent

    days_elapsed = budget.days_elapsed(now)
    days_remaining = budget.days_remaining(now)

    average_daily_spend = total_spent / days_elapsed if days_elapsed > 0 else ZERO
    projected_spend = total_spent + average_daily_spend * days_remaining

    if total_budgeted > 0:
        savings_rate = float((total_budgeted - total_spent) / total_budgeted * 100)
    else:
        savings_rate = 0.0

    rollup = BudgetRollup(
        total_budgeted=total_budgeted,
        total_spent=total_spent,
        total_remaining=total_remaining,
        budget_utilization=utilization_percentage(total_spent, total_budgeted),
        total_days=budget.total_days,
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        average_daily_spend=quantize_money(average_daily_spend),
        projected_spend=quantize_money(projected_spend),
        savings_rate=savings_rate,
        status_counts=count_statuses(analyses),
    )
    logger.debug("Rollup for budget %s: %s", budget.budget_id, rollup)
    return rollup


def analyze_budget(
    budget: BudgetPeriod,
    *,
    now: Optional[DateLike] = None,
    settings: Optional[BudgetSettings] = None
) -> BudgetAnalysis:
    """
    Run allocation validation, spend aggregation, and classification.

    Args:
        budget: Budget period with its allocations
        now: Point in time for day counts (defaults to current UTC time)
        settings: Analysis policy (defaults to BudgetSettings())

    Returns:
        BudgetAnalysis bundling the check, category rows, and rollup

    Raises:
        ValidationError: If any stage rejects the input
    """
    settings = settings or BudgetSettings()
    as_of = as_naive_datetime(now if now is not None else datetime.now(UTC))

    check = validate_allocations(
        budget.total_amount,
        budget.allocations,
        policy=settings.allocation_policy
    )
    rows = aggregate_spending(budget.allocations)
    rows = classify_categories(
        rows,
        budget.allocations,
        rollover_enabled=budget.rollover_enabled,
        warning_threshold=effective_warning_threshold(budget, settings),
    )
    rollup = compute_rollup(budget, rows, now=as_of)

    logger.info(
        "Analyzed budget '%s': %d categories, utilization %.1f%%",
        budget.name, len(rows), rollup.budget_utilization
    )
    return BudgetAnalysis(
        budget=budget,
        check=check,
        categories=tuple(rows),
        rollup=rollup,
        as_of=as_of,
    )
