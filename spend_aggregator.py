"""
Spend aggregation: combine allocated and spent amounts per category.

Spent amounts arrive already aggregated on each CategoryAllocation. This
stage applies no rollover or status policy.
"""

import logging
from decimal import Decimal
from typing import List, Sequence

from allocation_validator import check_allocation_entry
from budget_models import CategoryAllocation, CategoryAnalysis

logger = logging.getLogger(__name__)


def utilization_percentage(spent: Decimal, budgeted: Decimal) -> float:
    """
    Spent amount as a percentage of the budgeted amount.

    Returns 0 when nothing is budgeted.
    """
    if budgeted <= 0:
        return 0.0
    return float(spent / budgeted * 100)


def analyze_category(allocation: CategoryAllocation, budgeted: Decimal) -> CategoryAnalysis:
    """Build an unclassified analysis row for an allocation against a given budget."""
    spent = allocation.spent_amount
    return CategoryAnalysis(
        category_id=allocation.category_id.strip(),
        category_name=allocation.display_name,
        budgeted=budgeted,
        spent=spent,
        remaining=budgeted - spent,
        utilization_percentage=utilization_percentage(spent, budgeted),
    )


def aggregate_spending(allocations: Sequence[CategoryAllocation]) -> List[CategoryAnalysis]:
    """
    Produce one CategoryAnalysis per allocation, preserving input order.

    Args:
        allocations: Category allocations with spent amounts filled in

    Returns:
        List of unclassified CategoryAnalysis rows

    Raises:
        ValidationError: If a row has a missing category or negative amount
    """
    rows: List[CategoryAnalysis] = []
    for index, allocation in enumerate(allocations):
        check_allocation_entry(allocation, index)
        rows.append(analyze_category(allocation, allocation.allocated_amount))

    logger.debug("Aggregated spending for %d categories", len(rows))
    return rows
