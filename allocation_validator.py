"""
Allocation validation for budget periods.

Checks that a proposed list of category allocations is well-formed and
compares its exact Decimal sum against the stated budget total.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Sequence, Set

from budget_models import ZERO, AllocationCheck, CategoryAllocation, to_decimal
from config_manager import ALLOCATION_POLICIES
from exceptions import ValidationError

logger = logging.getLogger(__name__)


def check_allocation_entry(allocation: CategoryAllocation, index: int) -> None:
    """
    Validate a single allocation row.

    Args:
        allocation: Allocation to check
        index: Position in the input sequence (used in error details)

    Raises:
        ValidationError: If the category reference is missing or an amount is negative
    """
    category_id = (allocation.category_id or "").strip()
    if not category_id:
        raise ValidationError(
            "Category reference is required",
            details={"index": index}
        )

    if allocation.allocated_amount < 0:
        raise ValidationError(
            "Allocated amount cannot be negative",
            details={"category": category_id, "allocated_amount": allocation.allocated_amount}
        )

    if allocation.spent_amount < 0:
        raise ValidationError(
            "Spent amount cannot be negative",
            details={"category": category_id, "spent_amount": allocation.spent_amount}
        )


def _check_duplicates(allocations: Sequence[CategoryAllocation]) -> None:
    seen: Set[str] = set()
    for allocation in allocations:
        key = allocation.category_id.strip()
        if key in seen:
            raise ValidationError(
                "Duplicate categories are not allowed in budget allocations",
                details={"category": key}
            )
        seen.add(key)


def sum_allocations(allocations: Iterable[CategoryAllocation]) -> Decimal:
    """Exact Decimal sum of allocated amounts."""
    return sum((allocation.allocated_amount for allocation in allocations), ZERO)


def validate_allocations(
    total_amount,
    allocations: Sequence[CategoryAllocation],
    *,
    policy: str = "advisory"
) -> AllocationCheck:
    """
    Check category allocations against the budget total.

    Equality uses a tolerance of zero. Under the advisory policy a mismatch
    is logged and reported in the result's warnings; under the strict policy
    it raises.

    Args:
        total_amount: Stated budget total (>= 0)
        allocations: Ordered category allocations
        policy: "advisory" or "strict"

    Returns:
        AllocationCheck with validity flag and absolute difference

    Raises:
        ValidationError: On malformed rows, duplicate categories, an unknown
            policy, or (strict policy only) a sum mismatch
    """
    if policy not in ALLOCATION_POLICIES:
        raise ValidationError(
            f"Unknown allocation policy '{policy}'",
            details={"allowed": ", ".join(ALLOCATION_POLICIES)}
        )

    total = to_decimal(total_amount, "total_amount")
    if total < 0:
        raise ValidationError(
            "Total budget amount cannot be negative",
            details={"total_amount": total}
        )

    allocations = list(allocations)
    for index, allocation in enumerate(allocations):
        check_allocation_entry(allocation, index)
    _check_duplicates(allocations)

    total_allocated = sum_allocations(allocations)
    difference = abs(total_allocated - total)
    is_valid = difference == 0

    warnings: List[str] = []
    if not is_valid:
        direction = "exceed" if total_allocated > total else "fall short of"
        message = (
            f"Category allocations ({total_allocated}) {direction} "
            f"the budget total ({total}) by {difference}"
        )
        if policy == "strict":
            raise ValidationError(
                "Total category allocations must equal total budget amount",
                details={
                    "total_allocated": total_allocated,
                    "total_amount": total,
                    "difference": difference,
                }
            )
        logger.warning(message)
        warnings.append(message)

    logger.debug(
        "Validated %d allocations: allocated=%s total=%s difference=%s",
        len(allocations), total_allocated, total, difference
    )

    return AllocationCheck(
        is_valid=is_valid,
        difference=difference,
        total_allocated=total_allocated,
        total_amount=total,
        warnings=tuple(warnings),
    )
