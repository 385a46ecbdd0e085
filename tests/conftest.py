from datetime import date

import pytest

from budget_models import BudgetPeriod, CategoryAllocation


def make_budget(allocations, total=None, **overrides):
    """Build a January 2024 monthly budget around the given allocations."""
    allocations = tuple(allocations)
    if total is None:
        total = sum(a.allocated_amount for a in allocations)
    fields = {
        "budget_id": "jan-2024",
        "name": "January",
        "total_amount": total,
        "period": "monthly",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 1, 31),
        "allocations": allocations,
    }
    fields.update(overrides)
    return BudgetPeriod(**fields)


@pytest.fixture
def budget_factory():
    """Return the make_budget helper."""
    return make_budget


@pytest.fixture
def january_budget():
    """1000 budgeted over three categories with 450 spent so far."""
    return make_budget([
        CategoryAllocation("groceries", 500, spent_amount=300, category_name="Groceries"),
        CategoryAllocation("rent", 300, spent_amount=150, category_name="Rent"),
        CategoryAllocation("fun", 200, spent_amount=0, category_name="Fun"),
    ])
