"""
Tests for reading budget documents and serializing analyses.
"""

import json
from datetime import date
from decimal import Decimal

import pytest
import yaml

from budget_io import allocation_from_dict, analysis_to_json, budget_from_dict, load_budget
from budget_models import PeriodKind
from budget_status import analyze_budget
from exceptions import BudgetError, ValidationError


API_DOCUMENT = {
    "_id": "65a1f0",
    "name": "January",
    "totalAmount": 1000,
    "period": "monthly",
    "startDate": "2024-01-01T00:00:00.000Z",
    "endDate": "2024-01-31T23:59:59.999Z",
    "rolloverEnabled": True,
    "alertThreshold": 90,
    "categoryAllocations": [
        {"category": {"_id": "c1", "name": "Groceries"}, "allocatedAmount": 500, "spentAmount": 300},
        {"category": "c2", "allocatedAmount": 300, "spentAmount": 150, "rolloverAmount": -20},
        {"category": "c3", "allocatedAmount": 200},
    ],
}


class TestBudgetFromDict:
    """Tests for mapping documents onto budget models."""

    def test_camel_case_document(self):
        budget = budget_from_dict(API_DOCUMENT)

        assert budget.budget_id == "65a1f0"
        assert budget.period is PeriodKind.MONTHLY
        assert budget.start_date == date(2024, 1, 1)
        assert budget.end_date == date(2024, 1, 31)
        assert budget.rollover_enabled is True
        assert budget.alert_threshold == 90.0
        assert [a.category_id for a in budget.allocations] == ["c1", "c2", "c3"]
        assert budget.allocations[0].category_name == "Groceries"
        assert budget.allocations[1].rollover_amount == Decimal("-20")
        assert budget.allocations[2].spent_amount == Decimal("0")

    def test_snake_case_document(self):
        budget = budget_from_dict({
            "name": "Week 3",
            "total_amount": "250.50",
            "period": "weekly",
            "start_date": "2024-01-15",
            "end_date": "2024-01-21",
            "allocations": [{"category_id": "food", "allocated_amount": "250.50", "spent": 10}],
        })

        assert budget.budget_id == "Week 3"
        assert budget.total_amount == Decimal("250.50")
        assert budget.allocations[0].spent_amount == Decimal("10")

    def test_missing_required_field(self):
        document = dict(API_DOCUMENT)
        del document["totalAmount"]
        with pytest.raises(ValidationError) as exc_info:
            budget_from_dict(document)
        assert "totalAmount" in exc_info.value.message

    def test_allocations_must_be_a_list(self):
        document = dict(API_DOCUMENT, categoryAllocations={"c1": 500})
        with pytest.raises(ValidationError):
            budget_from_dict(document)

    def test_bad_date(self):
        document = dict(API_DOCUMENT, startDate="first of january")
        with pytest.raises(ValidationError):
            budget_from_dict(document)

    def test_string_booleans(self):
        document = dict(API_DOCUMENT, rolloverEnabled="false", isTemplate="yes")
        budget = budget_from_dict(document)
        assert budget.rollover_enabled is False
        assert budget.is_template is True

    def test_allocation_must_be_mapping(self):
        with pytest.raises(ValidationError):
            allocation_from_dict(["c1", 500])


class TestLoadBudget:
    """Tests for loading budget files."""

    def test_load_json(self, tmp_path):
        path = tmp_path / "budget.json"
        path.write_text(json.dumps(API_DOCUMENT))
        budget = load_budget(path)
        assert budget.name == "January"
        assert len(budget.allocations) == 3

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "budget.yml"
        path.write_text(yaml.safe_dump({
            "name": "Q1",
            "total": 3000,
            "period": "quarterly",
            "start_date": "2024-01-01",
            "end_date": "2024-03-31",
            "allocations": [{"category": "rent", "allocated": 3000}],
        }))
        budget = load_budget(path)
        assert budget.period is PeriodKind.QUARTERLY
        assert budget.total_days == 91

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "budget.txt"
        path.write_text("{}")
        with pytest.raises(BudgetError):
            load_budget(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(BudgetError) as exc_info:
            load_budget(tmp_path / "missing.json")
        assert isinstance(exc_info.value.original_error, OSError)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "budget.json"
        path.write_text("{not json")
        with pytest.raises(BudgetError):
            load_budget(path)

    @pytest.mark.parametrize("name", ["budget.json", "budget.yaml"])
    def test_invalid_utf8_bytes(self, tmp_path, name):
        path = tmp_path / name
        path.write_bytes(b'{"name": "\xff\xfe"}')
        with pytest.raises(BudgetError) as exc_info:
            load_budget(path)
        assert isinstance(exc_info.value.original_error, UnicodeDecodeError)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "budget.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValidationError):
            load_budget(path)


def test_analysis_to_json_with_extra_sections(january_budget):
    analysis = analyze_budget(january_budget, now=date(2024, 1, 16))
    payload = json.loads(analysis_to_json(analysis, extra={"health": {"score": 87}}))

    assert payload["budget"]["name"] == "January"
    assert payload["rollup"]["days_elapsed"] == 15
    assert payload["health"] == {"score": 87}
    assert [row["category_id"] for row in payload["categories"]] == ["groceries", "rent", "fun"]
