"""
Unit tests for budget report formatting and export.
"""

from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from budget_insights import calculate_health_score, detect_violations, evaluate_performance
from budget_models import CategoryAllocation
from budget_status import analyze_budget
from exceptions import ReportError
from report_generator import CATEGORY_COLUMNS, BudgetReportGenerator


@pytest.fixture
def generator():
    return BudgetReportGenerator()


@pytest.fixture
def january_analysis(january_budget):
    return analyze_budget(january_budget, now=date(2024, 1, 16))


class TestFormatting:
    """Tests for currency and percentage formatting."""

    def test_format_currency(self, generator):
        assert generator.format_currency(Decimal("1000")) == "$1,000.00"
        assert generator.format_currency(Decimal("-50")) == "-$50.00"
        assert generator.format_currency(0) == "$0.00"

    def test_custom_symbol(self):
        assert BudgetReportGenerator(currency_symbol="€").format_currency(12.5) == "€12.50"

    def test_format_percentage(self, generator):
        assert generator.format_percentage(83.333) == "83.3%"


class TestDataFrame:
    """Tests for the category DataFrame."""

    def test_rows_follow_analysis_order(self, generator, january_analysis):
        df = generator.to_dataframe(january_analysis)

        assert list(df.columns) == CATEGORY_COLUMNS
        assert df["category_id"].tolist() == ["groceries", "rent", "fun"]
        assert df["utilization_pct"].tolist() == pytest.approx([60.0, 50.0, 0.0])
        assert df["status"].tolist() == ["good", "good", "good"]

    def test_empty_budget(self, generator, budget_factory):
        analysis = analyze_budget(budget_factory([], total=0), now=date(2024, 1, 16))
        assert generator.to_dataframe(analysis).empty
        assert generator.generate_category_table(analysis) == "No category allocations."


class TestTextReport:
    """Tests for the text report."""

    def test_basic_report(self, generator, january_analysis):
        report = generator.generate_budget_report(january_analysis)

        assert "BUDGET REPORT: January (monthly)" in report
        assert "2024-01-01 to 2024-01-31" in report
        assert "Groceries" in report
        assert "GOOD" in report
        assert "$930.00" in report
        assert "Categories: 3 good, 0 warning, 0 over" in report
        assert "ALERTS" not in report

    def test_report_with_insights(self, generator, budget_factory):
        budget = budget_factory([
            CategoryAllocation("a", 500, spent_amount=100, category_name="Food"),
            CategoryAllocation("b", 200, spent_amount=250, category_name="Clothes"),
        ], total=800)
        analysis = analyze_budget(budget, now=date(2024, 1, 16))
        performance = evaluate_performance(analysis)
        report = generator.generate_budget_report(
            analysis,
            performance=performance,
            violations=detect_violations(analysis),
            health=calculate_health_score(analysis, performance),
        )

        assert "Allocation warning:" in report
        assert "Period Progress:" in report
        assert "Health Score:" in report
        assert "ALERTS" in report
        assert "[CRITICAL] Clothes exceeded by $50.00" in report


class TestCsvExport:
    """Tests for CSV export."""

    def test_export_to_csv(self, generator, january_analysis, tmp_path):
        output = tmp_path / "report.csv"
        generator.export_to_csv(january_analysis, output)

        df = pd.read_csv(output)
        assert list(df.columns) == CATEGORY_COLUMNS
        assert len(df) == 3
        assert df.loc[0, "spent"] == pytest.approx(300.0)

    def test_export_failure_raises_report_error(self, generator, january_analysis, tmp_path):
        with pytest.raises(ReportError) as exc_info:
            generator.export_to_csv(january_analysis, tmp_path / "missing" / "report.csv")
        assert "output_path" in exc_info.value.details
