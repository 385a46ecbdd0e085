"""
Report generator module for formatting budget analysis results.

This module turns a BudgetAnalysis into a pandas DataFrame, a text report
with a tabulate grid of categories, and CSV exports.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd
from tabulate import tabulate

from budget_insights import BudgetPerformance, BudgetViolation, HealthScore
from budget_models import BudgetAnalysis
from exceptions import ReportError

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = [
    "category_id",
    "category",
    "budgeted",
    "spent",
    "remaining",
    "utilization_pct",
    "status",
    "rollover",
]


class BudgetReportGenerator:
    """
    Generate formatted reports from budget analysis data.

    Supports text tables for the terminal and CSV export.
    """

    def __init__(self, currency_symbol: str = "$", table_format: str = "grid"):
        """
        Initialize the report generator.

        Args:
            currency_symbol: Symbol prefixed to money amounts
            table_format: tabulate table format name
        """
        self.currency_symbol = currency_symbol
        self.table_format = table_format

    def format_currency(self, amount) -> str:
        """
        Format amount as currency string.

        Negative amounts keep their sign in front of the symbol.
        """
        value = float(amount)
        sign = "-" if value < 0 else ""
        return f"{sign}{self.currency_symbol}{abs(value):,.2f}"

    def format_percentage(self, percentage: float) -> str:
        """Format percentage string."""
        return f"{percentage:.1f}%"

    def to_dataframe(self, analysis: BudgetAnalysis) -> pd.DataFrame:
        """
        Build a DataFrame with one row per category, in analysis order.

        Args:
            analysis: Result of analyze_budget

        Returns:
            DataFrame with CATEGORY_COLUMNS
        """
        records = [
            {
                "category_id": row.category_id,
                "category": row.category_name,
                "budgeted": float(row.budgeted),
                "spent": float(row.spent),
                "remaining": float(row.remaining),
                "utilization_pct": row.utilization_percentage,
                "status": row.status.value if row.status else "",
                "rollover": float(row.rollover_applied),
            }
            for row in analysis.categories
        ]
        return pd.DataFrame(records, columns=CATEGORY_COLUMNS)

    def generate_category_table(self, analysis: BudgetAnalysis) -> str:
        """Render the category rows as a tabulate table."""
        df = self.to_dataframe(analysis)
        if df.empty:
            return "No category allocations."

        display_df = pd.DataFrame({
            "Category": df["category"],
            "Budgeted": df["budgeted"].map(self.format_currency),
            "Spent": df["spent"].map(self.format_currency),
            "Remaining": df["remaining"].map(self.format_currency),
            "Used": df["utilization_pct"].map(self.format_percentage),
            "Status": df["status"].str.upper(),
        })
        return tabulate(
            display_df.values.tolist(),
            headers=display_df.columns.tolist(),
            tablefmt=self.table_format,
            showindex=False
        )

    def generate_budget_report(
        self,
        analysis: BudgetAnalysis,
        performance: Optional[BudgetPerformance] = None,
        violations: Optional[Sequence[BudgetViolation]] = None,
        health: Optional[HealthScore] = None
    ) -> str:
        """
        Generate a text report for a budget analysis.

        Args:
            analysis: Result of analyze_budget
            performance: Optional pacing metrics to include
            violations: Optional violations to list as alerts
            health: Optional health score to include

        Returns:
            Formatted text report
        """
        budget = analysis.budget
        rollup = analysis.rollup
        counts = rollup.status_counts

        report_lines: List[str] = [
            "=" * 80,
            f"BUDGET REPORT: {budget.name} ({budget.period.value})",
            f"{budget.start_date.isoformat()} to {budget.end_date.isoformat()}  "
            f"(as of {analysis.as_of.date().isoformat()})",
            "=" * 80,
            "",
            self.generate_category_table(analysis),
            "",
            f"Total Budgeted:         {self.format_currency(rollup.total_budgeted):>20}",
            f"Total Spent:            {self.format_currency(rollup.total_spent):>20}",
            f"Total Remaining:        {self.format_currency(rollup.total_remaining):>20}",
            f"Utilization:            {self.format_percentage(rollup.budget_utilization):>20}",
            f"Savings Rate:           {self.format_percentage(rollup.savings_rate):>20}",
            "-" * 80,
            f"Days Elapsed:           {rollup.days_elapsed:>20}",
            f"Days Remaining:         {rollup.days_remaining:>20}",
            f"Average Daily Spend:    {self.format_currency(rollup.average_daily_spend):>20}",
            f"Projected Spend:        {self.format_currency(rollup.projected_spend):>20}",
            "-" * 80,
            f"Categories: {counts.get('good', 0)} good, "
            f"{counts.get('warning', 0)} warning, {counts.get('over', 0)} over",
        ]

        for warning in analysis.check.warnings:
            report_lines.append(f"Allocation warning: {warning}")

        if performance is not None:
            report_lines.extend([
                "-" * 80,
                f"Period Progress:        {self.format_percentage(performance.period_progress):>20}",
                f"Expected Spend:         {self.format_currency(performance.expected_spend):>20}",
                f"Burn Rate Variance:     {self.format_percentage(performance.burn_rate_variance):>20}",
                f"Projected Overrun:      {self.format_currency(performance.projected_overrun):>20}",
                f"Status:                 {performance.status:>20}",
            ])

        if health is not None:
            report_lines.append(f"Health Score:           {f'{health.score} ({health.level})':>20}")
            for factor in health.factors:
                report_lines.append(f"  {factor.factor}: {factor.impact:+.1f} ({factor.description})")

        if violations:
            report_lines.extend(["-" * 80, "ALERTS"])
            for violation in violations:
                report_lines.append(f"  [{violation.level.upper()}] {violation.message}")

        report_lines.append("=" * 80)
        return "\n".join(report_lines)

    def export_to_csv(self, analysis: BudgetAnalysis, output_path: Path) -> None:
        """
        Export category rows to a CSV file.

        Raises:
            ReportError: If the file cannot be written
        """
        df = self.to_dataframe(analysis)
        try:
            df.to_csv(output_path, index=False)
        except OSError as e:
            raise ReportError(
                "Failed to export budget report",
                details={"output_path": str(output_path)},
                original_error=e
            ) from e
        logger.info("Exported %d category rows to %s", len(df), output_path)
