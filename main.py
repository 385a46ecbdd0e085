"""
Main module for the budget tracking command line.

This module wires the budget pipeline to the terminal:
1. Loads configuration and sets up logging
2. Reads a budget document (JSON or YAML)
3. Validates, aggregates, and classifies the budget
4. Prints a table or JSON report
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from allocation_validator import validate_allocations
from budget_insights import calculate_health_score, detect_violations, evaluate_performance
from budget_io import analysis_to_json, load_budget
from budget_status import analyze_budget
from config_manager import BudgetSettings, get_budget_settings, get_report_preference, load_config
from exceptions import BudgetCoreError
from report_generator import BudgetReportGenerator
from utils import parse_datetime, resolve_log_path

# Configure module-level logger
logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(config: dict) -> None:
    """
    Configure logging based on config settings.

    Log records go to stderr so JSON output on stdout stays clean. An
    invalid level falls back to INFO, a format without a timestamp gets
    one, and a log file that cannot be opened is skipped with a warning.

    Args:
        config: Configuration dictionary with logging settings
    """
    log_config = config.get("logging") or {}
    level_name = str(log_config.get("level") or "INFO").upper()
    log_level = getattr(logging, level_name, None)
    invalid_level = not isinstance(log_level, int)
    if invalid_level:
        log_level = logging.INFO

    log_format = log_config.get("format") or DEFAULT_LOG_FORMAT
    if "%(asctime)s" not in log_format:
        log_format = "%(asctime)s - " + log_format

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error: Optional[Exception] = None
    log_file = log_config.get("file")
    if log_file:
        try:
            handlers.append(logging.FileHandler(resolve_log_path(log_file)))
        except OSError as exc:
            file_error = exc

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
        force=True
    )

    if invalid_level:
        logger.warning("Invalid log level '%s'; defaulting to INFO", level_name)
    if file_error is not None:
        logger.warning("Unable to open log file '%s': %s. Continuing without file logging.", log_file, file_error)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the budget command line."""
    parser = argparse.ArgumentParser(
        description="Budget allocation and progress tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a budget as of today
  python main.py analyze budget.json

  # Analyze as of a given date and print JSON
  python main.py analyze budget.json --as-of 2024-01-16 --format json

  # Check that allocations add up to the budget total
  python main.py validate budget.yaml --strict

  # Health score, pacing, and alerts
  python main.py health budget.json
        """
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze category utilization and totals")
    analyze_parser.add_argument("budget_file", type=str, help="Budget document (.json, .yaml, .yml)")
    analyze_parser.add_argument("--as-of", type=str, help="Date or datetime to analyze as of (ISO-8601)")
    analyze_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")
    analyze_parser.add_argument("--export-csv", type=str, metavar="FILE", help="Export category rows to CSV")

    validate_parser = subparsers.add_parser("validate", help="Check allocations against the budget total")
    validate_parser.add_argument("budget_file", type=str, help="Budget document (.json, .yaml, .yml)")
    validate_parser.add_argument("--strict", action="store_true", help="Fail when allocations do not match the total")

    health_parser = subparsers.add_parser("health", help="Show pacing, alerts, and health score")
    health_parser.add_argument("budget_file", type=str, help="Budget document (.json, .yaml, .yml)")
    health_parser.add_argument("--as-of", type=str, help="Date or datetime to analyze as of (ISO-8601)")
    health_parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")

    return parser


def run_analyze(args: argparse.Namespace, settings: BudgetSettings, reporter: BudgetReportGenerator) -> None:
    """Handle the analyze command."""
    budget = load_budget(args.budget_file)
    as_of = parse_datetime(args.as_of) if args.as_of else None
    analysis = analyze_budget(budget, now=as_of, settings=settings)

    if args.format == "json":
        print(analysis_to_json(analysis))
    else:
        print("\n" + reporter.generate_budget_report(analysis) + "\n")

    if args.export_csv:
        reporter.export_to_csv(analysis, Path(args.export_csv))
        print(f"CSV exported to: {args.export_csv}", file=sys.stderr)


def run_validate(args: argparse.Namespace, settings: BudgetSettings, reporter: BudgetReportGenerator) -> None:
    """Handle the validate command."""
    budget = load_budget(args.budget_file)
    policy = "strict" if args.strict else settings.allocation_policy
    check = validate_allocations(budget.total_amount, budget.allocations, policy=policy)

    print(f"Budget:           {budget.name}")
    print(f"Total Amount:     {reporter.format_currency(check.total_amount)}")
    print(f"Total Allocated:  {reporter.format_currency(check.total_allocated)}")
    print(f"Difference:       {reporter.format_currency(check.difference)}")
    print(f"Valid:            {'yes' if check.is_valid else 'no'}")
    for warning in check.warnings:
        print(f"Warning: {warning}")


def run_health(args: argparse.Namespace, settings: BudgetSettings, reporter: BudgetReportGenerator) -> None:
    """Handle the health command."""
    budget = load_budget(args.budget_file)
    as_of = parse_datetime(args.as_of) if args.as_of else None
    analysis = analyze_budget(budget, now=as_of, settings=settings)
    performance = evaluate_performance(analysis, settings=settings)
    violations = detect_violations(analysis, settings=settings, currency_symbol=reporter.currency_symbol)
    health = calculate_health_score(analysis, performance)

    if args.format == "json":
        print(analysis_to_json(analysis, extra={
            "performance": performance.to_dict(),
            "violations": [violation.to_dict() for violation in violations],
            "health": health.to_dict(),
        }))
    else:
        print("\n" + reporter.generate_budget_report(
            analysis,
            performance=performance,
            violations=violations,
            health=health
        ) + "\n")


COMMANDS = {
    "analyze": run_analyze,
    "validate": run_validate,
    "health": run_health,
}


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        setup_logging(config)
        settings = get_budget_settings(config)
        reporter = BudgetReportGenerator(
            currency_symbol=get_report_preference(config, "currency_symbol"),
            table_format=get_report_preference(config, "table_format"),
        )
        COMMANDS[args.command](args, settings, reporter)

    except BudgetCoreError as e:
        logger.error(f"{args.command} failed: {e.message}", exc_info=True)
        for key, value in e.details.items():
            logger.error(f"  {key}: {value}")
        if getattr(args, "format", None) == "json":
            print(json.dumps(e.to_dict()), file=sys.stderr)
        else:
            print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        print("\nInterrupted by user.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
