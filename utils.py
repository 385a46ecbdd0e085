"""
Utility helpers for filesystem paths and input parsing.

Centralizes project-root path resolution for log files and the date
parsing shared by the budget document loader and the command line.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from exceptions import ValidationError

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent


def get_project_root() -> Path:
    """Return the repository root directory."""
    return _PROJECT_ROOT


def _coerce_path(path_value: str | Path, *, allow_relative: bool = True) -> Path:
    """
    Convert a string/Path into an absolute project-root based Path.

    Args:
        path_value: Candidate filesystem path.
        allow_relative: If False, value must already be absolute.

    Returns:
        Absolute Path instance.
    """
    path = Path(path_value)
    if path.is_absolute() or not allow_relative:
        return path
    return get_project_root() / path


def resolve_log_path(log_path: str | Path) -> Path:
    """
    Convert a log file path to an absolute path under the project root when needed.

    Args:
        log_path: Configured log file path (relative or absolute).

    Returns:
        Absolute Path for logging output.
    """
    resolved = _coerce_path(log_path)
    if resolved.parent != resolved:
        resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def parse_date(value: str | date, field_name: str = "date") -> date:
    """
    Parse an ISO-8601 date or datetime string into a date.

    Datetime strings (including a trailing 'Z') are truncated to their date part.

    Raises:
        ValidationError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"'{field_name}' must be an ISO-8601 date",
            details={"field": field_name, "value": value}
        )

    text = value.strip()
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(
            f"'{field_name}' must be an ISO-8601 date",
            details={"field": field_name, "value": value},
            original_error=exc
        ) from exc


def parse_datetime(value: str | date) -> datetime:
    """
    Parse an ISO-8601 date or datetime string into a datetime.

    Plain dates map to midnight.

    Raises:
        ValidationError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(
            "Expected an ISO-8601 date or datetime",
            details={"value": value},
            original_error=exc
        ) from exc
