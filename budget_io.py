"""
Reading budget documents and writing analysis results.

Budget documents are JSON (or YAML) mappings using either camelCase keys,
as produced by the budget API, or snake_case keys. Analysis results are
written as plain JSON with ISO-8601 dates.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Union

import yaml

from budget_models import BudgetAnalysis, BudgetPeriod, CategoryAllocation
from exceptions import BudgetError, ValidationError
from utils import parse_date

logger = logging.getLogger(__name__)

_MISSING = object()


def _pick(data: Mapping[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    """Return the first present key's value, or default."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    if default is _MISSING:
        raise ValidationError(
            f"Missing required field '{keys[0]}'",
            details={"accepted_keys": ", ".join(keys)}
        )
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def allocation_from_dict(data: Mapping[str, Any]) -> CategoryAllocation:
    """
    Build a CategoryAllocation from a mapping.

    The category may be a plain id or a populated object with '_id'/'id'
    and 'name'. Spent amounts are read from 'spentAmount', 'spent_amount',
    or 'spent'.
    """
    if not isinstance(data, Mapping):
        raise ValidationError(
            "Category allocation must be a mapping",
            details={"type": type(data).__name__}
        )

    category = _pick(data, "category", "categoryId", "category_id", default="")
    category_name = _pick(data, "categoryName", "category_name", "name", default=None)
    if isinstance(category, Mapping):
        category_name = category_name or category.get("name")
        category = _pick(category, "_id", "id", default="")

    rollover = _pick(data, "rolloverAmount", "rollover_amount", "rollover", default=None)

    return CategoryAllocation(
        category_id=str(category),
        allocated_amount=_pick(data, "allocatedAmount", "allocated_amount", "allocated"),
        spent_amount=_pick(data, "spentAmount", "spent_amount", "spent", default=0),
        rollover_amount=rollover,
        category_name=category_name,
        notes=_pick(data, "notes", default=None),
    )


def budget_from_dict(data: Mapping[str, Any]) -> BudgetPeriod:
    """
    Build a BudgetPeriod, including its allocations, from a mapping.

    Raises:
        ValidationError: If required fields are missing or malformed
    """
    if not isinstance(data, Mapping):
        raise ValidationError(
            "Budget document must be a mapping",
            details={"type": type(data).__name__}
        )

    raw_allocations: Iterable[Any] = _pick(
        data, "categoryAllocations", "category_allocations", "allocations", default=[]
    )
    if not isinstance(raw_allocations, list):
        raise ValidationError(
            "Category allocations must be a list",
            details={"type": type(raw_allocations).__name__}
        )

    threshold = _pick(data, "alertThreshold", "alert_threshold", default=None)
    name = str(_pick(data, "name"))

    return BudgetPeriod(
        budget_id=str(_pick(data, "id", "_id", "budgetId", "budget_id", default=name)),
        name=name,
        total_amount=_pick(data, "totalAmount", "total_amount", "total"),
        period=_pick(data, "period", default="monthly"),
        start_date=parse_date(_pick(data, "startDate", "start_date"), "start_date"),
        end_date=parse_date(_pick(data, "endDate", "end_date"), "end_date"),
        allocations=tuple(allocation_from_dict(item) for item in raw_allocations),
        is_active=_as_bool(_pick(data, "isActive", "is_active", default=True)),
        is_template=_as_bool(_pick(data, "isTemplate", "is_template", default=False)),
        rollover_enabled=_as_bool(_pick(data, "rolloverEnabled", "rollover_enabled", default=False)),
        alert_threshold=threshold,
        currency=str(_pick(data, "currency", default="USD")),
    )


def load_budget(path: Union[str, Path]) -> BudgetPeriod:
    """
    Load a budget document from a .json, .yaml, or .yml file.

    Raises:
        BudgetError: If the file cannot be read or parsed
        ValidationError: If the document content is invalid
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml"):
        raise BudgetError(
            "Unsupported budget file type",
            details={"path": str(path), "suffix": suffix or "(none)"}
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            if suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise BudgetError(
            "Failed to read budget file",
            details={"path": str(path)},
            original_error=e
        ) from e

    budget = budget_from_dict(data)
    logger.info("Loaded budget '%s' with %d allocations from %s", budget.name, len(budget.allocations), path)
    return budget


def analysis_to_json(
    analysis: BudgetAnalysis,
    extra: Optional[Dict[str, Any]] = None,
    indent: Optional[int] = 2
) -> str:
    """
    Serialize an analysis (plus optional extra sections) as JSON.

    Args:
        analysis: Result of analyze_budget
        extra: Additional top-level sections, e.g. performance or violations
        indent: JSON indentation (None for compact output)

    Returns:
        JSON string
    """
    payload = analysis.to_dict()
    if extra:
        payload.update(extra)
    return json.dumps(payload, indent=indent)
