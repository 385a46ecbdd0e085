"""
Configuration management module for the budget tracking core.

This module handles loading configuration values from config.yaml and
turning the budget section into an explicit BudgetSettings value that is
passed into the analysis pipeline.
"""

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from exceptions import ConfigError

logger = logging.getLogger(__name__)

ALLOCATION_POLICIES = ("advisory", "strict")

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        "file": None,
    },
    "budget": {
        "warning_threshold": 80.0,
        "allocation_policy": "advisory",
        "on_track_tolerance": 10.0,
        "carry_overspend": True,
    },
    "report": {
        "currency_symbol": "$",
        "table_format": "grid",
    },
}

CONFIG_FILE = "config.yaml"


@dataclass(frozen=True)
class BudgetSettings:
    """
    Tunable policy values for budget analysis.

    Attributes:
        warning_threshold: Utilization percentage at which a category turns to warning
        allocation_policy: "advisory" (warn on mismatch) or "strict" (reject mismatch)
        on_track_tolerance: Allowed burn-rate variance, in percentage points
        carry_overspend: Whether negative remainders roll into the next period
    """
    warning_threshold: float = 80.0
    allocation_policy: str = "advisory"
    on_track_tolerance: float = 10.0
    carry_overspend: bool = True


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    A missing file is not an error: defaults are returned instead.

    Args:
        config_path: Path to the YAML file (defaults to config.yaml)

    Returns:
        Configuration dictionary with defaults for missing values

    Raises:
        ConfigError: If the file cannot be read or is not a YAML mapping
    """
    path = Path(config_path or CONFIG_FILE)
    if not path.exists():
        logger.debug("Config file %s not found; using defaults", path)
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(
            "Failed to read configuration file",
            details={"config_path": str(path)},
            original_error=e
        ) from e

    if not isinstance(config, dict):
        raise ConfigError(
            "Configuration file must contain a mapping",
            details={"config_path": str(path), "type": type(config).__name__}
        )

    logger.info("Configuration loaded from %s", path)
    return _deep_merge(DEFAULT_CONFIG, config)


def save_config(config: Dict[str, Any], config_path: Optional[Union[str, Path]] = None) -> None:
    """
    Save configuration to a YAML file, preserving keys not present in config.

    Raises:
        ConfigError: If the file cannot be written
    """
    path = Path(config_path or CONFIG_FILE)
    try:
        existing: Dict[str, Any] = {}
        if path.exists():
            with open(path, "r") as f:
                existing = yaml.safe_load(f) or {}

        merged = _deep_merge(existing, config)
        with open(path, "w") as f:
            yaml.dump(merged, f, default_flow_style=False)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(
            "Failed to save configuration file",
            details={"config_path": str(path)},
            original_error=e
        ) from e

    logger.info("Configuration saved to %s", path)


def get_budget_settings(config: Optional[Dict[str, Any]] = None) -> BudgetSettings:
    """
    Build validated BudgetSettings from the 'budget' section of config.

    Args:
        config: Configuration dictionary (defaults applied for missing keys)

    Returns:
        BudgetSettings instance

    Raises:
        ConfigError: If a value is out of range or of the wrong type
    """
    section = _deep_merge(DEFAULT_CONFIG["budget"], (config or {}).get("budget") or {})

    try:
        threshold = float(section["warning_threshold"])
        tolerance = float(section["on_track_tolerance"])
    except (TypeError, ValueError) as e:
        raise ConfigError(
            "Budget thresholds must be numeric",
            details={
                "warning_threshold": section.get("warning_threshold"),
                "on_track_tolerance": section.get("on_track_tolerance"),
            },
            original_error=e
        ) from e

    if not 50 <= threshold <= 100:
        raise ConfigError(
            "Warning threshold must be between 50% and 100%",
            details={"warning_threshold": threshold}
        )

    if tolerance < 0:
        raise ConfigError(
            "On-track tolerance cannot be negative",
            details={"on_track_tolerance": tolerance}
        )

    policy = str(section["allocation_policy"]).strip().lower()
    if policy not in ALLOCATION_POLICIES:
        raise ConfigError(
            f"Unknown allocation policy '{section['allocation_policy']}'",
            details={"allowed": ", ".join(ALLOCATION_POLICIES)}
        )

    return BudgetSettings(
        warning_threshold=threshold,
        allocation_policy=policy,
        on_track_tolerance=tolerance,
        carry_overspend=bool(section["carry_overspend"]),
    )


def get_report_preference(config: Optional[Dict[str, Any]], key: str, default: Any = None) -> Any:
    """Get a value from the 'report' section, falling back to defaults."""
    section = (config or {}).get("report") or {}
    if key in section:
        return section[key]
    return DEFAULT_CONFIG["report"].get(key, default)
