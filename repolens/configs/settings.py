"""
Repolens Analysis Settings

Validated configuration for one analysis run.
Combines defaults, YAML config, and environment variables.
"""

import os
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from repolens.configs.constants import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_IMPORT_ALIASES,
    DEFAULT_INCLUDE_PATTERNS,
    MAX_FILE_SIZE,
)
from repolens.configs.yaml_config import load_yaml_config
from repolens.exceptions import ConfigurationError


class InsightThresholds(BaseModel):
    """Heuristic thresholds used by the static insight detectors."""

    max_affected_files: int = 10

    # Undocumented exports
    undocumented_warning_count: int = 20

    # Circular dependencies: stop searching after this many cycles
    max_cycles: int = 10

    # Oversized modules
    max_lines: int = 500
    max_symbols: int = 30
    oversized_warning_count: int = 5

    # God modules (incoming + outgoing edges)
    god_module_max_edges: int = 15
    god_module_warning_count: int = 3

    orphan_warning_count: int = 5
    missing_types_warning_count: int = 10

    # Inconsistent naming
    naming_min_names: int = 5
    naming_min_ratio: float = 0.6
    naming_max_ratio: float = 0.95
    naming_minority_min: int = 2

    # Deep nesting (path segments)
    max_depth: int = 5
    deep_nesting_warning_count: int = 10


class AnalysisConfig(BaseModel):
    """Settings for one analysis run."""

    include: list[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)
    monorepo: bool = True
    run_insights: bool = True
    import_aliases: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_IMPORT_ALIASES))
    insights: InsightThresholds = Field(default_factory=InsightThresholds)


def _env_bool(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return value.lower() in ("true", "1", "yes")


def _env_overrides() -> dict:
    """Collect REPOLENS_* environment overrides."""
    overrides: dict[str, Any] = {}

    max_size = os.environ.get("REPOLENS_MAX_FILE_SIZE")
    if max_size:
        try:
            overrides["max_file_size"] = int(max_size)
        except ValueError as e:
            raise ConfigurationError(
                "REPOLENS_MAX_FILE_SIZE must be an integer",
                details={"value": max_size},
            ) from e

    monorepo = _env_bool("REPOLENS_MONOREPO")
    if monorepo is not None:
        overrides["monorepo"] = monorepo

    run_insights = _env_bool("REPOLENS_INSIGHTS")
    if run_insights is not None:
        overrides["run_insights"] = run_insights

    return overrides


def _deep_merge(base: dict, extra: dict) -> dict:
    merged = dict(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_analysis_config(
    root: Optional[Union[str, Path]] = None,
    overrides: Optional[dict] = None,
) -> AnalysisConfig:
    """
    Build the analysis configuration for a repository.

    Priority (later wins):
    1. Built-in defaults
    2. analysis: section of <root>/.repolens.yaml
    3. REPOLENS_* environment variables
    4. Explicit overrides

    Args:
        root: Repository root (YAML config is skipped when None)
        overrides: Extra settings, same shape as the YAML analysis section

    Returns:
        Validated AnalysisConfig

    Raises:
        ConfigurationError: If any layer contains invalid values
    """
    data: dict = {}

    if root is not None:
        yaml_config = load_yaml_config(root)
        analysis_section = yaml_config.get("analysis") or {}
        if not isinstance(analysis_section, dict):
            raise ConfigurationError("'analysis' section must be a mapping")
        data = _deep_merge(data, analysis_section)

    data = _deep_merge(data, _env_overrides())

    if overrides:
        data = _deep_merge(data, overrides)

    try:
        return AnalysisConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid analysis configuration: {e}") from e
