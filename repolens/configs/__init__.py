"""
Repolens Configuration Module

Re-exports commonly used functions for cleaner imports across the codebase.
"""

# Logging (most commonly used)
from repolens.configs.logging import get_logger, setup_logging

# Constants
from repolens.configs.constants import (
    CONFIG_FILENAME,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_IMPORT_ALIASES,
    DEFAULT_INCLUDE_PATTERNS,
    MAX_FILE_SIZE,
)

# YAML config
from repolens.configs.yaml_config import (
    DEFAULT_CONFIG_YAML,
    create_default_config,
    get_config_path,
    load_yaml_config,
)

# Validated settings
from repolens.configs.settings import (
    AnalysisConfig,
    InsightThresholds,
    get_analysis_config,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Constants
    "CONFIG_FILENAME",
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_IMPORT_ALIASES",
    "DEFAULT_INCLUDE_PATTERNS",
    "MAX_FILE_SIZE",
    # YAML config
    "DEFAULT_CONFIG_YAML",
    "create_default_config",
    "get_config_path",
    "load_yaml_config",
    # Settings
    "AnalysisConfig",
    "InsightThresholds",
    "get_analysis_config",
]
