"""
Repolens YAML Configuration

Loading and defaults for the per-repository .repolens.yaml file.
"""

from pathlib import Path
from typing import Union

import yaml

from repolens.configs.constants import CONFIG_FILENAME
from repolens.exceptions import ConfigurationError

# --- Default Config Template ---

DEFAULT_CONFIG_YAML = """\
# Repolens Configuration
# Edit this file to customize analysis of this repository.

analysis:
  # Skip files larger than this many bytes
  max_file_size: 500000

  # Resolve imports between npm/pnpm/lerna workspace packages
  monorepo: true

  # Run static insight detectors after analysis
  run_insights: true

  # Import alias prefixes mapped to repository directories
  import_aliases:
    "@/": "src/"

  # Extra globs (replace the defaults when set)
  # include:
  #   - "src/**/*.ts"
  # exclude:
  #   - "node_modules/**"

  # Heuristic thresholds for insight detectors
  insights:
    max_lines: 500
    max_symbols: 30
    god_module_max_edges: 15
    max_depth: 5
    naming_min_ratio: 0.6
    naming_max_ratio: 0.95
"""


def get_config_path(root: Union[str, Path]) -> Path:
    """Get the path to the repository's config file."""
    return Path(root) / CONFIG_FILENAME


def load_yaml_config(root: Union[str, Path]) -> dict:
    """
    Load configuration from <root>/.repolens.yaml.

    Args:
        root: Repository root directory

    Returns:
        Configuration dictionary (empty if file doesn't exist)

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping
    """
    config_path = get_config_path(root)
    if not config_path.exists():
        return {}

    try:
        content = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to read config file: {e}",
            details={"path": str(config_path)},
        ) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            "Config file must contain a mapping",
            details={"path": str(config_path)},
        )
    return content


def create_default_config(root: Union[str, Path]) -> Path:
    """
    Write the default config template if no config file exists.

    Returns:
        Path to the config file
    """
    config_path = get_config_path(root)
    if not config_path.exists():
        config_path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
    return config_path
