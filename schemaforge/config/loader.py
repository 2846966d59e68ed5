"""Load configuration from YAML file."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional


def find_config_file(path: Optional[Path] = None) -> Path:
    """Find config.yaml file in config directory (or use an explicit path)."""
    config_file = Path(path) if path is not None else Path(__file__).parent / "config.yaml"

    if not config_file.exists():
        raise FileNotFoundError(
            f"config.yaml not found at {config_file}. "
            f"Please create the configuration file."
        )

    return config_file


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from config.yaml.

    Args:
        path: Optional explicit YAML file; defaults to the packaged config.yaml

    Returns:
        dict: Configuration dictionary

    Raises:
        FileNotFoundError: If config.yaml is not found
        yaml.YAMLError: If YAML parsing fails
    """
    config_file = find_config_file(path)

    with open(config_file, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    return config or {}


def get_config(section: Optional[str] = None, path: Optional[Path] = None) -> Any:
    """
    Get configuration value(s).

    Args:
        section: Optional section name (e.g., "defaults", "logging")
                 If None, returns entire config
        path: Optional explicit YAML file

    Returns:
        Configuration value or dictionary
    """
    config = load_config(path)

    if section is None:
        return config

    return config.get(section, {})
