"""Configuration file loader with validation"""

import copy
import os
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from spend_tracker.constants import DEFAULTS
from .errors import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "settings.yaml"

REQUIRED_KEYS = ['version', 'matching', 'reporting', 'provider', 'storage']


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load YAML configuration file with validation.

    Args:
        config_path: Path to configuration file (defaults to SPEND_TRACKER_CONFIG
            or config/settings.yaml in the project root)

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If file doesn't exist, is invalid YAML, or misses keys
    """
    config_path = config_path or os.getenv("SPEND_TRACKER_CONFIG") or str(DEFAULT_CONFIG_PATH)
    config_file = Path(config_path)

    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    missing_keys = [key for key in REQUIRED_KEYS if key not in config]
    if missing_keys:
        raise ConfigurationError(f"Missing required configuration keys: {missing_keys}")

    _validate_thresholds(config)
    return config


def _validate_thresholds(config: Dict[str, Any]) -> None:
    matching = get_section(config, 'matching')
    for key in ('match_threshold', 'suggestion_threshold'):
        value = matching[key]
        if not isinstance(value, (int, float)) or not 0 <= value <= 1:
            raise ConfigurationError(f"matching.{key} must be a number in [0, 1], got {value!r}")

    if matching['suggestion_threshold'] > matching['match_threshold']:
        raise ConfigurationError("matching.suggestion_threshold cannot exceed matching.match_threshold")

    band = get_section(config, 'reporting')['on_target_band']
    if not isinstance(band, (int, float)) or band < 0:
        raise ConfigurationError(f"reporting.on_target_band must be a non-negative number, got {band!r}")


def get_section(config: Optional[Dict[str, Any]], section: str) -> Dict[str, Any]:
    """
    Get a configuration section merged over built-in defaults

    Args:
        config: Full configuration dictionary (None means defaults only)
        section: Section name (matching, reporting, provider, sync, storage)

    Returns:
        Section dictionary
    """
    merged = copy.deepcopy(DEFAULTS.get(section, {}))
    if config:
        merged.update(config.get(section) or {})
    return merged
