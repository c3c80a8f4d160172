"""
Configuration management module for the import tracker.

This module handles loading and saving configuration values, including the
import API endpoint, the upload slot limit and the status polling period.
"""

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from exceptions import ConfigError

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULT_CONFIG = {
    'api': {
        'base_url': 'http://localhost:3000',
        'timeout': 30,
        'csrf_token': None,
    },
    'imports': {
        'max_files': 10,
        'poll_interval_ms': 1000,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'file': None,
    },
}

CONFIG_FILE = 'config.yaml'
BASE_URL_ENV_VAR = 'IMPORT_API_BASE_URL'


@dataclass
class ImportSettings:
    """
    Validated settings consumed by the submitter, poller and API client.

    Attributes:
        base_url: Root URL of the finance web application
        timeout: Per-request timeout in seconds
        max_files: Number of simultaneous upload slots
        poll_interval: Seconds between the starts of two status polls
        csrf_token: Default anti-forgery token, if one is configured
    """
    base_url: str
    timeout: float
    max_files: int
    poll_interval: float
    csrf_token: Optional[str] = None


def _merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Fill missing keys in config from defaults, one section deep."""
    for key, value in defaults.items():
        if key not in config or config[key] is None:
            config[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(config[key], dict):
            for sub_key, sub_value in value.items():
                config[key].setdefault(sub_key, sub_value)
    return config


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    A missing file is not an error: defaults are returned instead.

    Args:
        config_path: Path to the YAML file (defaults to config.yaml)

    Returns:
        Configuration dictionary with defaults for missing values

    Raises:
        ConfigError: If the file exists but is not valid YAML
    """
    config_path = Path(config_path or CONFIG_FILE)
    config: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(
                "Invalid YAML in configuration file",
                details={'config_path': str(config_path)},
                original_error=e
            ) from e
        if not isinstance(config, dict):
            raise ConfigError(
                "Configuration root must be a mapping",
                details={'config_path': str(config_path)}
            )
        logger.info(f"Configuration loaded from {config_path}")
    else:
        logger.debug(f"No configuration file at {config_path}; using defaults")

    return _merge_defaults(config, DEFAULT_CONFIG)


def get_import_settings(config: Optional[Dict[str, Any]] = None) -> ImportSettings:
    """
    Build validated import settings from a configuration dictionary.

    The IMPORT_API_BASE_URL environment variable takes precedence over
    api.base_url from the configuration.

    Args:
        config: Configuration dictionary (defaults are used when omitted)

    Returns:
        ImportSettings instance

    Raises:
        ConfigError: If any value is out of range or of the wrong type
    """
    config = _merge_defaults(copy.deepcopy(config or {}), DEFAULT_CONFIG)
    api_cfg = config['api']
    imports_cfg = config['imports']

    base_url = os.environ.get(BASE_URL_ENV_VAR) or api_cfg.get('base_url')
    if not base_url:
        raise ConfigError("api.base_url must be set")

    try:
        max_files = int(imports_cfg.get('max_files'))
        interval_ms = float(imports_cfg.get('poll_interval_ms'))
        timeout = float(api_cfg.get('timeout'))
    except (TypeError, ValueError) as e:
        raise ConfigError("Import settings must be numeric", original_error=e) from e

    if max_files < 1:
        raise ConfigError("imports.max_files must be at least 1", details={'max_files': max_files})
    if interval_ms <= 0:
        raise ConfigError(
            "imports.poll_interval_ms must be positive",
            details={'poll_interval_ms': interval_ms}
        )
    if timeout <= 0:
        raise ConfigError("api.timeout must be positive", details={'timeout': timeout})

    return ImportSettings(
        base_url=base_url.rstrip('/'),
        timeout=timeout,
        max_files=max_files,
        poll_interval=interval_ms / 1000.0,
        csrf_token=api_cfg.get('csrf_token'),
    )
