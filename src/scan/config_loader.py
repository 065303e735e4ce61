"""
Configuration loader for the Scan module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from src.scan.types import (
    EnhancementConfig,
    RectificationConfig,
    ResultConfig,
    ScanConfig,
)

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

VALID_INTERPOLATIONS = ["linear", "cubic", "nearest", "area", "lanczos"]


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> ScanConfig:
    """
    Load scan configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated ScanConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.rectification.interpolation)
        linear
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading scan config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded scan configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> ScanConfig:
    """Parse raw dictionary into structured config objects."""
    return ScanConfig(
        rectification=RectificationConfig(
            interpolation=str(raw["rectification"]["interpolation"]),
            min_output_px=int(raw["rectification"]["min_output_px"]),
        ),
        enhancement=EnhancementConfig(
            enabled=bool(raw["enhancement"]["enabled"]),
            block_size=int(raw["enhancement"]["block_size"]),
            offset=float(raw["enhancement"]["offset"]),
        ),
        result=ResultConfig(
            prefer_enhanced=bool(raw["result"]["prefer_enhanced"]),
        ),
    )


def _validate_config(config: ScanConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    if config.rectification.interpolation not in VALID_INTERPOLATIONS:
        raise ValueError(
            f"Invalid interpolation: {config.rectification.interpolation}. "
            f"Must be one of {VALID_INTERPOLATIONS}"
        )

    if config.rectification.min_output_px < 1:
        raise ValueError("min_output_px must be at least 1")

    block_size = config.enhancement.block_size
    if block_size < 3 or block_size % 2 == 0:
        raise ValueError(f"block_size must be an odd number >= 3, got {block_size}")

    logger.debug("Configuration validation passed")
