"""Configuration management utilities."""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


# Experiment constants. Values match the trace-conditioning recordings
# (7 tones per session, 5 scored trials, 10 s delay window 30 s after the tone).
DEFAULT_CONFIG: Dict[str, Any] = {
    'cue': {
        'threshold': 0.02,
        'min_gap_frames': 20,
        'lookahead': 5,
        'expected_count': 7,
    },
    'extraction': {
        'n_segments': 5,
        'offset_sec': 30.0,
        'duration_sec': 10.0,
    },
    'tracking': {
        'confidence_threshold': 0.8,
        'bodyparts': None,
    },
    'velocity': {
        'pattern': 'L*tt2._headpoint.mat',
        'file_order': [13, 14, 15, 16] + list(range(13)),
        'n_segments': 5,
    },
    'paths': {
        'audio_dir': None,
        'audio_extension': '.mp3',
        'dlc_suffix': 'DLC_resnet_50_tracecondiMay20shuffle1_1030000.csv',
        'output_suffix': '._headpoint.mat',
    },
}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file, layered over DEFAULT_CONFIG.

    Args:
        config_path: Path to YAML configuration file (str or Path).
            None returns a copy of the defaults.

    Returns:
        Dictionary containing configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path is None:
        return config

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, 'r') as f:
        user_config = yaml.safe_load(f) or {}

    logger.debug(f"Loaded config keys: {list(user_config.keys())}")

    return _merge(config, user_config)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(base[key], value)
        else:
            base[key] = value
    return base


def get_nested_config(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get nested configuration value using dot notation.

    Example:
        get_nested_config(config, 'cue.min_gap_frames', default=20)

    Args:
        config: Configuration dictionary
        key_path: Dot-separated path to value
        default: Default value if path not found

    Returns:
        Configuration value or default
    """
    keys = key_path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value
