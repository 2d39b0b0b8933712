"""
Configuration management for Lumen
"""

import yaml
import os
import re
import copy
from pathlib import Path
from typing import Dict, Any, Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"
CONFIG_HEADER = "# Lumen preview core configuration.\n"

def _expand_env_vars(obj: Union[Dict, Any]) -> Union[Dict, Any]:
    """
    Recursively expand environment variables in config values.
    Supports ${VAR_NAME} syntax.
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        # Replace ${VAR_NAME} with environment variable values
        pattern = r'\$\{([^}]+)\}'
        def replace_var(match):
            var_name = match.group(1)
            return os.getenv(var_name, match.group(0))  # Return original if not found
        return re.sub(pattern, replace_var, obj)
    else:
        return obj

def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, descending into nested sections."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged

def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file
    
    Values missing from the file are filled in from the defaults, so callers
    can always rely on every section being present.
    
    Args:
        config_path: Path to config file. If None, uses the packaged config.yaml
        
    Returns:
        Configuration dictionary
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)
    
    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return get_default_config()
    
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        # Expand environment variables in config values
        config = _expand_env_vars(config)
        return _merge(get_default_config(), config)
    except Exception as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return get_default_config()

def get_default_config() -> Dict[str, Any]:
    """
    Get default configuration values
    
    Returns:
        Default configuration dictionary
    """
    return {
        'preview': {
            'floor_resolution': 480,          # Never request below this long edge
            'overres_multiplier': 5.0,        # Ceiling = fit long edge * multiplier
            'interacting_cap': 960,           # Long edge budget while scrubbing
            'interacting_ratio': 0.7,         # Share of raw target kept while scrubbing
            'unmeasured_resolution': 1280,    # Layout not measured yet, at rest
            'unmeasured_interacting_resolution': 720,
            'progressive_floor_min': 420,
            'progressive_floor_ratio': 0.4,
            'default_max_dimension': 1440,    # Used when options carry no target
            'default_progressive_floor': 720,
            'debounce_ms': {
                'interacting': 8,
                'rest': 80,
                'preview': 120,
                'thumbnail': 0,
            },
        },
        'sync': {
            'save_delay_ms': 300,
        },
        'library': {
            'preload_concurrency': 2,
        },
        'logging': {
            'level': 'INFO',
            'color': True,
        },
    }

def save_config(config: Dict[str, Any], config_path: Union[str, Path]) -> bool:
    """
    Write a configuration as YAML, keeping section order.

    The file loads back with ``load_config``. Parent directories are created
    as needed.

    Returns:
        True if the file was written, False otherwise
    """
    config_path = Path(config_path)
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(CONFIG_HEADER + yaml.safe_dump(config, default_flow_style=False,
                                                               sort_keys=False))
        logger.info(f"Saved configuration to {config_path}")
        return True
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
        return False

def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation
    
    Args:
        config: Configuration dictionary
        key_path: Dot-separated key path (e.g., 'preview.floor_resolution')
        default: Default value if key not found
        
    Returns:
        Configuration value or default
    """
    keys = key_path.split('.')
    value = config
    
    try:
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default
