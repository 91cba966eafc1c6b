"""
Settings for recfilter engines, loaded from YAML.

Example:
    >>> from config import load_config
    >>> from recfilter import FilterEngine
    >>>
    >>> engine = FilterEngine(load_config())
"""

from .settings import (
    CacheConfig,
    DefaultsConfig,
    Settings,
    ValidationConfig,
    get_default_config_path,
    load_config,
)

__all__ = [
    "CacheConfig",
    "DefaultsConfig",
    "Settings",
    "ValidationConfig",
    "get_default_config_path",
    "load_config",
]
