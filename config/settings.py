"""
Settings for recfilter engines.

Settings are plain dataclasses. They can be read from a YAML file whose
top-level sections mirror the nested dataclasses:

    cache_config:
      regex_cache_size: 500
    defaults:
      max_depth: 3
    log_level: WARNING
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml


CONFIG_ENV_VAR = "RECFILTER_CONFIG"
CONFIG_FILENAME = "default_config.yaml"


@dataclass
class CacheConfig:
    """Sizes of the result, regex and validation caches."""
    max_entries_per_collection: int = 100
    max_collections: int = 64
    regex_cache_size: int = 500
    validation_cache_size: int = 256


@dataclass
class ValidationConfig:
    max_regex_length: int = 1000


@dataclass
class DefaultsConfig:
    """Option values used when a call does not set them."""
    case_sensitive: bool = False
    max_depth: int = 3
    enable_cache: bool = False
    enable_performance_monitoring: bool = False


@dataclass
class Settings:
    """
    Engine settings.

    Attributes:
        cache_config: Cache sizes
        validation_config: Limits applied while compiling patterns
        defaults: Filter option defaults
        monitor_max_samples: Durations kept per monitored operation
        log_level: Level of the ``recfilter`` package logger
    """
    cache_config: CacheConfig = field(default_factory=CacheConfig)
    validation_config: ValidationConfig = field(default_factory=ValidationConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    monitor_max_samples: int = 1000
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        """
        Build settings from a mapping such as a parsed YAML document.

        Raises:
            TypeError: On keys that no settings field declares
        """
        sections = {
            "cache_config": CacheConfig,
            "validation_config": ValidationConfig,
            "defaults": DefaultsConfig,
        }
        values: Dict[str, Any] = {}
        for key, value in data.items():
            section = sections.get(key)
            values[key] = section(**(value or {})) if section else value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def get_default_config_path() -> Path:
    """
    Locate the configuration file.

    ``$RECFILTER_CONFIG`` wins when set, then ``./config/default_config.yaml``,
    then the file shipped next to this module.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    local = Path("config") / CONFIG_FILENAME
    return local if local.exists() else Path(__file__).parent / CONFIG_FILENAME


def load_config(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from YAML.

    A missing or empty file yields the defaults.

    Example:
        >>> settings = load_config()
        >>> settings = load_config("./filters.yaml")
    """
    path = Path(config_path) if config_path is not None else get_default_config_path()
    if not path.is_file():
        return Settings()

    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)

    if not data:
        return Settings()
    if not isinstance(data, Mapping):
        raise TypeError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    return Settings.from_dict(data)
