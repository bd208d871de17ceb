import os
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .constants import (
    CONFIG_ENV_VAR,
    DEFAULT_REGION,
    DEFAULT_SESSION,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SNAPSHOT_AGE_DAYS,
    DEFAULT_LARGE_OBJECT_THRESHOLD_MB,
    DEFAULT_LOGS_SINCE_MINUTES,
    DEFAULT_WAITER_DELAY,
    DEFAULT_WAITER_MAX_ATTEMPTS,
)
from .core import ConfigurationError
from .utils import load_yaml, validate_config_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    region: str = DEFAULT_REGION
    profile: Optional[str] = None
    role_arn: Optional[str] = None
    role_session_name: str = DEFAULT_SESSION
    log_level: str = DEFAULT_LOG_LEVEL
    snapshot_age_days: int = DEFAULT_SNAPSHOT_AGE_DAYS
    large_object_threshold_mb: int = DEFAULT_LARGE_OBJECT_THRESHOLD_MB
    logs_since_minutes: int = DEFAULT_LOGS_SINCE_MINUTES
    waiter_delay: int = DEFAULT_WAITER_DELAY
    waiter_max_attempts: int = DEFAULT_WAITER_MAX_ATTEMPTS

    def merge(self, overrides: Dict[str, Any]) -> "Settings":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        return replace(
            self,
            **{k: v for k, v in overrides.items() if k in known and v is not None},
        )


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from a YAML file.

    The file is taken from ``path`` or, failing that, from the
    AWS_CHECKS_CONFIG environment variable. Without either the defaults
    are returned.
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return Settings()

    config_path = validate_config_path(Path(path))
    try:
        data = load_yaml(config_path)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error loading config from {config_path}: {e}")

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config {config_path} must be a mapping, got {type(data).__name__}"
        )

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown settings in {config_path}: {', '.join(unknown)}"
        )

    for f in fields(Settings):
        value = data.get(f.name)
        if value is None:
            continue
        expected = int if f.type is int else str
        if isinstance(value, bool) or not isinstance(value, expected):
            raise ConfigurationError(
                f"Setting '{f.name}' in {config_path} must be {expected.__name__}, "
                f"got {type(value).__name__}"
            )

    logger.debug(f"Loaded settings from {config_path}: {sorted(data)}")
    return Settings().merge(data)
