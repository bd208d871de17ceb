from pathlib import Path
from typing import Dict, Union

import yaml

from .core import ConfigurationError


def load_yaml(file_path: Union[str, Path]) -> Dict:
    with open(file_path, "r") as file:
        data = yaml.safe_load(file)
    return data


def validate_config_path(path: Path) -> Path:
    """Validate that a configuration file exists."""
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")
    return path


def get_tag_value(tags: list, key: str, default: str = "") -> str:
    """Helper method to extract tag value."""
    return next((tag["Value"] for tag in tags or [] if tag.get("Key") == key), default)


def format_timestamp(value) -> str:
    return value.isoformat() if hasattr(value, "isoformat") else str(value)
