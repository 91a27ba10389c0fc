"""Configuration loading utilities."""

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from shellgate.config.schema import Config

# Mappings whose keys are user data (environment variable names), not fields
_VERBATIM_KEYS = frozenset(["env"])


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".shellgate" / "config.json"


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    parts = name.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


def _convert(data: Any, convert_key) -> Any:
    if isinstance(data, dict):
        converted = {}
        for key, value in data.items():
            new_key = convert_key(key)
            if new_key in _VERBATIM_KEYS and isinstance(value, dict):
                converted[new_key] = dict(value)
            else:
                converted[new_key] = _convert(value, convert_key)
        return converted
    if isinstance(data, list):
        return [_convert(item, convert_key) for item in data]
    return data


def convert_keys(data: Any) -> Any:
    """Recursively convert camelCase keys to snake_case."""
    return _convert(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    """Recursively convert snake_case keys to camelCase."""
    return _convert(data, snake_to_camel)


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, or return defaults.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Config(**convert_keys(data))
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file with camelCase keys."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
