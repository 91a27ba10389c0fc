"""Configuration module for shellgate."""

from shellgate.config.loader import load_config, save_config, get_config_path
from shellgate.config.schema import Config, ShellToolConfig, ToolsConfig

__all__ = [
    "Config",
    "ShellToolConfig",
    "ToolsConfig",
    "load_config",
    "save_config",
    "get_config_path",
]
