"""
Configuration management package.

This module provides:
- load_config for YAML files with NETCATD_* environment overrides
- ServerConfig, the immutable server settings built at startup
"""

from .constants import DEFAULT_BACKLOG, DEFAULT_PORT, ENV_PREFIX, MAX_CONFIG_SIZE_BYTES
from .loader import apply_env_overrides, convert_env_value, load_config
from .server import Passthrough, ServerConfig

__all__ = [
    "DEFAULT_BACKLOG",
    "DEFAULT_PORT",
    "ENV_PREFIX",
    "MAX_CONFIG_SIZE_BYTES",
    "Passthrough",
    "ServerConfig",
    "apply_env_overrides",
    "convert_env_value",
    "load_config",
]
