"""
YAML configuration loading with environment variable overrides.

Environment Variable Override Format:
    NETCATD_<SECTION>_<KEY>=value

Examples:
    NETCATD_LOGGING_LEVEL=debug
    NETCATD_SERVER_PORT=7000
    NETCATD_SERVER_SYSTEMD=true
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from ..exceptions import ConfigError
from .constants import ENV_PREFIX, MAX_CONFIG_SIZE_BYTES


def _check_file_size(path: Path) -> None:
    """Check file size limit before handing the file to the YAML parser."""
    file_size = path.stat().st_size
    if file_size > MAX_CONFIG_SIZE_BYTES:
        raise ConfigError(
            "configuration file too large",
            path=str(path),
            size=file_size,
            limit=MAX_CONFIG_SIZE_BYTES,
        )


def convert_env_value(value: str) -> bool | int | float | str | list[Any] | None:
    """
    Convert environment variable string to appropriate type.

    Args:
        value: Environment variable value as string

    Returns:
        Converted value with appropriate type
    """
    if value.lower() in ("null", "none", ""):
        return None

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    if "," in value:
        return [convert_env_value(v.strip()) for v in value.split(",")]

    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        pass

    return value


def _env_key_to_path(env_key: str, env_prefix: str) -> list[str]:
    """Convert 'NETCATD_SERVER_PORT' to ['server', 'port']."""
    return env_key[len(env_prefix) :].lower().split("_", 1)


def apply_env_overrides(
    config_data: dict[str, Any],
    environ: Mapping[str, str] | None = None,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration data.

    Only the first underscore after the prefix separates section from key,
    so NETCATD_SERVER_EXEC overrides server.exec.

    Args:
        config_data: Configuration data dictionary (modified in place)
        environ: Environment mapping (default: os.environ)
        env_prefix: Prefix for environment variables

    Returns:
        Configuration data with environment variable overrides applied
    """
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(env_prefix):
            continue

        path = _env_key_to_path(key, env_prefix)
        if len(path) != 2 or not all(path):
            continue

        section, name = path
        current = config_data.get(section)
        if not isinstance(current, dict):
            current = config_data[section] = {}

        # The command template is a string even if it looks like a list
        current[name] = value if name == "exec" else convert_env_value(value)

    return config_data


def load_config(
    fname: str | Path | None,
    enable_env_overrides: bool = True,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Load a YAML configuration file and apply environment overrides.

    Args:
        fname: Path to the YAML configuration file, or None for environment only
        enable_env_overrides: Whether to apply NETCATD_* environment overrides
        environ: Environment mapping used for overrides (default: os.environ)

    Returns:
        Configuration dictionary keyed by section ("server", "logging")

    Raises:
        ConfigError: If the file is missing, too large, malformed or not a mapping
    """
    config_data: dict[str, Any] = {}

    if fname is not None:
        path = Path(fname).expanduser()
        try:
            _check_file_size(path)
            with open(path) as f:
                loaded = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(
                "cannot read configuration file", path=str(path), error=e.strerror
            ) from e
        except yaml.YAMLError as e:
            raise ConfigError("malformed configuration file", path=str(path)) from e

        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError("configuration file must contain a mapping", path=str(path))
        config_data = loaded or {}

    if enable_env_overrides:
        config_data = apply_env_overrides(config_data, environ)

    return config_data
