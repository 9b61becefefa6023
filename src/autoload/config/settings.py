"""Utility functions for reading and writing configuration files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List

import yaml

from autoload.config.configuration import register_setting

# Constants
SETTINGS_FILE = "settings.yaml"
MISSING_MESSAGE = "Missing required environment variable: {}"
NOT_GIVEN = object()

# Built-in settings are registered here so that plugins loaded through the
# registry can extend the configuration system via :func:`register_setting`.

register_setting(
    package_name="autoload",
    env_var="MODULEPATH",
    group="Search Path",
    description=(
        "Directories containing modules. Each child directory of a modulepath "
        "entry contributes its 'plugins' and 'lib' folders to the search path. "
        "Accepts a YAML list or a string joined with the OS path separator."
    ),
)
register_setting(
    package_name="autoload",
    env_var="LIBDIR",
    group="Search Path",
    description=(
        "Additional library directories searched after module directories and "
        "before the interpreter's sys.path."
    ),
)
register_setting(
    package_name="autoload",
    env_var="ENVIRONMENT",
    group="Search Path",
    description=(
        "Name of the environment used when callers do not pass one. "
        "Per-environment modulepaths live under ENVIRONMENTS.<name>.MODULEPATH."
    ),
)
register_setting(
    package_name="autoload",
    env_var="LOG_LEVEL",
    group="Logging",
    description="Log level for autoload loggers",
    enum=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def get_system_file_path(filename: str) -> Path:
    """Return the path to the configuration file for the current OS."""
    import platform

    os_name = platform.system()
    if os_name in {"Linux", "Darwin"}:
        return Path.home() / ".config" / "autoload" / filename
    elif os_name == "Windows":
        appdata = os.getenv("APPDATA")
        if appdata is not None:
            return Path(appdata) / "autoload" / filename
        return Path("data") / filename
    return Path("data") / filename


def split_path_list(value: Any) -> List[str]:
    """Turn a configured directory list into a list of strings.

    YAML lists are taken as-is; strings are split on ``os.pathsep``.
    Empty entries are dropped.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(os.pathsep)
    return [item for item in items if item]


# ---------------------------------------------------------------------------
# Settings helpers
# ---------------------------------------------------------------------------


def load_settings() -> Dict[str, Any]:
    """Load settings from the YAML settings file."""
    settings_file = get_system_file_path(SETTINGS_FILE)

    settings: Dict[str, Any] = {}

    if settings_file.exists():
        with open(settings_file, "r") as f:
            settings = yaml.safe_load(f) or {}

    return settings


def save_settings(settings: Dict[str, Any]) -> None:
    """Save settings to the YAML settings file."""
    settings_file = get_system_file_path(SETTINGS_FILE)

    os.makedirs(os.path.dirname(settings_file), exist_ok=True)

    with open(settings_file, "w") as f:
        yaml.dump(settings, f)


def get_value(
    key: str,
    settings: Dict[str, Any],
    default_env: Dict[str, Any],
    default: Any = NOT_GIVEN,
) -> Any:
    """Retrieve a configuration value from settings or environment."""
    value = settings.get(key)
    if value is None or str(value) == "":
        value = os.environ.get(key)

    if value is None:
        value = default_env.get(key, default)

    if value is not NOT_GIVEN:
        return value
    raise KeyError(MISSING_MESSAGE.format(key))
