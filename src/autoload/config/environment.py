import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from autoload.config.logging_config import get_logger
from autoload.config.settings import (
    get_value,
    load_settings,
    split_path_list,
)

DEFAULT_ENV = {
    "ENVIRONMENT": "production",
    "MODULEPATH": None,
    "LIBDIR": None,
    "LOG_LEVEL": None,
    "DEBUG": None,
}

"""
Environment Configuration Management Module

The Environment class is the configuration provider consulted by the search
path. It reads values from:

- Environment variables (optionally seeded from .env files)
- Settings file (settings.yaml)
- Default values

Until :meth:`Environment.initialize` has run, configuration is not considered
trustworthy: :meth:`Environment.get_modulepath` and
:meth:`Environment.get_libdirs` return empty lists so that code loaded during
early bootstrap never depends on a half-parsed configuration.
"""


def load_dotenv_files(directory: Optional[Path] = None):
    """Load environment variables from .env files in the working directory."""
    from dotenv import load_dotenv

    base = directory or Path.cwd()
    env_name = os.environ.get("ENVIRONMENT", DEFAULT_ENV["ENVIRONMENT"])

    # Later files never override values already present in the process env
    env_files = [
        base / ".env",
        base / f".env.{env_name}",
        base / f".env.{env_name}.local",
    ]

    for env_file in env_files:
        if env_file.exists():
            load_dotenv(env_file, override=False)


class Environment(object):
    """
    Central place to read configuration for the loader.

    Settings:
    Values are looked up in settings.yaml first, then in the process
    environment, then in DEFAULT_ENV.

    Environments:
    A named environment may override the modulepath with
    ``ENVIRONMENTS: {<name>: {MODULEPATH: [...]}}`` in settings.yaml.
    """

    settings: Optional[Dict[str, Any]] = None
    _initialized: bool = False

    @classmethod
    def load_settings(cls):
        load_dotenv_files()
        cls.settings = load_settings()

    @classmethod
    def get_settings(cls) -> Dict[str, Any]:
        if cls.settings is None:
            cls.load_settings()
        assert cls.settings is not None
        return cls.settings

    @classmethod
    def get(cls, key: str, default: Any = None):
        return get_value(key, cls.get_settings(), DEFAULT_ENV, default)

    @classmethod
    def initialize(cls, settings: Optional[Dict[str, Any]] = None):
        """
        Mark configuration as complete.

        Passing ``settings`` replaces whatever would be read from disk,
        which is what embedding applications and tests use.
        """
        if settings is not None:
            cls.settings = settings
        else:
            cls.load_settings()
        cls._initialized = True
        cls.get_logger().debug("Environment initialized")

    @classmethod
    def is_initialized(cls) -> bool:
        """
        Has the host finished loading its configuration?
        """
        return cls._initialized

    @classmethod
    def reset(cls):
        """
        Forget loaded settings and return to the bootstrap state.
        """
        cls.settings = None
        cls._initialized = False

    @classmethod
    def get_environment_name(cls, env: Optional[str] = None) -> str:
        """
        The environment to use when the caller does not name one.
        """
        if env:
            return env
        return str(cls.get("ENVIRONMENT"))

    @classmethod
    def get_modulepath(cls, env: Optional[str] = None) -> List[str]:
        """
        Ordered modulepath for an environment, empty before initialization.
        """
        if not cls.is_initialized():
            return []
        name = cls.get_environment_name(env)
        environments = cls.get_settings().get("ENVIRONMENTS") or {}
        overrides = environments.get(name) or {}
        if overrides.get("MODULEPATH") is not None:
            return split_path_list(overrides["MODULEPATH"])
        return split_path_list(cls.get("MODULEPATH"))

    @classmethod
    def get_libdirs(cls) -> List[str]:
        """
        Configured library directories, empty before initialization.
        """
        if not cls.is_initialized():
            return []
        return split_path_list(cls.get("LIBDIR"))

    @classmethod
    def get_log_level(cls):
        """Return desired log level string.

        Priority:
        1) LOG_LEVEL from the process environment
        2) If DEBUG env is truthy, return "DEBUG"
        3) AUTOLOAD_LOG_LEVEL env (default "INFO")
        """
        level = os.getenv("LOG_LEVEL")
        if level:
            return str(level).upper()
        debug_env = os.getenv("DEBUG")
        if debug_env and debug_env.lower() not in ("0", "false", "no", "off", ""):
            return "DEBUG"
        return os.getenv("AUTOLOAD_LOG_LEVEL", "INFO").upper()

    @classmethod
    def get_logger(cls):
        return get_logger(__name__)
