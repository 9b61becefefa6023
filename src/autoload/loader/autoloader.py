"""Scoped loaders: a path prefix bound to an owner."""

from __future__ import annotations

from typing import Any, Hashable, List, Optional

from pydantic import ValidationError

from autoload.loader.exceptions import ConfigurationError
from autoload.loader.paths import is_absolute_path, join_name
from autoload.loader.registry import LoadRegistry
from autoload.loader.types import AutoloaderOptions


class Autoloader:
    """
    Loads names relative to a fixed prefix.

    ``Autoloader(Type, "mytypes").load("file")`` is the same as
    ``registry.load("mytypes/file")``. Constructing a loader registers it in
    the registry under ``owner``, replacing any previous loader for that
    owner.

    Args:
        owner: Key the loader is registered under, usually the class whose
            plugins it loads.
        path: Prefix prepended to every name. Must be relative.
        registry: Registry to delegate to, the process-wide one by default.
        **options: See :class:`AutoloaderOptions`.

    Raises:
        ConfigurationError: for an absolute ``path`` or an unknown or invalid
            option.
    """

    def __init__(
        self,
        owner: Hashable,
        path: str,
        registry: Optional[LoadRegistry] = None,
        **options: Any,
    ):
        self.path = str(path)
        if is_absolute_path(self.path):
            raise ConfigurationError("Autoload paths cannot be fully qualified")

        for option in options:
            if option not in AutoloaderOptions.model_fields:
                raise ConfigurationError(f"{option} is not a valid option")
        try:
            self.options = AutoloaderOptions(**options)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

        self.owner = owner
        self.registry = registry or LoadRegistry.get_instance()
        self.registry[owner] = self

    @property
    def wrap(self) -> bool:
        return self.options.wrap

    def __repr__(self) -> str:
        return f"Autoloader(owner={self.owner!r}, path={self.path!r}, wrap={self.wrap})"

    def load(self, name: str, env: Optional[str] = None) -> bool:
        return self.registry.load(join_name(self.path, name), env, wrap=self.wrap)

    def load_all(self, env: Optional[str] = None) -> List[str]:
        """Load every file under this loader's prefix that is not loaded yet."""
        return self.registry.load_all(self.path, env, wrap=self.wrap)

    def is_loaded(self, name: str) -> bool:
        return self.registry.is_loaded(join_name(self.path, name))

    def has_changed(self, name: str, env: Optional[str] = None) -> bool:
        return self.registry.has_changed(join_name(self.path, name), env)

    def files_to_load(self, env: Optional[str] = None) -> List[str]:
        return self.registry.files_under(self.path, env)
