"""
Load registry for tracking files loaded by logical name.

This module keeps the single record of what has been loaded into the process:
for every normalized logical name, the file that was executed and its
modification time at that moment. The records drive:

- Loading a name (always re-executes, so it doubles as a forced reload)
- Staleness checks (file moved on the search path, modified or removed)
- Discovery of new units under a prefix without touching loaded ones
- Bulk refresh of everything that changed

Scoped loaders (:class:`autoload.loader.autoloader.Autoloader`) bind an owner
and a path prefix and delegate here.
"""

from __future__ import annotations

import os
import threading
from typing import TYPE_CHECKING, Hashable, List, Optional, Tuple

from autoload.config.logging_config import get_logger
from autoload.loader.exceptions import ConfigurationError, LoadError
from autoload.loader.executor import Executor, PythonFileExecutor
from autoload.loader.paths import SOURCE_EXTENSION, is_absolute_path, normalize_name
from autoload.loader.search_path import SearchPath
from autoload.loader.types import LoadRecord

if TYPE_CHECKING:
    from autoload.loader.autoloader import Autoloader

log = get_logger(__name__)


class LoadRegistry:
    """
    Registry of loaded files keyed by normalized logical name.

    A process-wide instance is available through :meth:`get_instance`;
    independent instances can be built with their own search path and
    executor.

    All mutation of the record table happens under a re-entrant lock, so a
    file being executed may itself load other names.
    """

    _instance: Optional[LoadRegistry] = None
    _instance_lock: threading.Lock = threading.Lock()

    def __init__(
        self,
        search_path: Optional[SearchPath] = None,
        executor: Optional[Executor] = None,
    ):
        self.search_path = search_path or SearchPath()
        self.executor = executor or PythonFileExecutor()
        self._loaded: dict[str, LoadRecord] = {}
        self._autoloaders: dict[Hashable, Autoloader] = {}
        self._lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> LoadRegistry:
        """Get the process-wide registry."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide registry (for testing)."""
        with cls._instance_lock:
            cls._instance = None

    # ------------------------------------------------------------------
    # Scope bindings
    # ------------------------------------------------------------------

    def __getitem__(self, owner: Hashable) -> Autoloader:
        with self._lock:
            return self._autoloaders[owner]

    def __setitem__(self, owner: Hashable, autoloader: Autoloader) -> None:
        with self._lock:
            if owner in self._autoloaders:
                log.debug(f"Replacing autoloader for {owner!r}")
            self._autoloaders[owner] = autoloader

    def get_autoloader(self, owner: Hashable) -> Optional[Autoloader]:
        with self._lock:
            return self._autoloaders.get(owner)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def is_loaded(self, name: str) -> bool:
        """
        Has ``name`` been loaded successfully?

        Used to decide whether a changed file (for instance a freshly
        downloaded plugin) should be reloaded or ignored.
        """
        with self._lock:
            return normalize_name(name) in self._loaded

    def get_record(self, name: str) -> Optional[LoadRecord]:
        with self._lock:
            return self._loaded.get(normalize_name(name))

    def mark_loaded(self, name: str, path: str, wrap: bool = True) -> LoadRecord:
        """
        Record that ``path`` was loaded for ``name``.

        Raises:
            OSError: if ``path`` cannot be stat-ed.
        """
        key = normalize_name(name)
        record = LoadRecord(
            name=key, path=path, mtime_ns=os.stat(path).st_mtime_ns, wrap=wrap
        )
        with self._lock:
            self._loaded[key] = record
        return record

    def list_loaded(self) -> List[Tuple[str, str]]:
        """Return ``(name, path)`` for every loaded name, sorted by name."""
        with self._lock:
            return sorted((name, record.path) for name, record in self._loaded.items())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, name: str, env: Optional[str] = None, wrap: bool = True) -> bool:
        """
        Resolve ``name`` on the search path and execute the file.

        The file is executed even if it is already loaded and unchanged.

        Returns:
            False if no file matches ``name`` or the file vanished before it
            could be executed, True once it has been executed.

        Raises:
            ConfigurationError: if ``name`` is an absolute path.
            LoadError: if the file cannot be stat-ed or executing it raised an
                exception.
        """
        name = str(name)
        self._require_relative(name)
        key = normalize_name(name)
        path = self.search_path.resolve(key, env)
        if path is None:
            return False
        try:
            mtime_ns = os.stat(path).st_mtime_ns
        except FileNotFoundError:
            log.debug(f"{path} disappeared before {key} could be loaded")
            return False
        except OSError as e:
            raise LoadError(name, e) from e

        record = LoadRecord(name=key, path=path, mtime_ns=mtime_ns, wrap=wrap)
        with self._lock:
            previous = self._loaded.get(key)
            # Recorded first so a file loading its own prefix skips itself
            self._loaded[key] = record
            try:
                self.executor(path, wrap)
            except MemoryError:
                self._restore(key, previous)
                raise
            except Exception as e:
                self._restore(key, previous)
                error = LoadError(name, e)
                log.error(str(error), exc_info=True)
                raise error from e
            except BaseException:
                self._restore(key, previous)
                raise

        log.debug(f"Loaded {key} from {path}")
        return True

    def _restore(self, key: str, previous: Optional[LoadRecord]) -> None:
        if previous is None:
            self._loaded.pop(key, None)
        else:
            self._loaded[key] = previous

    def has_changed(self, name: str, env: Optional[str] = None) -> bool:
        """
        Should ``name`` be reloaded?

        True when it was never loaded, when it now resolves to a different
        file, or when the loaded file was modified or can no longer be
        stat-ed.
        """
        name = str(name)
        self._require_relative(name)
        key = normalize_name(name)
        with self._lock:
            record = self._loaded.get(key)
        if record is None:
            return True
        if record.path != self.search_path.resolve(key, env):
            return True
        try:
            return record.mtime_ns != os.stat(record.path).st_mtime_ns
        except FileNotFoundError:
            return True
        except OSError as e:
            log.debug(f"Could not stat {record.path}, treating {key} as changed: {e}")
            return True

    def files_under(self, prefix: str, env: Optional[str] = None) -> List[str]:
        """List candidate files under ``prefix`` without loading them."""
        prefix = str(prefix)
        self._require_relative(prefix)
        return self.search_path.files_under(prefix, env)

    def load_all(
        self, prefix: str, env: Optional[str] = None, wrap: bool = True
    ) -> List[str]:
        """
        Load every file under ``prefix`` that is not loaded yet.

        Loaded names are skipped even when stale; use :meth:`reload_changed`
        to refresh them.

        Returns:
            The names that were loaded by this call.
        """
        loaded: List[str] = []
        with self._lock:
            for file in self.files_under(prefix, env):
                name = file[: -len(SOURCE_EXTENSION)]
                if self.is_loaded(name):
                    continue
                if self.load(name, env, wrap=wrap):
                    loaded.append(name)
        return loaded

    def reload_changed(self, env: Optional[str] = None) -> List[str]:
        """
        Reload every loaded name whose file changed.

        Each name is reloaded with the wrap setting of its previous load.

        Returns:
            The names that were reloaded.
        """
        reloaded: List[str] = []
        with self._lock:
            for name, record in list(self._loaded.items()):
                if not self.has_changed(name, env):
                    continue
                if self.load(name, env, wrap=record.wrap):
                    reloaded.append(name)
        return reloaded

    def clear_directory_cache(self) -> None:
        """Forget cached module directories so the next resolution rescans."""
        self.search_path.cache.clear()

    @staticmethod
    def _require_relative(name: str) -> None:
        if is_absolute_path(name):
            raise ConfigurationError(f"Autoload names cannot be fully qualified: {name}")


def get_load_registry() -> LoadRegistry:
    """Get the process-wide load registry."""
    return LoadRegistry.get_instance()
