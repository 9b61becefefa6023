"""
Search path composition and name resolution.

The search path is rebuilt on every resolution from three ordered sources:

1. ``plugins`` and ``lib`` folders of every module on the environment's
   modulepath,
2. the configured ``LIBDIR`` directories,
3. the interpreter's ``sys.path``.

Earlier directories win when a name exists in more than one place.
"""

from __future__ import annotations

import glob
import os
import sys
import threading
from typing import Callable, Iterable, List, Optional, Protocol

from autoload.config.environment import Environment
from autoload.config.logging_config import get_logger
from autoload.loader.paths import SOURCE_EXTENSION, with_extension

log = get_logger(__name__)


class EnvironmentProvider(Protocol):
    def is_initialized(self) -> bool: ...

    def get_environment_name(self, env: Optional[str] = None) -> str: ...

    def get_modulepath(self, env: Optional[str] = None) -> List[str]: ...

    def get_libdirs(self) -> List[str]: ...


class ModuleDirectoryCache:
    """
    Memo of module plugin directories, keyed by environment name.

    Scanning every modulepath on each resolution is wasteful, so results are
    kept until :meth:`clear` is called. The host is expected to clear it at
    lifecycle boundaries such as the start of a compilation or the end of a
    run.
    """

    def __init__(self):
        self._entries: dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def get(self, env: str, compute: Callable[[], List[str]]) -> List[str]:
        with self._lock:
            if env not in self._entries:
                self._entries[env] = compute()
            return list(self._entries[env])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, env: str) -> bool:
        with self._lock:
            return env in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def plugin_directories(modulepath: Iterable[str]) -> List[str]:
    """
    List the ``plugins`` and ``lib`` folders of every module on a modulepath.

    Modulepath entries that do not exist or cannot be listed are skipped, as
    are hidden module directories.
    """
    directories: List[str] = []
    for root in modulepath:
        try:
            entries = sorted(os.listdir(root))
        except FileNotFoundError:
            log.debug(f"Skipping missing modulepath entry {root}")
            continue
        except OSError as e:
            log.debug(f"Skipping unreadable modulepath entry {root}: {e}")
            continue
        for entry in entries:
            if entry.startswith("."):
                continue
            module_dir = os.path.join(root, entry)
            for candidate in ("plugins", "lib"):
                path = os.path.join(module_dir, candidate)
                if os.path.isdir(path):
                    directories.append(path)
    return directories


class SearchPath:
    """
    Resolves logical names to files.

    Args:
        environment: Configuration provider, :class:`Environment` by default.
        load_path: Generic code search path. ``None`` means the live
            ``sys.path``, read on every call.
        cache: Cache for module directories; a private one by default.
    """

    def __init__(
        self,
        environment: EnvironmentProvider | type[Environment] = Environment,
        load_path: Optional[List[str]] = None,
        cache: Optional[ModuleDirectoryCache] = None,
    ):
        self.environment = environment
        self._load_path = load_path
        self.cache = cache if cache is not None else ModuleDirectoryCache()

    @property
    def load_path(self) -> List[str]:
        paths = sys.path if self._load_path is None else self._load_path
        # "" means the working directory; skipped
        return [p for p in paths if p]

    def module_directories(self, env: Optional[str] = None) -> List[str]:
        # Before initialization only sys.path is searched.
        if not self.environment.is_initialized():
            return []
        name = self.environment.get_environment_name(env)
        return self.cache.get(
            name,
            lambda: plugin_directories(self.environment.get_modulepath(name)),
        )

    def libdirs(self) -> List[str]:
        if not self.environment.is_initialized():
            return []
        return list(self.environment.get_libdirs())

    def directories(self, env: Optional[str] = None) -> List[str]:
        return self.module_directories(env) + self.libdirs() + self.load_path

    def resolve(self, name: str, env: Optional[str] = None) -> Optional[str]:
        """
        Return the file for ``name`` in the first directory that has it.

        Returns None when no directory on the search path contains
        ``<name>.py`` as a regular file.
        """
        filename = with_extension(name)
        for directory in self.directories(env):
            candidate = os.path.join(directory, filename)
            if os.path.isfile(candidate):
                return candidate
        log.debug(f"No file found for {name}")
        return None

    def files_in_dir(self, directory: str, prefix: str) -> List[str]:
        """List ``<prefix>/*.py`` under ``directory`` as paths relative to it."""
        directory = os.path.abspath(os.path.expanduser(directory))
        pattern = os.path.join(glob.escape(directory), prefix, "*" + SOURCE_EXTENSION)
        return [
            os.path.relpath(path, directory).replace(os.sep, "/")
            for path in sorted(glob.glob(pattern))
            if os.path.isfile(path)
        ]

    def files_under(self, prefix: str, env: Optional[str] = None) -> List[str]:
        """
        Candidate files under ``prefix`` across the whole search path.

        Results are relative paths, deduplicated, in search path order.
        """
        seen: set[str] = set()
        files: List[str] = []
        for directory in self.directories(env):
            for relative in self.files_in_dir(directory, prefix):
                if relative not in seen:
                    seen.add(relative)
                    files.append(relative)
        return files
