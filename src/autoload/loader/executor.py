"""
Execution primitive used by the load registry.

The registry never interprets what a file does. It hands the resolved path
to an executor, which runs it for its side effects (typically registering
classes or functions with the host application).
"""

from __future__ import annotations

import hashlib
import importlib.util
import os
import re
import sys
import threading
from types import ModuleType
from typing import Protocol

from autoload.config.logging_config import get_logger

log = get_logger(__name__)

SHARED_MODULE_PREFIX = "_autoload"


class Executor(Protocol):
    def __call__(self, path: str, wrap: bool) -> None: ...


def shared_module_name(path: str) -> str:
    """
    Stable ``sys.modules`` key for a file executed without wrapping.

    The stem keeps the name readable; a digest of the absolute path keeps
    two ``file.py`` units from different directories apart.
    """
    abspath = os.path.abspath(path)
    stem = os.path.splitext(os.path.basename(abspath))[0]
    stem = re.sub(r"\W", "_", stem) or "_"
    digest = hashlib.sha1(abspath.encode("utf-8")).hexdigest()[:12]
    return f"{SHARED_MODULE_PREFIX}_{stem}_{digest}"


class PythonFileExecutor:
    """
    Runs Python source files.

    With ``wrap=True`` the file executes inside a fresh module that is never
    added to ``sys.modules``, so nothing it defines leaks into the import
    system. With ``wrap=False`` the module is registered under
    :func:`shared_module_name` before execution, replacing any module left
    there by an earlier run of the same file. If the run fails, the earlier
    module is put back.
    """

    def __init__(self):
        self.modules: dict[str, ModuleType] = {}
        self._lock = threading.Lock()

    def __call__(self, path: str, wrap: bool) -> None:
        module_name = shared_module_name(path)
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot build a module spec for {path}")

        module = importlib.util.module_from_spec(spec)
        previous = sys.modules.get(module_name)
        if not wrap:
            sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            if not wrap:
                # A failed re-run leaves the last good module in place
                if previous is None:
                    sys.modules.pop(module_name, None)
                else:
                    sys.modules[module_name] = previous
            raise

        with self._lock:
            self.modules[os.path.abspath(path)] = module
        log.debug(f"Executed {path} (wrap={wrap}) as {module_name}")

    def get_module(self, path: str) -> ModuleType | None:
        """Return the module produced by the last successful run of ``path``."""
        with self._lock:
            return self.modules.get(os.path.abspath(path))
