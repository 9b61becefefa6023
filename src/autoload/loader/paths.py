"""Normalization of logical names used as registry keys."""

import os
import posixpath

SOURCE_EXTENSION = ".py"


def is_absolute_path(path: str) -> bool:
    return os.path.isabs(path)


def cleanpath(path: str) -> str:
    """
    Normalize a path without changing whether it is relative.

    Absolute paths are expanded to their canonical absolute form, which also
    folds alternate separators on Windows. Relative paths are only cleaned
    lexically (duplicate separators, ``.`` and ``..``) and stay relative.
    """
    if is_absolute_path(path):
        return os.path.abspath(path)
    if os.altsep:
        path = path.replace(os.sep, os.altsep)
    return posixpath.normpath(path)


def normalize_name(name: str) -> str:
    """Return the registry key for a logical name: cleaned, without ``.py``."""
    cleaned = cleanpath(str(name))
    if cleaned.endswith(SOURCE_EXTENSION):
        cleaned = cleaned[: -len(SOURCE_EXTENSION)]
    return cleaned


def with_extension(name: str) -> str:
    if name.endswith(SOURCE_EXTENSION):
        return name
    return name + SOURCE_EXTENSION


def join_name(prefix: str, name: str) -> str:
    return posixpath.join(prefix, str(name))
