"""
Exception classes for the loader.

Names that do not resolve are not errors; the loader reports them as
``False`` or empty results. Only execution failures and caller mistakes
raise.
"""


class AutoloadError(Exception):
    """Base exception for loader errors."""

    pass


class LoadError(AutoloadError):
    """Raised when executing a resolved file fails.

    Carries the logical name that was being loaded and the underlying
    exception.
    """

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"Could not autoload {name}: {cause}")


class ConfigurationError(AutoloadError, ValueError):
    """Raised for invalid loader options, absolute prefixes or absolute names."""

    pass
