"""Exception hierarchy for lazyloader.

LazyLoaderError (base, Exception)
├── InvalidArgumentError(LazyLoaderError, TypeError)
├── LoadError(LazyLoaderError, ImportError)
├── ReadOnlyMutationError(LazyLoaderError, AttributeError)
├── InstanceDisposedError(LazyLoaderError, ReferenceError)
├── StaleProxyError(LazyLoaderError, ReferenceError)
└── ConfigFileError(LazyLoaderError, ValueError)

Config values that fail validation are never reported through these classes;
they are discarded and the previous value is kept.
"""


class LazyLoaderError(Exception):
    """Base exception for all lazyloader errors."""


class InvalidArgumentError(LazyLoaderError, TypeError):
    """A module name or options argument has the wrong shape."""


class LoadError(LazyLoaderError, ImportError):
    """The underlying fetch of a module failed.

    The cache entry stays marked as loaded, so the same error is raised again
    until the entry is reset.
    """

    def __init__(self, modname: str, cause: BaseException | None = None) -> None:
        message = f"Failed to load module '{modname}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, name=modname)
        self.modname = modname
        self.cause = cause


class ReadOnlyMutationError(LazyLoaderError, AttributeError):
    """An attribute of a lazy proxy was assigned or deleted."""

    def __init__(self, modname: str, attr: str) -> None:
        super().__init__(f"Cannot modify read-only proxy for '{modname}' (attribute '{attr}')")
        self.modname = modname
        self.attr = attr


class InstanceDisposedError(LazyLoaderError, ReferenceError):
    """The loader that created a proxy no longer exists."""


class StaleProxyError(LazyLoaderError, ReferenceError):
    """The cache entry backing a proxy was reset."""


class ConfigFileError(LazyLoaderError, ValueError):
    """A configuration file could not be read or has the wrong structure."""
