"""lazyloader - Cached, lazily evaluated module loading."""

from typing import Any

from .config import LoaderConfig
from .errors import (
    ConfigFileError,
    InstanceDisposedError,
    InvalidArgumentError,
    LazyLoaderError,
    LoadError,
    ReadOnlyMutationError,
    StaleProxyError,
)
from .loading import LazyLoader, LazyProxy, is_loaded, is_proxy, unwrap
from .registry import Registry, get_registry, init_registry


__all__ = [
    # Configuration
    "LoaderConfig",
    "setup",
    # Loaders
    "LazyLoader",
    "LazyProxy",
    "new",
    "load",
    "lazy",
    "is_loaded",
    "is_proxy",
    "unwrap",
    # Registry
    "Registry",
    "get_registry",
    "init_registry",
    # Errors
    "LazyLoaderError",
    "ConfigFileError",
    "InstanceDisposedError",
    "InvalidArgumentError",
    "LoadError",
    "ReadOnlyMutationError",
    "StaleProxyError",
]


def setup(opts=None) -> Registry:
    """Configure process-wide defaults and rebuild the convenience loaders."""
    return get_registry().setup(opts)


def new(opts=None) -> LazyLoader:
    """Create a loader layered on the process-wide defaults."""
    return get_registry().new(opts)


def load(modname: str, opts=None) -> Any:
    """Import `modname` through the eager convenience loader."""
    return get_registry().load(modname, opts)


def lazy(modname: str, opts=None) -> LazyProxy:
    """Return a lazy proxy for `modname` from the lazy convenience loader."""
    return get_registry().lazy(modname, opts)
