"""
Process-wide loader defaults and convenience loaders.

A `Registry` holds the default `LoaderConfig` that new loaders are layered
on, plus two preconfigured loaders used by the module-level `load()` and
`lazy()` helpers:

    - loader:      lazy=False, detect_base=False (eager imports)
    - lazy_loader: detect_base=False (lazy proxies)

`setup()` changes the defaults and rebuilds both convenience loaders, which
drops their caches. Loaders created earlier keep the defaults they were
created with.

One registry is created when this module is imported; `init_registry()`
replaces it (tests use this to start from a clean slate).
"""

import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from lazyloader.config import LoaderConfig, check_options, merge, read_pyproject, read_yaml
from lazyloader.loading import LazyLoader, LazyProxy
from lazyloader.loading.fetcher import Fetcher
from lazyloader.loading.resolver import RootsProvider


logger = logging.getLogger(__name__)

Options = Mapping[str, Any] | LoaderConfig | None

EAGER_OPTIONS = {"lazy": False, "detect_base": False}
LAZY_OPTIONS = {"detect_base": False}


class Registry:
    """Default config plus the eager and lazy convenience loaders.

    Args:
        defaults: Options layered over the built-in `LoaderConfig()` defaults
        fetcher: Fetcher handed to every loader this registry creates
        roots: Import roots provider handed to every loader this registry creates

    Example:
        >>> registry = Registry({"prefix": "myapp."})
        >>> registry.load("settings")  # imports myapp.settings
        >>> plugins = registry.new({"prefix": "myapp.plugins."})
    """

    def __init__(
        self,
        defaults: Options = None,
        *,
        fetcher: Fetcher | Any = None,
        roots: RootsProvider | None = None,
    ):
        self._defaults = merge(LoaderConfig(), check_options(defaults))
        self._fetcher = fetcher
        self._roots = roots
        self._lock = threading.Lock()
        self._rebuild()

    @classmethod
    def from_pyproject(cls, start: str | Path | None = None, **kwargs) -> "Registry":
        """Create a registry seeded from the `[tool.lazyloader]` table of pyproject.toml."""
        return cls(read_pyproject(start), **kwargs)

    @property
    def defaults(self) -> LoaderConfig:
        return self._defaults

    @property
    def loader(self) -> LazyLoader:
        return self._loader

    @property
    def lazy_loader(self) -> LazyLoader:
        return self._lazy_loader

    def setup(self, opts: Options = None) -> "Registry":
        """Layer `opts` over the defaults and rebuild the convenience loaders."""
        with self._lock:
            self._defaults = merge(self._defaults, check_options(opts))
            self._rebuild()
        logger.debug(f"Loader defaults set to {self._defaults}")
        return self

    def setup_from_file(self, path: str | Path) -> "Registry":
        """Like `setup`, reading the options from a YAML file."""
        return self.setup(read_yaml(path))

    def new(self, opts: Options = None) -> LazyLoader:
        """Create an independent loader layered on the current defaults."""
        return LazyLoader(
            opts, defaults=self._defaults, fetcher=self._fetcher, roots=self._roots
        )

    def load(self, modname: str, opts: Options = None) -> Any:
        """Request `modname` from the eager convenience loader."""
        return self._loader(modname, opts)

    def lazy(self, modname: str, opts: Options = None) -> LazyProxy:
        """Request `modname` from the lazy convenience loader."""
        return self._lazy_loader(modname, opts)

    def _rebuild(self) -> None:
        self._loader = self.new(EAGER_OPTIONS)
        self._lazy_loader = self.new(LAZY_OPTIONS)


_REGISTRY = Registry()


def get_registry() -> Registry:
    """Return the process-wide registry."""
    return _REGISTRY


def init_registry(defaults: Options = None, **kwargs) -> Registry:
    """Replace the process-wide registry with a fresh one and return it."""
    global _REGISTRY
    _REGISTRY = Registry(defaults, **kwargs)
    return _REGISTRY
