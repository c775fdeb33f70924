"""
Module loader with per-instance caching and lazy proxies.

Provides the `LazyLoader` class, which resolves symbolic module names against
its configuration, imports each resolved module at most once, and optionally
hands out read-only proxies that defer the import until first use.
"""

import logging
from collections.abc import Mapping
from typing import Any

from lazyloader.config import FIELDS, LoaderConfig, check_options, merge
from lazyloader.errors import InvalidArgumentError, LoadError, StaleProxyError
from lazyloader.loading.cache import CacheEntry, CacheTable
from lazyloader.loading.fetcher import Fetcher, as_fetcher
from lazyloader.loading.keys import cache_key, key_filter
from lazyloader.loading.proxy import LazyProxy, ProxyHandle, detach
from lazyloader.loading.resolver import RootsProvider, caller_directory, default_roots, detect_base


logger = logging.getLogger(__name__)

Options = Mapping[str, Any] | LoaderConfig | None


def _check_name(modname: Any, optional: bool = False) -> None:
    if modname is None and optional:
        return
    if not isinstance(modname, str) or not modname:
        raise InvalidArgumentError(
            f"Module name must be a non-empty string, got {modname!r}"
        )


class LazyLoader:
    """
    Cached module loader with optional lazy proxies.

    Each instance owns its own cache. Calling the instance loads a module
    eagerly or returns a lazy proxy depending on the effective `lazy` option:

    1. Layer the per-call options over the instance config
    2. Derive the cache key from the effective config and requested name
    3. On first use, resolve the full module name (detected base + prefix + name)
    4. Import it once; later calls reuse the cached module

    Args:
        opts: Instance options, layered over `defaults`
        defaults: Base config; the process registry defaults when omitted
        fetcher: Object with fetch()/evict(), or a `name -> module` callable
            (default: importlib)
        roots: Callable listing import roots for base detection
            (default: the directories on sys.path)

    Example:
        >>> db = LazyLoader({"prefix": "db.", "lazy": False, "detect_base": False})
        >>> postgres = db("postgres")  # imports db.postgres
        >>> db("postgres") is postgres
        True
        >>>
        >>> plugins = LazyLoader({"prefix": "plugins."})
        >>> git = plugins("git")  # proxy, nothing imported yet
        >>> git.setup()  # imports plugins.git, then calls setup
    """

    def __init__(
        self,
        opts: Options = None,
        *,
        defaults: LoaderConfig | None = None,
        fetcher: Fetcher | Any = None,
        roots: RootsProvider | None = None,
    ):
        if defaults is None:
            # Imported here to avoid a circular import at module load.
            from lazyloader.registry import get_registry

            defaults = get_registry().defaults

        self._config = merge(defaults, check_options(opts))
        self._caller_dir = caller_directory() if self._config.detect_base else None
        self._fetcher = as_fetcher(fetcher)
        self._roots = roots or default_roots
        self._cache = CacheTable()

    @property
    def config(self) -> LoaderConfig:
        return self._config

    @property
    def caller_dir(self) -> str | None:
        return self._caller_dir

    # Chainable configuration

    def set(self, field: str, value: Any) -> "LazyLoader":
        """Set one config field, ignoring invalid values. Returns self."""
        if field not in FIELDS:
            raise InvalidArgumentError(f"Unknown config field '{field}'")
        self._config = merge(self._config, {field: value})
        if self._config.detect_base and self._caller_dir is None:
            self._caller_dir = caller_directory()
        return self

    def set_lazy(self, value: bool) -> "LazyLoader":
        return self.set("lazy", value)

    def set_detect_base(self, value: bool) -> "LazyLoader":
        return self.set("detect_base", value)

    def set_prefix(self, value: str) -> "LazyLoader":
        return self.set("prefix", value)

    def set_base_dir(self, value: str) -> "LazyLoader":
        return self.set("base_dir", value)

    def set_on_load(self, value) -> "LazyLoader":
        return self.set("on_load", value)

    def set_on_loaded(self, value) -> "LazyLoader":
        return self.set("on_loaded", value)

    # Public loading API

    def __call__(self, modname: str, opts: Options = None) -> Any:
        """Load `modname` eagerly or return a lazy proxy, per the effective `lazy` option."""
        _check_name(modname)
        return self._invoke(modname, merge(self._config, check_options(opts)))

    def load(self, modname: str, opts: Options = None) -> Any:
        """Load `modname` now and return the module.

        Raises:
            LoadError: If the import fails now or failed on an earlier call.
        """
        _check_name(modname)
        config = merge(self._config, check_options(opts))
        key, entry = self._entry(modname, config)
        return self._load_entry(key, entry)

    def lazy(self, modname: str, opts: Options = None) -> LazyProxy:
        """Return the read-only proxy for `modname`, creating it if needed."""
        _check_name(modname)
        return self._lazy(modname, merge(self._config, check_options(opts)))

    def resolve(self, modname: str, opts: Options = None) -> str:
        """Return the full module name `modname` resolves to, without importing it."""
        _check_name(modname)
        config = merge(self._config, check_options(opts))
        entry = self._cache.get(cache_key(config, modname))
        if entry is not None:
            return entry.name
        return self._new_entry(modname, config).name

    def key_for(self, modname: str, opts: Options = None) -> str:
        """Return the cache key `modname` maps to under the effective config."""
        _check_name(modname)
        return cache_key(merge(self._config, check_options(opts)), modname)

    # Cache lifecycle

    def reset(self, modname: str | None = None, opts: Options = None) -> None:
        """Evict cached module(s).

        With a name, evicts the single entry for that name under the effective
        config. Without one, evicts every entry matching `opts` (all entries
        when `opts` is None). Evicted proxies stop working.
        """
        _check_name(modname, optional=True)
        check_options(opts)

        if modname is None:
            self._reset_all(opts)
            return

        key = cache_key(merge(self._config, opts), modname)
        entry = self._cache.pop(key)
        if entry is not None:
            self._evict(key, entry)

    def reload(self, modname: str | None = None, opts: Options = None) -> Any:
        """Evict cached module(s) and request them again.

        Each evicted entry is re-requested with its own original name and
        effective config, so eager entries are imported again immediately and
        lazy entries come back as fresh, unloaded proxies.

        Returns:
            For a single name, the module or proxy. For a batch, a dict mapping
            each evicted cache key to its new module or proxy.

        Raises:
            LoadError: The first failure among eager re-imports, raised after
                every matching entry has been re-requested.
        """
        _check_name(modname, optional=True)
        check_options(opts)

        if modname is None:
            return self._reload_all(opts)

        config = merge(self._config, opts)
        key = cache_key(config, modname)
        entry = self._cache.pop(key)
        if entry is not None:
            self._evict(key, entry)
            config = entry.config
        logger.info(f"Reloading '{modname}'")
        return self._invoke(modname, config)

    # Introspection

    def entries(self) -> list[tuple[str, CacheEntry]]:
        return self._cache.items()

    def __contains__(self, modname: str) -> bool:
        return cache_key(self._config, modname) in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def __repr__(self) -> str:
        return f"LazyLoader(config={self._config!r}, entries={len(self._cache)})"

    # Internals

    def _invoke(self, modname: str, config: LoaderConfig) -> Any:
        if config.lazy:
            return self._lazy(modname, config)
        key, entry = self._entry(modname, config)
        return self._load_entry(key, entry)

    def _new_entry(self, modname: str, config: LoaderConfig) -> CacheEntry:
        base = detect_base(self._caller_dir, config, self._roots()) if config.detect_base else ""
        return CacheEntry(
            name=base + config.prefix + modname,
            origin_name=modname,
            base=base,
            config=config,
        )

    def _entry(self, modname: str, config: LoaderConfig) -> tuple[str, CacheEntry]:
        key = cache_key(config, modname)
        entry = self._cache.get_or_create(key, lambda: self._new_entry(modname, config))
        return key, entry

    def _lazy(self, modname: str, config: LoaderConfig) -> LazyProxy:
        key, entry = self._entry(modname, config)
        if entry.proxy is not None:
            return entry.proxy

        with self._cache.key_lock(key):
            if entry.proxy is None:
                entry.proxy = LazyProxy(ProxyHandle(self, entry.name, key))
                logger.debug(f"Created lazy proxy for '{entry.name}' [{key}]")
        return entry.proxy

    def _load_key(self, key: str) -> Any:
        entry = self._cache.get(key)
        if entry is None:
            raise StaleProxyError(f"No cache entry for key '{key}'; it was reset")
        return self._load_entry(key, entry)

    def _load_entry(self, key: str, entry: CacheEntry) -> Any:
        if not entry.loaded:
            with self._cache.key_lock(key):
                if not entry.loaded:
                    self._fetch(entry)

        if entry.error is not None:
            raise entry.error
        logger.debug(f"Cache hit for '{entry.name}' [{key}]")
        return entry.resource

    def _fetch(self, entry: CacheEntry) -> None:
        config = entry.config
        if config.on_load:
            config.on_load(entry.name)

        logger.info(f"Loading module '{entry.name}'")
        try:
            resource = self._fetcher.fetch(entry.name)
        except Exception as e:
            # A failed fetch still counts as loaded; only a reset retries it.
            entry.error = LoadError(entry.name, e)
            entry.loaded = True
            logger.info(f"Failed to load module '{entry.name}': {e}")
            raise entry.error from e

        entry.resource = resource
        entry.loaded = True

        if config.on_loaded:
            config.on_loaded(entry.name)

    def _evict(self, key: str, entry: CacheEntry) -> None:
        if entry.proxy is not None:
            detach(entry.proxy)
        if entry.loaded:
            self._fetcher.evict(entry.name)
        logger.info(f"Reset cache entry for '{entry.name}' [{key}]")

    def _reset_all(self, opts: Options) -> list[tuple[str, CacheEntry]]:
        evicted = self._cache.pop_matching(key_filter(self._config, opts))
        for key, entry in evicted:
            self._evict(key, entry)
        return evicted

    def _reload_all(self, opts: Options) -> dict[str, Any]:
        evicted = self._reset_all(opts)
        results = {}
        first_error = None
        for key, entry in evicted:
            try:
                results[key] = self._invoke(entry.origin_name, entry.config)
            except LoadError as e:
                logger.info(f"Reload of '{entry.name}' failed: {e}")
                first_error = first_error or e
        if first_error is not None:
            raise first_error
        logger.info(f"Reloaded {len(evicted)} cache entries")
        return results
