"""
Loading infrastructure for lazyloader.

Main components:
- LazyLoader: per-instance module cache with eager loads and lazy proxies
- LazyProxy: read-only stand-in that imports its module on first access
- cache_key / key_filter: cache key derivation and batch filters
- detect_base: dotted module prefix from a directory and the import roots
- ImportFetcher / CallableFetcher: how resolved names are turned into modules
"""

from lazyloader.loading.cache import CacheEntry, CacheTable
from lazyloader.loading.fetcher import CallableFetcher, Fetcher, ImportFetcher, as_fetcher
from lazyloader.loading.keys import cache_key, key_filter
from lazyloader.loading.loader import LazyLoader
from lazyloader.loading.proxy import LazyProxy, is_loaded, is_proxy, unwrap
from lazyloader.loading.resolver import caller_directory, default_roots, detect_base


__all__ = [
    "CacheEntry",
    "CacheTable",
    "CallableFetcher",
    "Fetcher",
    "ImportFetcher",
    "as_fetcher",
    "cache_key",
    "key_filter",
    "LazyLoader",
    "LazyProxy",
    "is_loaded",
    "is_proxy",
    "unwrap",
    "caller_directory",
    "default_roots",
    "detect_base",
]
