"""
Fetchers perform the actual module import for a loader.

A fetcher has two methods: `fetch(name)` returns the resource for a fully
resolved name or raises, and `evict(name)` forgets anything the fetcher itself
cached so the next fetch starts from scratch.
"""

import importlib
import logging
import sys
from typing import Any, Callable, Protocol, runtime_checkable

from lazyloader.errors import InvalidArgumentError


logger = logging.getLogger(__name__)


@runtime_checkable
class Fetcher(Protocol):
    def fetch(self, modname: str) -> Any: ...

    def evict(self, modname: str) -> None: ...


class ImportFetcher:
    """Fetch modules with importlib; evict them from sys.modules."""

    def fetch(self, modname: str) -> Any:
        return importlib.import_module(modname)

    def evict(self, modname: str) -> None:
        if sys.modules.pop(modname, None) is not None:
            logger.debug(f"Removed '{modname}' from sys.modules")
        importlib.invalidate_caches()


class CallableFetcher:
    """Adapt a plain `name -> resource` function to the Fetcher protocol."""

    def __init__(self, fn: Callable[[str], Any]):
        self.fn = fn

    def fetch(self, modname: str) -> Any:
        return self.fn(modname)

    def evict(self, modname: str) -> None:
        pass


def as_fetcher(obj: Any = None) -> Fetcher:
    """Coerce None, a Fetcher, or a callable into a Fetcher."""
    if obj is None:
        return ImportFetcher()
    if isinstance(obj, Fetcher):
        return obj
    if callable(obj):
        return CallableFetcher(obj)
    raise InvalidArgumentError(
        f"Fetcher must provide fetch()/evict() or be callable, got {type(obj).__name__}"
    )
