"""
Read-only lazy proxies.

A `LazyProxy` stands in for a module that has not been imported yet. The
first attribute read asks the owning loader to load the module, and every
attribute read afterwards is copied onto the proxy so later reads skip the
loader. Assigning or deleting attributes always fails, loaded or not.

The proxy keeps only a `ProxyHandle`: a weak reference to its loader plus the
cache key of its entry. Resetting the entry detaches the handle, and a
garbage-collected loader leaves the handle without an owner; both make the
proxy unusable with an explicit error instead of serving stale data.
"""

import weakref
from typing import TYPE_CHECKING, Any

from lazyloader.errors import InstanceDisposedError, StaleProxyError, ReadOnlyMutationError


if TYPE_CHECKING:
    from lazyloader.loading.loader import LazyLoader


class ProxyHandle:
    """Link from a proxy back to the cache entry it represents."""

    __slots__ = ("_owner", "modname", "cache_key", "attached")

    def __init__(self, owner: "LazyLoader", modname: str, cache_key: str):
        self._owner = weakref.ref(owner)
        self.modname = modname
        self.cache_key = cache_key
        self.attached = True

    def owner(self) -> "LazyLoader":
        loader = self._owner()
        if loader is None:
            raise InstanceDisposedError(
                f"The loader that created the proxy for '{self.modname}' has been disposed"
            )
        return loader

    def resolve(self) -> Any:
        """Load (if needed) and return the module behind the proxy."""
        if not self.attached:
            raise StaleProxyError(
                f"The proxy for '{self.modname}' was reset; request a new one from the loader"
            )
        return self.owner()._load_key(self.cache_key)

    def state(self) -> str:
        if not self.attached:
            return "detached"
        loader = self._owner()
        if loader is None:
            return "disposed"
        entry = loader._cache.get(self.cache_key)
        return "loaded" if entry is not None and entry.loaded else "unloaded"


# Names defined on the proxy class itself that must come from the module.
_FORWARDED = frozenset({"__doc__", "__module__"})


class LazyProxy:
    """Transparent, read-only stand-in for a lazily loaded module."""

    __slots__ = ("__handle", "__dict__", "__weakref__")

    def __init__(self, handle: ProxyHandle):
        object.__setattr__(self, "_LazyProxy__handle", handle)

    def __getattribute__(self, attr: str) -> Any:
        if attr in _FORWARDED:
            handle = object.__getattribute__(self, "_LazyProxy__handle")
            return getattr(handle.resolve(), attr)
        return object.__getattribute__(self, attr)

    def __getattr__(self, attr: str) -> Any:
        value = getattr(self.__handle.resolve(), attr)
        object.__setattr__(self, attr, value)
        return value

    def __setattr__(self, attr: str, value: Any) -> None:
        raise ReadOnlyMutationError(self.__handle.modname, attr)

    def __delattr__(self, attr: str) -> None:
        raise ReadOnlyMutationError(self.__handle.modname, attr)

    def __dir__(self) -> list[str]:
        return dir(self.__handle.resolve())

    def __repr__(self) -> str:
        handle = self.__handle
        return f"<LazyProxy '{handle.modname}' ({handle.state()})>"


def _handle(proxy: LazyProxy) -> ProxyHandle:
    if not isinstance(proxy, LazyProxy):
        raise TypeError(f"Expected a LazyProxy, got {type(proxy).__name__}")
    return object.__getattribute__(proxy, "_LazyProxy__handle")


def detach(proxy: LazyProxy) -> None:
    """Cut a proxy off from its entry and drop its memoized attributes."""
    _handle(proxy).attached = False
    object.__getattribute__(proxy, "__dict__").clear()


def is_proxy(obj: Any) -> bool:
    return isinstance(obj, LazyProxy)


def is_loaded(proxy: LazyProxy) -> bool:
    """Whether the module behind `proxy` has been fetched (successfully or not)."""
    return _handle(proxy).state() == "loaded"


def unwrap(proxy: LazyProxy) -> Any:
    """Force the load and return the real module behind `proxy`."""
    return _handle(proxy).resolve()
