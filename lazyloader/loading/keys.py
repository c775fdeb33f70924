"""Cache key derivation.

A key encodes, in this order, the lazy flag, the detect_base flag, the base
directory, and the prefixed module name:

    "10|src/plugins|db.postgres"

The order matters: a key built from a partial config and an empty module
name is a string prefix of every full key sharing those settings, which is
what batch reset and reload match against. Separators and backslashes in
the base directory are backslash-escaped, so everything after the second
unescaped separator is the prefixed name.
"""

from collections.abc import Mapping
from typing import Any

from lazyloader.config import LoaderConfig, merge


KEY_SEPARATOR = "|"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace(KEY_SEPARATOR, "\\" + KEY_SEPARATOR)


def cache_key(config: LoaderConfig, modname: str) -> str:
    """Return the cache key for `modname` loaded with `config`."""
    return (
        f"{int(config.lazy)}{int(config.detect_base)}"
        f"{KEY_SEPARATOR}{_escape(config.base_dir)}"
        f"{KEY_SEPARATOR}{config.prefix}{modname}"
    )


def key_filter(
    config: LoaderConfig, opts: "Mapping[str, Any] | LoaderConfig | None"
) -> str | None:
    """Return the key prefix selecting entries that match `opts`.

    `opts` is layered over `config` first. None means "match everything".
    """
    if opts is None:
        return None
    return cache_key(merge(config, opts), "")
