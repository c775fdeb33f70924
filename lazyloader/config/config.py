"""Configuration model for loader instances.

A `LoaderConfig` is an immutable snapshot. Layering (process defaults, then
instance options, then per-call overrides) is done with `merge`, which only
applies fields that are defined and pass their validator. Invalid values are
dropped silently and the previous value is kept.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable

from lazyloader.config.sources import read_yaml
from lazyloader.errors import InvalidArgumentError


logger = logging.getLogger(__name__)

Validator = Callable[[Any], Any]
Callback = Callable[[str], None]


def normalize_path(path: str) -> str:
    """Normalize a filesystem path to forward slashes, keeping '' as ''."""
    if path == "":
        return ""
    return os.path.normpath(os.path.expanduser(path)).replace("\\", "/")


def _validate_bool(value: Any) -> bool:
    return bool(value)


def _validate_string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _validate_path(value: Any) -> str | None:
    if isinstance(value, Path):
        value = str(value)
    return normalize_path(value) if isinstance(value, str) else None


def _validate_callback(value: Any) -> Callback | None:
    return value if callable(value) else None


VALIDATORS: dict[str, Validator] = {
    "lazy": _validate_bool,
    "detect_base": _validate_bool,
    "prefix": _validate_string,
    "base_dir": _validate_path,
    "on_load": _validate_callback,
    "on_loaded": _validate_callback,
}

FIELDS = tuple(VALIDATORS)


def validate(field: str, value: Any) -> Any:
    """Run the validator for `field`.

    Returns:
        The coerced value, or None when the value is undefined, invalid, or the
        field is unknown.
    """
    validator = VALIDATORS.get(field)
    if validator is None or value is None:
        return None
    return validator(value)


@dataclass(frozen=True)
class LoaderConfig:
    """Options controlling how a loader resolves and fetches modules.

    Attributes:
        lazy: Return read-only proxies that import on first attribute access.
        detect_base: Derive a module prefix from the caller's location on sys.path.
        prefix: Prepended to every requested module name.
        base_dir: Directory used for base detection, relative to the caller
            unless absolute.
        on_load: Called with the resolved module name right before importing.
        on_loaded: Called with the resolved module name after a successful import.
    """

    lazy: bool = True
    detect_base: bool = True
    prefix: str = ""
    base_dir: str = ""
    on_load: Callback | None = None
    on_loaded: Callback | None = None

    def merge(self, override: "Mapping[str, Any] | LoaderConfig | None") -> "LoaderConfig":
        """Return a new config with the valid fields of `override` applied."""
        return merge(self, override)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "LoaderConfig":
        """Create a config from the built-in defaults and `options`."""
        return merge(cls(), options)

    @classmethod
    def from_yaml(cls, path: str | Path, base: "LoaderConfig | None" = None) -> "LoaderConfig":
        """Create a config from a YAML file.

        The file holds the options either at the top level or under a
        `lazyloader:` key. Callbacks are given as "package.module:function".
        """
        return merge(base or cls(), read_yaml(path))


def check_options(opts: Any) -> "Mapping[str, Any] | LoaderConfig | None":
    """Reject options arguments that are neither a mapping nor a LoaderConfig."""
    if opts is None or isinstance(opts, (Mapping, LoaderConfig)):
        return opts
    raise InvalidArgumentError(
        f"Options must be a mapping or LoaderConfig, got {type(opts).__name__}"
    )


def _defined_items(override: "Mapping[str, Any] | LoaderConfig"):
    if isinstance(override, LoaderConfig):
        return [(field, getattr(override, field)) for field in FIELDS]
    return override.items()


def merge(
    base: LoaderConfig, override: "Mapping[str, Any] | LoaderConfig | None"
) -> LoaderConfig:
    """Right-biased merge of `override` onto `base`.

    Unknown fields and None values are skipped; values rejected by their
    validator leave the base value in place.
    """
    if override is None:
        return base
    check_options(override)

    changes = {}
    for field, raw in _defined_items(override):
        if field not in VALIDATORS:
            logger.debug(f"Ignoring unknown config field '{field}'")
            continue
        if raw is None:
            continue
        value = VALIDATORS[field](raw)
        if value is None:
            logger.debug(f"Discarding invalid value {raw!r} for config field '{field}'")
            continue
        changes[field] = value

    return replace(base, **changes) if changes else base
