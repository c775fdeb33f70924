"""Loader configuration: the options model and its file sources."""

from lazyloader.config.config import (
    FIELDS,
    VALIDATORS,
    LoaderConfig,
    check_options,
    merge,
    normalize_path,
    validate,
)
from lazyloader.config.sources import read_pyproject, read_yaml, resolve_callable


__all__ = [
    "FIELDS",
    "VALIDATORS",
    "LoaderConfig",
    "check_options",
    "merge",
    "normalize_path",
    "validate",
    "read_pyproject",
    "read_yaml",
    "resolve_callable",
]
