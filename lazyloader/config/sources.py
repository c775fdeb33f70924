"""Read loader options from YAML files and pyproject.toml.

Options found in files go through the same validators as options passed in
code. Callback fields are given as "package.module:function" references and
are imported here; references that cannot be imported are dropped.
"""

import importlib
import logging
from pathlib import Path
from typing import Any

import tomli
import yaml

from lazyloader.errors import ConfigFileError


logger = logging.getLogger(__name__)

SECTION = "lazyloader"
CALLBACK_FIELDS = ("on_load", "on_loaded")
MAX_SEARCH_DEPTH = 5


def resolve_callable(reference: str) -> Any:
    """Import the object named by a "package.module:attribute" reference.

    Returns:
        The referenced object, or None if it cannot be imported.
    """
    module_name, sep, attr_path = reference.partition(":")
    if not sep or not module_name or not attr_path:
        logger.warning(f"Callback reference '{reference}' must look like 'module:function'")
        return None

    try:
        obj = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            obj = getattr(obj, attr)
    except (ImportError, AttributeError) as e:
        logger.warning(f"Could not resolve callback '{reference}': {e}")
        return None
    return obj


def _normalize_options(data: Any, origin: Path) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Expected a mapping of loader options in {origin}, got {type(data).__name__}"
        )

    if isinstance(data.get(SECTION), dict):
        data = data[SECTION]

    options = dict(data)
    for field in CALLBACK_FIELDS:
        if isinstance(options.get(field), str):
            options[field] = resolve_callable(options[field])
    return options


def read_yaml(path: str | Path) -> dict[str, Any]:
    """Read loader options from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"lazyloader config file not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in {path}: {e}") from e

    return _normalize_options(data, path)


def find_pyproject(start: str | Path | None = None) -> Path | None:
    """Search `start` (default: cwd) and its parents for pyproject.toml."""
    current_path = Path(start) if start is not None else Path.cwd()

    for _ in range(MAX_SEARCH_DEPTH):
        candidate = current_path / "pyproject.toml"
        if candidate.exists():
            return candidate
        if current_path.parent == current_path:
            break
        current_path = current_path.parent

    return None


def read_pyproject(start: str | Path | None = None) -> dict[str, Any]:
    """Read the `[tool.lazyloader]` table of the nearest pyproject.toml.

    Returns an empty dict when there is no pyproject.toml or no such table.
    """
    pyproject_path = find_pyproject(start)
    if pyproject_path is None:
        return {}

    try:
        with open(pyproject_path, "rb") as f:
            config = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ConfigFileError(f"Invalid TOML in {pyproject_path}: {e}") from e

    section = config.get("tool", {}).get(SECTION)
    if section is None:
        return {}
    logger.debug(f"Read loader defaults from {pyproject_path}")
    return _normalize_options(section, pyproject_path)
