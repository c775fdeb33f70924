"""
Base-path detection for loader instances.

Turns the directory a loader was created from (plus its configured base_dir)
into a dotted module prefix by matching it against the import roots on
sys.path. For a loader created in `<root>/plugins/core/init.py` with root
`<root>` on sys.path, the detected base is "plugins.core.".
"""

import inspect
import logging
import os
import re
import sys
from collections.abc import Callable, Iterable

from lazyloader.config import LoaderConfig, normalize_path


logger = logging.getLogger(__name__)

NAMESPACE_SEPARATOR = "."

RootsProvider = Callable[[], Iterable[str]]

_ABSOLUTE_RE = re.compile(r"^([A-Za-z]:)?/")
_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.realpath(__file__)))


def default_roots() -> list[str]:
    """List the import roots on sys.path that are existing directories."""
    roots = []
    for entry in sys.path:
        path = os.path.abspath(entry or os.getcwd())
        if os.path.isdir(path):
            roots.append(normalize_path(path))
    return roots


def _is_internal(filename: str) -> bool:
    return os.path.realpath(filename).startswith(_PACKAGE_DIR + os.sep)


def caller_directory(depth: int = 1) -> str:
    """Return the directory of the first calling file outside this package.

    Args:
        depth: Number of frames to skip before looking for an external caller.

    Returns:
        Normalized absolute directory, or the current working directory when
        the caller is not backed by a file (REPL, exec'd strings, frozen code).
    """
    frame = inspect.currentframe()
    try:
        for _ in range(depth):
            if frame is None:
                break
            frame = frame.f_back
        while frame is not None and _is_internal(frame.f_code.co_filename):
            frame = frame.f_back
        filename = frame.f_code.co_filename if frame is not None else None
    finally:
        del frame

    if not filename or filename.startswith("<") or not os.path.exists(filename):
        return normalize_path(os.getcwd())
    return normalize_path(os.path.dirname(os.path.realpath(filename)))


def _relative_to_root(target: str, roots: Iterable[str]) -> str | None:
    # First root that contains target wins, in iteration order.
    for root in roots:
        root = normalize_path(root)
        if not root:
            continue
        if len(root) > 1:
            root = root.rstrip("/")
        if target == root:
            return ""
        boundary = root if root.endswith("/") else root + "/"
        if target.startswith(boundary):
            return target[len(boundary) :]
    return None


def detect_base(caller_dir: str | None, config: LoaderConfig, roots: Iterable[str]) -> str:
    """Detect the module prefix for `config` relative to `caller_dir`.

    Args:
        caller_dir: Directory the loader was created from; the current working
            directory is used when unknown.
        config: Effective config; only `base_dir` is consulted.
        roots: Candidate import roots, in priority order.

    Returns:
        A dotted prefix ending in "." (e.g. "plugins.core."), or "" when no
        root contains the target directory.
    """
    base_dir = config.base_dir
    if _ABSOLUTE_RE.match(base_dir):
        target = base_dir
    else:
        target = normalize_path(os.path.join(caller_dir or os.getcwd(), base_dir))

    relative = _relative_to_root(target, roots)
    if relative is None:
        logger.debug(f"No import root contains '{target}', using empty base")
        return ""

    base = relative.replace("/", NAMESPACE_SEPARATOR)
    return base + NAMESPACE_SEPARATOR if base else ""
