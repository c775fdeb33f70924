"""Shared fixtures for the lazyloader test suite."""

import sys
from types import SimpleNamespace

import pytest

from lazyloader.loading import LazyLoader
from lazyloader.registry import init_registry


FIXTURE_PACKAGE = "lzl_fixture_pkg"


class RecordingFetcher:
    """Fetcher serving canned resources and recording every call."""

    def __init__(self, resources):
        self.resources = resources
        self.calls = []
        self.evicted = []

    def fetch(self, modname):
        self.calls.append(modname)
        if modname not in self.resources:
            raise ModuleNotFoundError(f"No module named '{modname}'")
        return self.resources[modname]

    def evict(self, modname):
        self.evicted.append(modname)

    def count(self, modname):
        return self.calls.count(modname)


@pytest.fixture(autouse=True)
def registry():
    """Give every test a fresh process registry with no import roots."""
    return init_registry(roots=lambda: [])


@pytest.fixture
def resources():
    return {
        "postgres": SimpleNamespace(dialect="postgresql"),
        "db.postgres": SimpleNamespace(dialect="postgresql", connect=lambda: "connected"),
        "db.sqlite": SimpleNamespace(dialect="sqlite"),
        "ui.button": SimpleNamespace(label="OK"),
        "ui.dialog": SimpleNamespace(title="Confirm"),
    }


@pytest.fixture
def fetcher(resources):
    return RecordingFetcher(resources)


@pytest.fixture
def make_loader(fetcher):
    """Factory for loaders backed by the recording fetcher and no import roots."""

    def _make_loader(opts=None, roots=None):
        return LazyLoader(opts, fetcher=fetcher, roots=roots or (lambda: []))

    return _make_loader


@pytest.fixture
def module_tree(tmp_path, monkeypatch):
    """Create an importable package on sys.path.

    Layout:
        lzl_fixture_pkg/__init__.py      IMPORTS list shared by the modules below
        lzl_fixture_pkg/alpha.py         VALUE = 42
        lzl_fixture_pkg/broken.py        raises on import
        lzl_fixture_pkg/plugins/git.py   NAME = "git"
    """
    package = tmp_path / FIXTURE_PACKAGE
    plugins = package / "plugins"
    plugins.mkdir(parents=True)

    (package / "__init__.py").write_text("IMPORTS = []\n")
    (package / "alpha.py").write_text(
        f"import {FIXTURE_PACKAGE}\n"
        f"{FIXTURE_PACKAGE}.IMPORTS.append(__name__)\n"
        "VALUE = 42\n"
        "def greet(name):\n"
        "    return f'hello {name}'\n"
    )
    (package / "broken.py").write_text("raise RuntimeError('broken on purpose')\n")
    (plugins / "__init__.py").write_text("")
    (plugins / "git.py").write_text(
        f"import {FIXTURE_PACKAGE}\n"
        f"{FIXTURE_PACKAGE}.IMPORTS.append(__name__)\n"
        "NAME = 'git'\n"
    )

    monkeypatch.syspath_prepend(str(tmp_path))
    yield SimpleNamespace(root=tmp_path, package=package, plugins=plugins)

    for name in list(sys.modules):
        if name == FIXTURE_PACKAGE or name.startswith(f"{FIXTURE_PACKAGE}."):
            del sys.modules[name]
