import threading
import time

import pytest

from lazyloader.errors import InvalidArgumentError, LoadError
from lazyloader.loading import LazyLoader, LazyProxy, is_loaded


class TestInvoke:
    def test_eager_loader_resolves_prefix_and_caches_the_module(self, make_loader, fetcher, resources):
        db = make_loader({"prefix": "db.", "lazy": False})

        postgres = db("postgres")

        assert postgres is resources["db.postgres"]
        assert fetcher.count("db.postgres") == 1

        assert db("postgres") is postgres
        assert fetcher.count("db.postgres") == 1

    def test_lazy_loader_returns_a_proxy_without_fetching(self, make_loader, fetcher):
        db = make_loader({"prefix": "db."})

        proxy = db("postgres")

        assert isinstance(proxy, LazyProxy)
        assert fetcher.calls == []

    def test_per_call_options_decide_between_eager_and_lazy(self, make_loader, resources):
        db = make_loader({"prefix": "db."})

        assert db("sqlite", {"lazy": False}) is resources["db.sqlite"]
        assert isinstance(db("sqlite"), LazyProxy)

    def test_per_call_options_are_layered_over_the_instance_config(self, make_loader, resources):
        loader = make_loader({"prefix": "db.", "lazy": False})

        assert loader("button", {"prefix": "ui."}) is resources["ui.button"]

    def test_different_configs_for_the_same_name_use_separate_entries(self, make_loader, fetcher):
        loader = make_loader({"lazy": False})

        loader("postgres")
        loader("postgres", {"prefix": "db."})

        assert len(loader) == 2
        assert fetcher.calls == ["postgres", "db.postgres"]

    @pytest.mark.parametrize("modname", [None, "", 42, ["db"]])
    def test_an_error_is_raised_for_invalid_module_names(self, make_loader, fetcher, modname):
        loader = make_loader()

        with pytest.raises(InvalidArgumentError):
            loader(modname)

        assert len(loader) == 0
        assert fetcher.calls == []

    def test_an_error_is_raised_for_invalid_options(self, make_loader):
        loader = make_loader()

        with pytest.raises(InvalidArgumentError):
            loader("postgres", "lazy=false")

        assert len(loader) == 0


class TestLoad:
    def test_load_is_eager_even_for_lazy_loaders(self, make_loader, fetcher, resources):
        db = make_loader({"prefix": "db."})

        assert db.load("postgres") is resources["db.postgres"]
        assert fetcher.count("db.postgres") == 1

    def test_load_and_lazy_share_an_entry_for_the_same_config(self, make_loader, fetcher):
        db = make_loader({"prefix": "db."})

        proxy = db.lazy("postgres")
        db.load("postgres")

        assert is_loaded(proxy)
        assert proxy.dialect == "postgresql"
        assert fetcher.count("db.postgres") == 1

    def test_callbacks_run_around_the_fetch_in_order(self, make_loader, fetcher, mocker):
        events = []
        on_load = mocker.Mock(side_effect=lambda name: events.append(("on_load", name, list(fetcher.calls))))
        on_loaded = mocker.Mock(side_effect=lambda name: events.append(("on_loaded", name, list(fetcher.calls))))
        db = make_loader({"prefix": "db.", "on_load": on_load, "on_loaded": on_loaded})

        db.load("postgres")
        db.load("postgres")

        assert events == [
            ("on_load", "db.postgres", []),
            ("on_loaded", "db.postgres", ["db.postgres"]),
        ]

    def test_on_loaded_is_not_called_when_the_fetch_fails(self, make_loader, mocker):
        on_load = mocker.Mock()
        on_loaded = mocker.Mock()
        loader = make_loader({"on_load": on_load, "on_loaded": on_loaded})

        with pytest.raises(LoadError):
            loader.load("missing")

        on_load.assert_called_once_with("missing")
        on_loaded.assert_not_called()

    def test_load_error_carries_the_resolved_name_and_cause(self, make_loader):
        db = make_loader({"prefix": "db."})

        with pytest.raises(LoadError) as exc_info:
            db.load("oracle")

        assert exc_info.value.modname == "db.oracle"
        assert isinstance(exc_info.value.cause, ModuleNotFoundError)
        assert exc_info.value.__cause__ is exc_info.value.cause
        assert "db.oracle" in str(exc_info.value)

    def test_load_errors_are_import_errors(self, make_loader):
        with pytest.raises(ImportError):
            make_loader().load("missing")

    def test_failed_loads_are_not_retried_until_reset(self, make_loader, fetcher, resources):
        db = make_loader({"prefix": "db.", "lazy": False})

        with pytest.raises(LoadError):
            db("oracle")
        with pytest.raises(LoadError):
            db("oracle")
        assert fetcher.count("db.oracle") == 1

        db.reset("oracle")
        resources["db.oracle"] = object()

        assert db("oracle") is resources["db.oracle"]
        assert fetcher.count("db.oracle") == 2

    def test_resolved_name_is_fixed_when_the_entry_is_created(self, make_loader, fetcher):
        loader = make_loader({"prefix": "db."})
        loader.lazy("postgres")

        loader.set_prefix("ui.")
        loader.load("postgres", {"prefix": "db."})

        assert fetcher.calls == ["db.postgres"]

    def test_concurrent_first_loads_fetch_once(self, make_loader, fetcher, resources):
        def slow_fetch(modname):
            fetcher.calls.append(modname)
            time.sleep(0.05)
            return resources[modname]

        fetcher.fetch = slow_fetch
        db = make_loader({"prefix": "db.", "lazy": False})
        results = []

        threads = [threading.Thread(target=lambda: results.append(db("postgres"))) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert fetcher.count("db.postgres") == 1
        assert len(results) == 8
        assert all(result is resources["db.postgres"] for result in results)


class TestChainableSetters:
    def test_setters_return_the_loader(self, make_loader):
        loader = make_loader()

        assert loader.set_prefix("db.").set_lazy(False).set_detect_base(False) is loader
        assert loader.config.prefix == "db."
        assert loader.config.lazy is False

    def test_invalid_values_are_ignored(self, make_loader):
        loader = make_loader({"prefix": "db."})

        loader.set_prefix(42).set_on_load("not callable")

        assert loader.config.prefix == "db."
        assert loader.config.on_load is None

    def test_setting_an_unknown_field_raises(self, make_loader):
        with pytest.raises(InvalidArgumentError):
            make_loader().set("colour", "blue")

    def test_setters_affect_later_requests(self, make_loader, resources):
        loader = make_loader({"lazy": False}).set_prefix("ui.")

        assert loader("button") is resources["ui.button"]


class TestReset:
    def test_reset_forces_exactly_one_new_fetch(self, make_loader, fetcher):
        db = make_loader({"prefix": "db.", "lazy": False})
        db("postgres")

        db.reset("postgres")
        db("postgres")
        db("postgres")

        assert fetcher.count("db.postgres") == 2

    def test_reset_asks_the_fetcher_to_forget_the_module(self, make_loader, fetcher):
        db = make_loader({"prefix": "db.", "lazy": False})
        db("postgres")

        db.reset("postgres")

        assert fetcher.evicted == ["db.postgres"]

    def test_resetting_an_unloaded_entry_does_not_evict_from_the_fetcher(self, make_loader, fetcher):
        db = make_loader({"prefix": "db."})
        db("postgres")

        db.reset("postgres")

        assert fetcher.evicted == []
        assert len(db) == 0

    def test_resetting_an_unknown_name_is_a_no_op(self, make_loader):
        loader = make_loader()

        loader.reset("never-loaded")

        assert len(loader) == 0

    def test_reset_uses_the_options_to_find_the_entry(self, make_loader):
        loader = make_loader({"lazy": False})
        loader("postgres", {"prefix": "db."})

        loader.reset("postgres")
        assert len(loader) == 1

        loader.reset("postgres", {"prefix": "db."})
        assert len(loader) == 0

    def test_batch_reset_only_evicts_entries_matching_the_filter(self, make_loader, fetcher, resources):
        loader = make_loader({"lazy": False})
        loader("postgres", {"prefix": "db."})
        loader("sqlite", {"prefix": "db."})
        button = loader("button", {"prefix": "ui."})

        loader.reset(None, {"prefix": "db."})

        assert len(loader) == 1
        assert loader("button", {"prefix": "ui."}) is button
        assert fetcher.count("ui.button") == 1

        loader("postgres", {"prefix": "db."})
        assert fetcher.count("db.postgres") == 2

    def test_batch_reset_without_a_filter_evicts_everything(self, make_loader):
        loader = make_loader({"lazy": False})
        loader("postgres", {"prefix": "db."})
        loader.lazy("button", {"prefix": "ui."})

        loader.reset()

        assert len(loader) == 0

    def test_an_error_is_raised_for_invalid_reset_arguments(self, make_loader):
        loader = make_loader()

        with pytest.raises(InvalidArgumentError):
            loader.reset(42)
        with pytest.raises(InvalidArgumentError):
            loader.reset(None, "db.")


class TestReload:
    def test_reload_fetches_a_loaded_module_again(self, make_loader, fetcher, resources):
        db = make_loader({"prefix": "db.", "lazy": False})
        db("postgres")
        resources["db.postgres"] = object()

        reloaded = db.reload("postgres")

        assert reloaded is resources["db.postgres"]
        assert fetcher.count("db.postgres") == 2

    def test_reloading_a_name_that_was_never_loaded_requests_it(self, make_loader, resources):
        db = make_loader({"prefix": "db.", "lazy": False})

        assert db.reload("sqlite") is resources["db.sqlite"]

    def test_batch_reload_preserves_each_entrys_lazy_or_eager_mode(self, make_loader, fetcher):
        loader = make_loader({"detect_base": False})
        loader("postgres", {"prefix": "db.", "lazy": False})
        old_proxy = loader("button", {"prefix": "ui."})
        assert old_proxy.label == "OK"

        results = loader.reload()

        assert fetcher.count("db.postgres") == 2
        assert fetcher.count("ui.button") == 1

        new_proxy = loader("button", {"prefix": "ui."})
        assert new_proxy is not old_proxy
        assert not is_loaded(new_proxy)
        assert new_proxy in results.values()

    def test_batch_reload_reuses_the_stored_options_of_each_entry(self, make_loader, fetcher):
        loader = make_loader({"lazy": False})
        loader("postgres", {"prefix": "db."})
        loader("sqlite", {"prefix": "db."})
        loader("button", {"prefix": "ui."})

        loader.reload(None, {"prefix": "db."})

        assert fetcher.calls == [
            "db.postgres",
            "db.sqlite",
            "ui.button",
            "db.postgres",
            "db.sqlite",
        ]

    def test_batch_reload_reports_failures_after_reloading_everything(self, make_loader, fetcher, resources):
        loader = make_loader({"lazy": False, "prefix": "db."})
        loader("postgres")
        loader("sqlite")
        del resources["db.postgres"]

        with pytest.raises(LoadError):
            loader.reload()

        assert fetcher.count("db.sqlite") == 2
        assert len(loader) == 2


class TestIntrospection:
    def test_membership_uses_the_instance_config(self, make_loader):
        loader = make_loader({"prefix": "db.", "lazy": False})
        loader("postgres")

        assert "postgres" in loader
        assert "sqlite" not in loader

    def test_entries_describe_each_cached_module(self, make_loader, resources):
        loader = make_loader({"prefix": "db.", "detect_base": False, "lazy": False})
        loader("postgres")

        [(key, entry)] = loader.entries()

        assert key == "00||db.postgres"
        assert entry.name == "db.postgres"
        assert entry.origin_name == "postgres"
        assert entry.loaded is True
        assert entry.resource is resources["db.postgres"]

    def test_resolve_does_not_fetch_or_create_entries(self, make_loader, fetcher):
        loader = make_loader({"prefix": "db."})

        assert loader.resolve("postgres") == "db.postgres"
        assert fetcher.calls == []
        assert len(loader) == 0

    def test_plain_functions_can_be_used_as_fetchers(self):
        loader = LazyLoader({"lazy": False, "detect_base": False}, fetcher=str.upper)

        assert loader("postgres") == "POSTGRES"
