"""Tests for Registry.register -- validation, ordering, and replacement policy."""

from __future__ import annotations

from typing import Any

import pytest

from extpoint.exceptions import ValidationError
from extpoint.models import GlobalConfig, PluginBundle, Position
from extpoint.registry import Registry, RegistryState


def _noop_run(acc: Any, data: Any, shared: Any, ctx: Any) -> Any:
    return acc


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestRegisterValidation:
    """Malformed bundles are rejected before they touch the registry."""

    def test_missing_run_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": "test"})
        assert excinfo.value.field == "run"
        assert excinfo.value.actual == "missing"
        assert not registry.has("test")

    def test_empty_run_list_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": "test", "run": []})
        assert excinfo.value.field == "run"

    def test_run_none_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError):
            registry.register({"trigger": "test", "run": None})

    def test_unknown_position_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": "test", "position": "sideways", "run": _noop_run})
        assert excinfo.value.field == "position"
        assert "sideways" in str(excinfo.value)
        assert not registry.has("test")

    def test_non_mapping_bundle_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register("not a bundle")
        assert excinfo.value.actual == "str"
        assert excinfo.value.expected == "mapping"

    def test_non_string_trigger_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": 42, "run": _noop_run})
        assert excinfo.value.field == "trigger"
        assert excinfo.value.actual == "int"
        assert excinfo.value.expected == "string"

    def test_missing_key_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"run": _noop_run})
        assert excinfo.value.field == "trigger"
        assert len(registry) == 0

    def test_non_string_version_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": "test", "version": 1.0, "run": _noop_run})
        assert excinfo.value.field == "version"
        assert excinfo.value.actual == "float"

    def test_non_bool_replace_previous_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"name": "test", "replacePrevious": "yes", "run": _noop_run})
        assert excinfo.value.field == "replacePrevious"

    def test_non_callable_run_element_reports_index(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": "test", "run": [_noop_run, "oops"]})
        assert excinfo.value.field == "run[1]"
        assert excinfo.value.actual == "str"
        assert excinfo.value.expected == "callable"

    def test_non_callable_setup_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": "test", "setup": 3, "run": _noop_run})
        assert excinfo.value.field == "setup[0]"

    def test_non_callable_teardown_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError) as excinfo:
            registry.register({"trigger": "test", "teardown": [None], "run": _noop_run})
        assert excinfo.value.field == "teardown[0]"

    def test_nullish_optional_fields_accepted(self, registry: Registry) -> None:
        registry.register({
            "name": None,
            "desc": None,
            "version": None,
            "trigger": "test",
            "position": None,
            "setup": None,
            "run": _noop_run,
            "teardown": None,
        })
        assert registry.has("test")

    def test_failed_bundle_in_sequence_keeps_earlier_ones(self, registry: Registry) -> None:
        with pytest.raises(ValidationError):
            registry.register([
                {"trigger": "first", "run": _noop_run},
                {"trigger": "second"},
                {"trigger": "third", "run": _noop_run},
            ])
        assert registry.has("first")
        assert not registry.has("second")
        assert not registry.has("third")

    def test_failed_bundle_leaves_existing_entry_untouched(self, registry: Registry) -> None:
        registry.register({"name": "good", "trigger": "test", "run": _noop_run})
        with pytest.raises(ValidationError):
            registry.register({"trigger": "test", "position": "clear", "run": "nope"})
        assert [i.name for i in registry.describe("test")] == ["good"]

    def test_validation_error_is_extpoint_error(self, registry: Registry) -> None:
        from extpoint.exceptions import ExtpointError
        from extpoint.exit_codes import EXIT_VALIDATION_ERROR

        with pytest.raises(ExtpointError) as excinfo:
            registry.register({"trigger": "test"})
        assert excinfo.value.exit_code == EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# has() and lookup
# ---------------------------------------------------------------------------


class TestHas:
    def test_has_true_before_setup(self, registry: Registry) -> None:
        registry.register({"trigger": "test", "run": _noop_run})
        assert registry.has("test")
        assert registry.state == RegistryState.CONSTRUCTED

    def test_has_false_for_unknown(self, registry: Registry) -> None:
        assert not registry.has("test")

    def test_name_is_key_without_trigger(self, registry: Registry) -> None:
        registry.register({"name": "foo", "run": _noop_run})
        assert registry.has("foo")

    def test_trigger_wins_over_name(self, registry: Registry) -> None:
        registry.register({"name": "foo", "trigger": "bar", "run": _noop_run})
        assert registry.has("bar")
        assert not registry.has("foo")

    def test_container_protocol(self, registry: Registry) -> None:
        registry.register([
            {"trigger": "a", "run": _noop_run},
            {"trigger": "b", "run": _noop_run},
            {"trigger": "a", "run": _noop_run},
        ])
        assert "a" in registry
        assert len(registry) == 2
        assert list(registry) == ["a", "b"]
        assert registry.keys() == ["a", "b"]

    def test_accepts_plugin_bundle_instances(self, registry: Registry) -> None:
        registry.register(PluginBundle(trigger="test", run=_noop_run))
        assert registry.has("test")


# ---------------------------------------------------------------------------
# Ordering policy (inspected through describe())
# ---------------------------------------------------------------------------


def _names(registry: Registry, key: str = "test") -> list[str | None]:
    return [info.name for info in registry.describe(key)]


class TestOrderingPolicy:
    def test_after_appends_in_registration_order(self, registry: Registry) -> None:
        for label in ["b1", "b2", "b3"]:
            registry.register({"name": label, "trigger": "test", "run": _noop_run})
        assert _names(registry) == ["b1", "b2", "b3"]

    def test_before_prepends(self, registry: Registry) -> None:
        registry.register({"name": "b1", "trigger": "test", "run": _noop_run})
        registry.register({"name": "b2", "trigger": "test", "position": "before", "run": _noop_run})
        registry.register({"name": "b3", "trigger": "test", "position": "after", "run": _noop_run})
        assert _names(registry) == ["b2", "b1", "b3"]

    def test_clear_discards_previous_and_keeps_itself(self, registry: Registry) -> None:
        registry.register({"name": "b1", "trigger": "test", "run": _noop_run})
        registry.register({"name": "b2", "trigger": "test", "position": "before", "run": _noop_run})
        registry.register({"name": "b3", "trigger": "test", "position": "clear", "run": _noop_run})
        registry.register({"name": "b4", "trigger": "test", "run": _noop_run})
        assert _names(registry) == ["b3", "b4"]

    def test_clear_only_affects_its_key(self, registry: Registry) -> None:
        registry.register({"name": "other", "trigger": "other", "run": _noop_run})
        registry.register({"name": "b1", "trigger": "test", "run": _noop_run})
        registry.register({"name": "b2", "trigger": "test", "position": Position.CLEAR, "run": _noop_run})
        assert _names(registry, "other") == ["other"]
        assert _names(registry) == ["b2"]

    def test_clear_keeps_key_order(self, registry: Registry) -> None:
        registry.register({"trigger": "a", "run": _noop_run})
        registry.register({"trigger": "b", "run": _noop_run})
        registry.register({"trigger": "a", "position": "clear", "run": _noop_run})
        assert registry.keys() == ["a", "b"]

    def test_replace_previous_discards_earlier_bundles(self, registry: Registry) -> None:
        registry.register({"name": "save", "run": _noop_run, "version": "1"})
        registry.register({"name": "save", "replacePrevious": True, "run": _noop_run, "version": "2"})
        registry.register({"name": "save", "replace_previous": False, "run": _noop_run, "version": "3"})
        assert [i.version for i in registry.describe("save")] == ["2", "3"]

    def test_configured_default_position(self, seed: dict[str, Any]) -> None:
        registry = Registry(seed, config=GlobalConfig(default_position=Position.BEFORE))
        registry.register({"name": "b1", "trigger": "test", "run": _noop_run})
        registry.register({"name": "b2", "trigger": "test", "run": _noop_run})
        registry.register({"name": "b3", "trigger": "test", "position": "after", "run": _noop_run})
        assert _names(registry) == ["b2", "b1", "b3"]

    def test_describe_reports_counts_and_position(self, registry: Registry) -> None:
        registry.register({
            "name": "multi",
            "desc": "two runs",
            "trigger": "test",
            "position": "before",
            "setup": [lambda s, c: None],
            "run": [_noop_run, _noop_run],
        })
        (info,) = registry.describe("test")
        assert info.key == "test"
        assert info.description == "two runs"
        assert info.position == Position.BEFORE
        assert (info.setup, info.run, info.teardown) == (1, 2, 0)

    def test_register_after_setup_logs_warning(
        self, registry: Registry, caplog: pytest.LogCaptureFixture
    ) -> None:
        import asyncio

        registry.register({"trigger": "test", "run": _noop_run})
        asyncio.run(registry.setup())
        with caplog.at_level("WARNING", logger="extpoint.registry"):
            registry.register({"name": "late", "trigger": "test", "run": _noop_run})
        assert "after setup" in caplog.text

    def test_register_after_teardown_logs_teardown_warning(
        self, registry: Registry, caplog: pytest.LogCaptureFixture
    ) -> None:
        import asyncio

        registry.register({"trigger": "test", "run": _noop_run})
        asyncio.run(registry.setup())
        asyncio.run(registry.teardown())
        with caplog.at_level("WARNING", logger="extpoint.registry"):
            registry.register({"name": "late", "trigger": "test", "run": _noop_run})
        assert "after teardown" in caplog.text
        assert "setup callbacks" not in caplog.text


# ---------------------------------------------------------------------------
# Registered bundles are private copies
# ---------------------------------------------------------------------------


class TestBundleInstances:
    def test_mutated_instance_rejected(self, registry: Registry) -> None:
        bundle = PluginBundle(trigger="test", run=_noop_run)
        bundle.run = [42]
        with pytest.raises(ValidationError):
            registry.register(bundle)
        assert not registry.has("test")

    def test_constructed_instance_with_empty_run_rejected(self, registry: Registry) -> None:
        with pytest.raises(ValidationError):
            registry.register(PluginBundle.model_construct(trigger="test", run=[]))
        assert not registry.has("test")

    def test_later_mutation_does_not_reach_registry(self, registry: Registry) -> None:
        bundle = PluginBundle(name="orig", trigger="test", run=_noop_run)
        registry.register(bundle)
        bundle.run.append(_noop_run)
        bundle.name = "changed"
        (info,) = registry.describe("test")
        assert info.name == "orig"
        assert info.run == 1
