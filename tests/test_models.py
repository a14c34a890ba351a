"""Tests for extpoint.models -- bundle normalisation and error translation."""

from __future__ import annotations

from typing import Any

import pytest

from extpoint.exceptions import ValidationError
from extpoint.models import BundleInfo, PluginBundle, Position, validate_bundle


def _run(acc: Any, data: Any, shared: Any, ctx: Any) -> Any:
    return acc


class TestPluginBundle:
    def test_single_callable_normalised_to_list(self) -> None:
        bundle = PluginBundle(trigger="t", run=_run)
        assert bundle.run == [_run]
        assert bundle.setup == []
        assert bundle.teardown == []

    def test_tuple_normalised_to_list(self) -> None:
        bundle = PluginBundle(trigger="t", run=(_run, _run))
        assert bundle.run == [_run, _run]

    def test_aliases(self) -> None:
        bundle = PluginBundle.model_validate({
            "name": "n", "desc": "d", "replacePrevious": True, "run": _run,
        })
        assert bundle.description == "d"
        assert bundle.replace_previous is True

    def test_key_prefers_trigger(self) -> None:
        assert PluginBundle(name="n", trigger="t", run=_run).key == "t"
        assert PluginBundle(name="n", run=_run).key == "n"
        assert PluginBundle(run=_run).key is None

    def test_extra_fields_preserved(self) -> None:
        bundle = PluginBundle.model_validate({"trigger": "t", "run": _run, "owner": "team-a"})
        assert bundle.model_extra == {"owner": "team-a"}

    def test_position_from_string(self) -> None:
        assert PluginBundle(trigger="t", position="before", run=_run).position == Position.BEFORE


class TestValidateBundle:
    def test_existing_bundle_is_copied(self) -> None:
        bundle = PluginBundle(name="n", desc="d", trigger="t", run=_run, owner="team-a")
        validated = validate_bundle(bundle)
        assert validated is not bundle
        assert validated.run is not bundle.run
        assert (validated.name, validated.description, validated.key) == ("n", "d", "t")
        assert validated.run == [_run]
        assert validated.model_extra == {"owner": "team-a"}

    def test_mutated_bundle_is_revalidated(self) -> None:
        bundle = PluginBundle(trigger="t", run=_run)
        bundle.run = [42]
        with pytest.raises(ValidationError) as excinfo:
            validate_bundle(bundle)
        assert excinfo.value.field == "run[0]"
        assert excinfo.value.actual == "int"

    def test_constructed_bundle_is_revalidated(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_bundle(PluginBundle.model_construct(trigger="t", run=[]))
        assert excinfo.value.field == "run"
        assert excinfo.value.actual == "empty list"

    def test_message_format(self) -> None:
        with pytest.raises(ValidationError, match=r"^Plugin\.trigger is int not string\.$"):
            validate_bundle({"trigger": 1, "run": _run})

    def test_empty_run_message(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_bundle({"trigger": "t", "run": []})
        assert excinfo.value.actual == "empty list"
        assert excinfo.value.expected == "at least one callable"

    def test_position_reports_input(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_bundle({"trigger": "t", "position": "middle", "run": _run})
        assert excinfo.value.actual == "'middle'"
        assert excinfo.value.expected == "before/after/clear"

    def test_list_is_not_a_bundle(self) -> None:
        with pytest.raises(ValidationError, match="Plugin is list not mapping"):
            validate_bundle([{"trigger": "t", "run": _run}])

    def test_no_key_rejected_for_model_instance(self) -> None:
        with pytest.raises(ValidationError) as excinfo:
            validate_bundle(PluginBundle(run=_run))
        assert excinfo.value.field == "trigger"


class TestBundleInfo:
    def test_from_bundle(self) -> None:
        bundle = PluginBundle(
            name="audit", desc="checks", version="2.0", trigger="save",
            setup=[_run, _run], run=_run,
        )
        info = BundleInfo.from_bundle(bundle, Position.CLEAR)
        assert info.model_dump(mode="json") == {
            "key": "save",
            "name": "audit",
            "description": "checks",
            "version": "2.0",
            "position": "clear",
            "setup": 2,
            "run": 1,
            "teardown": 0,
        }
