"""Canonical Pydantic models shared across all extpoint modules.

The models fall into two groups:

**Plugin models** -- the shape of a registration and its read-only summary:
    :class:`Position`, :class:`PluginBundle` and :class:`BundleInfo`.
    :func:`validate_bundle` is the single boundary through which raw
    registration input becomes a :class:`PluginBundle`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig`, :class:`PluginsConfig` and :class:`GlobalConfig`.

All models use Pydantic v2. :class:`PluginBundle` uses ``extra="allow"`` so
that plugin authors can attach their own metadata, preserved in
``model_extra``.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from typing import Any, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from extpoint.exceptions import ValidationError

Callback = Callable[..., Any]
"""A setup, run or teardown callable. May be a plain function or a coroutine function."""


# --- Plugin models ---


class Position(str, enum.Enum):
    """Where a bundle's callbacks land relative to those already registered for its key."""

    BEFORE = "before"
    AFTER = "after"
    CLEAR = "clear"


class PluginBundle(BaseModel):
    """One registration's contributed callbacks for one extension point.

    Each phase accepts a single callable or a sequence of callables; both
    forms are normalised to a list. ``run`` is required and must hold at
    least one callable.

    The dispatch key is :attr:`trigger` when set, otherwise :attr:`name`.
    This lets the same model serve both registration styles::

        # trigger-keyed, positional ordering
        PluginBundle(name="audit", trigger="save", position="before", run=check)

        # name-keyed, boolean replacement
        PluginBundle(name="save", replace_previous=True, run=[check, write])

    Callback signatures:
        setup / teardown: ``(shared_context, phase_context)``
        run: ``(accumulator, data, shared_context, phase_context)``
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: Optional[StrictStr] = Field(default=None, description="Display name")
    description: Optional[StrictStr] = Field(default=None, alias="desc")
    version: Optional[StrictStr] = None
    trigger: Optional[StrictStr] = Field(
        default=None, description="Extension-point key; falls back to name"
    )
    position: Optional[Position] = Field(
        default=None, description="before, after or clear; None uses the registry default"
    )
    replace_previous: Optional[StrictBool] = Field(default=None, alias="replacePrevious")
    setup: list[Callback] = Field(default_factory=list)
    run: list[Callback] = Field(min_length=1)
    teardown: list[Callback] = Field(default_factory=list)

    @field_validator("setup", "run", "teardown", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        return [value]

    @property
    def key(self) -> Optional[str]:
        """The extension-point key this bundle registers under."""
        return self.trigger if self.trigger is not None else self.name


class BundleInfo(BaseModel):
    """Read-only summary of a registered bundle, as listed by the CLI."""

    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    position: Position = Position.AFTER
    setup: int = 0
    run: int = 0
    teardown: int = 0

    @classmethod
    def from_bundle(cls, bundle: PluginBundle, position: Position) -> BundleInfo:
        return cls(
            key=bundle.key or "",
            name=bundle.name,
            description=bundle.description,
            version=bundle.version,
            position=position,
            setup=len(bundle.setup),
            run=len(bundle.run),
            teardown=len(bundle.teardown),
        )


# --- Bundle validation ---

_EXPECTED = {
    "name": "string",
    "desc": "string",
    "description": "string",
    "version": "string",
    "trigger": "string",
    "position": "before/after/clear",
    "replacePrevious": "boolean",
    "replace_previous": "boolean",
    "setup": "callable",
    "run": "callable",
    "teardown": "callable",
}


def _format_loc(loc: tuple[Any, ...]) -> str:
    """Render a pydantic error location as ``run[1]``-style text."""
    text = ""
    for part in loc:
        if isinstance(part, int):
            text += f"[{part}]"
        else:
            text += f".{part}" if text else str(part)
    return text


def _translate(exc: pydantic.ValidationError) -> ValidationError:
    """Convert the first pydantic error into an extpoint :class:`ValidationError`."""
    err = exc.errors()[0]
    loc = tuple(err["loc"])
    field = _format_loc(loc) or None
    head = str(loc[0]) if loc else ""
    expected = _EXPECTED.get(head, "valid value")
    if err["type"] == "missing":
        actual = "missing"
    elif err["type"] == "too_short":
        actual = "empty list"
        expected = "at least one callable"
    elif head == "position":
        actual = repr(err.get("input"))
    else:
        actual = type(err.get("input")).__name__
    return ValidationError(
        f"Plugin.{field} is {actual} not {expected}.",
        field=field,
        actual=actual,
        expected=expected,
    )


def validate_bundle(raw: Any) -> PluginBundle:
    """Validate raw registration input and return a :class:`PluginBundle`.

    Args:
        raw: A mapping of bundle fields or an existing :class:`PluginBundle`.

    Returns:
        A newly validated bundle, never *raw* itself.

    Raises:
        ValidationError: If *raw* is not a mapping, a field has the wrong
            type, ``run`` is missing or empty, or no string key is given.
    """
    if isinstance(raw, (PluginBundle, Mapping)):
        # Instances are re-validated into a fresh copy; model_construct and
        # attribute assignment bypass validation.
        try:
            bundle = PluginBundle.model_validate(dict(raw))
        except pydantic.ValidationError as exc:
            raise _translate(exc) from None
    else:
        actual = type(raw).__name__
        raise ValidationError(
            f"Plugin is {actual} not mapping.",
            actual=actual,
            expected="mapping",
        )

    if bundle.key is None:
        raise ValidationError(
            "Plugin.trigger is NoneType not string.",
            field="trigger",
            actual="NoneType",
            expected="string",
        )
    return bundle


# --- Configuration models ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class PluginsConfig(BaseModel):
    """Explicit entry-point allow/deny lists stored in :class:`GlobalConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/extpoint/config.json``.

    Loaded and saved by :func:`~extpoint.config.load_global_config` and
    :func:`~extpoint.config.save_global_config`. See
    :func:`~extpoint.config.resolve_config` for the full precedence chain.
    """

    entry_point_group: str = Field(
        default="extpoint.plugins",
        description="Entry-point group scanned by plugin discovery",
    )
    default_position: Position = Field(
        default=Position.AFTER,
        description="Position applied to bundles that do not declare one",
    )
    output: OutputConfig = Field(default_factory=OutputConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
