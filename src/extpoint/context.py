"""Context objects threaded through plugin callbacks.

Two tiers of mutable state are visible to callbacks:

* :class:`SharedContext` -- created once per
  :class:`~extpoint.registry.Registry` and handed to every setup, run and
  teardown callback of every key. It is a cooperative, unsynchronised
  communication channel: any callback may read or write any item. Sequential
  invocation guarantees a single writer at a time.
* The phase context -- a plain ``dict`` created fresh at the start of each
  ``run`` call, and once per key during ``setup`` and ``teardown``. It is
  discarded afterwards and never merged into the shared context.

This module also defines :data:`MISSING`, the accumulator value a ``run``
call starts from. It is distinct from ``None`` so that a run callback may
deliberately return ``None``.
"""

from __future__ import annotations

import weakref
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from extpoint.registry import Registry


class _MissingType:
    """Type of the :data:`MISSING` singleton."""

    _instance: Optional[_MissingType] = None

    def __new__(cls) -> _MissingType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _MissingType:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _MissingType:
        return self

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _MissingType()
"""Sentinel for "no run callback has executed yet"."""


class SharedContext(dict):
    """Process-lifetime context shared by all callbacks of a registry.

    Initialised as a shallow copy of the seed mapping given to the
    registry, so top-level keys added by callbacks do not leak into the
    caller's seed while nested objects stay shared with it.

    :attr:`registry` is a non-owning back-reference to the owning registry,
    letting a callback dispatch to another extension point::

        async def render(acc, data, shared, ctx):
            header = await shared.registry.run("header", data)
            return header + acc
    """

    def __init__(self, seed: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(seed or {})
        self._registry_ref: Optional[weakref.ReferenceType[Registry]] = None

    def bind(self, registry: Registry) -> None:
        """Attach the owning registry. Called once by the registry constructor."""
        self._registry_ref = weakref.ref(registry)

    @property
    def registry(self) -> Registry:
        """The registry that owns this context.

        Raises:
            ReferenceError: If the context is unbound or the registry has
                been garbage-collected.
        """
        registry = self._registry_ref() if self._registry_ref is not None else None
        if registry is None:
            raise ReferenceError("SharedContext is not bound to a live registry")
        return registry

    def __repr__(self) -> str:
        return f"SharedContext({dict.__repr__(self)})"
