"""Extension-point registry -- registration policy and the three-phase protocol.

You can think of a registry as a switch statement whose cases are injected
from outside. Instead of::

    if name == "csv":
        ...
    elif name == "json":
        ...

a host declares an extension point and lets plugins contribute to it::

    registry = Registry({"options": defaults})
    registry.register({"trigger": "export", "run": write_csv})
    registry.register([{"trigger": "export", "position": "before", "run": validate}])

    await registry.setup()
    result = await registry.run("export", rows)
    await registry.teardown()

Lifecycle:

1. :meth:`Registry.register` validates each bundle and applies its ordering
   policy (``after``, ``before``, ``clear`` or ``replace_previous``) to the
   key's per-bundle callback groups.
2. :meth:`Registry.setup` flattens every key's groups one level and awaits
   each setup callback, key by key, with ``(shared, key_context)``.
3. :meth:`Registry.run` threads an accumulator through a key's run callbacks
   with ``(accumulator, data, shared, run_context)`` and returns the last
   value.
4. :meth:`Registry.teardown` mirrors setup for teardown callbacks.

Callbacks run strictly one after another. A callback may be a plain
function or a coroutine function; awaitable results are awaited before the
next callback starts. Errors raised by callbacks propagate unchanged.
"""

from __future__ import annotations

import enum
import inspect
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from extpoint.context import MISSING, SharedContext
from extpoint.exceptions import NotFoundError
from extpoint.models import (
    BundleInfo,
    Callback,
    GlobalConfig,
    PluginBundle,
    Position,
    validate_bundle,
)

logger = logging.getLogger(__name__)


class RegistryState(str, enum.Enum):
    """Lifecycle state of a :class:`Registry`. Recorded, not enforced."""

    CONSTRUCTED = "constructed"
    SETUP_COMPLETE = "setup-complete"
    TORN_DOWN = "torn-down"


@dataclass
class RegistryEntry:
    """Aggregate state for one extension-point key.

    ``bundles`` and ``positions`` hold one item per registration, in
    execution order. The flattened ``setup``, ``run`` and ``teardown`` lists
    are derived from them by :meth:`flatten`, so a bundle's callbacks occupy
    congruent positions across all three phases.
    """

    bundles: list[PluginBundle] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)
    setup: list[Callback] = field(default_factory=list)
    run: list[Callback] = field(default_factory=list)
    teardown: list[Callback] = field(default_factory=list)
    stale: bool = True

    def add(self, bundle: PluginBundle, position: Position) -> None:
        """Apply *bundle* to this entry according to *position*."""
        if position == Position.CLEAR:
            self.bundles = [bundle]
            self.positions = [position]
        elif position == Position.BEFORE:
            self.bundles.insert(0, bundle)
            self.positions.insert(0, position)
        else:
            self.bundles.append(bundle)
            self.positions.append(position)
        self.stale = True

    def flatten(self) -> None:
        """Flatten the per-bundle callback groups one level."""
        self.setup = [func for bundle in self.bundles for func in bundle.setup]
        self.run = [func for bundle in self.bundles for func in bundle.run]
        self.teardown = [func for bundle in self.bundles for func in bundle.teardown]
        self.stale = False


async def _invoke(func: Callback, *args: Any) -> Any:
    """Call *func* and await its result when it is awaitable."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Registry:
    """Ordered registry of plugin callbacks keyed by extension point.

    Args:
        context: Seed mapping for the shared context. It is shallow-copied,
            so nested objects (e.g. an ``options`` dict) remain shared with
            the caller and can be mutated by setup callbacks.
        config: Optional :class:`~extpoint.models.GlobalConfig`; only
            ``default_position`` is consulted here.

    Attributes:
        shared: The :class:`~extpoint.context.SharedContext` handed to every
            callback. Its identity never changes.
    """

    def __init__(
        self,
        context: Optional[Mapping[str, Any]] = None,
        *,
        config: Optional[GlobalConfig] = None,
    ) -> None:
        self._config = config or GlobalConfig()
        self._entries: dict[str, RegistryEntry] = {}
        self._state = RegistryState.CONSTRUCTED
        self.shared = SharedContext(context)
        self.shared.bind(self)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, plugins: Any) -> None:
        """Register one bundle or a sequence of bundles.

        Bundles are processed in order. Each is validated in full before it
        touches the key's entry, so a bundle that fails validation
        contributes nothing; bundles earlier in the same sequence stay
        registered.

        Args:
            plugins: A bundle mapping, a :class:`~extpoint.models.PluginBundle`,
                or a list/tuple of either.

        Raises:
            ValidationError: If a bundle has the wrong shape.
        """
        items = plugins if isinstance(plugins, (list, tuple)) else [plugins]

        for raw in items:
            bundle = validate_bundle(raw)
            key = bundle.key
            assert key is not None  # validate_bundle guarantees a key
            position = self._resolve_position(bundle)

            entry = self._entries.get(key)
            if entry is None:
                entry = RegistryEntry()
                self._entries[key] = entry
            entry.add(bundle, position)

            if self._state == RegistryState.SETUP_COMPLETE:
                logger.warning(
                    "Plugin '%s' registered for '%s' after setup; "
                    "its setup callbacks will not run",
                    bundle.name or key,
                    key,
                )
            elif self._state == RegistryState.TORN_DOWN:
                logger.warning(
                    "Plugin '%s' registered for '%s' after teardown",
                    bundle.name or key,
                    key,
                )
            logger.debug(
                "Registered plugin '%s' for '%s' (%s)",
                bundle.name or key,
                key,
                position.value,
            )

    def _resolve_position(self, bundle: PluginBundle) -> Position:
        if bundle.replace_previous:
            return Position.CLEAR
        if bundle.position is not None:
            return bundle.position
        return self._config.default_position

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def setup(self) -> None:
        """Flatten all entries, then run every setup callback key by key.

        Each key gets one fresh phase context, created before its first setup
        callback and shared by all of that key's setup callbacks.
        """
        for entry in self._entries.values():
            entry.flatten()
        logger.debug("Flattened %d extension point(s)", len(self._entries))

        for key, entry in list(self._entries.items()):
            key_context: dict[str, Any] = {}
            total = len(entry.setup)
            for i, func in enumerate(entry.setup, start=1):
                logger.debug("Setup '%s' %d of %d", key, i, total)
                await _invoke(func, self.shared, key_context)

        self._state = RegistryState.SETUP_COMPLETE
        logger.debug("Registry state: %s", self._state.value)

    async def run(self, key: str, data: Any = None) -> Any:
        """Run every run callback registered under *key*, threading an accumulator.

        The accumulator starts at :data:`~extpoint.context.MISSING`. Each
        callback receives ``(accumulator, data, shared, run_context)`` and
        its return value, including ``None``, becomes the next accumulator.

        Args:
            key: The extension-point key.
            data: Arbitrary caller data passed unchanged to every callback.

        Returns:
            The accumulator returned by the last callback, or ``MISSING`` if
            the key has no run callbacks.

        Raises:
            NotFoundError: If nothing is registered under *key*.
        """
        entry = self._get_entry(key)
        if entry.stale:
            entry.flatten()

        run_context: dict[str, Any] = {}
        accumulator: Any = MISSING
        total = len(entry.run)
        for i, func in enumerate(entry.run, start=1):
            logger.debug("Run '%s' %d of %d, accumulator %r", key, i, total, accumulator)
            accumulator = await _invoke(func, accumulator, data, self.shared, run_context)

        logger.debug("Run '%s' result %r", key, accumulator)
        return accumulator

    async def teardown(self, key: Optional[str] = None) -> None:
        """Run teardown callbacks for every key, or only for *key*.

        Keys without teardown callbacks are skipped. Each key gets one fresh
        phase context.

        Raises:
            NotFoundError: If *key* is given and nothing is registered under it.
        """
        if key is not None:
            targets = [(key, self._get_entry(key))]
        else:
            targets = list(self._entries.items())

        for name, entry in targets:
            if entry.stale:
                entry.flatten()
            key_context: dict[str, Any] = {}
            total = len(entry.teardown)
            for i, func in enumerate(entry.teardown, start=1):
                logger.debug("Teardown '%s' %d of %d", name, i, total)
                await _invoke(func, self.shared, key_context)

        if key is None:
            self._state = RegistryState.TORN_DOWN
            logger.debug("Registry state: %s", self._state.value)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def has(self, key: str) -> bool:
        """Return ``True`` if any bundle has been registered under *key*."""
        return key in self._entries

    def keys(self) -> list[str]:
        """Registered keys in first-registration order."""
        return list(self._entries)

    def describe(self, key: Optional[str] = None) -> list[BundleInfo]:
        """Summarise registered bundles in execution order.

        Args:
            key: Restrict the listing to one key.

        Raises:
            NotFoundError: If *key* is given and nothing is registered under it.
        """
        if key is not None:
            entries = [self._get_entry(key)]
        else:
            entries = list(self._entries.values())
        return [
            BundleInfo.from_bundle(bundle, position)
            for entry in entries
            for bundle, position in zip(entry.bundles, entry.positions)
        ]

    @property
    def state(self) -> RegistryState:
        return self._state

    def _get_entry(self, key: str) -> RegistryEntry:
        try:
            return self._entries[key]
        except KeyError:
            raise NotFoundError(
                f"No plugins registered for '{key}'", key=key
            ) from None

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Registry(keys={self.keys()!r}, state={self._state.value!r})"

