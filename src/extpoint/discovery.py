"""Plugin discovery -- entry points and dotted-path targets.

Third-party packages contribute bundles by declaring an entry point in the
configured group (``extpoint.plugins`` by default)::

    [project.entry-points."extpoint.plugins"]
    audit = "my_package.plugins:BUNDLES"

The entry point may resolve to a bundle mapping, a
:class:`~extpoint.models.PluginBundle`, a list of either, or a zero-argument
callable returning one of those.

:func:`load_registry` resolves a ``"module:attribute"`` target the same way
and is what the CLI uses to locate the registry to inspect.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import logging
from collections.abc import Mapping
from typing import Any, Optional

from extpoint.exceptions import DiscoveryError
from extpoint.models import GlobalConfig, PluginBundle, validate_bundle
from extpoint.registry import Registry

logger = logging.getLogger(__name__)


def _select(group: str) -> list[importlib.metadata.EntryPoint]:
    entry_points = importlib.metadata.entry_points()
    # Python 3.10+ returns EntryPoints with select(); older versions a dict.
    if hasattr(entry_points, "select"):
        return list(entry_points.select(group=group))
    return list(entry_points.get(group, []))  # type: ignore[attr-defined]


def _materialise(obj: Any) -> Any:
    """Call *obj* if it is a bundle factory, otherwise return it unchanged."""
    if isinstance(obj, (Mapping, PluginBundle, list, tuple)):
        return obj
    if callable(obj):
        return obj()
    return obj


def list_entry_points(group: str) -> list[dict[str, str]]:
    """List entry points in *group* without loading them.

    Returns:
        A list of dicts with ``"name"`` and ``"value"`` keys.
    """
    return [{"name": ep.name, "value": ep.value} for ep in _select(group)]


def discover(registry: Registry, config: Optional[GlobalConfig] = None) -> list[str]:
    """Load entry-point plugins into *registry*.

    When ``config.plugins.enabled`` is non-empty only those entry points are
    loaded; otherwise every entry point not in ``config.plugins.disabled`` is.
    All bundles of an entry point are validated before any is registered, so
    a broken entry point contributes nothing.

    Args:
        registry: The registry to populate.
        config: Effective configuration; defaults to :class:`GlobalConfig`.

    Returns:
        Names of the entry points that were registered. Entry points that
        fail to import or validate are logged as warnings and skipped.
    """
    config = config or GlobalConfig()
    enabled_set = set(config.plugins.enabled)
    disabled_set = set(config.plugins.disabled)
    loaded: list[str] = []

    for ep in _select(config.entry_point_group):
        name = ep.name
        if enabled_set and name not in enabled_set:
            logger.debug("Plugin '%s' not in enabled list, skipping", name)
            continue
        if name in disabled_set:
            logger.debug("Plugin '%s' is disabled, skipping", name)
            continue

        try:
            plugins = _materialise(ep.load())
            items = plugins if isinstance(plugins, (list, tuple)) else [plugins]
            bundles = [validate_bundle(item) for item in items]
        except Exception as exc:
            logger.warning("Failed to load plugin '%s': %s", name, exc)
            continue

        registry.register(bundles)
        loaded.append(name)
        logger.info("Loaded plugin '%s' (%d bundle(s))", name, len(bundles))

    return loaded


def load_target(target: str) -> Any:
    """Import the object named by a ``"package.module:attribute"`` path.

    The attribute part may be dotted (``"pkg.mod:Class.attr"``).

    Raises:
        DiscoveryError: If the path is malformed, the module cannot be
            imported, or the attribute does not exist.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise DiscoveryError(
            f"Invalid target '{target}': expected 'package.module:attribute'"
        )
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise DiscoveryError(f"Cannot import module '{module_name}': {exc}") from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise DiscoveryError(
                f"Module '{module_name}' has no attribute '{attr_path}'"
            ) from None
    return obj


def load_registry(target: str, config: Optional[GlobalConfig] = None) -> Registry:
    """Resolve *target* to a :class:`~extpoint.registry.Registry`.

    The target may name a registry, a zero-argument factory returning one,
    or bundles (in any form :func:`discover` accepts), which are registered
    into a fresh registry.

    Raises:
        DiscoveryError: If the target cannot be imported.
        ValidationError: If the target yields malformed bundles.
    """
    obj = load_target(target)
    if isinstance(obj, Registry):
        return obj
    obj = _materialise(obj)
    if isinstance(obj, Registry):
        return obj
    registry = Registry(config=config)
    registry.register(obj)
    return registry
