"""extpoint -- declarative extension points with a three-phase plugin lifecycle.

Callers register *plugins* (bundles of setup, run and teardown callbacks)
against a string key, then drive the lifecycle across every plugin
registered for that key. This replaces hand-written ``if``/``elif`` dispatch
with registration: independent contributors inject behaviour at a named
extension point without editing a central dispatch function.

Typical usage::

    from extpoint import Registry

    registry = Registry({"options": {"indent": 2}})
    registry.register({"trigger": "render", "run": render_body})
    registry.register({"trigger": "render", "position": "before", "run": render_header})

    await registry.setup()
    html = await registry.run("render", page)
    await registry.teardown()

Modules:
    registry: The :class:`Registry` and its registration/phase protocol.
    models: Pydantic models (bundles, configuration) and bundle validation.
    context: :class:`SharedContext` and the :data:`MISSING` sentinel.
    discovery: Entry-point and dotted-path plugin loading.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI for inspecting and driving registries.
"""

__version__ = "0.1.0"

from extpoint.context import MISSING, SharedContext  # noqa: E402
from extpoint.exceptions import (  # noqa: E402
    ConfigError,
    DiscoveryError,
    ExtpointError,
    NotFoundError,
    ValidationError,
)
from extpoint.models import BundleInfo, PluginBundle, Position  # noqa: E402
from extpoint.registry import Registry, RegistryState  # noqa: E402

__all__ = [
    "MISSING",
    "BundleInfo",
    "ConfigError",
    "DiscoveryError",
    "ExtpointError",
    "NotFoundError",
    "PluginBundle",
    "Position",
    "Registry",
    "RegistryState",
    "SharedContext",
    "ValidationError",
]
