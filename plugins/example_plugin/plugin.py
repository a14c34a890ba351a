"""Example plugin package contributing to a ``render`` extension point.

Declare it as an entry point so :func:`extpoint.discovery.discover` picks it
up::

    [project.entry-points."extpoint.plugins"]
    example = "example_plugin.plugin:bundles"
"""

from __future__ import annotations

import sys
from typing import Any

from extpoint import MISSING


def _setup(shared: dict[str, Any], ctx: dict[str, Any]) -> None:
    shared.setdefault("rendered", 0)


async def _wrap(acc: Any, data: Any, shared: dict[str, Any], ctx: dict[str, Any]) -> str:
    shared["rendered"] += 1
    body = data if acc is MISSING else acc
    return f"<p>{body}</p>"


def _teardown(shared: dict[str, Any], ctx: dict[str, Any]) -> None:
    print(f"[example] rendered {shared.get('rendered', 0)} time(s)", file=sys.stderr)


def bundles() -> list[dict[str, Any]]:
    """Return the bundles this package registers."""
    return [
        {
            "name": "example",
            "version": "0.1.0",
            "desc": "Wraps rendered output in a paragraph",
            "trigger": "render",
            "setup": _setup,
            "run": _wrap,
            "teardown": _teardown,
        }
    ]
