"""Run command -- drive one extension point from the command line.

Useful for exercising a plugin set in isolation: the command loads the
registry, runs ``setup()``, runs the requested key with optional JSON data,
and tears the registry down again.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer

from extpoint.commands._common import open_registry
from extpoint.context import MISSING
from extpoint.exceptions import ExtpointError, NotFoundError
from extpoint.output import error, format_response, suggest, warning
from extpoint.registry import Registry


def _parse_data(data: Optional[str]) -> Any:  # noqa: ANN401
    """Parse *data* as JSON if possible, returning the raw string on failure."""
    if data is None:
        return None
    try:
        return json.loads(data)
    except (json.JSONDecodeError, TypeError):
        return data


async def _drive(registry: Registry, key: str, data: Any, teardown: bool) -> Any:
    if not registry.has(key):
        raise NotFoundError(f"No plugins registered for '{key}'", key=key)
    await registry.setup()
    try:
        return await registry.run(key, data)
    finally:
        if teardown:
            await registry.teardown()


def run_command(
    ctx: typer.Context,
    target: str = typer.Argument(help="Registry or bundles, as 'package.module:attribute'."),
    key: str = typer.Argument(help="Extension-point key to run."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Data passed to run callbacks (JSON or plain string)."
    ),
    teardown: bool = typer.Option(
        True, "--teardown/--no-teardown", help="Run teardown callbacks afterwards."
    ),
) -> None:
    """Run setup, the given key, and teardown; print the final accumulator.

    Callback exceptions are not caught here: they surface through the
    top-level error handler.

    Example::

        extpoint run myapp.plugins:registry export --data '{"rows": 3}'
    """
    registry = open_registry(ctx, target)
    try:
        result = asyncio.run(_drive(registry, key, _parse_data(data), teardown))
    except ExtpointError as exc:
        error(str(exc))
        if isinstance(exc, NotFoundError):
            suggest(f"List keys with: extpoint keys {target}")
        raise typer.Exit(code=exc.exit_code) from None

    if result is MISSING:
        warning(f"No run callback produced a value for '{key}'")
        return
    format_response(result)
