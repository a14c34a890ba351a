"""Inspect commands -- examine the extension points of a registry.

``extpoint keys`` and ``extpoint show`` load a registry from a
``package.module:attribute`` target and print its contents without running
any callbacks.
"""

from __future__ import annotations

import typer

from extpoint.commands._common import open_registry
from extpoint.exceptions import NotFoundError
from extpoint.output import error, get_output, suggest


def keys_command(
    ctx: typer.Context,
    target: str = typer.Argument(help="Registry or bundles, as 'package.module:attribute'."),
) -> None:
    """List extension-point keys with their bundle and callback counts.

    Example::

        extpoint keys myapp.plugins:registry
        extpoint --json keys myapp.plugins:BUNDLES
    """
    registry = open_registry(ctx, target)

    rows: list[list[str]] = []
    for key in registry.keys():
        infos = registry.describe(key)
        rows.append([
            key,
            str(len(infos)),
            str(sum(i.setup for i in infos)),
            str(sum(i.run for i in infos)),
            str(sum(i.teardown for i in infos)),
        ])

    get_output().print_table(
        ["Key", "Bundles", "Setup", "Run", "Teardown"],
        rows,
        title=f"Extension points ({len(rows)})",
    )


def show_command(
    ctx: typer.Context,
    target: str = typer.Argument(help="Registry or bundles, as 'package.module:attribute'."),
    key: str = typer.Argument(help="Extension-point key."),
) -> None:
    """Show the bundles registered under one key, in execution order.

    Example::

        extpoint show myapp.plugins:registry export
    """
    registry = open_registry(ctx, target)
    try:
        infos = registry.describe(key)
    except NotFoundError as exc:
        error(str(exc))
        suggest(f"List keys with: extpoint keys {target}")
        raise typer.Exit(code=exc.exit_code) from None

    rows = [
        [
            str(i),
            info.name or "-",
            info.version or "-",
            info.position.value,
            str(info.setup),
            str(info.run),
            str(info.teardown),
            info.description or "",
        ]
        for i, info in enumerate(infos, start=1)
    ]
    get_output().print_table(
        ["#", "Name", "Version", "Position", "Setup", "Run", "Teardown", "Description"],
        rows,
        title=f"{key} -- Bundles ({len(rows)})",
    )
