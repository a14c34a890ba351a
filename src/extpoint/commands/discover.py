"""Discover command -- list entry-point plugins visible to this environment."""

from __future__ import annotations

import typer

from extpoint.commands._common import effective_config
from extpoint.discovery import list_entry_points
from extpoint.output import get_output, info


def discover_command(ctx: typer.Context) -> None:
    """List entry points in the configured plugin group.

    Each entry point is marked ``enabled`` or ``disabled`` according to the
    ``plugins.enabled`` / ``plugins.disabled`` lists in the configuration.
    Nothing is imported.

    Example::

        extpoint discover
        extpoint --group myapp.plugins discover
    """
    config = effective_config(ctx)
    enabled_set = set(config.plugins.enabled)
    disabled_set = set(config.plugins.disabled)

    rows: list[list[str]] = []
    for ep in list_entry_points(config.entry_point_group):
        name = ep["name"]
        active = (not enabled_set or name in enabled_set) and name not in disabled_set
        rows.append([name, ep["value"], "enabled" if active else "disabled"])

    if not rows:
        info(f"No plugins found in group '{config.entry_point_group}'.")
        return
    get_output().print_table(
        ["Name", "Target", "Status"],
        rows,
        title=f"{config.entry_point_group} ({len(rows)})",
    )
