"""Helpers shared by the registry-facing commands."""

from __future__ import annotations

import typer

from extpoint.config import resolve_config
from extpoint.exceptions import ExtpointError
from extpoint.models import GlobalConfig
from extpoint.output import error
from extpoint.registry import Registry


def effective_config(ctx: typer.Context) -> GlobalConfig:
    """Resolve configuration, honouring the root ``--group`` flag."""
    group = ctx.obj.get("group") if ctx.obj else None
    try:
        return resolve_config(group=group)
    except ExtpointError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def open_registry(ctx: typer.Context, target: str) -> Registry:
    """Load the registry named by *target*, exiting with the error's code on failure."""
    from extpoint.discovery import load_registry

    config = effective_config(ctx)
    try:
        return load_registry(target, config)
    except ExtpointError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
