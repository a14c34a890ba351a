"""Config commands -- view and modify global configuration.

Provides the ``extpoint config`` sub-command group for reading, updating,
and resetting the user's global configuration file
(:class:`~extpoint.models.GlobalConfig`).
"""

from __future__ import annotations

import typer

from extpoint.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration, including the root ``--group`` override.

    Example::

        extpoint config show
        extpoint --json --group myapp.plugins config show
    """
    from extpoint.config import get_config_dir, resolve_config
    from extpoint.exceptions import ConfigError

    try:
        config = resolve_config(group=ctx.obj.get("group") if ctx.obj else None)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'plugins.disabled')."
    ),
    value: str = typer.Argument(help="Value to set; comma-separated for lists."),
) -> None:
    """Set a value in the user configuration file.

    Lists are given as comma-separated values. The updated config is
    validated against :class:`~extpoint.models.GlobalConfig` before saving.

    Example::

        extpoint config set entry_point_group myapp.plugins
        extpoint config set default_position before
        extpoint config set plugins.disabled legacy,experimental
    """
    import pydantic

    from extpoint.config import load_global_config, save_global_config
    from extpoint.exceptions import ConfigError
    from extpoint.models import GlobalConfig

    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    if isinstance(target[final_key], list):
        coerced: object = [item.strip() for item in value.split(",") if item.strip()]
    else:
        coerced = value
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except pydantic.ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        extpoint config reset
        extpoint --force config reset
    """
    from extpoint.config import save_global_config
    from extpoint.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
