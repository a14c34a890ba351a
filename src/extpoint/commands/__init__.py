"""Built-in CLI sub-commands for extpoint.

* :mod:`~extpoint.commands.inspect` -- list keys and bundles of a registry.
* :mod:`~extpoint.commands.run` -- drive setup, run and teardown for one key.
* :mod:`~extpoint.commands.discover` -- list entry-point plugins.
* :mod:`~extpoint.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or plain callback functions registered
directly on the root app.
"""
