"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~extpoint.exceptions.ExtpointError` subclass. Shell
wrappers driving ``extpoint run`` can inspect the exit code to tell a bad
plugin bundle apart from a missing extension point without parsing stderr.

Example::

    $ extpoint run myapp.plugins:registry unknown-key
    $ echo $?
    4   # EXIT_NOT_FOUND -- no plugin registered under that key
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_VALIDATION_ERROR = 3
"""A plugin bundle failed shape validation during registration."""

EXIT_NOT_FOUND = 4
"""No plugin is registered under the requested extension-point key."""

EXIT_DISCOVERY_ERROR = 10
"""A registry target or entry-point plugin could not be imported."""
