"""Exception hierarchy for extpoint.

All exceptions inherit from :class:`ExtpointError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`extpoint.exit_codes`.
The CLI entry point in :func:`extpoint.app.main` catches ``ExtpointError``
and exits with the appropriate code. Library callers usually catch the
specific subclasses.

Errors raised by plugin callbacks are never wrapped: they propagate to the
caller of :meth:`~extpoint.registry.Registry.setup`,
:meth:`~extpoint.registry.Registry.run` or
:meth:`~extpoint.registry.Registry.teardown` exactly as raised.

Subclass hierarchy::

    ExtpointError (exit 1)
    +-- ValidationError   (exit 3)
    +-- NotFoundError     (exit 4)
    +-- DiscoveryError    (exit 10)
    +-- ConfigError       (exit 1)
"""

from __future__ import annotations

from typing import Optional

from extpoint.exit_codes import (
    EXIT_DISCOVERY_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_VALIDATION_ERROR,
)


class ExtpointError(Exception):
    """Base exception for all extpoint errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ValidationError(ExtpointError):
    """Raised by ``register`` when a plugin bundle has the wrong shape.

    Attributes:
        field: Dotted path of the offending field (e.g. ``"run[1]"``), or
            ``None`` when the bundle itself is not a mapping.
        actual: Name of the type that was supplied.
        expected: Description of the type that was required.
    """

    exit_code = EXIT_VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        actual: Optional[str] = None,
        expected: Optional[str] = None,
    ):
        super().__init__(message)
        self.field = field
        self.actual = actual
        self.expected = expected


class NotFoundError(ExtpointError):
    """Raised when no plugin has been registered under the requested key."""

    exit_code = EXIT_NOT_FOUND

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class DiscoveryError(ExtpointError):
    """Raised when a registry target or entry point cannot be imported."""

    exit_code = EXIT_DISCOVERY_ERROR


class ConfigError(ExtpointError):
    """Raised for configuration problems (invalid JSON, failed model validation)."""

    exit_code = EXIT_GENERIC_FAILURE
