"""Shared test fixtures for extpoint.

Provides reusable fixtures for isolated config environments, output state,
fresh registries, and a call recorder for asserting callback order. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from extpoint.output import reset_output
from extpoint.registry import Registry


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once CliRunner restores the real streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME at a subdirectory of tmp_path, clears all
    EXTPOINT_* environment variables, and changes the working directory to
    tmp_path so project config lookups start empty.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("extpoint.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ["EXTPOINT_GROUP", "EXTPOINT_DEFAULT_POSITION", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Registry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def seed() -> dict[str, Any]:
    """Shared-context seed with a nested options dict."""
    return {"options": {"init": "init1"}}


@pytest.fixture
def registry(seed: dict[str, Any]) -> Registry:
    """A fresh Registry seeded with :func:`seed`."""
    return Registry(seed)


class Recorder:
    """Collects the order in which callbacks fire, per phase."""

    def __init__(self) -> None:
        self.setup: list[str] = []
        self.run: list[str] = []
        self.teardown: list[str] = []

    def bundle(self, label: str, trigger: str = "test", **extra: Any) -> dict[str, Any]:
        """Build a bundle whose callbacks append *label* to the matching list."""
        return {
            "name": label,
            "trigger": trigger,
            "setup": lambda shared, ctx: self.setup.append(label),
            "run": self.run_appender(label),
            "teardown": lambda shared, ctx: self.teardown.append(label),
            **extra,
        }

    def run_appender(self, label: str) -> Callable[..., Any]:
        def _run(acc: Any, data: Any, shared: Any, ctx: Any) -> Any:
            self.run.append(label)
            return acc

        return _run


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()

