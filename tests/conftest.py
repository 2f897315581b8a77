"""Pytest configuration and fixtures.

Provides environment isolation and marker registration. Fixtures here are
autouse unless noted.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable

_ABSENT_PYPROJECT = Path(__file__).parent / "no-such-pyproject.toml"

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def isolate_envforge_env(request, monkeypatch):
    """Ensure build options never leak in from the developer's shell or project.

    Clears ENVFORGE_* variables and points ENVFORGE_PYPROJECT_PATH at a file
    that does not exist.
    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return

    for key in list(os.environ.keys()):
        if key.startswith("ENVFORGE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ENVFORGE_PYPROJECT_PATH", str(_ABSENT_PYPROJECT))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def env_file(tmp_path) -> Callable[..., Path]:
    """Write a ``.env`` file under ``tmp_path`` and return its path."""

    def _write(content: str, name: str = ".env") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: End-to-end generation through the CLI and generated modules",
        "allow_env_pollution: Keep ENVFORGE_* variables from the environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
