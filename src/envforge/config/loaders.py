# src/envforge/config/loaders.py

"""Build option loaders for environment and files.

Pure data loading: each loader returns a plain dictionary that the core
resolver merges. Validation happens in the ``BuildOptions`` schema.
"""

from __future__ import annotations

import os
from pathlib import Path
import tomllib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

# --- Constants ---

CONFIG_TOOL_NAME = "envforge"

ENV_PREFIX = "ENVFORGE_"
PYPROJECT_PATH_VAR = "ENVFORGE_PYPROJECT_PATH"

# Meta/control variables that steer resolution but aren't option fields
META_ENV_FIELDS = {"pyproject_path"}


def _coerce_bool(v: str) -> bool:
    """Convert string to boolean using common conventions."""
    return v.strip().lower() in {"1", "true", "yes", "on"}


# --- Environment Loading ---


def load_env(environ: Mapping[str, str] | None = None) -> Mapping[str, Any]:
    """Load build options from ``ENVFORGE_*`` environment variables.

    Boolean fields are coerced using schema information; everything else is
    passed through as text for the schema to validate.
    """
    from .core import BuildOptions  # local import to keep loaders import-light

    source = os.environ if environ is None else environ
    options: dict[str, Any] = {}
    for key, value in source.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in META_ENV_FIELDS:
            continue
        info = BuildOptions.model_fields.get(field_name)
        if info is not None and info.annotation is bool:
            options[field_name] = _coerce_bool(value)
        else:
            options[field_name] = value
    return options


# --- File loading ---


def get_pyproject_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the project ``pyproject.toml``, honouring ``ENVFORGE_PYPROJECT_PATH``."""
    source = os.environ if environ is None else environ
    if override := source.get(PYPROJECT_PATH_VAR):
        return Path(override)
    return Path.cwd() / "pyproject.toml"


def _read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file, returning an empty dict when it is missing or invalid."""
    if not path.exists():
        return {}

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return {}


def load_pyproject(path: Path | None = None) -> Mapping[str, Any]:
    """Load the ``[tool.envforge]`` table from ``pyproject.toml``."""
    data = _read_toml(path or get_pyproject_path())
    section = data.get("tool", {}).get(CONFIG_TOOL_NAME, {})
    return dict(section) if isinstance(section, dict) else {}
