# src/envforge/config/__init__.py

"""Build options for envforge runs.

Options are resolved once per run into an immutable ``BuildOptions`` that
flows through generation. Precedence: defaults < ``[tool.envforge]`` in
``pyproject.toml`` < ``ENVFORGE_*`` environment variables < overrides.
"""

from .core import (
    BuildOptions,
    FieldOrigin,
    Origin,
    SourceMap,
    audit_lines,
    resolve_build_options,
)
from .loaders import get_pyproject_path

__all__ = [
    "BuildOptions",
    "FieldOrigin",
    "Origin",
    "SourceMap",
    "audit_lines",
    "get_pyproject_path",
    "resolve_build_options",
]
