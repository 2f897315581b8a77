"""Test helpers.

Keep this file tiny: it exists so suites can load generated modules without
each one re-implementing the exec dance.
"""

from __future__ import annotations

import types


def load_generated(text: str, name: str = "generated_env") -> types.ModuleType:
    """Execute generated module text and return the resulting module."""
    module = types.ModuleType(name)
    exec(compile(text, f"<{name}>", "exec"), module.__dict__)  # noqa: S102
    return module
