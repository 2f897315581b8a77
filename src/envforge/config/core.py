# src/envforge/config/core.py

"""Build option schema and layered resolution.

Options are resolved once per run with the precedence
defaults < project (``[tool.envforge]``) < env (``ENVFORGE_*``) < overrides,
validated by the pydantic ``BuildOptions`` schema, and tracked per field in
a ``SourceMap`` for auditing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cache
from typing import TYPE_CHECKING, Any, Literal, overload

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from envforge.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


class BuildOptions(BaseModel):
    """Run-wide options that apply to every generated class.

    ``path`` replaces each class's own env file path when ``override`` is set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str | None = Field(default=None)
    override: bool = Field(default=False)
    output_suffix: str = Field(default="_env", min_length=1)

    @field_validator("path", mode="before")
    @classmethod
    def normalize_path(cls, v: Any) -> Any:
        """Trim surrounding whitespace; map empty to None."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("output_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v.replace("_", "a").isalnum():
            raise ValueError("output_suffix must contain only letters, digits and '_'")
        return v

    def effective_paths(self, declared: tuple[str, ...]) -> tuple[str, ...]:
        """Env file paths to read for a class declaring ``declared``."""
        if self.override and self.path:
            return (self.path,)
        return declared


@cache
def _default_options() -> dict[str, Any]:
    return BuildOptions().model_dump()


# --- Audit types ---


class Origin(str, Enum):
    """Source origin for build option values."""

    DEFAULT = "default"
    PROJECT = "project"
    ENV = "env"
    OVERRIDES = "overrides"


@dataclass(frozen=True)
class FieldOrigin:
    """Tracks the origin and context of a build option value."""

    origin: Origin
    env_key: str | None = None  # e.g., "ENVFORGE_PATH"
    file: str | None = None  # e.g., "pyproject.toml"


SourceMap = dict[str, FieldOrigin]


# --- Public resolution API ---


@overload
def resolve_build_options(
    overrides: Mapping[str, Any] | None = ...,
    *,
    environ: Mapping[str, str] | None = ...,
    pyproject: Path | None = ...,
    explain: Literal[True],
) -> tuple[BuildOptions, SourceMap]: ...


@overload
def resolve_build_options(
    overrides: Mapping[str, Any] | None = ...,
    *,
    environ: Mapping[str, str] | None = ...,
    pyproject: Path | None = ...,
    explain: Literal[False] = ...,
) -> BuildOptions: ...


def resolve_build_options(
    overrides: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    pyproject: Path | None = None,
    explain: bool = False,
) -> BuildOptions | tuple[BuildOptions, SourceMap]:
    """Resolve build options from all layers.

    Args:
        overrides: Programmatic overrides (highest precedence). ``None``
            values are ignored so CLI flags can be passed through unchanged.
        environ: Environment mapping; defaults to ``os.environ``.
        pyproject: Project file; defaults to ``ENVFORGE_PYPROJECT_PATH`` or
            ``./pyproject.toml``.
        explain: Also return the per-field ``SourceMap``.

    Raises:
        ConfigurationError: If validation fails.
    """
    from .loaders import get_pyproject_path, load_env, load_pyproject

    project_path = pyproject or get_pyproject_path(environ)
    merged, sources = _resolve_layers(
        project=load_pyproject(project_path),
        env=load_env(environ),
        overrides={k: v for k, v in (overrides or {}).items() if v is not None},
        project_file=str(project_path),
    )

    try:
        options = BuildOptions.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        msg = err.get("msg", "")
        if msg.startswith("Value error, "):
            msg = msg[13:]
        loc = ".".join(str(part) for part in err.get("loc", ()))
        origin = sources.get(loc)
        raise ConfigurationError(
            f"Build option validation failed: {loc}: {msg}",
            hint=_origin_hint(loc, origin),
        ) from e

    return (options, sources) if explain else options


def _resolve_layers(
    *,
    project: Mapping[str, Any],
    env: Mapping[str, Any],
    overrides: Mapping[str, Any],
    project_file: str,
) -> tuple[dict[str, Any], SourceMap]:
    """Merge layers last-wins while recording where each value came from."""
    from .loaders import ENV_PREFIX

    out: dict[str, Any] = dict(_default_options())
    src: SourceMap = {k: FieldOrigin(origin=Origin.DEFAULT) for k in out}

    layers = [
        (Origin.PROJECT, project),
        (Origin.ENV, env),
        (Origin.OVERRIDES, overrides),
    ]
    for origin, payload in layers:
        for k, v in payload.items():
            out[k] = v
            if origin is Origin.ENV:
                src[k] = FieldOrigin(origin=origin, env_key=f"{ENV_PREFIX}{k.upper()}")
            elif origin is Origin.PROJECT:
                src[k] = FieldOrigin(origin=origin, file=project_file)
            else:
                src[k] = FieldOrigin(origin=origin)
    return out, src


def _origin_hint(field: str, where: FieldOrigin | None) -> str | None:
    if where is None:
        return None
    return f"Value came from {origin_label(field, where)}."


# --- Audit helpers ---


def origin_label(field: str, where: FieldOrigin) -> str:
    match where.origin:
        case Origin.ENV:
            return f"env:{where.env_key or field}"
        case Origin.PROJECT:
            return f"file:{where.file or 'pyproject.toml'}"
        case _:
            return str(where.origin.value)


def audit_lines(options: BuildOptions, sources: SourceMap) -> list[str]:
    """Human-readable ``field = value (origin)`` lines, in schema order."""
    lines: list[str] = []
    for name in BuildOptions.model_fields:
        where = sources.get(name, FieldOrigin(origin=Origin.DEFAULT))
        lines.append(f"{name} = {getattr(options, name)!r} ({origin_label(name, where)})")
    return lines
