"""Descriptors: the declarative input of a generation pass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Any

from envforge.errors import ConfigurationError

DEFAULT_ENV_PATH = ".env"

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"[\s\-.]+")


class TypeKind(str, Enum):
    """Closed set of declared field types."""

    INT = "int"
    DOUBLE = "double"
    NUM = "num"
    BOOL = "bool"
    URI = "uri"
    DATETIME = "datetime"
    STRING = "string"
    ENUM = "enum"
    DYNAMIC = "dynamic"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class DeclaredType:
    """A field's type, classified once by the front end."""

    kind: TypeKind
    display: str
    nullable: bool = False
    enum_cls: type[Enum] | None = None

    @property
    def accepts_none(self) -> bool:
        """True when the field may hold ``None`` (nullable or dynamic)."""
        return self.nullable or self.kind is TypeKind.DYNAMIC


@dataclass(frozen=True)
class EnvField:
    """Field-level options. ``None`` inherits the class-level default."""

    var_name: str | None = None
    default: Any = None
    obfuscate: bool | None = None
    optional: bool | None = None
    environment: bool | None = None
    use_constant_case: bool | None = None
    interpolate: bool | None = None
    raw_string: bool | None = None
    random_seed: int | None = None


@dataclass(frozen=True)
class EnvConfig:
    """Class-level options of one ``env_config`` occurrence."""

    path: tuple[str, ...] = (DEFAULT_ENV_PATH,)
    require_env_file: bool = False
    name: str | None = None
    obfuscate: bool = False
    allow_optional_fields: bool = False
    environment: bool = False
    use_constant_case: bool = False
    interpolate: bool = True
    raw_strings: bool = False
    random_seed: int | None = None

    def __post_init__(self) -> None:
        if not self.path or not all(isinstance(p, str) and p for p in self.path):
            raise ConfigurationError(
                f"path must be a non-empty string or sequence of strings, got {self.path!r}",
                hint="Pass env_config(path='.env') or path=('.env', '.env.local').",
            )


@dataclass(frozen=True)
class FieldSpec:
    """A discovered field: its name, declared type and raw options."""

    name: str
    declared: DeclaredType | None
    options: EnvField


@dataclass(frozen=True)
class ClassDescriptor:
    """A decorated class, with every ``env_config`` occurrence in order."""

    name: str
    module: str
    qualname: str
    configs: tuple[EnvConfig, ...]
    fields: tuple[FieldSpec, ...]

    @property
    def multiple_annotations(self) -> bool:
        return len(self.configs) > 1


@dataclass(frozen=True)
class FieldDescriptor:
    """Effective options for one field under one ``env_config``."""

    owner: str
    name: str
    declared: DeclaredType | None
    var_name: str
    optional: bool
    obfuscate: bool
    environment: bool
    interpolate: bool
    raw_string: bool
    default_value: str | None = None
    random_seed: int | None = None

    @property
    def element(self) -> str:
        return f"{self.owner}.{self.name}"

    @property
    def accepts_absent(self) -> bool:
        """Absent values are allowed only for optional, nullable fields."""
        return self.optional and self.declared is not None and self.declared.accepts_none


def constant_case(name: str) -> str:
    """Convert ``apiKey``/``api_key``/``api-key`` to ``API_KEY``."""
    parts = _SEPARATOR_RE.sub("_", name.strip())
    parts = _CAMEL_BOUNDARY_RE.sub("_", parts)
    return re.sub(r"_+", "_", parts).strip("_").upper()


def default_text(value: Any) -> str | None:
    """Render a default value as the text a ``.env`` entry would hold."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.name
    isoformat = getattr(value, "isoformat", None)
    if callable(isoformat):
        return isoformat()
    geturl = getattr(value, "geturl", None)
    if callable(geturl):
        return geturl()
    return str(value)


def effective_field(owner: str, spec: FieldSpec, config: EnvConfig) -> FieldDescriptor:
    """Merge field-level options over the class-level defaults."""
    opts = spec.options

    def pick(local: Any, inherited: Any) -> Any:
        return inherited if local is None else local

    if opts.var_name is not None:
        var_name = opts.var_name
    elif pick(opts.use_constant_case, config.use_constant_case):
        var_name = constant_case(spec.name)
    else:
        var_name = spec.name

    return FieldDescriptor(
        owner=owner,
        name=spec.name,
        declared=spec.declared,
        var_name=var_name,
        optional=pick(opts.optional, config.allow_optional_fields),
        obfuscate=pick(opts.obfuscate, config.obfuscate),
        environment=pick(opts.environment, config.environment),
        interpolate=pick(opts.interpolate, config.interpolate),
        raw_string=pick(opts.raw_string, config.raw_strings),
        default_value=default_text(opts.default),
        random_seed=pick(opts.random_seed, config.random_seed),
    )
