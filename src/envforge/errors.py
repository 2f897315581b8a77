"""Exception hierarchy for envforge."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EnvforgeError(Exception):
    """Base exception for all envforge errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(EnvforgeError):
    """Build option validation or resolution failed."""


class ErrorKind(str, Enum):
    """Kinds of generation failures reported to the caller."""

    INVALID_ANNOTATION_TARGET = "invalid_annotation_target"
    MISSING_EXPLICIT_TYPE = "missing_explicit_type"
    UNSUPPORTED_TYPE = "unsupported_type"
    RESERVED_FIELD_NAME = "reserved_field_name"
    MISSING_ENV_FILE = "missing_env_file"
    MISSING_INDIRECTION_TARGET = "missing_indirection_target"
    MISSING_REQUIRED_ENV_VAR = "missing_required_env_var"
    MISSING_REQUIRED_VALUE = "missing_required_value"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True)
class Diagnostic:
    """A generation failure bound to the offending field or class."""

    kind: ErrorKind
    message: str
    element: str | None = None
    hint: str | None = None

    def __str__(self) -> str:
        where = f" [{self.element}]" if self.element else ""
        return f"{self.kind.value}: {self.message}{where}"


class GenerationError(EnvforgeError):
    """Generation of a class unit failed.

    Subclasses pin ``kind``; ``element`` names the offending field
    (``Class.field``) or class.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        *,
        element: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.element = element

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            kind=self.kind, message=str(self), element=self.element, hint=self.hint
        )


class InvalidAnnotationTargetError(GenerationError):
    """``env_config`` was applied to something that is not a class."""

    kind = ErrorKind.INVALID_ANNOTATION_TARGET


class MissingExplicitTypeError(GenerationError):
    """A field has no (resolvable) type annotation."""

    kind = ErrorKind.MISSING_EXPLICIT_TYPE


class UnsupportedTypeError(GenerationError):
    """A field is annotated with a type envforge cannot emit."""

    kind = ErrorKind.UNSUPPORTED_TYPE


class ReservedFieldNameError(GenerationError):
    """A field name would shadow a name the generated class body uses."""

    kind = ErrorKind.RESERVED_FIELD_NAME


class MissingEnvFileError(GenerationError):
    """A required ``.env`` file does not exist."""

    kind = ErrorKind.MISSING_ENV_FILE


class MissingIndirectionTargetError(GenerationError):
    """An aliased field's key is not declared in the env source."""

    kind = ErrorKind.MISSING_INDIRECTION_TARGET


class MissingRequiredEnvVarError(GenerationError):
    """The OS variable named by an aliased field is not set."""

    kind = ErrorKind.MISSING_REQUIRED_ENV_VAR


class MissingRequiredValueError(GenerationError):
    """No source produced a value for a required field."""

    kind = ErrorKind.MISSING_REQUIRED_VALUE


class InvalidValueError(GenerationError):
    """A resolved value cannot be parsed as the field's declared type."""

    kind = ErrorKind.INVALID_VALUE
