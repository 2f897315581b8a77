from __future__ import annotations

import pytest

from envforge.errors import (
    ConfigurationError,
    Diagnostic,
    EnvforgeError,
    ErrorKind,
    GenerationError,
    InvalidAnnotationTargetError,
    InvalidValueError,
    MissingEnvFileError,
    MissingExplicitTypeError,
    MissingIndirectionTargetError,
    MissingRequiredEnvVarError,
    MissingRequiredValueError,
    ReservedFieldNameError,
    UnsupportedTypeError,
)

pytestmark = pytest.mark.unit


def test_generation_error_metadata() -> None:
    err = MissingRequiredValueError("no value", element="Env.port", hint="set PORT")

    assert str(err) == "no value"
    assert err.element == "Env.port"
    assert err.hint == "set PORT"
    assert err.kind is ErrorKind.MISSING_REQUIRED_VALUE


def test_to_diagnostic() -> None:
    diagnostic = UnsupportedTypeError("bad type", element="Env.conn").to_diagnostic()

    assert diagnostic == Diagnostic(ErrorKind.UNSUPPORTED_TYPE, "bad type", "Env.conn", None)
    assert str(diagnostic) == "unsupported_type: bad type [Env.conn]"


def test_diagnostic_without_element() -> None:
    assert str(Diagnostic(ErrorKind.MISSING_ENV_FILE, "gone")) == "missing_env_file: gone"


@pytest.mark.parametrize(
    "cls",
    [
        InvalidAnnotationTargetError,
        MissingExplicitTypeError,
        UnsupportedTypeError,
        ReservedFieldNameError,
        MissingEnvFileError,
        MissingIndirectionTargetError,
        MissingRequiredEnvVarError,
        MissingRequiredValueError,
        InvalidValueError,
    ],
)
def test_every_generation_error_has_distinct_kind(cls) -> None:
    assert issubclass(cls, GenerationError)
    assert issubclass(cls, EnvforgeError)
    assert isinstance(cls.kind, ErrorKind)


def test_kinds_are_unique() -> None:
    kinds = [cls.kind for cls in GenerationError.__subclasses__()]
    assert len(kinds) == len(set(kinds)) == len(ErrorKind)


def test_configuration_error_is_not_a_generation_error() -> None:
    err = ConfigurationError("bad option", hint="fix it")
    assert isinstance(err, EnvforgeError)
    assert not isinstance(err, GenerationError)
    assert err.hint == "fix it"
