"""Resolution waterfall: env file, OS environment, default."""

from __future__ import annotations

import pytest

from envforge.descriptors import DeclaredType, FieldDescriptor, TypeKind
from envforge.errors import (
    MissingIndirectionTargetError,
    MissingRequiredEnvVarError,
    MissingRequiredValueError,
)
from envforge.resolver import Origin, resolve_field
from envforge.sources import EnvVal

pytestmark = pytest.mark.unit

STRING = DeclaredType(TypeKind.STRING, "str")
NULLABLE = DeclaredType(TypeKind.STRING, "str", nullable=True)


def make_field(**overrides) -> FieldDescriptor:
    values = {
        "owner": "Env",
        "name": "key",
        "declared": STRING,
        "var_name": "KEY",
        "optional": False,
        "obfuscate": False,
        "environment": False,
        "interpolate": True,
        "raw_string": False,
        "default_value": None,
    }
    values.update(overrides)
    return FieldDescriptor(**values)


def test_env_file_wins_over_os_and_default() -> None:
    field = make_field(default_value="3")
    resolution = resolve_field(field, {"KEY": EnvVal("1")}, {"KEY": "2"})

    assert resolution.value == EnvVal("1")
    assert resolution.origin is Origin.ENV_FILE
    assert resolution.env_key == "KEY"


def test_os_environment_wins_over_default() -> None:
    resolution = resolve_field(make_field(default_value="3"), {}, {"KEY": "2"})
    assert resolution.value.raw == "2"
    assert resolution.origin is Origin.OS_ENV


def test_default_used_last() -> None:
    resolution = resolve_field(make_field(default_value="3"), {}, {})
    assert resolution.value.raw == "3"
    assert resolution.origin is Origin.DEFAULT


def test_absent_allowed_for_optional_nullable_field() -> None:
    resolution = resolve_field(make_field(declared=NULLABLE, optional=True), {}, {})
    assert resolution.value is None
    assert resolution.origin is Origin.ABSENT
    assert not resolution.present


@pytest.mark.parametrize(
    ("declared", "optional"),
    [(STRING, True), (NULLABLE, False), (STRING, False)],
)
def test_absent_required_value_raises(declared, optional) -> None:
    field = make_field(declared=declared, optional=optional)
    with pytest.raises(MissingRequiredValueError, match="`key`") as exc:
        resolve_field(field, {}, {})
    assert exc.value.element == "Env.key"


def test_aliased_reads_os_variable_named_in_env_file() -> None:
    field = make_field(environment=True)
    resolution = resolve_field(field, {"KEY": EnvVal("MY_VAR")}, {"MY_VAR": "5", "KEY": "9"})

    assert resolution.value.raw == "5"
    assert resolution.origin is Origin.OS_ALIAS
    assert resolution.env_key == "MY_VAR"


def test_aliased_ignores_default_and_direct_os_value() -> None:
    field = make_field(environment=True, default_value="fallback")
    with pytest.raises(MissingIndirectionTargetError, match="`KEY`"):
        resolve_field(field, {}, {"KEY": "direct"})


def test_aliased_missing_os_variable_raises_for_required_field() -> None:
    field = make_field(environment=True)
    with pytest.raises(MissingRequiredEnvVarError, match="`MY_VAR`"):
        resolve_field(field, {"KEY": EnvVal("MY_VAR")}, {})


def test_aliased_missing_os_variable_absent_when_optional_nullable() -> None:
    field = make_field(environment=True, declared=NULLABLE, optional=True)
    resolution = resolve_field(field, {"KEY": EnvVal("MY_VAR")}, {})

    assert resolution.origin is Origin.ABSENT
    assert resolution.env_key == "MY_VAR"


def test_aliased_uses_raw_entry_as_variable_name() -> None:
    field = make_field(environment=True)
    entry = EnvVal(raw="${NAME}", interpolated="EXPANDED")
    resolution = resolve_field(field, {"KEY": entry}, {"${NAME}": "raw-hit", "EXPANDED": "x"})

    assert resolution.value.raw == "raw-hit"
