"""Type validation, run before any value is resolved."""

from __future__ import annotations

from typing import TYPE_CHECKING

from envforge.descriptors import TypeKind
from envforge.errors import (
    MissingExplicitTypeError,
    ReservedFieldNameError,
    UnsupportedTypeError,
)
from envforge.literals import enum_import

if TYPE_CHECKING:
    from collections.abc import Sequence

    from envforge.descriptors import FieldDescriptor

SUPPORTED_KINDS = frozenset(TypeKind) - {TypeKind.UNSUPPORTED}

_SUPPORTED_LABEL = (
    "`int`, `float`, `int | float`, `bool`, `SplitResult`, `datetime`, `Enum`, "
    "`str` and `Any`"
)

# Names generated class bodies look up at class scope, where an earlier
# field of the same name would shadow them.
BODY_NAMES = frozenset(
    {"int", "float", "str", "parse_num", "parse_bool", "urlsplit", "datetime", "Revealed"}
)
CONSTANT_PREFIX = "_envforge_"


def validate_field(field: FieldDescriptor) -> None:
    """Fail fast on a missing or unsupported declared type.

    The check is identical for plain and obfuscated fields; only the wording
    differs.
    """
    if field.declared is None:
        raise MissingExplicitTypeError(
            f"envforge requires types to be explicitly declared. "
            f"`{field.name}` does not declare a type.",
            element=field.element,
            hint=f"Annotate the field, e.g. `{field.name}: str = env_field()`.",
        )
    if field.declared.kind in SUPPORTED_KINDS:
        return
    prefix = "Obfuscated fields" if field.obfuscate else "envforge"
    raise UnsupportedTypeError(
        f"{prefix} can only handle types such as {_SUPPORTED_LABEL}. "
        f"Type `{field.declared.display}` of field `{field.name}` is not one of them.",
        element=field.element,
    )


def validate_field_names(fields: Sequence[FieldDescriptor]) -> None:
    """Reject field names that collide with names the class body uses.

    Enum-typed fields reference their enum by its top-level name, so those
    names are reserved for the class too.
    """
    reserved = set(BODY_NAMES)
    for field in fields:
        if field.declared is not None and field.declared.enum_cls is not None:
            reserved.add(enum_import(field.declared)[1])
    for field in fields:
        if field.name in reserved or field.name.startswith(CONSTANT_PREFIX):
            raise ReservedFieldNameError(
                f"Field `{field.name}` would shadow a name the generated class uses.",
                element=field.element,
                hint="Rename the attribute and keep the variable via `var_name`.",
            )
