"""Canonical parsing and typed literal emission.

Every declared type has one canonical text parser. Plain fields are emitted
as a Python expression that evaluates to exactly what the parser returns for
the resolved text; obfuscated fields run the same parser when the generated
module first reads them.
"""

from __future__ import annotations

from dataclasses import dataclass
import datetime
import keyword
import math
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from envforge.descriptors import TypeKind
from envforge.errors import InvalidValueError
from envforge.runtime import parse_bool, parse_num

if TYPE_CHECKING:
    from collections.abc import Callable

    from envforge.descriptors import DeclaredType, FieldDescriptor

# (module, name); name None renders as ``import module``.
Import = tuple[str, str | None]

_URLSPLIT: Import = ("urllib.parse", "urlsplit")
_DATETIME: Import = ("datetime", None)


@dataclass(frozen=True)
class Emission:
    """A Python expression plus the imports it needs."""

    expression: str
    imports: frozenset[Import] = frozenset()


def canonical_parser(declared: DeclaredType) -> Callable[[str], Any]:
    """Return the text parser for a declared type."""
    match declared.kind:
        case TypeKind.INT:
            return int
        case TypeKind.DOUBLE:
            return float
        case TypeKind.NUM:
            return parse_num
        case TypeKind.BOOL:
            return parse_bool
        case TypeKind.URI:
            return urlsplit
        case TypeKind.DATETIME:
            return datetime.datetime.fromisoformat
        case TypeKind.ENUM:
            enum_cls = declared.enum_cls
            assert enum_cls is not None
            return lambda text: enum_cls[text]
        case TypeKind.STRING | TypeKind.DYNAMIC:
            return str
    raise ValueError(f"No parser for {declared.display}")


def parse_value(field: FieldDescriptor, text: str) -> Any:
    """Parse ``text`` as the field's declared type.

    Raises:
        InvalidValueError: The text is not a valid value of that type.
    """
    assert field.declared is not None
    try:
        return canonical_parser(field.declared)(text)
    except (ValueError, KeyError) as e:
        raise InvalidValueError(
            f"Value for field `{field.name}` is not a valid "
            f"`{field.declared.display}`.",
            element=field.element,
            hint=f"Check the value of {field.var_name}.",
        ) from e


def plain_literal(field: FieldDescriptor, text: str | None) -> Emission:
    """Emit the typed literal for a plain (not obfuscated) field."""
    if text is None:
        return Emission("None")
    declared = field.declared
    assert declared is not None
    value = parse_value(field, text)

    match declared.kind:
        case TypeKind.INT | TypeKind.BOOL:
            return Emission(repr(value))
        case TypeKind.DOUBLE | TypeKind.NUM:
            return Emission(_number_literal(value))
        case TypeKind.URI:
            return Emission(f"urlsplit({string_literal(text)})", frozenset({_URLSPLIT}))
        case TypeKind.DATETIME:
            return Emission(
                f"datetime.datetime.fromisoformat({string_literal(text)})",
                frozenset({_DATETIME}),
            )
        case TypeKind.ENUM:
            assert declared.enum_cls is not None
            return Emission(
                _member_reference(declared.enum_cls.__qualname__, value.name),
                frozenset({enum_import(declared)}),
            )
    return Emission(string_literal(text, raw=field.raw_string))


def runtime_parser(declared: DeclaredType) -> Emission:
    """Expression naming the parser the generated module applies on decode."""
    match declared.kind:
        case TypeKind.INT:
            return Emission("int")
        case TypeKind.DOUBLE:
            return Emission("float")
        case TypeKind.NUM:
            return Emission("parse_num")
        case TypeKind.BOOL:
            return Emission("parse_bool")
        case TypeKind.URI:
            return Emission("urlsplit", frozenset({_URLSPLIT}))
        case TypeKind.DATETIME:
            return Emission("datetime.datetime.fromisoformat", frozenset({_DATETIME}))
        case TypeKind.ENUM:
            assert declared.enum_cls is not None
            return Emission(
                f"lambda text: {declared.enum_cls.__qualname__}[text]",
                frozenset({enum_import(declared)}),
            )
    return Emission("str")


def annotation_for(declared: DeclaredType) -> Emission:
    """Type annotation for the generated class attribute."""
    imports: frozenset[Import] = frozenset()
    match declared.kind:
        case TypeKind.INT:
            text = "int"
        case TypeKind.DOUBLE:
            text = "float"
        case TypeKind.NUM:
            text = "int | float"
        case TypeKind.BOOL:
            text = "bool"
        case TypeKind.URI:
            text = "SplitResult"
            imports = frozenset({("urllib.parse", "SplitResult")})
        case TypeKind.DATETIME:
            text = "datetime.datetime"
            imports = frozenset({_DATETIME})
        case TypeKind.ENUM:
            assert declared.enum_cls is not None
            text = declared.enum_cls.__qualname__
            imports = frozenset({enum_import(declared)})
        case TypeKind.DYNAMIC:
            return Emission("Any", frozenset({("typing", "Any")}))
        case _:
            text = "str"
    if declared.nullable:
        text = f"{text} | None"
    return Emission(text, imports)


def enum_import(declared: DeclaredType) -> Import:
    enum_cls = declared.enum_cls
    assert enum_cls is not None
    return (enum_cls.__module__, enum_cls.__qualname__.split(".")[0])


def string_literal(text: str, *, raw: bool = False) -> str:
    """Quote ``text`` as a Python string literal.

    With ``raw`` the literal is an ``r``-string (no escape processing) when
    the text can be written as one; otherwise the regular quoted form.
    """
    if raw:
        for quote in ("'", '"'):
            if _raw_representable(text, quote):
                return f"r{quote}{text}{quote}"
    return repr(text)


def _raw_representable(text: str, quote: str) -> bool:
    if quote in text or text.endswith("\\"):
        return False
    return all(c.isprintable() or c == "\t" for c in text)


def _member_reference(qualname: str, name: str) -> str:
    if name.isidentifier() and not keyword.iskeyword(name):
        return f"{qualname}.{name}"
    return f"{qualname}[{name!r}]"


def _number_literal(value: int | float) -> str:
    if isinstance(value, float) and not math.isfinite(value):
        return f"float({str(value)!r})"
    return repr(value)
