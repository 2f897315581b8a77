"""Front end: declare configuration classes and read them into descriptors.

A configuration class is a plain class decorated with :func:`env_config`
whose fields are annotated class attributes assigned :func:`env_field`:

    @env_config(path=".env", obfuscate=False)
    class Env:
        api_key: str = env_field(var_name="API_KEY", obfuscate=True)
        port: int = env_field(default=8080)

``env_config`` may be stacked; each occurrence produces an independent
generated unit.
"""

from __future__ import annotations

import datetime
from enum import Enum
import inspect
import types
import typing
from typing import TYPE_CHECKING, Any, TypeVar, Union, get_args, get_origin
from urllib.parse import SplitResult

from envforge.descriptors import (
    DEFAULT_ENV_PATH,
    ClassDescriptor,
    DeclaredType,
    EnvConfig,
    EnvField,
    FieldSpec,
    TypeKind,
)
from envforge.errors import InvalidAnnotationTargetError

if TYPE_CHECKING:
    from collections.abc import Sequence

CONFIGS_ATTR = "__envforge_configs__"

T = TypeVar("T")

_SIMPLE_KINDS: dict[Any, TypeKind] = {
    bool: TypeKind.BOOL,
    int: TypeKind.INT,
    float: TypeKind.DOUBLE,
    str: TypeKind.STRING,
    SplitResult: TypeKind.URI,
    datetime.datetime: TypeKind.DATETIME,
}

# Raised by typing.get_type_hints for annotations that cannot be evaluated.
_UNRESOLVABLE = (NameError, AttributeError, SyntaxError, TypeError)


def env_field(
    *,
    var_name: str | None = None,
    default: Any = None,
    obfuscate: bool | None = None,
    optional: bool | None = None,
    environment: bool | None = None,
    use_constant_case: bool | None = None,
    interpolate: bool | None = None,
    raw_string: bool | None = None,
    random_seed: int | None = None,
) -> Any:
    """Mark a class attribute as a generated configuration field.

    Unset options inherit the class-level defaults of each ``env_config``.
    The return type is ``Any`` so the marker type-checks against any
    annotation.
    """
    return EnvField(
        var_name=var_name,
        default=default,
        obfuscate=obfuscate,
        optional=optional,
        environment=environment,
        use_constant_case=use_constant_case,
        interpolate=interpolate,
        raw_string=raw_string,
        random_seed=random_seed,
    )


def env_config(
    target: Any = None,
    *,
    path: str | Sequence[str] = DEFAULT_ENV_PATH,
    require_env_file: bool = False,
    name: str | None = None,
    obfuscate: bool = False,
    allow_optional_fields: bool = False,
    environment: bool = False,
    use_constant_case: bool = False,
    interpolate: bool = True,
    raw_strings: bool = False,
    random_seed: int | None = None,
) -> Any:
    """Declare a class as a configuration source for code generation.

    Usable bare (``@env_config``) or with options. Raises
    ``InvalidAnnotationTargetError`` when applied to anything but a class.
    """
    config = EnvConfig(
        path=(path,) if isinstance(path, str) else tuple(path),
        require_env_file=require_env_file,
        name=name,
        obfuscate=obfuscate,
        allow_optional_fields=allow_optional_fields,
        environment=environment,
        use_constant_case=use_constant_case,
        interpolate=interpolate,
        raw_strings=raw_strings,
        random_seed=random_seed,
    )

    def apply(cls: T) -> T:
        if not inspect.isclass(cls):
            raise InvalidAnnotationTargetError(
                "`env_config` can only be used on classes.",
                element=getattr(cls, "__qualname__", repr(cls)),
            )
        # Decorators apply bottom-up; keep the configs in source order.
        existing = cls.__dict__.get(CONFIGS_ATTR, ())
        setattr(cls, CONFIGS_ATTR, (config, *existing))
        return cls

    if target is None:
        return apply
    return apply(target)


def is_env_config_class(obj: Any) -> bool:
    return inspect.isclass(obj) and bool(obj.__dict__.get(CONFIGS_ATTR))


def classify(annotation: Any) -> DeclaredType | None:
    """Classify a Python annotation into the closed ``TypeKind`` variant.

    Returns ``None`` when no annotation is available.
    """
    if annotation is None or annotation is inspect.Parameter.empty:
        return None
    if annotation is Any:
        return DeclaredType(TypeKind.DYNAMIC, "Any", nullable=True)

    nullable = False
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in get_args(annotation) if a is not type(None)]
        nullable = len(members) != len(get_args(annotation))
        if set(members) == {int, float}:
            return DeclaredType(TypeKind.NUM, "int | float", nullable=nullable)
        if len(members) != 1:
            return DeclaredType(TypeKind.UNSUPPORTED, _display(annotation), nullable)
        annotation = members[0]
        if annotation is Any:
            return DeclaredType(TypeKind.DYNAMIC, "Any", nullable=True)

    if get_origin(annotation) is not None:
        # Parameterized generics such as list[str].
        return DeclaredType(TypeKind.UNSUPPORTED, _display(annotation), nullable=nullable)
    kind = _SIMPLE_KINDS.get(annotation)
    if kind is not None:
        return DeclaredType(kind, _display(annotation), nullable=nullable)
    if inspect.isclass(annotation) and issubclass(annotation, Enum):
        return DeclaredType(
            TypeKind.ENUM, annotation.__name__, nullable=nullable, enum_cls=annotation
        )
    return DeclaredType(TypeKind.UNSUPPORTED, _display(annotation), nullable=nullable)


def discover(cls: type) -> ClassDescriptor:
    """Read a decorated class into a ``ClassDescriptor``.

    Fields are the class attributes assigned ``env_field(...)``, in
    definition order.
    """
    if not inspect.isclass(cls):
        raise InvalidAnnotationTargetError(
            "`env_config` can only be used on classes.",
            element=getattr(cls, "__qualname__", repr(cls)),
        )
    hints = _annotations_of(cls)
    fields = tuple(
        FieldSpec(name=attr, declared=classify(hints.get(attr)), options=value)
        for attr, value in cls.__dict__.items()
        if isinstance(value, EnvField)
    )
    return ClassDescriptor(
        name=cls.__name__,
        module=cls.__module__,
        qualname=cls.__qualname__,
        configs=tuple(cls.__dict__.get(CONFIGS_ATTR, ())),
        fields=fields,
    )


def discover_module(module: types.ModuleType) -> list[ClassDescriptor]:
    """Discover every decorated class defined in ``module``."""
    return [
        discover(obj)
        for obj in vars(module).values()
        if is_env_config_class(obj) and obj.__module__ == module.__name__
    ]


# --- Internal helpers ---


def _annotations_of(cls: type) -> dict[str, Any]:
    """Evaluate the class's own annotations, leaving unresolvable ones out."""
    raw: dict[str, Any] = dict(inspect.get_annotations(cls))
    try:
        hints = typing.get_type_hints(cls)
    except _UNRESOLVABLE:
        hints = {}
    resolved: dict[str, Any] = {}
    for attr, annotation in raw.items():
        if attr in hints:
            resolved[attr] = hints[attr]
        elif not isinstance(annotation, str):
            resolved[attr] = annotation
        else:
            resolved[attr] = _eval_annotation(cls, attr, annotation)
    return resolved


def _eval_annotation(cls: type, attr: str, annotation: str) -> Any:
    """Resolve one string annotation in the scope of ``cls``'s module.

    Returns ``None`` when the annotation names something undefined.
    """
    holder = type(
        cls.__name__,
        (),
        {"__annotations__": {attr: annotation}, "__module__": cls.__module__},
    )
    try:
        return typing.get_type_hints(holder, localns=dict(vars(cls)))[attr]
    except _UNRESOLVABLE:
        return None


def _display(annotation: Any) -> str:
    if get_origin(annotation) is None and inspect.isclass(annotation):
        return annotation.__name__
    text = repr(annotation)
    return text.replace("typing.", "")

