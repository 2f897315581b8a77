"""Generation: descriptors in, Python module text out.

For each ``env_config`` occurrence of a class, every field goes through
validation, the resolution waterfall and either plain or obfuscated
emission; the results are assembled into one unit per occurrence. Any
failure aborts the whole class; ``generate_many`` keeps going with the
other classes and reports one diagnostic per failed class.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import TYPE_CHECKING

from envforge.assembler import FieldOutput, Unit, UnitGroup, render_module
from envforge.config import BuildOptions
from envforge.descriptors import ClassDescriptor, effective_field
from envforge.discovery import discover
from envforge.errors import Diagnostic, GenerationError, InvalidAnnotationTargetError
from envforge.literals import annotation_for, parse_value, plain_literal
from envforge.obfuscation import obfuscated_field
from envforge.resolver import resolve_field
from envforge.sources import load_env_source, snapshot_environ
from envforge.validation import validate_field, validate_field_names

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from envforge.descriptors import EnvConfig, FieldDescriptor
    from envforge.literals import Import
    from envforge.resolver import Resolution

log = logging.getLogger(__name__)

Target = type | ClassDescriptor


@dataclass(frozen=True)
class ClassOutput:
    """Generated units for one class, plus the origin of every value."""

    descriptor: ClassDescriptor
    group: UnitGroup
    resolutions: tuple[tuple[str, Resolution], ...] = ()

    def render(self) -> str:
        return render_module([self.group])


@dataclass(frozen=True)
class BatchResult:
    """Outputs of the classes that succeeded and diagnostics of those that failed."""

    outputs: tuple[ClassOutput, ...]
    diagnostics: tuple[Diagnostic, ...]

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def render(self) -> str:
        return render_module(o.group for o in self.outputs)


def generate_class(
    target: Target,
    *,
    options: BuildOptions | None = None,
    environ: Mapping[str, str] | None = None,
    root: str | os.PathLike[str] | None = None,
) -> ClassOutput:
    """Generate the units of one class.

    Args:
        target: A decorated class or its descriptor.
        options: Run-wide build options (path override).
        environ: OS environment; defaults to a snapshot of ``os.environ``.
        root: Directory env file paths are relative to (default: cwd).

    Raises:
        GenerationError: On the first validation or resolution failure.
    """
    descriptor = target if isinstance(target, ClassDescriptor) else discover(target)
    options = options or BuildOptions()
    env = environ if environ is not None else snapshot_environ()

    if not descriptor.configs:
        raise InvalidAnnotationTargetError(
            f"`{descriptor.qualname}` is not decorated with `env_config`.",
            element=descriptor.qualname,
            hint="Decorate the class with @env_config.",
        )

    # Types are checked for every occurrence before any value is resolved.
    per_config = [
        (config, [effective_field(descriptor.qualname, f, config) for f in descriptor.fields])
        for config in descriptor.configs
    ]
    for _, fields in per_config:
        for field in fields:
            validate_field(field)
        validate_field_names(fields)

    units: list[Unit] = []
    resolutions: list[tuple[str, Resolution]] = []
    for config, fields in per_config:
        unit, resolved = _generate_unit(descriptor, config, fields, options, env, root)
        units.append(unit)
        resolutions.extend(resolved)

    generated_from = ", ".join(options.effective_paths(descriptor.configs[0].path))
    log.info("Generated %d unit(s) for %s", len(units), descriptor.qualname)
    return ClassOutput(
        descriptor=descriptor,
        group=UnitGroup(generated_from=generated_from, units=tuple(units)),
        resolutions=tuple(resolutions),
    )


def generate(
    target: Target,
    *,
    options: BuildOptions | None = None,
    environ: Mapping[str, str] | None = None,
    root: str | os.PathLike[str] | None = None,
) -> str:
    """Generate the module text for a single class."""
    return generate_class(target, options=options, environ=environ, root=root).render()


def generate_many(
    targets: Iterable[Target],
    *,
    options: BuildOptions | None = None,
    environ: Mapping[str, str] | None = None,
    root: str | os.PathLike[str] | None = None,
) -> BatchResult:
    """Generate several classes; a failing class never affects the others."""
    env = snapshot_environ(environ)
    outputs: list[ClassOutput] = []
    diagnostics: list[Diagnostic] = []
    for target in targets:
        try:
            outputs.append(
                generate_class(target, options=options, environ=env, root=root)
            )
        except GenerationError as e:
            name = getattr(target, "qualname", None) or getattr(target, "__qualname__", target)
            log.warning("Generation failed for %s: %s", name, e)
            diagnostics.append(e.to_diagnostic())
    return BatchResult(outputs=tuple(outputs), diagnostics=tuple(diagnostics))


def _generate_unit(
    descriptor: ClassDescriptor,
    config: EnvConfig,
    fields: list[FieldDescriptor],
    options: BuildOptions,
    environ: Mapping[str, str],
    root: str | os.PathLike[str] | None,
) -> tuple[Unit, list[tuple[str, Resolution]]]:
    env_source = load_env_source(
        options.effective_paths(config.path),
        require=config.require_env_file,
        element=descriptor.qualname,
        root=root,
    )
    unit_name = f"_{config.name or descriptor.name}"

    outputs: list[FieldOutput] = []
    resolved: list[tuple[str, Resolution]] = []
    for field in fields:
        resolution = resolve_field(field, env_source, environ)
        resolved.append((f"{unit_name}.{field.name}", resolution))
        text = (
            resolution.value.text(interpolate=field.interpolate)
            if resolution.value is not None
            else None
        )
        outputs.append(_emit_field(field, text))

    bases: tuple[str, ...] = ()
    base_imports: frozenset[Import] = frozenset()
    if descriptor.multiple_annotations:
        bases = (descriptor.qualname,)
        base_imports = frozenset({(descriptor.module, descriptor.qualname.split(".")[0])})
    return (
        Unit(name=unit_name, fields=tuple(outputs), bases=bases, base_imports=base_imports),
        resolved,
    )


def _emit_field(field: FieldDescriptor, text: str | None) -> FieldOutput:
    assert field.declared is not None
    annotation = annotation_for(field.declared)
    if not field.obfuscate:
        return FieldOutput(field.name, annotation, plain_literal(field, text))

    if text is not None:
        # Fail at generation time rather than on first access.
        parse_value(field, text)
    emitted = obfuscated_field(field, text)
    return FieldOutput(
        field.name,
        annotation,
        emitted.value,
        constants=emitted.constants,
        uses_runtime=emitted.uses_runtime,
    )


def audit_lines(output: ClassOutput) -> list[str]:
    """One ``unit.field: origin`` line per field; values are never shown."""
    lines = []
    for element, resolution in output.resolutions:
        key = f" ({resolution.env_key})" if resolution.env_key else ""
        lines.append(f"{element}: {resolution.origin.value}{key}")
    return lines
