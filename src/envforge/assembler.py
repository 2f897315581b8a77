"""Assembler: per-field outputs into class units and units into a module."""

from __future__ import annotations

from dataclasses import dataclass, field
import sys
from typing import TYPE_CHECKING

from envforge.runtime import prelude_source

if TYPE_CHECKING:
    from collections.abc import Iterable

    from envforge.literals import Emission, Import

HEADER = "# Generated by envforge. Do not edit."
_INDENT = "    "


@dataclass(frozen=True)
class FieldOutput:
    """Everything the class body needs for one field."""

    name: str
    annotation: Emission
    value: Emission
    constants: tuple[str, ...] = ()
    uses_runtime: bool = False

    @property
    def imports(self) -> frozenset[Import]:
        return self.annotation.imports | self.value.imports

    def lines(self) -> list[str]:
        return [
            *self.constants,
            f"{self.name}: {self.annotation.expression} = {self.value.expression}",
        ]


@dataclass(frozen=True)
class Unit:
    """One generated class, produced per ``env_config`` occurrence."""

    name: str
    fields: tuple[FieldOutput, ...] = ()
    bases: tuple[str, ...] = ()
    base_imports: frozenset[Import] = field(default_factory=frozenset)

    @property
    def imports(self) -> frozenset[Import]:
        out = set(self.base_imports)
        for f in self.fields:
            out |= f.imports
        return frozenset(out)

    @property
    def uses_runtime(self) -> bool:
        return any(f.uses_runtime for f in self.fields)

    def render(self) -> str:
        bases = f"({', '.join(self.bases)})" if self.bases else ""
        body = [line for f in self.fields for line in f.lines()] or ["pass"]
        return "\n".join([f"class {self.name}{bases}:", *(_INDENT + b for b in body)])


@dataclass(frozen=True)
class UnitGroup:
    """The units generated for one class, with their provenance."""

    generated_from: str
    units: tuple[Unit, ...]


def render_module(groups: Iterable[UnitGroup]) -> str:
    """Render groups into the text of a single Python module.

    The module is never blank: it always carries the header, and a class
    with no fields still yields a ``pass``-bodied class.
    """
    groups = list(groups)
    units = [u for g in groups for u in g.units]
    imports: set[Import] = set()
    for unit in units:
        imports |= unit.imports
    uses_runtime = any(u.uses_runtime for u in units)
    if uses_runtime:
        imports.add(("random", None))

    sections = [f"{HEADER}\n# ruff: noqa", "from __future__ import annotations"]
    sections.extend(render_imports(imports))
    if uses_runtime:
        sections.append(prelude_source())
    for group in groups:
        if not group.units:
            continue
        rendered = "\n\n\n".join(u.render() for u in group.units)
        sections.append(f"# generated_from: {group.generated_from}\n{rendered}")
    return _join_sections(sections)


def render_imports(imports: Iterable[Import]) -> list[str]:
    """Render import blocks: standard library first, then everything else."""
    stdlib: list[str] = []
    local: list[str] = []
    modules: dict[str, set[str]] = {}
    plain: set[str] = set()
    for module, name in imports:
        if name is None:
            plain.add(module)
        else:
            modules.setdefault(module, set()).add(name)

    for module in sorted(plain | set(modules)):
        lines = []
        if module in plain:
            lines.append(f"import {module}")
        if module in modules:
            lines.append(f"from {module} import {', '.join(sorted(modules[module]))}")
        target = stdlib if _is_stdlib(module) else local
        target.extend(lines)
    return ["\n".join(block) for block in (stdlib, local) if block]


def _is_stdlib(module: str) -> bool:
    return module.split(".")[0] in sys.stdlib_module_names


def _join_sections(sections: list[str]) -> str:
    # Two blank lines before top-level definitions, one between header blocks.
    out = sections[0]
    for section in sections[1:]:
        starts_definition = section.startswith(("def ", "class ", "# generated_from"))
        out += ("\n\n\n" if starts_definition else "\n\n") + section
    return out + "\n"
