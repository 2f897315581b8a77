"""Module assembly: header, imports, prelude and class units."""

from __future__ import annotations

import pytest

from envforge.assembler import HEADER, FieldOutput, Unit, UnitGroup, render_imports, render_module
from envforge.literals import Emission
from tests.helpers import load_generated

pytestmark = pytest.mark.unit


def field(name: str, annotation: str, value: str, imports=frozenset()) -> FieldOutput:
    return FieldOutput(name, Emission(annotation), Emission(value, frozenset(imports)))


def test_empty_unit_has_pass_body() -> None:
    assert Unit(name="_Env").render() == "class _Env:\n    pass"


def test_unit_with_bases_and_fields() -> None:
    unit = Unit(
        name="_Dev",
        fields=(field("port", "int", "80"), field("host", "str", "'localhost'")),
        bases=("Env",),
    )
    assert unit.render() == (
        "class _Dev(Env):\n    port: int = 80\n    host: str = 'localhost'"
    )


def test_module_starts_with_header_and_future_import() -> None:
    text = render_module([UnitGroup(".env", (Unit("_Env", (field("a", "int", "1"),)),))])
    lines = text.splitlines()

    assert lines[0] == HEADER
    assert "from __future__ import annotations" in lines
    assert "# generated_from: .env" in lines
    assert text.endswith("\n")


def test_module_without_units_is_still_valid() -> None:
    text = render_module([UnitGroup("", ())])
    assert text.startswith(HEADER)
    load_generated(text)


def test_empty_class_renders_loadable_module() -> None:
    module = load_generated(render_module([UnitGroup(".env", (Unit("_Env"),))]))
    assert isinstance(module._Env, type)


def test_prelude_only_when_runtime_used() -> None:
    plain = Unit("_A", (field("a", "int", "1"),))
    runtime = Unit(
        "_B",
        (FieldOutput("b", Emission("str"), Emission("None"), uses_runtime=True),),
    )

    assert "def reveal" not in render_module([UnitGroup(".env", (plain,))])
    text = render_module([UnitGroup(".env", (runtime,))])
    assert "import random" in text
    assert "class Revealed" in text


def test_imports_grouped_stdlib_first_and_merged() -> None:
    blocks = render_imports(
        [
            ("urllib.parse", "urlsplit"),
            ("urllib.parse", "SplitResult"),
            ("datetime", None),
            ("app.settings", "Stage"),
        ]
    )
    assert blocks == [
        "import datetime\nfrom urllib.parse import SplitResult, urlsplit",
        "from app.settings import Stage",
    ]


def test_groups_render_in_order() -> None:
    text = render_module(
        [
            UnitGroup(".env.a", (Unit("_A"),)),
            UnitGroup(".env.b", (Unit("_B"),)),
        ]
    )
    assert text.index("# generated_from: .env.a") < text.index("# generated_from: .env.b")
