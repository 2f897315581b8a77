"""EnvSource loading from .env files."""

from __future__ import annotations

import logging

import pytest

from envforge.errors import MissingEnvFileError
from envforge.sources import EnvVal, load_env_source, snapshot_environ

pytestmark = pytest.mark.unit


def test_values_carry_raw_and_interpolated_forms(env_file, tmp_path) -> None:
    env_file("BASE=http://localhost\nURL=${BASE}/api\nPLAIN='quoted value'\n")

    source = load_env_source([".env"], root=tmp_path)

    assert source["URL"].raw == "${BASE}/api"
    assert source["URL"].interpolated == "http://localhost/api"
    assert source["URL"].text(interpolate=False) == "${BASE}/api"
    assert source["PLAIN"].text(interpolate=True) == "quoted value"


def test_later_files_win(env_file, tmp_path) -> None:
    env_file("A=1\nB=1\n", name=".env")
    env_file("B=2\n", name=".env.local")

    source = load_env_source([".env", ".env.local"], root=tmp_path)

    assert source["A"].raw == "1"
    assert source["B"].raw == "2"


def test_keys_without_value_are_left_out(env_file, tmp_path) -> None:
    env_file("DECLARED_ONLY\nEMPTY=\n")

    source = load_env_source([".env"], root=tmp_path)

    assert "DECLARED_ONLY" not in source
    assert source["EMPTY"].raw == ""


def test_missing_file_is_skipped_with_warning(tmp_path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="envforge.sources"):
        source = load_env_source([".env.missing"], root=tmp_path)

    assert source == {}
    assert "Environment file not found" in caplog.text


def test_missing_required_file_raises(tmp_path) -> None:
    with pytest.raises(MissingEnvFileError) as exc:
        load_env_source([".env"], require=True, element="Env", root=tmp_path)
    assert exc.value.element == "Env"
    assert exc.value.hint is not None


def test_absolute_paths_ignore_root(env_file, tmp_path) -> None:
    path = env_file("KEY=value\n")

    source = load_env_source([str(path)], root=tmp_path / "elsewhere")

    assert source["KEY"].raw == "value"


def test_env_val_defaults_interpolated_to_raw() -> None:
    assert EnvVal(raw="x").interpolated == "x"
    assert EnvVal(raw="x", interpolated="").text(interpolate=True) == ""


def test_snapshot_is_read_only_copy() -> None:
    original = {"A": "1"}
    snapshot = snapshot_environ(original)
    original["A"] = "2"

    assert snapshot["A"] == "1"
    with pytest.raises(TypeError):
        snapshot["B"] = "3"  # type: ignore[index]
