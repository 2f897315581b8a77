"""EnvSource: ``.env`` files loaded into raw and interpolated values."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from dotenv import dotenv_values

from envforge.errors import MissingEnvFileError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvVal:
    """A resolved value in both flavours.

    ``interpolated`` has ``${OTHER}`` placeholders substituted; values that
    did not come from a ``.env`` file carry the same text in both.
    """

    raw: str
    interpolated: str | None = None

    def __post_init__(self) -> None:
        if self.interpolated is None:
            object.__setattr__(self, "interpolated", self.raw)

    def text(self, *, interpolate: bool) -> str:
        return self.interpolated if interpolate else self.raw  # type: ignore[return-value]


EnvSource = dict[str, EnvVal]


def load_env_source(
    paths: Iterable[str | os.PathLike[str]],
    *,
    require: bool = False,
    element: str | None = None,
    root: str | os.PathLike[str] | None = None,
) -> EnvSource:
    """Load and merge ``.env`` files, later files winning.

    Args:
        paths: Files to read, relative to ``root`` (default: cwd).
        require: Raise ``MissingEnvFileError`` when a file does not exist;
            otherwise missing files are logged and skipped.
        element: Class reference attached to the error.
        root: Base directory for relative paths.

    Returns:
        Mapping of key to ``EnvVal``. Keys declared without a value are
        left out.
    """
    base = Path(root) if root is not None else Path.cwd()
    merged: EnvSource = {}
    for entry in paths:
        path = Path(entry)
        if not path.is_absolute():
            path = base / path
        if not path.is_file():
            message = f"Environment file not found: {path}"
            if require:
                raise MissingEnvFileError(
                    message,
                    element=element,
                    hint="Create the file or set require_env_file=False.",
                )
            log.warning(message)
            continue
        merged.update(_read_env_file(path))
    return merged


def _read_env_file(path: Path) -> EnvSource:
    raw = dotenv_values(path, interpolate=False, encoding="utf-8")
    interpolated = dotenv_values(path, interpolate=True, encoding="utf-8")
    values: EnvSource = {}
    for key, value in raw.items():
        if value is None:
            log.debug("Skipping %s in %s: declared without a value", key, path)
            continue
        values[key] = EnvVal(raw=value, interpolated=interpolated.get(key))
    log.debug("Loaded %d entries from %s", len(values), path)
    return values


def snapshot_environ(environ: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Return a read-only copy of the process (or given) environment."""
    return MappingProxyType(dict(os.environ if environ is None else environ))
