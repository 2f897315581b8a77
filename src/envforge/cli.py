"""Command-line interface.

    envforge generate app.settings [more.modules ...] [--path .env.prod --override]
    envforge explain

``generate`` imports each module, generates every ``env_config`` class in it
and writes ``<module><suffix>.py`` next to the module (or into
``--output-dir``). A module's file is only written when all of its classes
succeed.
"""

from __future__ import annotations

import argparse
import importlib
import logging
import os
from pathlib import Path
import sys
import tempfile
from typing import TYPE_CHECKING

from envforge.config import BuildOptions, audit_lines, resolve_build_options
from envforge.discovery import discover_module
from envforge.errors import ConfigurationError
from envforge.generator import audit_lines as field_audit_lines
from envforge.generator import generate_many

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import ModuleType

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DIAGNOSTICS = 1
EXIT_USAGE = 2


class UsageError(Exception):
    """Bad command-line input (unimportable module, bad options)."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        "envforge", description="Generate configuration constants from .env files."
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)."
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    gen = sub.add_parser("generate", help="Generate modules for env_config classes.")
    gen.add_argument("modules", nargs="+", help="Dotted module names or .py paths.")
    _add_option_flags(gen)
    gen.add_argument("--output-dir", type=Path, help="Directory for generated files.")
    gen.add_argument(
        "--check", action="store_true", help="Generate and report without writing."
    )
    gen.add_argument(
        "--explain", action="store_true", help="Print where each field's value came from."
    )

    explain = sub.add_parser("explain", help="Show resolved build options.")
    _add_option_flags(explain)
    return parser


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--path", help="Env file used when --override is set.")
    parser.add_argument(
        "--override",
        action="store_true",
        default=None,
        help="Use --path instead of each class's own path.",
    )
    parser.add_argument("--output-suffix", help="Suffix of generated module names.")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    overrides = {
        "path": args.path,
        "override": args.override,
        "output_suffix": args.output_suffix,
    }
    try:
        if args.cmd == "explain":
            options, sources = resolve_build_options(overrides, explain=True)
            for line in audit_lines(options, sources):
                sys.stdout.write(line + "\n")
            return EXIT_OK
        options = resolve_build_options(overrides)
        return _generate(args, options)
    except (ConfigurationError, UsageError) as e:
        hint = getattr(e, "hint", None)
        sys.stderr.write(f"error: {e}\n" + (f"hint: {hint}\n" if hint else ""))
        return EXIT_USAGE


def _generate(args: argparse.Namespace, options: BuildOptions) -> int:
    status = EXIT_OK
    for name in args.modules:
        module = import_target(name)
        descriptors = discover_module(module)
        if not descriptors:
            log.warning("No env_config classes found in %s", module.__name__)
            continue

        result = generate_many(descriptors, options=options)
        if args.explain:
            for output in result.outputs:
                for line in field_audit_lines(output):
                    sys.stdout.write(line + "\n")
        if not result.ok:
            for diagnostic in result.diagnostics:
                sys.stderr.write(f"{diagnostic}\n")
                if diagnostic.hint:
                    sys.stderr.write(f"  hint: {diagnostic.hint}\n")
            status = EXIT_DIAGNOSTICS
            continue

        target = output_path(module, options, args.output_dir)
        if args.check:
            sys.stdout.write(f"ok: {target}\n")
            continue
        write_atomic(target, result.render())
        sys.stdout.write(f"wrote {target}\n")
    return status


def import_target(name: str) -> ModuleType:
    """Import a module by dotted name or by ``.py`` file path."""
    if name.endswith(".py") or os.sep in name:
        path = Path(name).resolve()
        if not path.is_file():
            raise UsageError(f"No such file: {name}")
        root, dotted = module_name_for(path)
        module = _import_from(root, dotted)
        source = getattr(module, "__file__", None)
        if source is None or Path(source).resolve() != path:
            raise UsageError(
                f"{name} imports as `{dotted}`, which resolves to {source}"
            )
        return module
    return _import_from(Path.cwd(), name)


def module_name_for(path: Path) -> tuple[Path, str]:
    """Return the import root and dotted module name of a ``.py`` file.

    Parent directories holding an ``__init__.py`` are packages, so
    ``app/settings.py`` inside package ``app`` is ``app.settings``.
    """
    parts = [path.stem]
    directory = path.parent
    while (directory / "__init__.py").is_file() and directory.parent != directory:
        parts.insert(0, directory.name)
        directory = directory.parent
    return directory, ".".join(parts)


def _import_from(root: Path, name: str) -> ModuleType:
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    try:
        return importlib.import_module(name)
    except ImportError as e:
        raise UsageError(f"Cannot import {name}: {e}") from e


def output_path(module: ModuleType, options: BuildOptions, output_dir: Path | None) -> Path:
    source = getattr(module, "__file__", None)
    if source is None:
        raise UsageError(f"Module {module.__name__} has no source file")
    path = Path(source)
    directory = output_dir or path.parent
    return directory / f"{path.stem}{options.output_suffix}.py"


def write_atomic(target: Path, text: str) -> None:
    """Write through a temporary file in the same directory, then replace."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, target)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
