"""envforge: compile ``.env`` configuration into typed Python modules.

Public API:
    - env_config(): Declare a configuration class
    - env_field(): Declare a generated field
    - generate(): Module text for one class
    - generate_class(): Units plus value origins for one class
    - generate_many(): Batch generation with per-class diagnostics
    - BuildOptions / resolve_build_options(): Run-wide options
"""

from __future__ import annotations

import logging

from envforge.config import BuildOptions, resolve_build_options
from envforge.discovery import discover, discover_module, env_config, env_field
from envforge.errors import (
    ConfigurationError,
    Diagnostic,
    EnvforgeError,
    ErrorKind,
    GenerationError,
    InvalidAnnotationTargetError,
    InvalidValueError,
    MissingEnvFileError,
    MissingExplicitTypeError,
    MissingIndirectionTargetError,
    MissingRequiredEnvVarError,
    MissingRequiredValueError,
    ReservedFieldNameError,
    UnsupportedTypeError,
)
from envforge.generator import BatchResult, ClassOutput, generate, generate_class, generate_many

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("envforge")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("envforge").addHandler(logging.NullHandler())

__all__ = [
    "BatchResult",
    "BuildOptions",
    "ClassOutput",
    "ConfigurationError",
    "Diagnostic",
    "EnvforgeError",
    "ErrorKind",
    "GenerationError",
    "InvalidAnnotationTargetError",
    "InvalidValueError",
    "MissingEnvFileError",
    "MissingExplicitTypeError",
    "MissingIndirectionTargetError",
    "MissingRequiredEnvVarError",
    "MissingRequiredValueError",
    "ReservedFieldNameError",
    "UnsupportedTypeError",
    "discover",
    "discover_module",
    "env_config",
    "env_field",
    "generate",
    "generate_class",
    "generate_many",
    "resolve_build_options",
]
