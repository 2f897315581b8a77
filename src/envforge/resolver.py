"""Value resolution waterfall.

Direct mode tries, in order: the env source, the OS environment, the
field default. Aliased mode reads the env source entry as the *name* of an
OS variable and takes the value from the OS environment only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING

from envforge.errors import (
    MissingIndirectionTargetError,
    MissingRequiredEnvVarError,
    MissingRequiredValueError,
)
from envforge.sources import EnvVal

if TYPE_CHECKING:
    from collections.abc import Mapping

    from envforge.descriptors import FieldDescriptor
    from envforge.sources import EnvSource

log = logging.getLogger(__name__)


class Origin(str, Enum):
    """Where a field's value came from."""

    ENV_FILE = "env_file"
    OS_ENV = "os_env"
    OS_ALIAS = "os_alias"
    DEFAULT = "default"
    ABSENT = "absent"


@dataclass(frozen=True)
class Resolution:
    """Outcome of the waterfall for one field. ``value`` is None when absent."""

    value: EnvVal | None
    origin: Origin
    env_key: str | None = None

    @property
    def present(self) -> bool:
        return self.value is not None


def resolve_field(
    field: FieldDescriptor,
    env_source: EnvSource,
    environ: Mapping[str, str],
) -> Resolution:
    """Resolve one field's value.

    Raises:
        MissingIndirectionTargetError: Aliased key not declared in the env source.
        MissingRequiredEnvVarError: Aliased OS variable unset for a required field.
        MissingRequiredValueError: Nothing resolved for a required field.
    """
    if field.environment:
        resolution = _resolve_aliased(field, env_source, environ)
    else:
        resolution = _resolve_direct(field, env_source, environ)

    if not resolution.present and not field.accepts_absent:
        raise MissingRequiredValueError(
            f"Environment variable not found for field `{field.name}`.",
            element=field.element,
            hint=(
                f"Add {field.var_name}=... to the env file, export it, "
                "or give the field a default."
            ),
        )
    log.debug(
        "Resolved %s from %s%s",
        field.element,
        resolution.origin.value,
        f" ({resolution.env_key})" if resolution.env_key else "",
    )
    return resolution


def _resolve_direct(
    field: FieldDescriptor,
    env_source: EnvSource,
    environ: Mapping[str, str],
) -> Resolution:
    key = field.var_name
    if key in env_source:
        return Resolution(env_source[key], Origin.ENV_FILE, key)
    if key in environ:
        return Resolution(EnvVal(raw=environ[key]), Origin.OS_ENV, key)
    if field.default_value is not None:
        return Resolution(EnvVal(raw=field.default_value), Origin.DEFAULT)
    return Resolution(None, Origin.ABSENT)


def _resolve_aliased(
    field: FieldDescriptor,
    env_source: EnvSource,
    environ: Mapping[str, str],
) -> Resolution:
    entry = env_source.get(field.var_name)
    if entry is None:
        raise MissingIndirectionTargetError(
            f"Expected to find an .env entry with a key of `{field.var_name}` "
            f"for field `{field.name}` but none was found.",
            element=field.element,
            hint=f"Declare {field.var_name}=<OS variable name> in the env file.",
        )
    os_key = entry.raw
    if os_key in environ:
        return Resolution(EnvVal(raw=environ[os_key]), Origin.OS_ALIAS, os_key)
    if field.accepts_absent:
        return Resolution(None, Origin.ABSENT, os_key)
    raise MissingRequiredEnvVarError(
        f"Expected to find a system environment variable named `{os_key}` "
        f"for field `{field.name}` but no value was found.",
        element=field.element,
        hint=f"Export {os_key} before generating.",
    )
