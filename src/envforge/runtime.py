"""Runtime support shared by the generator and generated modules.

The source of every object in ``PRELUDE_OBJECTS`` is copied verbatim into
generated modules that contain obfuscated fields, so encoding here and
decoding there always run the same keystream algorithm. Objects listed
there may only depend on each other and on ``random``.
"""

from __future__ import annotations

import inspect
import random
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


def keystream(seed: int, length: int) -> bytes:
    """Return ``length`` pseudo-random bytes from a generator seeded with ``seed``."""
    rng = random.Random(seed)
    return bytes(rng.getrandbits(8) for _ in range(length))


def reveal(data: bytes, seed: int) -> str:
    """Undo the XOR transform and decode the UTF-8 text."""
    stream = keystream(seed, len(data))
    return bytes(b ^ k for b, k in zip(data, stream)).decode("utf-8")


def parse_bool(text: str) -> bool:
    """Parse ``true``/``false`` (case-insensitive, surrounding blanks ignored)."""
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"Invalid boolean: {text!r}")


def parse_num(text: str) -> int | float:
    """Parse an integer when possible, a float otherwise."""
    try:
        return int(text)
    except ValueError:
        return float(text)


class Revealed:
    """Class attribute that decodes an obfuscated value on first access."""

    __slots__ = ("_data", "_parse", "_ready", "_seed", "_value")

    def __init__(self, data: bytes, seed: int, parse: Callable[[str], Any]) -> None:
        self._data = data
        self._seed = seed
        self._parse = parse
        self._value: Any = None
        self._ready = False

    def __get__(self, instance: object, owner: type | None = None) -> Any:
        if not self._ready:
            self._value = self._parse(reveal(self._data, self._seed))
            self._ready = True
        return self._value


PRELUDE_OBJECTS = (keystream, reveal, parse_bool, parse_num, Revealed)


def prelude_source() -> str:
    """Source text of the runtime helpers, ready to embed in a module."""
    return "\n\n\n".join(inspect.getsource(obj).rstrip() for obj in PRELUDE_OBJECTS)
