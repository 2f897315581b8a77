"""Obfuscation engine: seeded XOR keystream over UTF-8 bytes.

Not a security mechanism. It keeps secrets out of generated sources as
readable literals; anyone holding the generated module can decode them.
"""

from __future__ import annotations

from dataclasses import dataclass
import secrets
from typing import TYPE_CHECKING

from envforge.literals import Emission, runtime_parser
from envforge.runtime import keystream, reveal

if TYPE_CHECKING:
    from envforge.descriptors import FieldDescriptor

SEED_BITS = 32


@dataclass(frozen=True)
class ObfuscatedPayload:
    """Ciphertext and the seed needed to regenerate its keystream."""

    seed: int
    data: bytes


def choose_seed(random_seed: int | None = None) -> int:
    """Return the pinned seed, or a fresh one from the OS entropy source."""
    if random_seed is not None:
        return random_seed
    return secrets.randbits(SEED_BITS)


def encode(text: str, seed: int) -> bytes:
    """XOR the UTF-8 bytes of ``text`` with the keystream for ``seed``.

    Pure in ``(text, seed)``.
    """
    data = text.encode("utf-8")
    stream = keystream(seed, len(data))
    return bytes(b ^ k for b, k in zip(data, stream))


def decode(data: bytes, seed: int) -> str:
    return reveal(data, seed)


def obfuscate(text: str, random_seed: int | None = None) -> ObfuscatedPayload:
    seed = choose_seed(random_seed)
    return ObfuscatedPayload(seed=seed, data=encode(text, seed))


def data_attr(name: str) -> str:
    return f"_envforge_data_{name}"


def seed_attr(name: str) -> str:
    return f"_envforge_seed_{name}"


@dataclass(frozen=True)
class ObfuscatedField:
    """Class-body lines for one obfuscated field."""

    constants: tuple[str, ...]
    value: Emission
    uses_runtime: bool


def obfuscated_field(field: FieldDescriptor, text: str | None) -> ObfuscatedField:
    """Emit the ciphertext/seed constants and the lazy accessor for a field.

    An absent value emits no ciphertext; the attribute is simply ``None``.
    """
    if text is None:
        return ObfuscatedField(constants=(), value=Emission("None"), uses_runtime=False)
    assert field.declared is not None
    payload = obfuscate(text, field.random_seed)
    parser = runtime_parser(field.declared)
    data_name = data_attr(field.name)
    seed_name = seed_attr(field.name)
    return ObfuscatedField(
        constants=(
            f"{data_name} = {payload.data!r}",
            f"{seed_name} = {payload.seed!r}",
        ),
        value=Emission(
            f"Revealed({data_name}, {seed_name}, {parser.expression})",
            parser.imports,
        ),
        uses_runtime=True,
    )
