"""Deterministic cache-key derivation from call parameters.

A cache key is the hex digest of a canonical, length-prefixed rendering of
an ordered parameter tuple::

    derive_key(["pasta", 12, None])
    # 'v1' + '7#s:pasta' + '4#i:12' + '1#n'  --sha256-->  64 hex chars

Each parameter carries a one-letter type tag, so ``None``, ``""``,
``"null"``, ``0``, ``False`` and ``"0"`` all render differently. Parts are
length-prefixed rather than joined on a separator, so no string value can
forge a part boundary. Mappings and sets are rendered in sorted order,
which makes their keys independent of insertion order, while lists and
tuples keep their order.

The rendering never uses :func:`hash`, so keys are stable across processes
and interpreter restarts.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import hashlib
from collections.abc import Mapping, Sequence, Set
from typing import Any

from pydantic import BaseModel

from jsonshelf.exceptions import KeyDerivationError

NULL_TOKEN = "n"
"""Rendering of ``None``; every other rendering contains a ``:``."""

_MIN_DIGEST_BITS = 128


def _join(parts: list[str]) -> str:
    return "".join(f"{len(part)}#{part}" for part in parts)


def canonicalize(value: Any) -> str:
    """Return the canonical, type-tagged string form of *value*.

    Raises:
        KeyDerivationError: If *value* (or something nested in it) cannot
            be converted to a string, or only has the default
            address-bearing ``object`` rendering.
    """
    if value is None:
        return NULL_TOKEN
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return "b:" + ("true" if value else "false")
    if isinstance(value, enum.Enum):
        return f"e:{type(value).__name__}." + canonicalize(value.value)
    if isinstance(value, int):
        return f"i:{value}"
    if isinstance(value, float):
        return f"f:{value!r}"
    if isinstance(value, decimal.Decimal):
        return f"d:{value}"
    if isinstance(value, str):
        return "s:" + value
    if isinstance(value, (bytes, bytearray)):
        return "x:" + bytes(value).hex()
    if isinstance(value, datetime.datetime):
        return "t:" + value.isoformat()
    if isinstance(value, datetime.date):
        return "D:" + value.isoformat()
    if isinstance(value, BaseModel):
        return "M:" + canonicalize(value.model_dump(mode="json"))
    if isinstance(value, Mapping):
        items = sorted(
            _join([canonicalize(k), canonicalize(v)]) for k, v in value.items()
        )
        return "m:" + _join(items)
    if isinstance(value, Set):
        return "S:" + _join(sorted(canonicalize(v) for v in value))
    if isinstance(value, Sequence):
        return "l:" + _join([canonicalize(v) for v in value])
    cls = type(value)
    if cls.__str__ is object.__str__ and cls.__repr__ is object.__repr__:
        # The default rendering embeds the object's memory address.
        raise KeyDerivationError(
            f"Cannot derive a stable cache key from {cls.__name__}: define __str__ or __repr__"
        )
    try:
        return "o:" + str(value)
    except Exception as exc:
        raise KeyDerivationError(
            f"Cannot derive a cache key from {type(value).__name__}: {exc}"
        ) from exc


class KeyDeriver:
    """Turns an ordered parameter tuple into a fixed-length hex key.

    Args:
        algorithm: A :mod:`hashlib` algorithm name with a digest of at least
            128 bits.
        version: Derivation version mixed into every digest. Bump it to
            invalidate every key produced by an older rendering.

    Raises:
        ValueError: If the algorithm is unknown or too narrow.

    Example::

        derive = KeyDeriver()
        derive(["pasta", 12, None]) == derive(["pasta", 12, None])  # True
        derive(["pasta", 12, None]) == derive(["pasta", 12, "null"])  # False
    """

    def __init__(self, algorithm: str = "sha256", version: int = 1) -> None:
        if algorithm not in hashlib.algorithms_guaranteed:
            raise ValueError(f"Unsupported digest algorithm: {algorithm}")
        if algorithm.startswith("shake_"):
            raise ValueError(f"Variable-length digest not supported: {algorithm}")
        bits = hashlib.new(algorithm).digest_size * 8
        if bits < _MIN_DIGEST_BITS:
            raise ValueError(
                f"Digest {algorithm} is {bits} bits; at least {_MIN_DIGEST_BITS} required"
            )
        self.algorithm = algorithm
        self.version = version

    def __call__(self, params: Sequence[Any]) -> str:
        if isinstance(params, (str, bytes)):
            raise TypeError("params must be a sequence of parameters, not a single string")
        material = f"v{self.version}" + _join([canonicalize(p) for p in params])
        return hashlib.new(self.algorithm, material.encode("utf-8", "surrogatepass")).hexdigest()

    def __repr__(self) -> str:
        return f"KeyDeriver(algorithm={self.algorithm!r}, version={self.version})"


derive_key = KeyDeriver()
"""Default :class:`KeyDeriver` (SHA-256, version 1)."""
