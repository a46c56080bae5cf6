"""JSON encoding and lenient decoding of entry files.

The serializer is chosen once, when a store is constructed: it either
passes JSON-native payloads straight through, or uses a pydantic
:class:`~pydantic.TypeAdapter` for a declared payload type (a model, a
``list[Model]``, a ``TypedDict``...). Decoding ignores unknown fields on
the entry envelope and, for models with the default ``extra="ignore"``,
on the payload as well.
"""

from __future__ import annotations

import json
from typing import Any, Generic, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from jsonshelf.models import CacheEntry

T = TypeVar("T")


class EntryDecodeError(ValueError):
    """Entry file content is not a valid entry for this namespace."""


class EntrySerializer(Generic[T]):
    """Encode ``(created_at, payload)`` pairs to JSON text and back.

    Args:
        payload_type: Optional type describing the payload. When ``None``
            the payload must already be JSON-native.
        indent: ``json.dumps`` indent for written files.
    """

    def __init__(self, payload_type: Optional[type[T]] = None, indent: Optional[int] = None) -> None:
        self._adapter: Optional[TypeAdapter[T]] = (
            TypeAdapter(payload_type) if payload_type is not None else None
        )
        self._indent = indent

    @property
    def typed(self) -> bool:
        """Whether payloads are validated against a declared type."""
        return self._adapter is not None

    def encode(self, created_at: int, payload: T) -> str:
        """Return the entry file text.

        Raises:
            TypeError: If the payload is not JSON-serialisable.
            ValueError: If the payload cannot be dumped by the declared type
                (or contains NaN/Infinity, which JSON cannot represent).
            RecursionError: If the payload is nested too deeply to encode.
        """
        data: Any = payload
        if self._adapter is not None:
            try:
                data = self._adapter.dump_python(payload, mode="json")
            except Exception as exc:
                raise ValueError(f"Cannot serialise payload: {exc}") from exc
        return json.dumps(
            {"created_at": created_at, "payload": data},
            ensure_ascii=False,
            allow_nan=False,
            indent=self._indent,
        )

    def decode(self, text: str) -> CacheEntry:
        """Parse entry file text into a :class:`~jsonshelf.models.CacheEntry`.

        The returned entry's ``payload`` is already validated against the
        declared type, if any.

        Raises:
            EntryDecodeError: On malformed or pathologically nested JSON, a
                missing timestamp, or a payload that does not match the
                declared type.
        """
        try:
            raw = json.loads(text)
            entry = CacheEntry.model_validate(raw)
        except (ValueError, RecursionError, TypeError) as exc:
            # ValueError covers JSONDecodeError, ValidationError and int-digit limits.
            raise EntryDecodeError(str(exc)) from exc
        if self._adapter is not None:
            try:
                entry.payload = self._adapter.validate_python(entry.payload)
            except (ValidationError, RecursionError) as exc:
                raise EntryDecodeError(str(exc)) from exc
        return entry
