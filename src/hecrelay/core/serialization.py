"""
JSON serialization helpers for HEC payloads.

Events are serialized once, at accumulation time, with orjson and kept as
bytes. A flush joins the stored bytes into one request body: HEC accepts a
stream of concatenated JSON objects with no enclosing array or delimiter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import orjson

from .errors import (
    ErrorCategory,
    ErrorSeverity,
    HecRelayError,
    create_error_context,
)


def _default(obj: Any) -> Any:
    """Default serializer hook for unsupported types.

    Keep minimal; prefer upstream objects to be plain JSON types already.
    """
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


@dataclass
class SerializedView:
    """Serialized JSON bytes for a single event."""

    data: bytes

    @property
    def view(self) -> memoryview:
        return memoryview(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)


def serialize_mapping_to_json_bytes(payload: Mapping[str, Any]) -> SerializedView:
    """Serialize a mapping to compact JSON bytes using orjson."""
    try:
        data = orjson.dumps(payload, default=_default)
    except TypeError as e:
        context = create_error_context(
            ErrorCategory.SERIALIZATION,
            ErrorSeverity.HIGH,
            component_name="serialization",
        )
        raise HecRelayError(
            "Serialization failed",
            error_context=context,
            cause=e,
        ) from e
    return SerializedView(data=data)


def concat_serialized(views: Iterable[SerializedView]) -> bytes:
    """Join serialized events into a single HEC request body."""
    return b"".join(v.data for v in views)
