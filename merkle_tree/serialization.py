"""Conversion of tree elements to the canonical bytes that get hashed.

A serializer is any callable ``element -> bytes``.  It must be
deterministic: the same logical value always yields the same bytes,
otherwise proofs cut from one tree stop verifying against its root.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from pydantic import BaseModel

Serializer = Callable[[Any], bytes]


class SerializationError(TypeError):
    """Raised when an element has no canonical byte form."""


def canonical_json(model: BaseModel) -> bytes:
    """Sorted-key, whitespace-free JSON encoding of a pydantic model."""
    raw = json.dumps(model.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
    return raw.encode("utf-8")


def as_bytes(element: Any) -> bytes:
    """Default serializer.

    Accepts raw bytes-like values, ``str`` (UTF-8), pydantic models
    (canonical JSON), and any object exposing an ``as_bytes()`` method.
    """
    if isinstance(element, bytes):
        return element
    if isinstance(element, (bytearray, memoryview)):
        return bytes(element)
    if isinstance(element, str):
        return element.encode("utf-8")

    method = getattr(element, "as_bytes", None)
    if callable(method):
        data = method()
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise SerializationError(
                f"{type(element).__name__}.as_bytes() returned {type(data).__name__}, expected bytes"
            )
        return bytes(data)

    if isinstance(element, BaseModel):
        return canonical_json(element)

    raise SerializationError(
        f"cannot serialize {type(element).__name__}; "
        "pass a serializer= or give the type an as_bytes() method"
    )
