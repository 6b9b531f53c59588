"""Render decoded value trees as JSON-compatible data.

Used by the CLI and handy for logging.  Each node becomes a dict tagged with
its variant name so that null sentinels, empty collections and the two
string kinds stay distinguishable after rendering:

    SimpleString("OK")      -> {"type": "simple_string", "value": "OK"}
    BulkString(b"\\xff")     -> {"type": "bulk_string", "base64": "/w=="}
    NullArray()             -> {"type": "null_array"}
"""

from __future__ import annotations

import base64
from typing import Any, Dict

from ._types import (
    Array,
    BulkString,
    Integer,
    NullArray,
    NullBulkString,
    SimpleError,
    SimpleString,
    Value,
)


def _render_bulk(payload: bytes) -> Dict[str, Any]:
    # Payloads are opaque bytes; only show them as text when they are
    # valid UTF-8, otherwise fall back to base64.
    try:
        return {"type": "bulk_string", "value": payload.decode("utf-8")}
    except UnicodeDecodeError:
        return {"type": "bulk_string",
                "base64": base64.b64encode(payload).decode("ascii")}


def to_jsonable(value: Value) -> Dict[str, Any]:
    """Convert a value tree to nested dicts/lists that json.dumps accepts."""
    if isinstance(value, SimpleString):
        return {"type": "simple_string", "value": value.value}
    if isinstance(value, SimpleError):
        return {"type": "simple_error", "kind": value.kind,
                "message": value.message}
    if isinstance(value, Integer):
        return {"type": "integer", "value": value.value}
    if isinstance(value, BulkString):
        return _render_bulk(value.value)
    if isinstance(value, NullBulkString):
        return {"type": "null_bulk_string"}
    if isinstance(value, Array):
        return {"type": "array", "items": [to_jsonable(v) for v in value.items]}
    if isinstance(value, NullArray):
        return {"type": "null_array"}
    raise TypeError("not a RESP2 value: {}".format(type(value).__name__))
