"""resp2 — RESP2 (REdis Serialization Protocol v2) decoder.

Turns bytes that have already been received into a typed value tree, or
explains exactly which grammar rule a buffer breaks.

Quick start:
    >>> from resp2 import decode
    >>> decode(b"*2\\r\\n$3\\r\\nGET\\r\\n$3\\r\\nkey\\r\\n")
    Array(items=(BulkString(value=b'GET'), BulkString(value=b'key')))

Framing consecutive values in a growing buffer:
    >>> from resp2 import decode_prefix, try_decode, Status
    >>> try_decode(b"$5\\r\\nhel").status is Status.INCOMPLETE
    True
    >>> decode_prefix(b":1\\r\\n:2\\r\\n")
    (Integer(value=1), 4)
"""

from __future__ import annotations

from ._constants import (
    DEFAULT_MAX_BULK_LENGTH,
    DEFAULT_MAX_DEPTH,
    INT64_MAX,
    INT64_MIN,
    MAX_DEPTH_CEILING,
)
from ._decoder import (
    DecodeResult,
    Status,
    decode,
    decode_all,
    decode_prefix,
    try_decode,
)
from ._errors import (
    ERR_EMPTY_CONTENT,
    ERR_EMPTY_KIND,
    ERR_INVALID_LENGTH,
    ERR_MALFORMED_DIGITS,
    ERR_MALFORMED_SEPARATOR,
    ERR_MALFORMED_TERMINATOR,
    ERR_OVERFLOW,
    ERR_PAYLOAD_TOO_LARGE,
    ERR_RECURSION_LIMIT,
    ERR_TRUNCATED_ELEMENTS,
    ERR_TRUNCATED_PAYLOAD,
    ERR_UNRECOGNIZED_TYPE,
    ERR_UTF8,
    DecodeError,
)
from ._reader import Reader
from ._render import to_jsonable
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

__version__ = "0.1.0"

__all__ = [
    # Decoding
    "decode",
    "decode_prefix",
    "decode_all",
    "try_decode",
    "DecodeResult",
    "Status",
    "Reader",
    "to_jsonable",
    # Values
    "Value",
    "SimpleString",
    "SimpleError",
    "Integer",
    "BulkString",
    "NullBulkString",
    "Array",
    "NullArray",
    # Exception
    "DecodeError",
    # Error codes
    "ERR_UNRECOGNIZED_TYPE",
    "ERR_EMPTY_CONTENT",
    "ERR_EMPTY_KIND",
    "ERR_MALFORMED_SEPARATOR",
    "ERR_MALFORMED_TERMINATOR",
    "ERR_MALFORMED_DIGITS",
    "ERR_OVERFLOW",
    "ERR_INVALID_LENGTH",
    "ERR_TRUNCATED_PAYLOAD",
    "ERR_TRUNCATED_ELEMENTS",
    "ERR_RECURSION_LIMIT",
    "ERR_PAYLOAD_TOO_LARGE",
    "ERR_UTF8",
    # Limits
    "DEFAULT_MAX_DEPTH",
    "MAX_DEPTH_CEILING",
    "DEFAULT_MAX_BULK_LENGTH",
    "INT64_MIN",
    "INT64_MAX",
]
