"""RESP2 decoder: a dispatcher plus one sub-decoder per type tag.

Every sub-decoder takes the input buffer and an offset just past its tag
byte, and returns `(value, new_offset)`.  Arrays call back into the
dispatcher, which is the only place recursion happens; the depth counter
threaded through those calls is what bounds stack growth on hostile input.

Grammar summary (all terminators are exactly CR LF):

    '+' text CRLF                       text: 1+ bytes, no CR/LF
    '-' KIND sep text CRLF              KIND: 1+ of A-Z, sep: 1+ of {SP, LF}
    ':' [+-] digits CRLF                int64 range
    '$' [+-] digits CRLF payload CRLF   -1 = null, payload exactly `length`
    '*' [+-] digits CRLF value*count    -1 = null

Any failure raises DecodeError; the `incomplete` flag is set when the input
ran out before the grammar could finish.
"""

from __future__ import annotations

import enum
from typing import List, Optional, Tuple, Union

from ._constants import (
    CR,
    DEFAULT_MAX_BULK_LENGTH,
    DEFAULT_MAX_DEPTH,
    ERROR_SEPARATORS,
    INT64_MAX,
    INT64_MIN,
    LF,
    MAX_DEPTH_CEILING,
    NULL_LENGTH,
    TAG_ARRAY,
    TAG_BULK_STRING,
    TAG_INTEGER,
    TAG_SIMPLE_ERROR,
    TAG_SIMPLE_STRING,
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

Buffer = Union[bytes, bytearray]

_PLUS = 0x2B
_MINUS = 0x2D

# int64 magnitudes have at most 19 significant digits.
_MAX_SIGNIFICANT_DIGITS = 19


# ── Shared field grammars ─────────────────────────────────────

def _expect_crlf(buf: Buffer, off: int) -> int:
    """Require CR LF at `off`; return the offset just past it."""
    n = len(buf)
    if off >= n:
        raise DecodeError(ERR_MALFORMED_TERMINATOR, "missing CR-LF terminator",
                          off, incomplete=True, needed=2)
    if buf[off] != CR:
        raise DecodeError(ERR_MALFORMED_TERMINATOR,
                          "expected CR, found 0x{:02x}".format(buf[off]), off)
    if off + 1 >= n:
        raise DecodeError(ERR_MALFORMED_TERMINATOR, "CR without LF",
                          off + 1, incomplete=True)
    if buf[off + 1] != LF:
        raise DecodeError(ERR_MALFORMED_TERMINATOR,
                          "CR followed by 0x{:02x} instead of LF".format(buf[off + 1]),
                          off + 1)
    return off + 2


def _read_text(buf: Buffer, off: int) -> Tuple[str, int]:
    """Read a simple-string body and its terminator.

    Returns the text itself rather than a SimpleString, so that simple
    errors can reuse the grammar for their message.
    """
    cr = buf.find(b"\r", off)
    lf = buf.find(b"\n", off)
    if cr < 0 and lf < 0:
        raise DecodeError(ERR_MALFORMED_TERMINATOR, "missing CR-LF terminator",
                          len(buf), incomplete=True, needed=2)
    stop = min(p for p in (cr, lf) if p >= 0)
    if stop == off:
        raise DecodeError(ERR_EMPTY_CONTENT, "empty simple string", off)
    if buf[stop] == LF:
        raise DecodeError(ERR_MALFORMED_TERMINATOR, "bare LF without CR", stop)
    end = _expect_crlf(buf, stop)
    try:
        text = bytes(buf[off:stop]).decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(ERR_UTF8, "invalid utf-8 in simple string",
                          off + e.start) from None
    return text, end


def _check_length(value: int, start: int, what: str, limit: int) -> None:
    """Reject a length or count that is neither `-1` nor within `0..limit`."""
    if value < NULL_LENGTH:
        raise DecodeError(ERR_INVALID_LENGTH,
                          "negative {} {}".format(what, value), start)
    if value > limit:
        raise DecodeError(ERR_PAYLOAD_TOO_LARGE,
                          "{} {} exceeds limit {}".format(what, value, limit), start)


def _read_signed(buf: Buffer, off: int, what: str,
                 length_limit: Optional[int] = None) -> Tuple[int, int]:
    """Read `[+-]digits CRLF` as an int64; return `(value, new_offset)`.

    With `length_limit` set the field is a length or count and must be `-1`
    or lie in `0..length_limit`.

    Further digits can only grow the magnitude, so range and length checks
    run on the digits read so far, before the terminator is looked at.  A
    prefix like `:99999999999999999999` or `*-2` is therefore rejected
    without waiting for more input.
    """
    n = len(buf)
    start = off
    negative = False
    if off < n and buf[off] in (_PLUS, _MINUS):
        negative = buf[off] == _MINUS
        off += 1
    first_digit = off
    while off < n and 0x30 <= buf[off] <= 0x39:
        off += 1

    if off == first_digit:
        if off >= n:
            raise DecodeError(ERR_MALFORMED_DIGITS,
                              "{} has no digits".format(what), off, incomplete=True)
        raise DecodeError(ERR_MALFORMED_DIGITS,
                          "{} must be ASCII digits, found 0x{:02x}".format(what, buf[off]),
                          off)

    significant = bytes(buf[first_digit:off]).lstrip(b"0") or b"0"
    if len(significant) > _MAX_SIGNIFICANT_DIGITS:
        raise DecodeError(ERR_OVERFLOW, "{} out of int64 range".format(what), start)
    value = -int(significant) if negative else int(significant)
    if value < INT64_MIN or value > INT64_MAX:
        raise DecodeError(ERR_OVERFLOW, "{} out of int64 range".format(what), start)
    if length_limit is not None:
        _check_length(value, start, what, length_limit)

    if off >= n:
        raise DecodeError(ERR_MALFORMED_TERMINATOR, "missing CR-LF terminator",
                          off, incomplete=True, needed=2)
    if buf[off] == LF:
        raise DecodeError(ERR_MALFORMED_TERMINATOR, "bare LF without CR", off)
    if buf[off] != CR:
        raise DecodeError(ERR_MALFORMED_DIGITS,
                          "unexpected byte 0x{:02x} in {}".format(buf[off], what), off)

    return value, _expect_crlf(buf, off)


# ── Per-type decoders ─────────────────────────────────────────

def _decode_simple_error(buf: Buffer, off: int) -> Tuple[SimpleError, int]:
    n = len(buf)
    start = off
    while off < n and 0x41 <= buf[off] <= 0x5A:
        off += 1

    if off >= n:
        if off == start:
            raise DecodeError(ERR_EMPTY_KIND, "missing error kind", off,
                              incomplete=True)
        raise DecodeError(ERR_MALFORMED_SEPARATOR, "missing separator after kind",
                          off, incomplete=True)
    # A run that stops at a lowercase letter is a mixed-case kind ("ErR").
    if off == start or 0x61 <= buf[off] <= 0x7A:
        raise DecodeError(ERR_EMPTY_KIND,
                          "error kind must be a run of uppercase ASCII letters", start)
    kind = bytes(buf[start:off]).decode("ascii")

    sep = off
    while off < n and buf[off] in ERROR_SEPARATORS:
        off += 1
    if off == sep:
        raise DecodeError(ERR_MALFORMED_SEPARATOR,
                          "expected space or LF after kind, found 0x{:02x}".format(buf[off]),
                          off)

    message, off = _read_text(buf, off)
    return SimpleError(kind, message), off


def _decode_bulk_string(buf: Buffer, off: int,
                        max_bulk_length: int) -> Tuple[Value, int]:
    length, off = _read_signed(buf, off, "bulk length", max_bulk_length)
    if length == NULL_LENGTH:
        return NullBulkString(), off

    end = off + length
    if end > len(buf):
        raise DecodeError(ERR_TRUNCATED_PAYLOAD,
                          "declared {} payload bytes, {} available".format(
                              length, len(buf) - off),
                          len(buf), incomplete=True, needed=end + 2 - len(buf))
    payload = bytes(buf[off:end])
    return BulkString(payload), _expect_crlf(buf, end)


def _decode_array(buf: Buffer, off: int, depth: int, max_depth: int,
                  max_bulk_length: int) -> Tuple[Value, int]:
    start = off
    count, off = _read_signed(buf, off, "array length", INT64_MAX)
    if count == NULL_LENGTH:
        return NullArray(), off
    if depth + 1 > max_depth:
        raise DecodeError(ERR_RECURSION_LIMIT,
                          "array nesting exceeds {}".format(max_depth), start - 1)

    items: List[Value] = []
    for i in range(count):
        if off >= len(buf):
            raise DecodeError(ERR_TRUNCATED_ELEMENTS,
                              "array declared {} elements, input ended after {}".format(
                                  count, i),
                              off, incomplete=True)
        item, off = _decode_one(buf, off, depth + 1, max_depth, max_bulk_length)
        items.append(item)
    return Array(tuple(items)), off


# ── Dispatcher ────────────────────────────────────────────────

def _decode_one(buf: Buffer, off: int, depth: int, max_depth: int,
                max_bulk_length: int) -> Tuple[Value, int]:
    """Decode one frame at `off`.  `depth` counts enclosing arrays."""
    if off >= len(buf):
        raise DecodeError(ERR_UNRECOGNIZED_TYPE, "empty input", off,
                          incomplete=True)
    tag = buf[off]
    off += 1

    if tag == TAG_SIMPLE_STRING:
        text, off = _read_text(buf, off)
        return SimpleString(text), off

    if tag == TAG_SIMPLE_ERROR:
        return _decode_simple_error(buf, off)

    if tag == TAG_INTEGER:
        value, off = _read_signed(buf, off, "integer")
        return Integer(value), off

    if tag == TAG_BULK_STRING:
        return _decode_bulk_string(buf, off, max_bulk_length)

    if tag == TAG_ARRAY:
        return _decode_array(buf, off, depth, max_depth, max_bulk_length)

    raise DecodeError(ERR_UNRECOGNIZED_TYPE,
                      "unknown type tag 0x{:02x}".format(tag), off - 1)


# ── Public entry points ───────────────────────────────────────

def _as_buffer(data: Union[bytes, bytearray, memoryview, str]) -> Buffer:
    if isinstance(data, (bytes, bytearray)):
        return data
    if isinstance(data, memoryview):
        return data.tobytes()
    if isinstance(data, str):
        return data.encode("utf-8")
    raise TypeError("expected bytes-like or str, got {}".format(type(data).__name__))


def _check_limits(max_depth: int, max_bulk_length: int) -> None:
    if max_depth < 0:
        raise ValueError("max_depth must be >= 0")
    if max_depth > MAX_DEPTH_CEILING:
        raise ValueError("max_depth must be <= {}".format(MAX_DEPTH_CEILING))
    if max_bulk_length < 0:
        raise ValueError("max_bulk_length must be >= 0")


def decode_prefix(data, offset: int = 0, *,
                  max_depth: int = DEFAULT_MAX_DEPTH,
                  max_bulk_length: int = DEFAULT_MAX_BULK_LENGTH) -> Tuple[Value, int]:
    """Decode the frame starting at `offset`.

    Returns `(value, end)` where `end` is the offset one past the frame's
    final terminator, so consecutive frames can be decoded by feeding `end`
    back in.  `str` input is encoded to UTF-8 first; offsets then refer to
    the encoded bytes.
    """
    buf = _as_buffer(data)
    _check_limits(max_depth, max_bulk_length)
    if offset < 0 or offset > len(buf):
        raise ValueError("offset {} outside buffer of {} bytes".format(offset, len(buf)))
    return _decode_one(buf, offset, 0, max_depth, max_bulk_length)


def decode(data, *, max_depth: int = DEFAULT_MAX_DEPTH,
           max_bulk_length: int = DEFAULT_MAX_BULK_LENGTH) -> Value:
    """Decode the first frame in `data` and return its value.

    Bytes after the frame are ignored.  Raises DecodeError on the first
    grammar violation.
    """
    value, _end = decode_prefix(data, 0, max_depth=max_depth,
                                max_bulk_length=max_bulk_length)
    return value


def decode_all(data, *, max_depth: int = DEFAULT_MAX_DEPTH,
               max_bulk_length: int = DEFAULT_MAX_BULK_LENGTH) -> List[Value]:
    """Decode a buffer made only of complete, back-to-back frames."""
    buf = _as_buffer(data)
    _check_limits(max_depth, max_bulk_length)
    values: List[Value] = []
    off = 0
    while off < len(buf):
        value, off = _decode_one(buf, off, 0, max_depth, max_bulk_length)
        values.append(value)
    return values


# ── Three-way outcome ─────────────────────────────────────────

class Status(enum.Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    INVALID = "invalid"


class DecodeResult:
    """Outcome of try_decode(): a value, a request for more input, or an error."""

    __slots__ = ("status", "value", "consumed", "needed", "error")

    def __init__(self, status: Status, value: Optional[Value] = None,
                 consumed: int = 0, needed: int = 0,
                 error: Optional[DecodeError] = None) -> None:
        self.status = status
        self.value = value
        self.consumed = consumed
        self.needed = needed
        self.error = error

    @property
    def complete(self) -> bool:
        return self.status is Status.COMPLETE

    def __repr__(self) -> str:
        if self.status is Status.COMPLETE:
            return "DecodeResult(COMPLETE, {!r}, consumed={})".format(
                self.value, self.consumed)
        if self.status is Status.INCOMPLETE:
            return "DecodeResult(INCOMPLETE, needed={})".format(self.needed)
        return "DecodeResult(INVALID, {!r})".format(self.error)


def try_decode(data, offset: int = 0, *,
               max_depth: int = DEFAULT_MAX_DEPTH,
               max_bulk_length: int = DEFAULT_MAX_BULK_LENGTH) -> DecodeResult:
    """Like decode_prefix(), but report protocol errors instead of raising.

    `consumed` counts bytes from `offset` to the end of the frame.
    """
    try:
        value, end = decode_prefix(data, offset, max_depth=max_depth,
                                   max_bulk_length=max_bulk_length)
    except DecodeError as e:
        if e.incomplete:
            return DecodeResult(Status.INCOMPLETE, needed=e.needed, error=e)
        return DecodeResult(Status.INVALID, error=e)
    return DecodeResult(Status.COMPLETE, value=value, consumed=end - offset)
