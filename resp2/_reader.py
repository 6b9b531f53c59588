"""Buffered RESP2 reader for transports that receive bytes in pieces.

    >>> r = Reader()
    >>> r.feed(b"+OK\\r\\n:4")
    >>> r.gets()
    SimpleString(value='OK')
    >>> r.gets() is None
    True
    >>> r.feed(b"2\\r\\n")
    >>> r.gets()
    Integer(value=42)

The reader only frames and decodes; it never touches a socket.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from ._constants import DEFAULT_MAX_BULK_LENGTH, DEFAULT_MAX_DEPTH
from ._decoder import _check_limits, _decode_one
from ._errors import DecodeError
from ._types import Value

logger = logging.getLogger(__name__)

# Consumed bytes are dropped from the front of the buffer once they
# exceed this many bytes, rather than after every frame.
_COMPACT_THRESHOLD = 64 * 1024


class Reader:
    """Accumulates input with feed() and hands out complete frames with gets().

    Not thread-safe: one reader per connection.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH,
                 max_bulk_length: int = DEFAULT_MAX_BULK_LENGTH) -> None:
        _check_limits(max_depth, max_bulk_length)
        self.max_depth = max_depth
        self.max_bulk_length = max_bulk_length
        self._buf = bytearray()
        self._pos = 0

    @property
    def buffered(self) -> int:
        """Number of received bytes not yet returned as part of a frame."""
        return len(self._buf) - self._pos

    def feed(self, data) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._buf += data

    def gets(self) -> Optional[Value]:
        """Return the next complete value, or None if more input is needed.

        Raises DecodeError when the buffered bytes can never form a valid
        frame.  The offending bytes stay buffered; call clear() to drop them.
        """
        if self._pos >= len(self._buf):
            return None
        try:
            value, end = _decode_one(self._buf, self._pos, 0,
                                     self.max_depth, self.max_bulk_length)
        except DecodeError as e:
            if e.incomplete:
                return None
            logger.debug("invalid frame at offset %d: [%s] %s",
                         e.offset, e.code, e)
            raise
        self._pos = end
        self._compact()
        return value

    def __iter__(self) -> Iterator[Value]:
        while True:
            value = self.gets()
            if value is None:
                return
            yield value

    def clear(self) -> None:
        self._buf.clear()
        self._pos = 0

    def _compact(self) -> None:
        if self._pos == len(self._buf):
            self.clear()
        elif self._pos >= _COMPACT_THRESHOLD:
            logger.debug("compacting reader buffer: dropping %d consumed bytes",
                         self._pos)
            del self._buf[:self._pos]
            self._pos = 0
