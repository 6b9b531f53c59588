"""RESP2 decode error codes and the exception that carries them.

Every failure is terminal for the decode call that raised it: there is no
recovery and no partial value.  The `.code` attribute names the grammar rule
that was violated; `.incomplete` tells a network reader whether waiting for
more bytes could still turn the input into a valid frame.
"""

from __future__ import annotations

from typing import List

# ── Error codes ──────────────────────────────────────────────
# Plain strings so they compare cleanly against conformance vectors.

ERR_UNRECOGNIZED_TYPE: str = "UnrecognizedType"          # bad or missing tag byte
ERR_EMPTY_CONTENT: str = "EmptyContent"                  # "+\r\n"
ERR_EMPTY_KIND: str = "EmptyKind"                        # "-err ...", "-ErR ..."
ERR_MALFORMED_SEPARATOR: str = "MalformedSeparator"      # "-ERR\r\n"
ERR_MALFORMED_TERMINATOR: str = "MalformedTerminator"    # lone CR, lone LF, CR+x
ERR_MALFORMED_DIGITS: str = "MalformedDigits"            # ":4.2\r\n", ":--1\r\n"
ERR_OVERFLOW: str = "Overflow"                           # outside int64
ERR_INVALID_LENGTH: str = "InvalidLength"                # "$-2\r\n"
ERR_TRUNCATED_PAYLOAD: str = "TruncatedPayload"          # "$5\r\nhe"
ERR_TRUNCATED_ELEMENTS: str = "TruncatedElements"        # "*2\r\n:1\r\n"
ERR_RECURSION_LIMIT: str = "RecursionLimitExceeded"      # nesting > max_depth
ERR_PAYLOAD_TOO_LARGE: str = "PayloadTooLarge"           # length > max_bulk_length
ERR_UTF8: str = "InvalidUtf8"                            # simple text not UTF-8

ALL_CODES: List[str] = [
    ERR_UNRECOGNIZED_TYPE,
    ERR_EMPTY_CONTENT,
    ERR_EMPTY_KIND,
    ERR_MALFORMED_SEPARATOR,
    ERR_MALFORMED_TERMINATOR,
    ERR_MALFORMED_DIGITS,
    ERR_OVERFLOW,
    ERR_INVALID_LENGTH,
    ERR_TRUNCATED_PAYLOAD,
    ERR_TRUNCATED_ELEMENTS,
    ERR_RECURSION_LIMIT,
    ERR_PAYLOAD_TOO_LARGE,
    ERR_UTF8,
]


class DecodeError(Exception):
    """Raised when a buffer does not hold a valid RESP2 frame.

    `.code` is one of the ERR_* strings above.  `.offset` is the absolute
    position in the input where the violation was detected.  `.incomplete`
    is True when the input simply ran out: appending bytes could still
    produce a valid frame.  `.needed` is a lower bound on how many more
    bytes are required when `.incomplete` is set (1 when unknown).
    """

    def __init__(self, code: str, msg: str = "", offset: int = 0,
                 incomplete: bool = False, needed: int = 0) -> None:
        super().__init__(msg or code)
        self.code = code
        self.offset = offset
        self.incomplete = incomplete
        self.needed = max(needed, 1) if incomplete else 0

    def __repr__(self) -> str:
        return "DecodeError({!r}, {!r}, offset={}, incomplete={})".format(
            self.code, str(self), self.offset, self.incomplete)
