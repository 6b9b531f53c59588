"""RESP2 constants: type tags, terminators, sentinels and default limits."""

from __future__ import annotations

# ── Type tags (first byte of every frame) ────────────────────
TAG_SIMPLE_STRING: int = 0x2B  # '+'
TAG_SIMPLE_ERROR: int = 0x2D   # '-'
TAG_INTEGER: int = 0x3A        # ':'
TAG_BULK_STRING: int = 0x24    # '$'
TAG_ARRAY: int = 0x2A          # '*'

CR: int = 0x0D
LF: int = 0x0A
SPACE: int = 0x20

# Separator bytes allowed between a simple error's kind and its message.
# CR is not part of this set.
ERROR_SEPARATORS = frozenset((SPACE, LF))

# Declared length/count that stands for the null bulk string / null array.
NULL_LENGTH: int = -1

# ── Signed 64-bit integer range ──────────────────────────────
# Python ints are arbitrary-precision, so the range is checked explicitly.
# Length and count fields share the same range.
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# ── Default safety limits ────────────────────────────────────
# Both can be overridden per call.
DEFAULT_MAX_DEPTH: int = 32
DEFAULT_MAX_BULK_LENGTH: int = 512 * 1024 * 1024  # proto-max-bulk-len

# Largest accepted max_depth. Each nesting level uses two interpreter frames.
MAX_DEPTH_CEILING: int = 256
