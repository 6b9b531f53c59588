"""RESP2 value model.

A decoded frame is a tree built from seven immutable variants:

    SimpleString    '+'   single-line text, never empty, no CR/LF
    SimpleError     '-'   uppercase kind token plus a simple-string message
    Integer         ':'   signed 64-bit
    BulkString      '$'   raw bytes of an explicitly declared length
    NullBulkString  '$-1' absent bulk string (not the same as b"")
    Array           '*'   ordered values of any variant, including Array
    NullArray       '*-1' absent array (not the same as an empty Array)

Values own their payloads: bulk strings hold `bytes` copied out of the input
buffer, so a tree stays valid after the buffer is reused.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class SimpleString:
    value: str


@dataclass(frozen=True)
class SimpleError:
    kind: str
    message: str

    def __str__(self) -> str:
        return "{} {}".format(self.kind, self.message)


@dataclass(frozen=True)
class Integer:
    value: int


@dataclass(frozen=True)
class BulkString:
    value: bytes


@dataclass(frozen=True)
class NullBulkString:
    pass


@dataclass(frozen=True)
class Array:
    items: Tuple["Value", ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, index):
        return self.items[index]


@dataclass(frozen=True)
class NullArray:
    pass


Value = Union[
    SimpleString,
    SimpleError,
    Integer,
    BulkString,
    NullBulkString,
    Array,
    NullArray,
]
