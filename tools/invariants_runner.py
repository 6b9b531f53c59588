#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Framing invariants (property tests) for the resp2 decoder.
#
# This runner:
# - generates random value trees within the default limits
# - encodes them with a small test-side encoder (the library only decodes)
# - checks that decoding gives the tree back, that the consumed length is
#   exact, that trailing bytes never change the result, and that every
#   strict prefix of a frame is reported as INCOMPLETE
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, random
from typing import List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

import resp2
from resp2 import (
    Array, BulkString, Integer, NullArray, NullBulkString, SimpleError,
    SimpleString, Status, Value,
)

SEED = int(os.environ.get("RESP2_SEED", "1337"))
TRIALS = int(os.environ.get("RESP2_TRIALS", "2000"))
MAX_GEN_DEPTH = int(os.environ.get("RESP2_GEN_MAX_DEPTH", "5"))
MAX_ITEMS = int(os.environ.get("RESP2_GEN_MAX_ITEMS", "5"))
MAX_STR = int(os.environ.get("RESP2_GEN_MAX_STR", "24"))
MAX_BYTES = int(os.environ.get("RESP2_GEN_MAX_BYTES", "32"))

random.seed(SEED)

UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

def rand_text() -> str:
    # Non-empty, no CR/LF; mostly printable ASCII with some non-ASCII scalars.
    out = []
    for _ in range(random.randint(1, MAX_STR)):
        r = random.random()
        if r < 0.85:
            out.append(chr(random.randint(0x20, 0x7E)))
        elif r < 0.95:
            out.append(chr(random.randint(0xA0, 0x7FF)))
        else:
            out.append(chr(random.randint(0x10000, 0x10FFFF)))
    return "".join(out)

def rand_message() -> str:
    # Messages can't start with a separator byte: the separator run is maximal.
    text = rand_text()
    return text if text[0] != " " else "x" + text

def rand_bytes() -> bytes:
    # Bias towards CR, LF and NUL so payloads exercise binary safety.
    pool = [0x00, 0x0D, 0x0A]
    return bytes(random.choice(pool) if random.random() < 0.2 else random.getrandbits(8)
                 for _ in range(random.randint(0, MAX_BYTES)))

def rand_int() -> int:
    r = random.random()
    if r < 0.1:
        return random.choice([resp2.INT64_MIN, resp2.INT64_MAX, 0, -1])
    if r < 0.5:
        return random.randint(-1000, 1000)
    return random.randint(resp2.INT64_MIN, resp2.INT64_MAX)

def gen_value(depth: int) -> Value:
    r = random.random()
    if depth < MAX_GEN_DEPTH and r < 0.3:
        return Array(tuple(gen_value(depth + 1) for _ in range(random.randint(0, MAX_ITEMS))))
    if r < 0.4:
        return SimpleString(rand_text())
    if r < 0.5:
        kind = "".join(random.choice(UPPER) for _ in range(random.randint(1, 10)))
        return SimpleError(kind, rand_message())
    if r < 0.65:
        return Integer(rand_int())
    if r < 0.9:
        return BulkString(rand_bytes())
    if r < 0.95:
        return NullBulkString()
    return NullArray()

def encode(v: Value) -> bytes:
    """Test-side RESP2 encoder, used only to produce decoder input."""
    if isinstance(v, SimpleString):
        return b"+" + v.value.encode("utf-8") + b"\r\n"
    if isinstance(v, SimpleError):
        sep = random.choice([" ", "\n", " \n ", "  "])
        return ("-" + v.kind + sep + v.message).encode("utf-8") + b"\r\n"
    if isinstance(v, Integer):
        sign = "+" if v.value >= 0 and random.random() < 0.1 else ""
        zeros = "0" * random.choice([0, 0, 0, 1, 3])
        digits = str(abs(v.value))
        return (":" + ("-" if v.value < 0 else sign) + zeros + digits + "\r\n").encode("ascii")
    if isinstance(v, BulkString):
        return b"$" + str(len(v.value)).encode("ascii") + b"\r\n" + v.value + b"\r\n"
    if isinstance(v, NullBulkString):
        return b"$-1\r\n"
    if isinstance(v, Array):
        return b"*" + str(len(v.items)).encode("ascii") + b"\r\n" + b"".join(encode(i) for i in v.items)
    if isinstance(v, NullArray):
        return b"*-1\r\n"
    raise TypeError(type(v).__name__)

def fail(msg: str, frame: bytes) -> int:
    print("INVARIANT FAIL:", msg)
    print("FRAME:", repr(frame[:2000]))
    return 1

def main() -> int:
    for t in range(TRIALS):
        v = gen_value(0)
        frame = encode(v)

        # (1) Decoding gives the tree back.
        if resp2.decode(frame) != v:
            return fail("decode(encode(v)) != v (trial {})".format(t), frame)

        # (2) Consumed length is exact, and trailing bytes don't matter.
        junk = bytes(random.getrandbits(8) for _ in range(random.randint(0, 8)))
        got, end = resp2.decode_prefix(frame + junk)
        if got != v or end != len(frame):
            return fail("decode_prefix consumed {} of {}".format(end, len(frame)), frame)

        # (3) Every strict prefix is INCOMPLETE (sampled for long frames).
        cuts: List[int] = list(range(len(frame))) if len(frame) <= 256 else \
            random.sample(range(len(frame)), 256)
        for cut in cuts:
            res = resp2.try_decode(frame[:cut])
            if res.status is not Status.INCOMPLETE:
                return fail("prefix of {} bytes gave {}".format(cut, res), frame)

        # (4) Two frames back to back decode as two values.
        other = gen_value(0)
        both = frame + encode(other)
        if resp2.decode_all(both) != [v, other]:
            return fail("decode_all on concatenation", both)

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
