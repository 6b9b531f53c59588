#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Mutation fuzzing for the resp2 decoder.
#
# Takes random valid frames (generator and encoder shared with
# invariants_runner.py), applies byte-level mutations, and checks:
#   A) the decoder only ever fails with DecodeError (no IndexError,
#      ValueError, RecursionError, ...)
#   B) verdicts are consistent under appending bytes: a COMPLETE result
#      keeps its value and length, an INVALID result stays INVALID
#   C) try_decode and decode_prefix agree
#
# Any violation prints a minimal repro payload and exits non-zero.

import os, sys, random
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

import importlib.util
spec = importlib.util.spec_from_file_location(
    "invariants_runner", os.path.join(ROOT, "tools", "invariants_runner.py"))
gen = importlib.util.module_from_spec(spec)
spec.loader.exec_module(gen)

import resp2
from resp2 import DecodeError, Status

SEED = int(os.environ.get("RESP2_SEED", "4242"))
ROUNDS = int(os.environ.get("RESP2_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

INTERESTING = b"\r\n+-:$*0123456789 ABCabc\x00\xff"

def mutate(data: bytes) -> bytes:
    buf = bytearray(data)
    for _ in range(random.randint(1, 3)):
        op = random.random()
        pos = random.randint(0, len(buf))
        if op < 0.3 and buf:
            del buf[min(pos, len(buf) - 1)]
        elif op < 0.6:
            buf.insert(pos, random.choice(INTERESTING))
        elif op < 0.9 and buf:
            buf[min(pos, len(buf) - 1)] = random.choice(INTERESTING)
        else:
            buf = buf[:pos]
    return bytes(buf)

def outcome(data: bytes) -> Dict[str, Any]:
    try:
        res = resp2.try_decode(data)
    except DecodeError as e:
        return {"crash": "try_decode raised DecodeError [{}]".format(e.code)}
    except Exception as e:  # anything else is a decoder bug
        return {"crash": "{}: {}".format(type(e).__name__, e)}
    return {"status": res.status, "value": res.value, "consumed": res.consumed,
            "code": res.error.code if res.error else None}

def report(label: str, data: bytes, *outs: Dict[str, Any]) -> None:
    print("VIOLATION:", label)
    print("INPUT:", repr(data[:4000]))
    for o in outs:
        print("  ", o)
    raise SystemExit(1)

def main() -> int:
    for r in range(ROUNDS):
        data = mutate(gen.encode(gen.gen_value(0)))

        first = outcome(data)
        if "crash" in first:
            report("decoder crashed (round {})".format(r), data, first)

        # C) decode_prefix must agree with try_decode.
        try:
            value, end = resp2.decode_prefix(data)
            if first["status"] is not Status.COMPLETE or \
                    (value, end) != (first["value"], first["consumed"]):
                report("decode_prefix disagrees", data, first)
        except DecodeError as e:
            if first["status"] is Status.COMPLETE or e.code != first["code"]:
                report("decode_prefix disagrees", data, first)

        # B) Appending bytes never changes a COMPLETE or INVALID verdict.
        tail = bytes(random.choice(INTERESTING) for _ in range(random.randint(1, 6)))
        second = outcome(data + tail)
        if "crash" in second:
            report("decoder crashed on extension", data + tail, second)
        if first["status"] is Status.COMPLETE and \
                (second["status"], second["value"], second["consumed"]) != \
                (first["status"], first["value"], first["consumed"]):
            report("COMPLETE verdict changed after appending", data + tail, first, second)
        if first["status"] is Status.INVALID and second["status"] is not Status.INVALID:
            report("INVALID verdict changed after appending", data + tail, first, second)

    print(f"OK: fuzzing passed for ROUNDS={ROUNDS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
