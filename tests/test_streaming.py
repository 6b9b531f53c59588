"""Tests for framing consecutive values: decode_prefix, try_decode,
decode_all, the buffered Reader and the command-line front end."""

from __future__ import annotations

import contextlib
import io
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from resp2 import (
    Array,
    BulkString,
    DecodeError,
    ERR_INVALID_LENGTH,
    ERR_MALFORMED_TERMINATOR,
    ERR_OVERFLOW,
    ERR_PAYLOAD_TOO_LARGE,
    ERR_TRUNCATED_PAYLOAD,
    ERR_UNRECOGNIZED_TYPE,
    Integer,
    NullBulkString,
    Reader,
    SimpleError,
    SimpleString,
    Status,
    decode_all,
    decode_prefix,
    try_decode,
)
from resp2._cli import main as cli_main

PIPELINE = (b"*3\r\n$3\r\nSET\r\n$3\r\nkey\r\n$5\r\nvalue\r\n"
            b"+OK\r\n"
            b":42\r\n"
            b"$-1\r\n"
            b"-ERR no such key\r\n")

PIPELINE_VALUES = [
    Array((BulkString(b"SET"), BulkString(b"key"), BulkString(b"value"))),
    SimpleString("OK"),
    Integer(42),
    NullBulkString(),
    SimpleError("ERR", "no such key"),
]


# ── decode_prefix ─────────────────────────────────────────────

class TestDecodePrefix(unittest.TestCase):
    def test_reports_end_offset(self):
        self.assertEqual(decode_prefix(b"+OK\r\nREST"), (SimpleString("OK"), 5))
        self.assertEqual(decode_prefix(b"$-1\r\n:1\r\n"), (NullBulkString(), 5))

    def test_walks_consecutive_frames(self):
        off = 0
        values = []
        while off < len(PIPELINE):
            value, off = decode_prefix(PIPELINE, off)
            values.append(value)
        self.assertEqual(values, PIPELINE_VALUES)
        self.assertEqual(off, len(PIPELINE))

    def test_error_offset_is_absolute(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_prefix(b"+OK\r\n:4x\r\n", 5)
        self.assertEqual(ctx.exception.offset, 7)

    def test_offset_out_of_range(self):
        with self.assertRaises(ValueError):
            decode_prefix(b"+OK\r\n", 6)
        with self.assertRaises(ValueError):
            decode_prefix(b"+OK\r\n", -1)


# ── try_decode ────────────────────────────────────────────────

class TestTryDecode(unittest.TestCase):
    def test_complete(self):
        result = try_decode(b":1\r\n:2\r\n")
        self.assertIs(result.status, Status.COMPLETE)
        self.assertTrue(result.complete)
        self.assertEqual(result.value, Integer(1))
        self.assertEqual(result.consumed, 4)
        self.assertIsNone(result.error)

    def test_consumed_is_relative_to_offset(self):
        result = try_decode(b":1\r\n$3\r\nabc\r\n", 4)
        self.assertEqual(result.value, BulkString(b"abc"))
        self.assertEqual(result.consumed, 9)

    def test_incomplete(self):
        result = try_decode(b"$5\r\nhel")
        self.assertIs(result.status, Status.INCOMPLETE)
        self.assertFalse(result.complete)
        self.assertEqual(result.needed, 4)
        self.assertEqual(result.error.code, ERR_TRUNCATED_PAYLOAD)
        self.assertIsNone(result.value)

    def test_empty_is_incomplete(self):
        result = try_decode(b"")
        self.assertIs(result.status, Status.INCOMPLETE)
        self.assertEqual(result.needed, 1)
        self.assertEqual(result.error.code, ERR_UNRECOGNIZED_TYPE)

    def test_invalid(self):
        result = try_decode(b"+OK\rX")
        self.assertIs(result.status, Status.INVALID)
        self.assertEqual(result.error.code, ERR_MALFORMED_TERMINATOR)
        self.assertEqual(result.needed, 0)

    def test_hopeless_prefix_is_invalid(self):
        # No continuation can make these valid, so they must not wait for one.
        for data, code in [(b":99999999999999999999", ERR_OVERFLOW),
                           (b":9223372036854775808", ERR_OVERFLOW),
                           (b":-9223372036854775809", ERR_OVERFLOW),
                           (b"$999999999999", ERR_PAYLOAD_TOO_LARGE),
                           (b"*-2", ERR_INVALID_LENGTH),
                           (b"$-5", ERR_INVALID_LENGTH),
                           (b"$-10", ERR_INVALID_LENGTH),
                           (b"$-5\r", ERR_INVALID_LENGTH),
                           (b"*1\r\n$-2", ERR_INVALID_LENGTH)]:
            with self.subTest(data=data):
                result = try_decode(data)
                self.assertIs(result.status, Status.INVALID, result)
                self.assertEqual(result.error.code, code)
                self.assertEqual(result.needed, 0)
                extended = try_decode(data + b"0\r\n")
                self.assertIs(extended.status, Status.INVALID, extended)

    def test_prefix_that_can_still_be_valid_is_incomplete(self):
        for data in [b"$-", b"$-1", b"$-0", b"$-01", b"*-", b"*-1", b"*+",
                     b":922337203685477580", b":-922337203685477580",
                     b"$000", b"$512"]:
            with self.subTest(data=data):
                self.assertIs(try_decode(data).status, Status.INCOMPLETE)

    def test_bulk_limit_applies_to_partial_length(self):
        self.assertIs(try_decode(b"$10", max_bulk_length=5).status, Status.INVALID)
        self.assertIs(try_decode(b"$5", max_bulk_length=5).status, Status.INCOMPLETE)

    def test_every_strict_prefix_is_incomplete(self):
        for end in range(len(PIPELINE)):
            first = try_decode(PIPELINE[:end])
            if first.complete:
                continue
            with self.subTest(end=end):
                self.assertIs(first.status, Status.INCOMPLETE, first)

        frame = b"*2\r\n*1\r\n$4\r\nab\r\n\r\n-ERR  \n boom\r\n"
        self.assertTrue(try_decode(frame).complete)
        for end in range(len(frame)):
            with self.subTest(prefix=frame[:end]):
                self.assertIs(try_decode(frame[:end]).status, Status.INCOMPLETE)

    def test_repr(self):
        self.assertIn("COMPLETE", repr(try_decode(b":1\r\n")))
        self.assertIn("INCOMPLETE", repr(try_decode(b":1")))
        self.assertIn("INVALID", repr(try_decode(b"?")))


# ── decode_all ────────────────────────────────────────────────

class TestDecodeAll(unittest.TestCase):
    def test_pipeline(self):
        self.assertEqual(decode_all(PIPELINE), PIPELINE_VALUES)

    def test_empty(self):
        self.assertEqual(decode_all(b""), [])

    def test_trailing_partial_frame(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_all(PIPELINE + b"$3\r\nab")
        self.assertTrue(ctx.exception.incomplete)


# ── Reader ────────────────────────────────────────────────────

class TestReader(unittest.TestCase):
    def test_byte_at_a_time(self):
        reader = Reader()
        got = []
        for i in range(len(PIPELINE)):
            reader.feed(PIPELINE[i:i + 1])
            value = reader.gets()
            if value is not None:
                got.append(value)
        self.assertEqual(got, PIPELINE_VALUES)
        self.assertEqual(reader.buffered, 0)

    def test_iterates_complete_values(self):
        reader = Reader()
        reader.feed(PIPELINE + b"*2\r\n:1\r\n")
        self.assertEqual(list(reader), PIPELINE_VALUES)
        self.assertEqual(reader.buffered, len(b"*2\r\n:1\r\n"))
        reader.feed(b":2\r\n")
        self.assertEqual(reader.gets(), Array((Integer(1), Integer(2))))
        self.assertIsNone(reader.gets())

    def test_empty_reader(self):
        self.assertIsNone(Reader().gets())

    def test_str_feed(self):
        reader = Reader()
        reader.feed("+OK\r\n")
        self.assertEqual(reader.gets(), SimpleString("OK"))

    def test_invalid_input_raises_and_stays_buffered(self):
        reader = Reader()
        reader.feed(b"+OK\r\n!bogus\r\n")
        self.assertEqual(reader.gets(), SimpleString("OK"))
        with self.assertRaises(DecodeError) as ctx:
            reader.gets()
        self.assertEqual(ctx.exception.code, ERR_UNRECOGNIZED_TYPE)
        self.assertEqual(reader.buffered, len(b"!bogus\r\n"))
        reader.clear()
        self.assertEqual(reader.buffered, 0)
        self.assertIsNone(reader.gets())

    def test_limits_apply(self):
        reader = Reader(max_depth=1)
        reader.feed(b"*1\r\n*1\r\n:1\r\n")
        with self.assertRaises(DecodeError):
            reader.gets()

    def test_large_stream_compacts(self):
        reader = Reader()
        chunk = b"$1000\r\n" + b"x" * 1000 + b"\r\n"
        reader.feed(chunk * 100 + b"$1000\r\nxx")
        self.assertEqual(len(list(reader)), 100)
        self.assertEqual(reader.buffered, len(b"$1000\r\nxx"))


# ── CLI ───────────────────────────────────────────────────────

class TestCli(unittest.TestCase):
    def setUp(self):
        fd, self.path = tempfile.mkstemp(suffix=".resp")
        os.close(fd)

    def tearDown(self):
        os.unlink(self.path)

    def _run(self, data: bytes, *argv: str):
        with open(self.path, "wb") as f:
            f.write(data)
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                cli_main([argv[0], "--input", self.path] + list(argv[1:]))
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()

    def test_decode_first_frame(self):
        code, out, _ = self._run(b"+OK\r\n:1\r\n", "decode")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"type": "simple_string", "value": "OK"})

    def test_decode_all(self):
        code, out, _ = self._run(b"+OK\r\n$2\r\n\xff\x00\r\n", "decode", "--all")
        self.assertEqual(code, 0)
        lines = [json.loads(line) for line in out.splitlines()]
        self.assertEqual(lines, [
            {"type": "simple_string", "value": "OK"},
            {"type": "bulk_string", "base64": "/wA="},
        ])

    def test_decode_error(self):
        code, _, err = self._run(b":4.2\r\n", "decode")
        self.assertEqual(code, 2)
        self.assertIn("[MalformedDigits]", err)
        self.assertIn("at offset 2", err)

    def test_check(self):
        self.assertEqual(self._run(b"$3\r\nabc\r\nxx", "check")[:2], (0, "complete 9\n"))
        self.assertEqual(self._run(b"$3\r\nab", "check")[:2], (3, "incomplete 3\n"))
        code, out, _ = self._run(b"*-5\r\n", "check")
        self.assertEqual(code, 2)
        self.assertEqual(out, "invalid InvalidLength at offset 1\n")

    def test_max_depth_flag(self):
        code, _, err = self._run(b"*1\r\n*1\r\n:1\r\n", "decode", "--max-depth", "1")
        self.assertEqual(code, 2)
        self.assertIn("RecursionLimitExceeded", err)

    def test_max_depth_above_ceiling(self):
        code, _, err = self._run(b":1\r\n", "check", "--max-depth", "10000")
        self.assertEqual(code, 2)
        self.assertIn("max_depth must be <= 256", err)

    def test_check_hopeless_prefix(self):
        code, out, _ = self._run(b":99999999999999999999", "check")
        self.assertEqual(code, 2)
        self.assertEqual(out, "invalid Overflow at offset 1\n")

    def test_version(self):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            cli_main(["version"])
        self.assertTrue(out.getvalue().startswith("resp2 "))


if __name__ == "__main__":
    unittest.main()
