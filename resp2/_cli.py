"""resp2 command-line interface.

Usage:
    printf '+OK\\r\\n' | python3 -m resp2 decode
    python3 -m resp2 decode --all --input capture.bin
    printf '$5\\r\\nhel' | python3 -m resp2 check
    python3 -m resp2 version

`decode` prints one JSON line per frame.  `check` reports whether the input
starts with a complete, incomplete or invalid frame and exits 0, 3 or 2.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import (
    DEFAULT_MAX_BULK_LENGTH,
    DEFAULT_MAX_DEPTH,
    DecodeError,
    Status,
    __version__,
    decode,
    decode_all,
    to_jsonable,
    try_decode,
)

logger = logging.getLogger(__name__)

EXIT_INVALID = 2
EXIT_INCOMPLETE = 3


def _add_input_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", "-i", metavar="FILE",
                   help="Read raw bytes from FILE instead of stdin")
    p.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                   metavar="N", help="Maximum array nesting (default: %(default)s)")
    p.add_argument("--max-bulk-length", type=int, default=DEFAULT_MAX_BULK_LENGTH,
                   metavar="N", help="Maximum bulk string length in bytes")
    p.add_argument("--verbose", "-v", action="store_true",
                   help="Log debug details to stderr")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resp2",
        description="resp2 — decode RESP2 frames into typed values",
    )
    sub = parser.add_subparsers(dest="command")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Decode frames and print them as JSON")
    dec_p.add_argument("--all", action="store_true",
                       help="Decode every back-to-back frame, not just the first")
    _add_input_options(dec_p)

    # ── check ──
    chk_p = sub.add_parser("check",
                           help="Report whether the input holds a complete frame")
    _add_input_options(chk_p)

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read raw bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("resp2: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _cmd_decode(args: argparse.Namespace) -> int:
    raw = _read_input(args.input)
    logger.debug("read %d bytes", len(raw))
    limits = dict(max_depth=args.max_depth, max_bulk_length=args.max_bulk_length)

    values = decode_all(raw, **limits) if args.all else [decode(raw, **limits)]
    for value in values:
        print(json.dumps(to_jsonable(value), ensure_ascii=False))
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    raw = _read_input(args.input)
    result = try_decode(raw, max_depth=args.max_depth,
                        max_bulk_length=args.max_bulk_length)

    if result.status is Status.COMPLETE:
        print("complete {}".format(result.consumed))
        return 0
    if result.status is Status.INCOMPLETE:
        logger.debug("incomplete: %s", result.error)
        print("incomplete {}".format(result.needed))
        return EXIT_INCOMPLETE
    print("invalid {} at offset {}".format(result.error.code, result.error.offset))
    return EXIT_INVALID


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"resp2 {__version__}")
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "decode":
            code = _cmd_decode(args)
        else:
            code = _cmd_check(args)
    except DecodeError as e:
        print(f"resp2: error [{e.code}] at offset {e.offset}: {e}", file=sys.stderr)
        sys.exit(EXIT_INVALID)
    except ValueError as e:
        print(f"resp2: {e}", file=sys.stderr)
        sys.exit(EXIT_INVALID)
    except OSError as e:
        print(f"resp2: cannot read input: {e}", file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
