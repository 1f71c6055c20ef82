#!/usr/bin/env python3
"""Print a human-readable report for a single `.prog_bin` program file.

By default the layout is picked from the file size (102+ bytes -> full,
otherwise minimal).  ``--raw`` dumps the undecoded field values instead,
which is handy when checking a new capture against the offset table.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from prog.decode import resolve_layout  # noqa: E402
from prog.errors import ProgramError  # noqa: E402
from prog.layout import LAYOUTS, describe_layout  # noqa: E402
from prog.normalize import normalize  # noqa: E402
from prog.reader import read_program  # noqa: E402
from prog.report import format_raw, render_report  # noqa: E402


logger = logging.getLogger("inspect_prog")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Show the parameters stored in a .prog_bin program file."
    )
    parser.add_argument("path", type=Path, help="Path to a .prog_bin file.")
    parser.add_argument(
        "--format",
        choices=sorted(LAYOUTS),
        default=None,
        help="Force a layout instead of detecting it from the file size.",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--raw", action="store_true", help="Dump raw field values.")
    output.add_argument("--json", action="store_true", help="Emit decoded values as JSON.")
    output.add_argument(
        "--layout", action="store_true", help="Print the offset table for the layout."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        data = args.path.read_bytes()
    except OSError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1

    layout = resolve_layout(data, args.format)
    logger.debug("%s: %d bytes, using %s layout", args.path, len(data), layout.version)

    if args.layout:
        sys.stdout.write(describe_layout(layout))
        return 0

    try:
        raw = read_program(data, layout)
        if args.raw:
            sys.stdout.write(format_raw(raw))
            return 0
        program = normalize(raw)
    except ProgramError as err:
        print(f"error: {args.path}: {err}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(program.as_dict(), indent=2))
    else:
        sys.stdout.write(render_report(program))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
