#!/usr/bin/env python3
"""Convert interleaved SMD file(s) into raw binary ROM images.

examples:
  python -m smdrom.tools.deinterleave game.smd -o game.bin
  python -m smdrom.tools.deinterleave -S -v game.smd > game.bin
  cat game.smd | python -m smdrom.tools.deinterleave -c > game.bin
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import BinaryIO, Iterable

from smdrom.model.errors import SmdError
from smdrom.model.header import ContainerDescriptor, Role
from smdrom.model.helpers import hex_dump
from smdrom.model.pipeline import Options, process

PACKAGE = "smd-deinterleave"
VERSION = "0.1.0"

SILENT, NORMAL, VERBOSE = 0, 1, 2

LICENSE_TEXT = """\
You may redistribute copies of this program
under the terms of the GNU General Public License.
For more information about these matters, see the file named COPYING."""


class Reporter:
    # stderr diagnostics gated by verbosity; errors are always shown

    def __init__(self, verbosity: int = NORMAL, stream=None):
        self.verbosity = verbosity
        self.stream = stream if stream is not None else sys.stderr

    def _emit(self, msg: str) -> None:
        print(f"{PACKAGE}: {msg}", file=self.stream)

    def error(self, msg: str) -> None:
        self._emit(f"error: {msg}")

    def warning(self, msg: str) -> None:
        if self.verbosity >= NORMAL:
            self._emit(f"warning: {msg}")

    def info(self, msg: str) -> None:
        if self.verbosity >= NORMAL:
            self._emit(msg)

    def verbose(self, msg: str) -> None:
        if self.verbosity >= VERBOSE:
            self._emit(msg)


def _describe_header(name: str, desc: ContainerDescriptor, rep: Reporter) -> None:
    role = "split file (non-last part)" if desc.role is Role.SPLIT_NON_LAST else "single/last file"
    rep.verbose(f"{name}: {desc.block_count} blocks, {role}")
    rep.verbose(f"{name}: payload {desc.payload_size} bytes")
    if rep.verbosity >= VERBOSE and desc.raw:
        print(hex_dump(desc.raw[:32]), file=rep.stream)


def _convert(name: str, src: BinaryIO, dst: BinaryIO, opts: Options, rep: Reporter) -> bool:
    try:
        result = process(
            src,
            dst,
            options=opts,
            on_warning=lambda err: rep.warning(f"{name}: {err}"),
            on_header=lambda desc: _describe_header(name, desc, rep),
        )
    except SmdError as exc:
        rep.error(f"{name}: {exc}")
        return False
    if result.descriptor.is_split:
        rep.warning(f"{name}: part of a split dump; remaining parts must be converted separately")
    rep.info(f"{name}: wrote {result.bytes_written} bytes ({result.blocks_written} blocks)")
    return True


def _is_same_file(src: BinaryIO, out_path: Path) -> bool:
    # compares the open input's inode with the output path, if it exists
    try:
        return os.path.samestat(os.fstat(src.fileno()), os.stat(out_path))
    except (OSError, ValueError):
        return False


def _convert_to_path(name: str, src: BinaryIO, out_path: Path, opts: Options, rep: Reporter) -> bool:
    if _is_same_file(src, out_path):
        rep.error(f"{name}: output {out_path} is the input file; refusing to overwrite it")
        return False
    existed = out_path.exists()
    try:
        dst = out_path.open("wb")
    except OSError as exc:
        rep.error(f"{out_path}: {exc.strerror or exc}")
        return False
    with dst:
        ok = _convert(name, src, dst, opts, rep)
    if not ok and not existed:
        # partial output is not a usable ROM
        try:
            os.remove(out_path)
        except OSError as exc:
            rep.error(f"could not remove partial output {out_path}: {exc}")
    return ok


def _flush(name: str, stream: BinaryIO, rep: Reporter) -> bool:
    try:
        stream.flush()
    except OSError as exc:
        rep.error(f"{name}: output write failed: {exc.strerror or exc}")
        return False
    return True


def run(args: argparse.Namespace) -> int:
    rep = Reporter(args.verbosity)
    opts = Options(strict=args.strict)
    out_path = Path(args.output) if args.output else None
    stdout = sys.stdout.buffer

    if not args.roms:
        rep.info("no input files, trying stdin")
        if out_path is not None:
            ok = _convert_to_path("<stdin>", sys.stdin.buffer, out_path, opts, rep)
        else:
            ok = _convert("<stdin>", sys.stdin.buffer, stdout, opts, rep)
            ok = _flush("<stdin>", stdout, rep) and ok
        return 0 if ok else 1

    failures = 0
    for rom in args.roms:
        try:
            src = open(rom, "rb")
        except OSError as exc:
            rep.error(f"{rom}: {exc.strerror or exc}")
            ok = False
        else:
            with src:
                if out_path is not None:
                    ok = _convert_to_path(rom, src, out_path, opts, rep)
                else:
                    ok = _convert(rom, src, stdout, opts, rep)
                    ok = _flush(rom, stdout, rep) and ok
        if not ok:
            failures += 1
            if args.fragile:
                break
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PACKAGE,
        description="A utility for converting interleaved SMD file(s) into a raw binary file.",
    )
    p.add_argument("roms", nargs="*", metavar="ROM", help="SMD input file(s); stdin when omitted")
    dest = p.add_mutually_exclusive_group()
    dest.add_argument("-c", "--stdout", action="store_true",
                      help="Write the converted ROM to stdout (default).")
    dest.add_argument("-o", "--output", metavar="FILE",
                      help="Write output to FILE rather than stdout (single input only).")
    p.add_argument("-f", "--fragile", action="store_true",
                   help="Stop processing the remaining files after the first failure.")
    p.add_argument("-S", "--strict", action="store_true",
                   help="Treat signature, reserved-byte and trailing-data anomalies as errors.")
    level = p.add_mutually_exclusive_group()
    level.add_argument("-s", "--silent", dest="verbosity", action="store_const", const=SILENT,
                       help="Silent mode: display only error messages.")
    level.add_argument("-v", "--verbose", dest="verbosity", action="store_const", const=VERBOSE,
                       help="Be verbose.")
    p.set_defaults(verbosity=NORMAL)
    p.add_argument("-L", "--license", action="store_true",
                   help="Display software license and quit.")
    p.add_argument("-V", "--version", action="version", version=f"{PACKAGE} {VERSION}")
    return p


def main(argv: Iterable[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    if args.license:
        print(LICENSE_TEXT)
        return 0
    if args.output and len(args.roms) > 1:
        p.error("--output accepts a single input file; split parts are converted one at a time")
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
