#!/usr/bin/env python3
"""Generate reference SMD vectors for the decoder test scenarios.

Each scenario gets its own directory holding the SMD container
(``input.smd``), the raw image a correct decoder must produce
(``expected.bin``, absent for scenarios that must fail) and a
``metadata.json`` describing the expected outcome. The layout is meant to
seed external decoders and regression suites with the same vectors the
Python model is tested against.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Tuple

import numpy as np

from smdrom.model.deinterleaver import BLOCK_SIZE, HALF_SIZE, interleave
from smdrom.model.header import HEADER_SIZE, build_header

# scenario -> (smd bytes, expected raw image or None, metadata)
Vector = Tuple[bytes, Optional[bytes], dict]


def _halves_block(lo: int, hi: int) -> bytes:
    return bytes([lo]) * HALF_SIZE + bytes([hi]) * HALF_SIZE


def _alternating(even: int, odd: int) -> bytes:
    return bytes([even, odd]) * HALF_SIZE


def _minimal() -> Vector:
    smd = build_header(1) + _halves_block(0xAA, 0xBB)
    return smd, _alternating(0xBB, 0xAA), {"blocks": 1, "outcome": "ok"}


def _two_block() -> Vector:
    smd = build_header(2) + _halves_block(0xAA, 0xBB) + _halves_block(0x11, 0x22)
    raw = _alternating(0xBB, 0xAA) + _alternating(0x22, 0x11)
    return smd, raw, {"blocks": 2, "outcome": "ok"}


def _identity() -> Vector:
    raw = (np.arange(BLOCK_SIZE, dtype=np.uint32) % 256).astype(np.uint8).tobytes()
    return build_header(1) + interleave(raw), raw, {"blocks": 1, "outcome": "ok"}


def _truncated() -> Vector:
    smd = build_header(3) + _halves_block(0xAA, 0xBB) + _halves_block(0x11, 0x22)
    meta = {
        "blocks": 3,
        "outcome": "error",
        "error": "TruncatedPayloadError",
        "block_index": 2,
        "got": 0,
        "want": BLOCK_SIZE,
        "partial_output_bytes": 2 * BLOCK_SIZE,
    }
    return smd, None, meta


def _invalid_role() -> Vector:
    smd = build_header(1, role=0x7F) + _halves_block(0xAA, 0xBB)
    return smd, None, {"blocks": 1, "outcome": "error", "error": "InvalidRoleError", "role": 0x7F}


def _lenient_signature() -> Vector:
    hdr = bytearray(build_header(1))
    hdr[0x008] = 0x00
    smd = bytes(hdr) + _halves_block(0xAA, 0xBB)
    meta = {
        "blocks": 1,
        "outcome": "ok",
        "mode": "lenient",
        "warnings": ["BadSignatureError"],
        "strict_error": "BadSignatureError",
    }
    return smd, _alternating(0xBB, 0xAA), meta


SCENARIOS: Dict[str, Callable[[], Vector]] = {
    "minimal": _minimal,
    "two_block": _two_block,
    "identity": _identity,
    "truncated": _truncated,
    "invalid_role": _invalid_role,
    "lenient_signature": _lenient_signature,
}


def _emit_scenario(out_dir: Path, name: str, vector: Vector) -> None:
    smd, raw, meta = vector
    sc_dir = out_dir / name
    sc_dir.mkdir(parents=True, exist_ok=True)
    (sc_dir / "input.smd").write_bytes(smd)
    if raw is not None:
        (sc_dir / "expected.bin").write_bytes(raw)
    meta = dict(meta, input_len=len(smd), header_len=HEADER_SIZE)
    if raw is not None:
        meta["expected_len"] = len(raw)
    with (sc_dir / "metadata.json").open("w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2)


def generate_vectors(args: argparse.Namespace) -> int:
    out_dir = Path(args.out_dir)
    scenarios = args.scenario or sorted(SCENARIOS)
    for name in scenarios:
        if name not in SCENARIOS:
            raise SystemExit(f"Unknown scenario '{name}'. Choices: {sorted(SCENARIOS)}")
        _emit_scenario(out_dir, name, SCENARIOS[name]())
        print(f"[OK] Wrote {name} vectors to {out_dir / name}")

    out_dir.mkdir(parents=True, exist_ok=True)
    summary = {
        "block_size": BLOCK_SIZE,
        "header_size": HEADER_SIZE,
        "scenarios": scenarios,
    }
    with (out_dir / "vector_summary.json").open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)
    print(f"[OK] Summary written to {out_dir / 'vector_summary.json'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate SMD reference vectors")
    p.add_argument("--scenario", action="append", choices=sorted(SCENARIOS),
                   help="Which scenario(s) to emit (may be specified multiple times). Default: all")
    p.add_argument("--out-dir", default="vectors", help="Destination directory for generated files")
    return p


def main(argv: Iterable[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return generate_vectors(args)


if __name__ == "__main__":
    raise SystemExit(main())
