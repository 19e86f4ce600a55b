# smdrom/model/pipeline.py
# SMD decoding pipeline:
# input stream -> header decoder -> [read 16 KiB block -> de-interleave -> write] x N -> output stream
#
# Notes:
# - blocks are streamed one at a time; block i is fully written before block
#   i+1 is read, so peak memory is two 16 KiB buffers plus the header
# - the output is never rolled back on failure; the caller owns the sink
# - strict/lenient is a per-call option, there is no module-level state

import io
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

import numpy as np

from smdrom.model.deinterleaver import BLOCK_SIZE, deinterleave_block_into
from smdrom.model.errors import CancelledError, TrailingDataError, TruncatedPayloadError
from smdrom.model.header import ContainerDescriptor, decode_header
from smdrom.model.helpers import WarningSink, drain, readinto_exact, report_soft, write_all


@dataclass(frozen=True)
class Options:
    strict: bool = False
    check_trailing: bool = True


@dataclass(frozen=True)
class ProcessResult:
    descriptor: ContainerDescriptor
    blocks_written: int
    bytes_written: int
    trailing_bytes: int = 0


def process(
    src: BinaryIO,
    dst: BinaryIO,
    options: Optional[Options] = None,
    on_warning: Optional[WarningSink] = None,
    on_header: Optional[Callable[[ContainerDescriptor], None]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> ProcessResult:
    """Decode one SMD container from ``src`` and write the raw ROM to ``dst``.

    Args:
        src: Forward-only binary stream positioned at the start of the file.
        dst: Forward-only binary sink.
        options: Strictness and trailing-data policy (default: lenient).
        on_warning: Receives soft anomalies as error instances in lenient mode.
        on_header: Called with the descriptor before any payload is read.
        should_cancel: Polled between blocks; returning True aborts.

    Returns:
        ProcessResult with the descriptor and the amount of data written.

    Raises:
        SmdError subclasses from smdrom.model.errors.
    """
    opts = options or Options()
    desc = decode_header(src, strict=opts.strict, on_warning=on_warning)
    if on_header is not None:
        on_header(desc)

    in_buf = bytearray(BLOCK_SIZE)
    out_buf = np.empty(BLOCK_SIZE, dtype=np.uint8)

    written = 0
    for i in range(desc.block_count):
        if should_cancel is not None and should_cancel():
            raise CancelledError(i)
        got = readinto_exact(src, in_buf)
        if got != BLOCK_SIZE:
            raise TruncatedPayloadError(i, got, BLOCK_SIZE)
        deinterleave_block_into(in_buf, out_buf)
        write_all(dst, out_buf)
        written += BLOCK_SIZE

    trailing = 0
    if opts.check_trailing:
        trailing = drain(src)
        if trailing:
            report_soft(TrailingDataError(trailing), opts.strict, on_warning)

    return ProcessResult(
        descriptor=desc,
        blocks_written=desc.block_count,
        bytes_written=written,
        trailing_bytes=trailing,
    )


def process_bytes(
    data: bytes,
    options: Optional[Options] = None,
    on_warning: Optional[WarningSink] = None,
) -> bytes:
    # in-memory convenience wrapper around process()
    out = io.BytesIO()
    process(io.BytesIO(data), out, options=options, on_warning=on_warning)
    return out.getvalue()
