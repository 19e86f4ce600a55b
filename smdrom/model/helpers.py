# smdrom/model/helpers.py
# common helper functions used across the decoding pipeline
# provides exact-count stream reads/writes, soft-anomaly reporting and hex dumps

import warnings
from typing import BinaryIO, Callable, Optional

from smdrom.model.errors import InputReadError, OutputWriteError, SmdError, SmdWarning

WarningSink = Callable[[SmdError], None]


def readinto_exact(stream: BinaryIO, buf) -> int:
    # fill 'buf' (a writable buffer) from 'stream', looping over short reads
    # returns the number of bytes actually stored; < len(buf) means EOF
    view = memoryview(buf).cast("B")
    want = len(view)
    got = 0
    readinto = getattr(stream, "readinto", None)
    try:
        while got < want:
            if readinto is not None:
                n = readinto(view[got:])
            else:
                chunk = stream.read(want - got)
                n = len(chunk) if chunk else 0
                view[got:got + n] = chunk or b""
            if not n:
                break
            got += n
    except OSError as exc:
        raise InputReadError(f"input read failed: {exc}") from exc
    return got


def read_exact(stream: BinaryIO, n: int) -> bytes:
    # read up to n bytes; the result is shorter than n only at EOF
    buf = bytearray(n)
    got = readinto_exact(stream, buf)
    return bytes(buf[:got])


def write_all(stream: BinaryIO, data) -> None:
    # hand off exactly len(data) bytes; a short or rejected write is fatal
    view = memoryview(data).cast("B")
    want = len(view)
    try:
        n = stream.write(view)
    except OSError as exc:
        raise OutputWriteError(f"output write failed: {exc}") from exc
    # raw (unbuffered) streams report the count, buffered ones may return None
    if n is not None and n != want:
        raise OutputWriteError(f"short write: {n} of {want} bytes")


def drain(stream: BinaryIO, chunk_size: int = 0x4000) -> int:
    # consume the rest of 'stream' in fixed chunks, returning the byte count
    buf = bytearray(chunk_size)
    total = 0
    while True:
        n = readinto_exact(stream, buf)
        total += n
        if n < chunk_size:
            return total


def report_soft(err: SmdError, strict: bool, on_warning: Optional[WarningSink]) -> None:
    # strict: soft anomalies are fatal. lenient: hand them to the caller's sink
    if strict:
        raise err
    if on_warning is not None:
        on_warning(err)
    else:
        warnings.warn(str(err), SmdWarning, stacklevel=3)


def hex_dump(data: bytes, bytes_per_line: int = 16, base: int = 0) -> str:
    lines = []
    for i in range(0, len(data), bytes_per_line):
        chunk = data[i:i + bytes_per_line]
        hex_str = ' '.join(f'{b:02X}' for b in chunk)
        lines.append(f'{base + i:08X}: {hex_str}')
    return '\n'.join(lines)
