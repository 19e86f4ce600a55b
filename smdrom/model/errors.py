# smdrom/model/errors.py
# exception hierarchy for the SMD decoding pipeline
#
# structural (header) -> payload -> I/O, all rooted at SmdError.
# every error keeps its structured fields as attributes so callers can
# render their own messages; str() gives a readable default.

from typing import Sequence, Tuple


class SmdError(Exception):
    """Base class for all SMD decoding errors."""


class SmdWarning(UserWarning):
    """Category used when a soft anomaly is reported through ``warnings``."""


# --- structural ---------------------------------------------------------

class HeaderError(SmdError):
    """Base class for errors raised while decoding the 512-byte header."""


class ShortHeaderError(HeaderError):
    def __init__(self, got: int, want: int = 0x200):
        self.got = got
        self.want = want
        super().__init__(f"short header: got {got} bytes, want {want}")


class InvalidRoleError(HeaderError):
    def __init__(self, role_byte: int):
        self.role_byte = role_byte
        super().__init__(f"invalid role byte 0x{role_byte:02X} (expected 0x00 or 0x40)")


class BadSignatureError(HeaderError):
    """Raised (strict) or reported (lenient) when a signature byte mismatches.

    ``mismatches`` holds ``(offset, got, want)`` triples.
    """

    def __init__(self, mismatches: Sequence[Tuple[int, int, int]]):
        self.mismatches = tuple(mismatches)
        detail = ", ".join(f"[0x{off:03X}]=0x{got:02X} (want 0x{want:02X})"
                           for off, got, want in self.mismatches)
        super().__init__(f"bad signature: {detail}")

    @property
    def offsets(self) -> Tuple[int, ...]:
        return tuple(off for off, _, _ in self.mismatches)


class ZeroFillViolationError(HeaderError):
    def __init__(self, offsets: Sequence[int]):
        self.offsets = tuple(offsets)
        shown = ", ".join(f"0x{off:03X}" for off in self.offsets[:8])
        if len(self.offsets) > 8:
            shown += ", ..."
        super().__init__(f"non-zero reserved header bytes at {len(self.offsets)} offset(s): {shown}")


# --- payload ------------------------------------------------------------

class PayloadError(SmdError):
    """Base class for payload length errors."""


class TruncatedPayloadError(PayloadError):
    def __init__(self, block_index: int, got: int, want: int = 0x4000):
        self.block_index = block_index
        self.got = got
        self.want = want
        super().__init__(f"truncated payload: block {block_index} has {got} of {want} bytes")


class TrailingDataError(PayloadError):
    def __init__(self, extra: int):
        self.extra = extra
        super().__init__(f"{extra} byte(s) of trailing data after the last block")


# --- I/O ----------------------------------------------------------------

class SmdIOError(SmdError):
    """Base class for failures reported by the underlying streams."""


class InputReadError(SmdIOError):
    pass


class OutputWriteError(SmdIOError):
    pass


class CancelledError(SmdError):
    """Raised when the caller requests cancellation between blocks."""

    def __init__(self, block_index: int):
        self.block_index = block_index
        super().__init__(f"cancelled before block {block_index}")
