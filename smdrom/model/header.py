# smdrom/model/header.py
# SMD container header (512 bytes), decoded field by field from byte offsets
#
#   0x000      block_count   number of 16 KiB payload blocks
#   0x001      const_3       0x03
#   0x002      role          0x00 = single/last file, 0x40 = split, non-last
#   0x003..7   zero_fill_a   reserved, 0x00
#   0x008      const_aa      0xAA  \
#   0x009      const_bb      0xBB   > signature
#   0x00A      const_6       0x06  /
#   0x00B..1FF zero_fill_b   reserved, 0x00
#
# role is always a hard check. signature and zero fill are soft: fatal in
# strict mode, reported through the warning sink in lenient mode.

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, List, Optional, Tuple

from smdrom.model.errors import (
    BadSignatureError,
    InvalidRoleError,
    ShortHeaderError,
    ZeroFillViolationError,
)
from smdrom.model.helpers import WarningSink, read_exact, report_soft

HEADER_SIZE = 0x200
BLOCK_SIZE = 0x4000
MAX_BLOCKS = 0xFF

OFF_BLOCK_COUNT = 0x000
OFF_CONST_3 = 0x001
OFF_ROLE = 0x002
ZERO_FILL_A = (0x003, 0x008)
ZERO_FILL_B = (0x00B, HEADER_SIZE)

CONST_3 = 0x03
SIGNATURE: Tuple[Tuple[int, int], ...] = (
    (0x008, 0xAA),
    (0x009, 0xBB),
    (0x00A, 0x06),
)

ROLE_SINGLE_OR_LAST = 0x00
ROLE_SPLIT_NON_LAST = 0x40


class Role(Enum):
    SINGLE_OR_LAST = "single_or_last"
    SPLIT_NON_LAST = "split_non_last"
    INVALID = "invalid"

    @classmethod
    def from_byte(cls, value: int) -> "Role":
        if value == ROLE_SINGLE_OR_LAST:
            return cls.SINGLE_OR_LAST
        if value == ROLE_SPLIT_NON_LAST:
            return cls.SPLIT_NON_LAST
        return cls.INVALID


@dataclass(frozen=True)
class ContainerDescriptor:
    block_count: int
    role: Role
    signature_ok: bool
    zero_fill_ok: bool = True
    nonzero_fill_offsets: Tuple[int, ...] = ()
    raw: bytes = field(default=b"", repr=False, compare=False)

    @property
    def payload_size(self) -> int:
        return self.block_count * BLOCK_SIZE

    @property
    def is_split(self) -> bool:
        return self.role is Role.SPLIT_NON_LAST


def _signature_mismatches(raw: bytes) -> List[Tuple[int, int, int]]:
    return [(off, raw[off], want) for off, want in SIGNATURE if raw[off] != want]


def _nonzero_fill(raw: bytes) -> List[int]:
    offsets: List[int] = []
    for start, stop in (ZERO_FILL_A, ZERO_FILL_B):
        offsets.extend(off for off in range(start, stop) if raw[off])
    return offsets


def parse_header(
    raw: bytes,
    strict: bool = False,
    on_warning: Optional[WarningSink] = None,
) -> ContainerDescriptor:
    """Interpret a 512-byte SMD header already held in memory.

    Raises ShortHeaderError if fewer than 512 bytes are supplied and
    InvalidRoleError for a role byte other than 0x00/0x40. Signature and
    reserved-byte anomalies raise in strict mode; otherwise they are passed
    to ``on_warning`` and recorded on the returned descriptor.
    """
    if len(raw) < HEADER_SIZE:
        raise ShortHeaderError(len(raw), HEADER_SIZE)
    raw = bytes(raw[:HEADER_SIZE])

    role_byte = raw[OFF_ROLE]
    role = Role.from_byte(role_byte)
    if role is Role.INVALID:
        raise InvalidRoleError(role_byte)

    mismatches = _signature_mismatches(raw)
    if mismatches:
        report_soft(BadSignatureError(mismatches), strict, on_warning)

    nonzero = _nonzero_fill(raw)
    if nonzero:
        report_soft(ZeroFillViolationError(nonzero), strict, on_warning)

    return ContainerDescriptor(
        block_count=raw[OFF_BLOCK_COUNT],
        role=role,
        signature_ok=not mismatches,
        zero_fill_ok=not nonzero,
        nonzero_fill_offsets=tuple(nonzero),
        raw=raw,
    )


def decode_header(
    stream: BinaryIO,
    strict: bool = False,
    on_warning: Optional[WarningSink] = None,
) -> ContainerDescriptor:
    # consumes exactly HEADER_SIZE bytes on success
    raw = read_exact(stream, HEADER_SIZE)
    return parse_header(raw, strict=strict, on_warning=on_warning)


def build_header(block_count: int, role: int = ROLE_SINGLE_OR_LAST) -> bytes:
    # well-formed header: signature constants set, reserved bytes zeroed
    if not 0 <= block_count <= MAX_BLOCKS:
        raise ValueError(f"block_count must be in 0..{MAX_BLOCKS} (got {block_count})")
    if not 0 <= role <= 0xFF:
        raise ValueError(f"role must be a byte value (got {role})")
    hdr = bytearray(HEADER_SIZE)
    hdr[OFF_BLOCK_COUNT] = block_count
    hdr[OFF_CONST_3] = CONST_3
    hdr[OFF_ROLE] = role
    for off, value in SIGNATURE:
        hdr[off] = value
    return bytes(hdr)
