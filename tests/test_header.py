import io

import pytest

from smdrom.model.errors import (
    BadSignatureError,
    InvalidRoleError,
    ShortHeaderError,
    ZeroFillViolationError,
)
from smdrom.model.header import (
    HEADER_SIZE,
    ContainerDescriptor,
    Role,
    build_header,
    decode_header,
    parse_header,
)


def _header(**patch) -> bytes:
    hdr = bytearray(build_header(patch.pop("blocks", 1), role=patch.pop("role", 0x00)))
    for off, value in patch.pop("at", {}).items():
        hdr[off] = value
    return bytes(hdr)


def test_build_header_layout():
    hdr = build_header(7, role=0x40)
    assert len(hdr) == HEADER_SIZE
    assert hdr[:11] == bytes([7, 3, 0x40, 0, 0, 0, 0, 0, 0xAA, 0xBB, 0x06])
    assert hdr[11:] == bytes(HEADER_SIZE - 11)


@pytest.mark.parametrize("blocks", [-1, 256])
def test_build_header_rejects_out_of_range_block_count(blocks):
    with pytest.raises(ValueError):
        build_header(blocks)


def test_decode_well_formed_header():
    desc = parse_header(build_header(3), strict=True)
    assert desc == ContainerDescriptor(block_count=3, role=Role.SINGLE_OR_LAST, signature_ok=True)
    assert desc.zero_fill_ok
    assert desc.payload_size == 3 * 0x4000
    assert not desc.is_split


def test_split_role_is_flagged():
    desc = parse_header(build_header(1, role=0x40))
    assert desc.role is Role.SPLIT_NON_LAST
    assert desc.is_split


@pytest.mark.parametrize("value, role", [
    (0x00, Role.SINGLE_OR_LAST),
    (0x40, Role.SPLIT_NON_LAST),
    (0x20, Role.INVALID),
    (0x7F, Role.INVALID),
    (0xFF, Role.INVALID),
])
def test_role_from_byte(value, role):
    assert Role.from_byte(value) is role


@pytest.mark.parametrize("role", [0x20, 0x7F, 0x01])
def test_invalid_role_is_rejected_in_both_modes(role):
    for strict in (False, True):
        with pytest.raises(InvalidRoleError) as exc:
            parse_header(_header(role=role), strict=strict)
        assert exc.value.role_byte == role


def test_invalid_role_wins_over_soft_anomalies():
    hdr = _header(role=0x20, at={0x008: 0x00, 0x100: 0x01})
    with pytest.raises(InvalidRoleError):
        parse_header(hdr, strict=True)


def test_short_header():
    with pytest.raises(ShortHeaderError) as exc:
        decode_header(io.BytesIO(build_header(1)[:100]))
    assert exc.value.got == 100
    assert exc.value.want == HEADER_SIZE


def test_empty_input_is_short_header():
    with pytest.raises(ShortHeaderError) as exc:
        decode_header(io.BytesIO(b""))
    assert exc.value.got == 0


def test_bad_signature_strict():
    with pytest.raises(BadSignatureError) as exc:
        parse_header(_header(at={0x008: 0xAB}), strict=True)
    assert exc.value.mismatches == ((0x008, 0xAB, 0xAA),)


def test_bad_signature_lenient_reports_and_continues():
    seen = []
    desc = parse_header(_header(at={0x008: 0xAB, 0x00A: 0x07}), on_warning=seen.append)
    assert not desc.signature_ok
    assert desc.block_count == 1
    assert len(seen) == 1
    assert isinstance(seen[0], BadSignatureError)
    assert seen[0].offsets == (0x008, 0x00A)


def test_bad_signature_lenient_without_sink_uses_warnings():
    from smdrom.model.errors import SmdWarning

    with pytest.warns(SmdWarning, match="bad signature"):
        desc = parse_header(_header(at={0x009: 0x00}))
    assert not desc.signature_ok


@pytest.mark.parametrize("offset", [0x003, 0x007, 0x00B, 0x1FF])
def test_zero_fill_violation_strict(offset):
    with pytest.raises(ZeroFillViolationError) as exc:
        parse_header(_header(at={offset: 0x5A}), strict=True)
    assert exc.value.offsets == (offset,)


def test_zero_fill_violation_lenient_is_recorded():
    seen = []
    desc = parse_header(_header(at={0x004: 1, 0x150: 2}), on_warning=seen.append)
    assert desc.signature_ok
    assert not desc.zero_fill_ok
    assert desc.nonzero_fill_offsets == (0x004, 0x150)
    assert [type(w) for w in seen] == [ZeroFillViolationError]


def test_const_3_byte_is_not_part_of_signature_check():
    desc = parse_header(_header(at={0x001: 0x00}), strict=True)
    assert desc.signature_ok


def test_block_count_zero_and_max():
    assert parse_header(build_header(0)).block_count == 0
    assert parse_header(build_header(255)).block_count == 255


def test_decode_header_consumes_exactly_512_bytes():
    stream = io.BytesIO(build_header(1) + b"\x12\x34")
    decode_header(stream)
    assert stream.tell() == HEADER_SIZE
    assert stream.read() == b"\x12\x34"


class _Trickle(io.RawIOBase):
    # delivers at most 7 bytes per read, like a slow pipe
    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    def readable(self):
        return True

    def readinto(self, b):
        chunk = self._buf.read(min(7, len(b)))
        b[:len(chunk)] = chunk
        return len(chunk)


def test_decode_header_handles_short_reads():
    desc = decode_header(_Trickle(build_header(9, role=0x40)))
    assert desc.block_count == 9
    assert desc.role is Role.SPLIT_NON_LAST


def test_raw_header_is_kept_but_not_compared():
    desc = parse_header(build_header(2))
    assert desc.raw == build_header(2)
    assert desc == ContainerDescriptor(block_count=2, role=Role.SINGLE_OR_LAST, signature_ok=True)
