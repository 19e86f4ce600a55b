# smdrom/model/deinterleaver.py
# Byte-wise SMD block de-interleaver over fixed 16 KiB blocks
# An SMD block stores the odd bytes of the linear ROM block in its first 8 KiB
# (lo half) and the even bytes in its second 8 KiB (hi half):
#   out[2n]     = in[0x2000 + n]
#   out[2n + 1] = in[n]            for n in 0..0x1FFF
#
# interleave_block is the inverse permutation (raw -> SMD layout); it exists
# to build reference vectors, the decoder never calls it.

import numpy as np

BLOCK_SIZE = 0x4000
HALF_SIZE = BLOCK_SIZE // 2


def _as_u8(block) -> np.ndarray:
    arr = np.frombuffer(block, dtype=np.uint8)
    if arr.size != BLOCK_SIZE:
        raise ValueError(f"SMD block must be exactly {BLOCK_SIZE} bytes (got {arr.size})")
    return arr


def deinterleave_block_into(src, dst: np.ndarray) -> np.ndarray:
    # writes the linearized block into the caller-owned uint8 buffer 'dst'
    blk = _as_u8(src)
    if dst.shape != (BLOCK_SIZE,) or dst.dtype != np.uint8:
        raise ValueError(f"output buffer must be a uint8 array of {BLOCK_SIZE} bytes")
    dst[0::2] = blk[HALF_SIZE:]   # hi half -> even positions
    dst[1::2] = blk[:HALF_SIZE]   # lo half -> odd positions
    return dst


def deinterleave_block(block: bytes) -> bytes:
    out = np.empty(BLOCK_SIZE, dtype=np.uint8)
    return deinterleave_block_into(block, out).tobytes()


def interleave_block(block: bytes) -> bytes:
    blk = _as_u8(block)
    out = np.empty(BLOCK_SIZE, dtype=np.uint8)
    out[:HALF_SIZE] = blk[1::2]
    out[HALF_SIZE:] = blk[0::2]
    return out.tobytes()


def deinterleave(data: bytes) -> bytes:
    # whole-payload convenience; 'data' must be a multiple of 16 KiB
    if len(data) % BLOCK_SIZE != 0:
        raise ValueError(f"Input length must be a multiple of {BLOCK_SIZE} bytes (got {len(data)})")
    blocks = np.frombuffer(data, dtype=np.uint8).reshape(-1, 2, HALF_SIZE)
    # stack (hi, lo) pairs column-wise so each row reads hi[n], lo[n]
    return np.stack((blocks[:, 1, :], blocks[:, 0, :]), axis=-1).tobytes()


def interleave(data: bytes) -> bytes:
    if len(data) % BLOCK_SIZE != 0:
        raise ValueError(f"Input length must be a multiple of {BLOCK_SIZE} bytes (got {len(data)})")
    pairs = np.frombuffer(data, dtype=np.uint8).reshape(-1, HALF_SIZE, 2)
    return np.stack((pairs[:, :, 1], pairs[:, :, 0]), axis=1).tobytes()


if __name__ == "__main__":
    buf = bytes(range(256)) * (2 * BLOCK_SIZE // 256)
    enc = interleave(buf)
    assert deinterleave(enc) == buf, "round-trip failed"
    for off in range(0, len(enc), BLOCK_SIZE):
        assert deinterleave_block(enc[off:off + BLOCK_SIZE]) == buf[off:off + BLOCK_SIZE]
        assert interleave_block(buf[off:off + BLOCK_SIZE]) == enc[off:off + BLOCK_SIZE]
    print("deinterleaver.py: self-test OK")
