import struct

_MASK = (1 << 64) - 1
_SIGN = 1 << 63

_C1 = 0x87C37B91114253D5
_C2 = 0x4CF5AD432745937F

# two little-endian unsigned 64-bit words per block
_BLOCK = struct.Struct("<QQ")


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (64 - r))) & _MASK


def _fmix(k: int) -> int:
    k ^= k >> 33
    k = (k * 0xFF51AFD7ED558CCD) & _MASK
    k ^= k >> 33
    k = (k * 0xC4CEB9FE1A85EC53) & _MASK
    k ^= k >> 33
    return k


def _mix_k1(k1: int) -> int:
    k1 = (k1 * _C1) & _MASK
    k1 = _rotl(k1, 31)
    return (k1 * _C2) & _MASK


def _mix_k2(k2: int) -> int:
    k2 = (k2 * _C2) & _MASK
    k2 = _rotl(k2, 33)
    return (k2 * _C1) & _MASK


def hash3_x64_128(data: bytes, seed: int = 0) -> tuple[int, int]:
    """
    MurmurHash3, x64 128-bit variant.

    Returns the two unsigned 64-bit result words (h1, h2).

    Tail bytes are sign-extended before being shifted into k1/k2, exactly
    like the Java implementation shipped with Cassandra (which casts each
    signed byte to a long). Full blocks are read as unsigned little-endian
    words. Both behaviours are required to produce the tokens the cluster
    itself computes for a partition key.
    """
    length = len(data)
    nblocks = length >> 4

    h1 = seed & _MASK
    h2 = seed & _MASK

    for offset in range(0, nblocks * 16, 16):
        k1, k2 = _BLOCK.unpack_from(data, offset)

        h1 ^= _mix_k1(k1)
        h1 = _rotl(h1, 27)
        h1 = (h1 + h2) & _MASK
        h1 = (h1 * 5 + 0x52DCE729) & _MASK

        h2 ^= _mix_k2(k2)
        h2 = _rotl(h2, 31)
        h2 = (h2 + h1) & _MASK
        h2 = (h2 * 5 + 0x38495AB5) & _MASK

    tail = data[nblocks * 16:]
    k1 = 0
    k2 = 0
    for i, byte in enumerate(tail):
        if byte > 127:
            byte -= 256
        if i >= 8:
            k2 ^= (byte << ((i - 8) * 8)) & _MASK
        else:
            k1 ^= (byte << (i * 8)) & _MASK

    if len(tail) > 8:
        h2 ^= _mix_k2(k2)
    if tail:
        h1 ^= _mix_k1(k1)

    h1 ^= length
    h2 ^= length

    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK

    h1 = _fmix(h1)
    h2 = _fmix(h2)

    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK

    return h1, h2


def murmur3_token(data: bytes) -> int:
    """Return the signed 64-bit token Murmur3Partitioner assigns to a key."""
    h1, _ = hash3_x64_128(data)
    return h1 - (1 << 64) if h1 & _SIGN else h1
