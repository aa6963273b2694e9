"""
Elliptic curve math

Scalars that are private keys live in 32-byte big-endian bytearrays and are
modified with the byte-wise routines below, so the only long-lived copy of a key is
the buffer its owner zeroes on dispose. Point arithmetic is delegated to the ecdsa
package.
"""
import hashlib
import logging
from typing import Optional
from typing import Tuple

from ecdsa import rfc6979
from ecdsa import SECP256k1
from ecdsa.ellipticcurve import INFINITY
from ecdsa.ellipticcurve import PointJacobi
from ecdsa.numbertheory import inverse_mod

log = logging.getLogger(__name__)

# https://en.bitcoin.it/wiki/Secp256k1
# http://www.secg.org/sec2-v2.pdf - pg 13
# The curve E: y^2 = x^3 + ax + b over Fp,
SECP256K1_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
SECP256K1_A = 0x0000000000000000000000000000000000000000000000000000000000000000
SECP256K1_B = 0x0000000000000000000000000000000000000000000000000000000000000007
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_Gx = 0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798
SECP256K1_Gy = 0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8

SECP256K1_N_BYTES = SECP256K1_N.to_bytes(32, "big")
SECP256K1_HALF_N = SECP256K1_N // 2

G = SECP256k1.generator


### byte-wise scalar arithmetic
##
def add_to_private_key(private_key: bytearray, x: bytes) -> bool:
    """
    private_key += x, in place, as 256 bit big-endian integers
    Returns:
        True if the sum overflowed 256 bits (carry out of the top byte)

    >>> buf = bytearray(b"\\xff" * 32)
    >>> add_to_private_key(buf, (1).to_bytes(32, "big"))
    True
    >>> buf == bytearray(32)
    True
    """
    carry = 0
    for i in range(31, -1, -1):
        total = private_key[i] + x[i] + carry
        private_key[i] = total & 0xFF
        carry = total >> 8
    return carry > 0


def subtract_curve_order(private_key: bytearray):
    """
    private_key -= n, in place, borrowing byte by byte (mod 2^256)
    """
    borrow = 0
    for i in range(31, -1, -1):
        diff = private_key[i] - SECP256K1_N_BYTES[i] - borrow
        private_key[i] = diff + 256 if diff < 0 else diff
        borrow = 1 if diff < 0 else 0


def compare_with_curve_order(buffer: bytes, offset: int = 0) -> int:
    """
    Compare the 32 bytes of buffer at offset with n
    Returns:
        1, 0, or -1 for greater than, equal to, or less than n

    >>> compare_with_curve_order(SECP256K1_N_BYTES)
    0
    >>> compare_with_curve_order(bytes(32))
    -1
    """
    for i in range(32):
        if buffer[offset + i] > SECP256K1_N_BYTES[i]:
            return 1
        if buffer[offset + i] < SECP256K1_N_BYTES[i]:
            return -1
    return 0


def add_mod_n(private_key: bytes, x: bytes) -> bytearray:
    """
    (private_key + x) mod n into a newly allocated buffer; private_key is only read

    >>> add_mod_n((SECP256K1_N - 1).to_bytes(32, "big"), (2).to_bytes(32, "big")).hex()
    '0000000000000000000000000000000000000000000000000000000000000001'
    """
    result = bytearray(32)
    result[:] = private_key
    overflow = add_to_private_key(result, x)
    if overflow or compare_with_curve_order(result) >= 0:
        subtract_curve_order(result)
    return result


def is_zero(buffer: bytes) -> bool:
    acc = 0
    for b in buffer:
        acc |= b
    return acc == 0


def is_valid_private_key(buffer: bytes) -> bool:
    """
    True if buffer is a 32 byte scalar in [1, n-1]
    """
    if len(buffer) != 32:
        return False
    return not is_zero(buffer) and compare_with_curve_order(buffer) < 0


def zeroize(buffer: bytearray):
    """
    Overwrite buffer with zeros in place (same memory, no reallocation)
    """
    view = memoryview(buffer)
    try:
        view[:] = bytes(len(view))
    finally:
        view.release()


### points
##
def y_from_x(x: int, odd: bool) -> int:
    """
    Find y from x on y^2 = x^3 + 7 with the requested parity

    >>> y_from_x(SECP256K1_Gx, odd=False) == SECP256K1_Gy
    True
    """
    y_squared = (pow(x, 3, SECP256K1_P) + SECP256K1_A * x + SECP256K1_B) % SECP256K1_P
    # p % 4 == 3
    y = pow(y_squared, (SECP256K1_P + 1) // 4, SECP256K1_P)
    if pow(y, 2, SECP256K1_P) != y_squared:
        raise ValueError(f"x is not on curve: {x}")
    if bool(y & 1) != odd:
        y = SECP256K1_P - y
    return y


def point_is_on_curve(x: int, y: int) -> bool:
    """
    >>> point_is_on_curve(SECP256K1_Gx, SECP256K1_Gy)
    True
    """
    return (y * y - x * x * x - SECP256K1_A * x - SECP256K1_B) % SECP256K1_P == 0


def point(k: int) -> Tuple[int, int]:
    """
    Returns the coordinate pair resulting from EC point multiplication
    of the secp256k1 base point with the integer k
    """
    if not 0 < k < SECP256K1_N:
        raise ValueError("scalar not in range [1, n)")
    P = G * k
    return P.x(), P.y()


def point_add(p1: Optional[Tuple[int, int]], p2: Optional[Tuple[int, int]]):
    """
    Point addition, None is the point at infinity
    """
    if p1 is None:
        return p2
    if p2 is None:
        return p1
    P = _jacobi(p1) + _jacobi(p2)
    if P == INFINITY:
        return None
    return P.x(), P.y()


def _jacobi(p: Tuple[int, int]) -> PointJacobi:
    x, y = p
    return PointJacobi(SECP256k1.curve, x, y, 1, SECP256K1_N)


def pubkey(x: int, y: int, compressed: bool = False) -> bytes:
    """
    Returns SEC1 pubkey from point (x, y)

    >>> pubkey(SECP256K1_Gx, SECP256K1_Gy, compressed=True).hex()
    '0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798'
    """
    if compressed:
        prefix = b"\x02" if y % 2 == 0 else b"\x03"
        return prefix + x.to_bytes(32, "big")
    return b"\x04" + x.to_bytes(32, "big") + y.to_bytes(32, "big")


def decode_pubkey(pubkey_: bytes) -> Tuple[int, int]:
    """
    Return (x, y) point from SEC1 public key (compressed or uncompressed)
    """
    if len(pubkey_) not in (33, 65):
        raise ValueError(f"invalid pubkey length: {len(pubkey_)}")
    version = pubkey_[0]
    x = int.from_bytes(pubkey_[1:33], "big")
    if version in (2, 3):
        y = y_from_x(x, odd=version == 3)
    elif version == 4 and len(pubkey_) == 65:
        y = int.from_bytes(pubkey_[33:], "big")
    else:
        raise ValueError(f"unrecognized pubkey version: {version}")
    if not point_is_on_curve(x, y):
        raise ValueError("invalid pubkey, point not on curve")
    return x, y


### ecdsa
##
def sign(key: int, digest: bytes) -> Tuple[int, int, int]:
    """
    Deterministic (RFC 6979, HMAC-SHA256) low-S ECDSA signature of a 32 byte digest
    Returns:
        (r, s, recovery_id) with recovery_id in {0, 1}
    """
    z = int.from_bytes(digest, "big")
    retry = 0
    while True:
        k = rfc6979.generate_k(SECP256K1_N, key, hashlib.sha256, digest, retry_gen=retry)
        retry += 1
        R = G * k
        x, y = R.x(), R.y()
        if x >= SECP256K1_N:
            # recovery ids 2 and 3 have no representation in v = 27/28
            log.debug("nonce point x exceeds n, retrying")
            continue
        r = x
        if r == 0:
            continue
        s = (inverse_mod(k, SECP256K1_N) * (z + r * key)) % SECP256K1_N
        if s == 0:
            continue
        recovery_id = y & 1
        if s > SECP256K1_HALF_N:
            s = SECP256K1_N - s
            recovery_id ^= 1
        return r, s, recovery_id


def recover(digest: bytes, r: int, s: int, recovery_id: int) -> Tuple[int, int]:
    """
    Recover the public point Q = r^-1 (sR - zG) for an ECDSA signature
    """
    if not (0 < r < SECP256K1_N and 0 < s < SECP256K1_N):
        raise ValueError("r or s out of range [1, n)")
    if recovery_id not in (0, 1, 2, 3):
        raise ValueError(f"invalid recovery id: {recovery_id}")
    x = r + SECP256K1_N if recovery_id & 2 else r
    if x >= SECP256K1_P:
        raise ValueError("invalid signature, R.x not a field element")
    R = _jacobi((x, y_from_x(x, odd=bool(recovery_id & 1))))
    z = int.from_bytes(digest, "big")
    r_inv = inverse_mod(r, SECP256K1_N)
    Q = R * (s * r_inv % SECP256K1_N) + G * (-z * r_inv % SECP256K1_N)
    if Q == INFINITY:
        raise ValueError("invalid signature, recovered point at infinity")
    return Q.x(), Q.y()
