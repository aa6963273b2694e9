import hashlib
import hmac

from Crypto.Hash import keccak
from Crypto.Hash import RIPEMD160


def hash160(msg: bytes) -> bytes:
    return ripemd160(sha256(msg))


def ripemd160(msg: bytes) -> bytes:
    return RIPEMD160.new(msg).digest()


def sha256(msg: bytes) -> bytes:
    return hashlib.sha256(msg).digest()


def hmac_sha512(key: bytes, msg: bytes) -> bytes:
    return hmac.new(key, msg, digestmod=hashlib.sha512).digest()


def keccak256(msg: bytes) -> bytes:
    """
    Keccak-256 as used by Ethereum (pre-NIST padding, not hashlib.sha3_256)

    >>> keccak256(b"").hex()
    'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak.new(digest_bits=256, data=msg).digest()
