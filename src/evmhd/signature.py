"""
Signatures

Two string forms circulate:
    standard: 0x-prefixed hex r || s || v, with v in {27, 28} (1 byte, 2 hex chars)
    compact:  hex r || s || v without prefix, v a single decimal digit in {0, 1}
"""
import logging
from typing import NamedTuple
from typing import Union

from evmhd import ecmath
from evmhd.address import public_key_to_address
from evmhd.crypto import keccak256
from evmhd.errors import InvalidDigestLengthError

log = logging.getLogger(__name__)

MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"


class Signature(NamedTuple):
    r: bytes
    s: bytes
    v: int

    @classmethod
    def from_hex(cls, signature: str) -> "Signature":
        """
        Parse a standard (0x-prefixed, v=27/28) signature string
        """
        sig = signature[2:] if signature.startswith("0x") else signature
        if len(sig) != 130:
            raise ValueError(f"expected 65 byte signature, got {len(sig) // 2} bytes")
        raw = bytes.fromhex(sig)
        v = raw[64]
        if v in (0, 1):
            v += 27
        return cls(raw[:32], raw[32:64], v)

    @property
    def recovery_id(self) -> int:
        return self.v - 27

    def to_bytes(self) -> bytes:
        return self.r + self.s + self.v.to_bytes(1, "big")

    @property
    def serialized(self) -> str:
        return "0x" + self.to_bytes().hex()

    @property
    def compact(self) -> str:
        return to_compact(self.serialized)


def to_compact(signature: str) -> str:
    """
    Standard signature -> compact wallet format, v: 27 -> 0, 28 -> 1

    >>> to_compact("0x" + "11" * 32 + "22" * 32 + "1c")[-3:]
    '221'
    """
    sig = signature[2:] if signature.startswith("0x") else signature
    r = sig[0:64]
    s = sig[64:128]
    v = int(sig[128:130], 16)
    if v not in (27, 28):
        log.warning(f"unexpected signature v value {v}, encoding as 1")
    v_compact = 0 if v == 27 else 1
    return r + s + str(v_compact)


def from_compact(signature: str) -> str:
    """
    Compact wallet format -> standard signature

    Only the exact v string "0" maps back to 27, any other value maps to 28.

    >>> from_compact("11" * 32 + "22" * 32 + "0")[-2:]
    '1b'
    """
    r = signature[0:64]
    s = signature[64:128]
    v = signature[128:]
    if v not in ("0", "1"):
        log.warning(f"unexpected compact signature v value {v!r}, restoring as 28")
    v_restored = 27 if v == "0" else 28
    return "0x" + r + s + format(v_restored, "02x")


def hash_message(message: Union[str, bytes]) -> bytes:
    """
    EIP-191 personal message digest
    keccak256("\\x19Ethereum Signed Message:\\n" + len(message) + message)
    """
    if isinstance(message, str):
        message = message.encode("utf8")
    return keccak256(MESSAGE_PREFIX + str(len(message)).encode("ascii") + message)


def _as_signature(signature: Union[Signature, str]) -> Signature:
    if isinstance(signature, Signature):
        return signature
    return Signature.from_hex(signature)


def recover_public_key(digest: bytes, signature: Union[Signature, str]) -> bytes:
    """
    Returns:
        uncompressed (65 byte) public key that produced signature over digest
    """
    if len(digest) != 32:
        raise InvalidDigestLengthError(f"invalid digest length: {len(digest)}")
    sig = _as_signature(signature)
    if sig.v not in (27, 28):
        raise ValueError(f"invalid signature v value: {sig.v}")
    x, y = ecmath.recover(
        digest,
        int.from_bytes(sig.r, "big"),
        int.from_bytes(sig.s, "big"),
        sig.recovery_id,
    )
    return ecmath.pubkey(x, y, compressed=False)


def recover_address(digest: bytes, signature: Union[Signature, str]) -> str:
    return public_key_to_address(recover_public_key(digest, signature))


def verify(
    digest: bytes, signature: Union[Signature, str], expected_address: str
) -> bool:
    """
    True if signature over digest recovers to expected_address (case-insensitive)
    """
    try:
        address = recover_address(digest, signature)
    except InvalidDigestLengthError:
        raise
    except ValueError as err:
        log.debug(f"signature recovery failed: {err}")
        return False
    return address.lower() == expected_address.lower()


def verify_message(message: Union[str, bytes], signature: Union[Signature, str]) -> str:
    """
    Returns:
        address that signed the personal message
    """
    return recover_address(hash_message(message), signature)
