"""
EVM addresses

address = last 20 bytes of Keccak256(uncompressed public key without its 0x04 prefix)
https://eips.ethereum.org/EIPS/eip-55
"""
import re

from evmhd.crypto import keccak256
from evmhd.ecmath import decode_pubkey
from evmhd.ecmath import pubkey

ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


def to_checksum_address(address: str) -> str:
    """
    EIP-55 mixed-case checksum encoding

    >>> to_checksum_address("0x405005c7c4422390f4b334f64cf20e0b767131d0")
    '0x405005C7c4422390F4B334F64Cf20E0b767131d0'
    """
    if not is_address(address):
        raise ValueError(f"invalid address: {address}")
    hex_addr = address.lower().removeprefix("0x")
    digest = keccak256(hex_addr.encode("ascii")).hex()
    return "0x" + "".join(
        c.upper() if c.isalpha() and int(digest[i], 16) >= 8 else c
        for i, c in enumerate(hex_addr)
    )


def is_address(address: str) -> bool:
    return isinstance(address, str) and ADDRESS_RE.match(address) is not None


def public_key_to_address(public_key: bytes) -> str:
    """
    Args:
        public_key: bytes, SEC1 public key, compressed (33) or uncompressed (65)
    Returns:
        checksummed address
    """
    if len(public_key) == 33:
        public_key = pubkey(*decode_pubkey(public_key), compressed=False)
    elif len(public_key) != 65 or public_key[0] != 4:
        raise ValueError("expected a 33 or 65 byte SEC1 public key")
    return to_checksum_address("0x" + keccak256(public_key[1:])[-20:].hex())
