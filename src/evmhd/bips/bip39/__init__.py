"""
https://github.com/bitcoin/bips/blob/master/bip-0039.mediawiki
"""
import functools
import hashlib
import secrets
import unicodedata

from mnemonic import Mnemonic


@functools.lru_cache(maxsize=None)
def load_wordlist() -> tuple:
    # https://github.com/bitcoin/bips/blob/master/bip-0039/english.txt
    return tuple(Mnemonic("english").wordlist)


def generate_mnemonic_phrase(strength: int = 128) -> str:
    """
    Args:
        strength: int, entropy bits, one of 128, 160, 192, 224, 256
    """
    return calculate_mnemonic_phrase(secrets.token_bytes(strength // 8))


def calculate_mnemonic_phrase(entropy: bytes) -> str:
    """
    >>> calculate_mnemonic_phrase(bytes.fromhex("6610b25967cdcca9d59875f5cb50b0ea75433311869e930b"))
    'gravity machine north sort system female filter attitude volume fold club stay feature office ecology stable narrow fog'
    """
    strength = len(entropy) * 8
    if strength not in [128, 160, 192, 224, 256]:
        raise ValueError(
            "entropy strength must be in range [128, 256] bits and multiple of 32"
        )

    words = load_wordlist()

    ENT = strength // 32
    checksum = hashlib.sha256(entropy).digest()[0] & (2**ENT - 1) << (8 - ENT)
    data = int.from_bytes(entropy, "big") << ENT
    data |= checksum >> 8 - ENT
    bit_groups = []  # groups of 11 bits
    idx = 0
    while idx < (strength + ENT) // 11:
        bit_group = (data >> idx * 11) & 0x7FF
        bit_groups.append(bit_group)
        idx += 1
    return " ".join([words[bit_group] for bit_group in reversed(bit_groups)])


def to_entropy(mnemonic: str) -> bytes:
    """
    Inverse of calculate_mnemonic_phrase(entropy)
    Args:
        mnemonic: str, mnemonic phrase

    >>> to_entropy("gravity machine north sort system female filter attitude volume fold club stay feature office ecology stable narrow fog").hex()
    '6610b25967cdcca9d59875f5cb50b0ea75433311869e930b'
    """
    words = unicodedata.normalize("NFKD", mnemonic).split()
    if len(words) not in [12, 15, 18, 21, 24]:
        raise ValueError("word length does not indicate a valid entropy bit length")
    entropy_w_checksum_bitlen = len(words) * 11
    entropy_w_checksum_len = (entropy_w_checksum_bitlen + 7) // 8
    checksum_bitlen = len(words) // 3
    entropy_bitlen = entropy_w_checksum_bitlen - checksum_bitlen
    entropy_len = (entropy_bitlen + 7) // 8

    wordlist = load_wordlist()

    data = 0
    for idx, word in enumerate(reversed(words)):
        if word not in wordlist:
            raise ValueError(f"word not in wordlist: {word}")
        data |= wordlist.index(word) << (idx * 11)

    checksum = (
        data.to_bytes(entropy_w_checksum_len, "big")[-1] & 2**checksum_bitlen - 1
    )
    entropy = (data >> checksum_bitlen).to_bytes(entropy_len, "big")
    checksum_check = hashlib.sha256(entropy).digest()[0] >> (8 - checksum_bitlen)
    if checksum_check != checksum:
        raise ValueError("checksum validation error")
    return entropy


def is_valid(mnemonic: str) -> bool:
    """
    True if mnemonic has a valid length, known words and a matching checksum
    """
    if not isinstance(mnemonic, str):
        return False
    try:
        to_entropy(mnemonic)
    except ValueError:
        return False
    return True


def to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """
    Defined in BIP39
    https://github.com/bitcoin/bips/blob/master/bip-0039.mediawiki#from-mnemonic-to-seed
    """
    ITERATIONS = 2048
    mnemonic = " ".join(mnemonic.split())
    return hashlib.pbkdf2_hmac(
        "sha512",
        unicodedata.normalize("NFKD", mnemonic).encode("utf-8"),
        unicodedata.normalize("NFKD", "mnemonic" + passphrase).encode("utf-8"),
        ITERATIONS,
    )
