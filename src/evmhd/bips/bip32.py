"""
BIP32
https://github.com/bitcoin/bips/blob/master/bip-0032.mediawiki
"""
import logging
import re
from typing import List
from typing import Optional
from typing import Union

from evmhd import ecmath
from evmhd.address import public_key_to_address
from evmhd.bips import bip39
from evmhd.crypto import hash160
from evmhd.crypto import hmac_sha512
from evmhd.errors import DisposedKeyError
from evmhd.errors import InvalidIndexError
from evmhd.errors import InvalidMnemonicError
from evmhd.errors import InvalidPathComponentError
from evmhd.errors import InvalidPathError
from evmhd.errors import InvalidSeedLengthError
from evmhd.errors import UnsupportedOperationError
from evmhd.keys import SigningKey
from evmhd.signature import Signature

log = logging.getLogger(__name__)

MASTER_SECRET = b"Bitcoin seed"
HARDENED_OFFSET = 0x80000000
MAX_INDEX = 0xFFFFFFFF

PATH_COMPONENT_RE = re.compile(r"[0-9]+'?")


# https://github.com/bitcoin/bips/blob/master/bip-0032.mediawiki#conventions
def ser_32(i: int) -> bytes:
    """
    Serialize i as 32 bits big endian
    """
    return i.to_bytes(4, "big")


def ser_256(p: int) -> bytes:
    """
    Serialize p as a 256 bits big-endian
    """
    return p.to_bytes(32, "big")


def ser_p(P: tuple) -> bytes:
    """
    Serialize P = (x, y) in SEC1 compressed form
    """
    x, y = P
    return ecmath.pubkey(x, y, compressed=True)


def parse_256(p: bytes) -> int:
    """
    Parse 256 bit, big endian number, p, as integer
    """
    return int.from_bytes(p, "big")


def is_hardened(index: int) -> bool:
    return bool(index & HARDENED_OFFSET)


def parse_path(path: str) -> List[int]:
    """
    Parse a path like m/44'/60'/0'/0/1 (or a relative 0'/1) into child indexes.

    A leading "m" is dropped; positions in errors count from the first component
    after it.

    >>> parse_path("m/44'/60'/0'/0/1") == [0x8000002C, 0x8000003C, 0x80000000, 0, 1]
    True
    >>> parse_path("m")
    []
    """
    if not isinstance(path, str) or not path:
        raise InvalidPathError(f"invalid path: {path!r}")
    components = path.split("/")
    if components[0] == "m":
        components = components[1:]
    indexes = []
    for position, component in enumerate(components):
        if not PATH_COMPONENT_RE.fullmatch(component):
            raise InvalidPathComponentError(component, position)
        hardened = component.endswith("'")
        index = int(component[:-1] if hardened else component)
        if index >= HARDENED_OFFSET:
            raise InvalidPathComponentError(component, position)
        indexes.append(index + HARDENED_OFFSET if hardened else index)
    return indexes


def format_index(index: int) -> str:
    """
    >>> format_index(0x8000002C)
    "44'"
    """
    return str(index & ~HARDENED_OFFSET) + ("'" if is_hardened(index) else "")


class HDNode:
    """
    One position in a BIP32 key tree.

    Nodes never change after construction except for dispose(), which zeroes the
    private key. Deriving a child only reads this node's key; the child owns a
    freshly allocated buffer, so siblings can be derived from the same parent
    independently and disposing a parent leaves its children usable.
    """

    def __init__(
        self,
        signing_key: Optional[SigningKey],
        chain_code: bytes,
        depth: int = 0,
        index: int = 0,
        parent_fingerprint: bytes = b"\x00\x00\x00\x00",
        path: Optional[str] = "m",
        public_key: Optional[bytes] = None,
        transport=None,
    ):
        """
        Args:
            signing_key: SigningKey, or None for a neutered node
            chain_code: bytes, 32 byte chain code
            depth: int, number of derivation steps from the master node
            index: int, child number of this node
            parent_fingerprint: bytes, first 4 bytes of HASH160(parent pubkey)
            path: Optional[str], accumulated path, e.g. m/44'/60'/0'/0/0
            public_key: Optional[bytes], compressed public key, required when
                signing_key is None
            transport: opaque handle to a provider, not used by derivation
        """
        if signing_key is None and public_key is None:
            raise ValueError("neutered node requires a public key")
        if len(chain_code) != 32:
            raise ValueError("chain code must be 32 bytes")
        if len(parent_fingerprint) != 4:
            raise ValueError("parent fingerprint must be 4 bytes")
        self.signing_key = signing_key
        self.public_key = (
            signing_key.compressed_public_key if signing_key is not None else public_key
        )
        self.chain_code = bytes(chain_code)
        self.depth = depth
        self.index = index
        self.parent_fingerprint = bytes(parent_fingerprint)
        self.path = path
        self.transport = transport
        self.fingerprint = hash160(self.public_key)[:4]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.dispose()

    def __repr__(self):
        return (
            f"<HDNode path={self.path} depth={self.depth} "
            f"fingerprint={self.fingerprint.hex()}{' neutered' if self.neutered else ''}>"
        )

    @classmethod
    def from_seed(cls, seed: Union[bytes, bytearray, memoryview]) -> "HDNode":
        """
        Master node from seed
        https://github.com/bitcoin/bips/blob/master/bip-0032.mediawiki#master-key-generation

        Args:
            seed: bytes, seed of length 16 to 64 bytes (128 to 512 bits)
        """
        if not isinstance(seed, (bytes, bytearray, memoryview)):
            raise TypeError("seed must be bytes-like")
        if not 16 <= len(seed) <= 64:
            # length only, never the seed itself
            raise InvalidSeedLengthError(f"invalid seed length: {len(seed)}")

        I = bytearray(hmac_sha512(MASTER_SECRET, seed))
        try:
            master_key = bytearray(I[:32])
            chain_code = bytes(I[32:])
        finally:
            ecmath.zeroize(I)
        try:
            signing_key = SigningKey(master_key)
        except Exception:
            ecmath.zeroize(master_key)
            raise
        log.debug("derived master node")
        return cls(signing_key, chain_code)

    @classmethod
    def from_mnemonic(cls, mnemonic: str, passphrase: str = "") -> "HDNode":
        """
        Master node from a BIP39 mnemonic phrase (and optional passphrase)
        """
        if not bip39.is_valid(mnemonic):
            raise InvalidMnemonicError("invalid mnemonic phrase")
        return cls.from_seed(bip39.to_seed(mnemonic, passphrase=passphrase))

    @property
    def neutered(self) -> bool:
        return self.signing_key is None

    @property
    def private_key_buffer(self) -> bytearray:
        if self.signing_key is None:
            raise UnsupportedOperationError(
                "neutered node has no private key", operation="privateKeyBuffer"
            )
        return self.signing_key.private_key_buffer

    @property
    def public_key_buffer(self) -> bytes:
        return self.public_key

    @property
    def address(self) -> str:
        return public_key_to_address(self.public_key)

    def _ser_I(self, index: int) -> bytearray:
        """
        HMAC-SHA512(chain code, data) for child index, data being
        0x00 || ser_256(k_par) || ser_32(i) for hardened children and
        ser_P(K_par) || ser_32(i) otherwise
        """
        data = bytearray(37)
        try:
            if is_hardened(index):
                if self.signing_key is None:
                    raise UnsupportedOperationError(
                        "cannot derive child of neutered node", operation="deriveChild"
                    )
                data[1:33] = self.signing_key.private_key_buffer
            else:
                data[0:33] = self.public_key
            data[33:37] = ser_32(index)
            return bytearray(hmac_sha512(self.chain_code, data))
        finally:
            ecmath.zeroize(data)

    def derive_child(self, index: int) -> "HDNode":
        """
        CKDpriv (or CKDpub for a neutered node)
        https://github.com/bitcoin/bips/blob/master/bip-0032.mediawiki#child-key-derivation-ckd-functions
        """
        if not isinstance(index, int) or isinstance(index, bool):
            raise InvalidIndexError(f"invalid index: {index!r}")
        if index < 0 or index > MAX_INDEX:
            raise InvalidIndexError(f"invalid index: {index}")
        if self.signing_key is not None and self.signing_key.disposed:
            raise DisposedKeyError()

        path = self.path + "/" + format_index(index) if self.path else None

        I = self._ser_I(index)
        try:
            I_L = memoryview(I)[:32]
            chain_code = bytes(I[32:])
            if self.signing_key is None:
                child = self._derive_public(I_L, chain_code, index, path)
            else:
                child = self._derive_private(I_L, chain_code, index, path)
            I_L.release()
        finally:
            ecmath.zeroize(I)
        log.trace(f"derived child {path or format_index(index)}")
        return child

    def _derive_private(self, I_L, chain_code, index, path) -> "HDNode":
        # k_i = parse_256(I_L) + k_par (mod n), parent buffer is read only
        key = ecmath.add_mod_n(self.signing_key.private_key_buffer, I_L)
        try:
            signing_key = SigningKey(key)
        except Exception:
            ecmath.zeroize(key)
            raise
        return HDNode(
            signing_key,
            chain_code,
            depth=self.depth + 1,
            index=index,
            parent_fingerprint=self.fingerprint,
            path=path,
            transport=self.transport,
        )

    def _derive_public(self, I_L, chain_code, index, path) -> "HDNode":
        # K_i = point(parse_256(I_L)) + K_par
        K_i = ecmath.point_add(
            ecmath.point(parse_256(I_L)), ecmath.decode_pubkey(self.public_key)
        )
        if K_i is None:
            raise ValueError(f"child {index} is the point at infinity")
        return HDNode(
            None,
            chain_code,
            depth=self.depth + 1,
            index=index,
            parent_fingerprint=self.fingerprint,
            path=path,
            public_key=ser_p(K_i),
            transport=self.transport,
        )

    def derive_path(self, path: str) -> "HDNode":
        """
        Derive the node at path, e.g. m/44'/60'/0'/0/0, or relative to this node,
        e.g. 0/1. Every component is validated before anything is derived;
        intermediate nodes are disposed on the way.
        """
        if not isinstance(path, str) or not path:
            raise InvalidPathError(f"invalid path: {path!r}")
        if path.split("/")[0] == "m" and self.depth != 0:
            raise InvalidPathError(
                'cannot derive root path (i.e. path starting with "m/") '
                f"for a node at non-zero depth {self.depth}"
            )
        indexes = parse_path(path)

        result = self
        try:
            for index in indexes:
                child = result.derive_child(index)
                if result is not self:
                    result.dispose()
                result = child
        except Exception:
            if result is not self:
                result.dispose()
            raise
        return result

    def neuter(self) -> "HDNode":
        """
        Public-only copy of this node; it can derive normal children only
        """
        return HDNode(
            None,
            self.chain_code,
            depth=self.depth,
            index=self.index,
            parent_fingerprint=self.parent_fingerprint,
            path=self.path,
            public_key=self.public_key,
            transport=self.transport,
        )

    def connect(self, transport) -> "HDNode":
        """
        New node bound to transport, sharing this node's signing key
        (disposing either one disposes the key for both)
        """
        return HDNode(
            self.signing_key,
            self.chain_code,
            depth=self.depth,
            index=self.index,
            parent_fingerprint=self.parent_fingerprint,
            path=self.path,
            public_key=self.public_key,
            transport=transport,
        )

    def sign(self, digest: bytes) -> Signature:
        if self.signing_key is None:
            raise UnsupportedOperationError(
                "neutered node cannot sign", operation="sign"
            )
        return self.signing_key.sign(digest)

    def dispose(self):
        if self.signing_key is not None:
            self.signing_key.dispose()
