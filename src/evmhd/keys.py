"""
secp256k1 signing keys with erasable private key buffers
"""
import logging
import secrets

from evmhd import ecmath
from evmhd.address import public_key_to_address
from evmhd.errors import DisposedKeyError
from evmhd.errors import InvalidDigestLengthError
from evmhd.errors import InvalidKeyLengthError
from evmhd.errors import InvalidPrivateKeyError
from evmhd.signature import Signature

log = logging.getLogger(__name__)


def generate_private_key() -> bytearray:
    """
    Generate a random private key in a fresh buffer
    """
    buffer = bytearray(secrets.token_bytes(32))
    while not ecmath.is_valid_private_key(buffer):
        buffer[:] = secrets.token_bytes(32)
    return buffer


class SigningKey:
    """
    Owns exactly one private key buffer.

    The buffer passed in is taken over, not copied: the caller must not keep using it.
    dispose() zeroes that same buffer, so every view of it reads zeros afterwards.
    The engine does no locking; do not sign and dispose the same key concurrently.
    """

    def __init__(self, private_key_buffer: bytearray):
        if not isinstance(private_key_buffer, bytearray):
            raise TypeError(
                f"bytearray expected, got {type(private_key_buffer).__name__}"
            )
        if len(private_key_buffer) != 32:
            raise InvalidKeyLengthError(
                f"invalid private key length: {len(private_key_buffer)}"
            )
        if not ecmath.is_valid_private_key(private_key_buffer):
            raise InvalidPrivateKeyError("private key not in range [1, n)")

        self._private_key_buffer = private_key_buffer
        x, y = ecmath.point(int.from_bytes(private_key_buffer, "big"))
        self._public_key = ecmath.pubkey(x, y, compressed=False)
        self._compressed_public_key = ecmath.pubkey(x, y, compressed=True)

    @classmethod
    def from_private_key(cls, buffer: bytearray) -> "SigningKey":
        return cls(buffer)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.dispose()

    def __repr__(self):
        state = "disposed" if self.disposed else self._compressed_public_key.hex()
        return f"<SigningKey {state}>"

    @property
    def disposed(self) -> bool:
        return self._private_key_buffer is None

    @property
    def private_key_buffer(self) -> bytearray:
        if self._private_key_buffer is None:
            raise DisposedKeyError()
        return self._private_key_buffer

    @property
    def public_key(self) -> bytes:
        """
        SEC1 uncompressed public key, 65 bytes
        """
        return self._public_key

    @property
    def compressed_public_key(self) -> bytes:
        """
        SEC1 compressed public key, 33 bytes
        """
        return self._compressed_public_key

    @property
    def address(self) -> str:
        return public_key_to_address(self._public_key)

    def sign(self, digest: bytes) -> Signature:
        """
        Sign a 32 byte digest
        Returns:
            Signature with v in {27, 28}
        """
        if self._private_key_buffer is None:
            raise DisposedKeyError()
        if len(digest) != 32:
            raise InvalidDigestLengthError(f"invalid digest length: {len(digest)}")
        r, s, recovery_id = ecmath.sign(
            int.from_bytes(self._private_key_buffer, "big"), bytes(digest)
        )
        return Signature(
            r.to_bytes(32, "big"), s.to_bytes(32, "big"), 27 + recovery_id
        )

    def dispose(self):
        """
        Zero the private key buffer in place. Safe to call more than once.
        """
        if self._private_key_buffer is None:
            return
        ecmath.zeroize(self._private_key_buffer)
        self._private_key_buffer = None
        log.trace("signing key disposed")
