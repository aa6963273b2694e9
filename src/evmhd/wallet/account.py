"""
Account capabilities

Reader only knows an address and can check signatures. Signer owns an HDNode
(and so a private key) and can sign; it hands out a Reader for anything that
should not see key material.
"""
import logging
from typing import Optional
from typing import Union

from evmhd.bips.bip32 import HDNode
from evmhd.errors import DisposedKeyError
from evmhd.signature import from_compact
from evmhd.signature import hash_message
from evmhd.signature import recover_address
from evmhd.signature import Signature

log = logging.getLogger(__name__)


class Reader:
    def __init__(self, address: str):
        self.address = address

    def __repr__(self):
        return f"<Reader {self.address}>"

    def verify(
        self, message: Union[str, bytes], signature: str, compact: bool = False
    ) -> bool:
        """
        Args:
            message: str | bytes, the signed personal message
            signature: str, standard (0x, v=27/28) or, with compact=True,
                compact (no prefix, v=0/1) signature
        """
        if compact:
            signature = from_compact(signature)
        try:
            address = recover_address(hash_message(message), signature)
        except ValueError as err:
            log.debug(f"signature recovery failed: {err}")
            return False
        return address.lower() == self.address.lower()


class Signer:
    def __init__(self, node: HDNode):
        if node.neutered:
            raise ValueError("signer requires a node with a private key")
        self._node = node
        self._reader = Reader(node.address)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.dispose()

    def __repr__(self):
        return f"<Signer {self.address} path={self.path}>"

    @property
    def address(self) -> str:
        return self._reader.address

    @property
    def path(self) -> Optional[str]:
        return self._node.path

    @property
    def index(self) -> int:
        return self._node.index

    @property
    def public_key(self) -> bytes:
        return self._node.public_key

    @property
    def disposed(self) -> bool:
        return self._node.signing_key.disposed

    def sign_digest(self, digest: bytes) -> Signature:
        return self._node.sign(digest)

    def sign(self, message: Union[str, bytes], compact: bool = False) -> str:
        """
        Sign a personal message (EIP-191)
        Returns:
            standard signature string, or the compact form if compact=True
        """
        if self.disposed:
            raise DisposedKeyError()
        signature = self._node.sign(hash_message(message))
        return signature.compact if compact else signature.serialized

    def verify(
        self, message: Union[str, bytes], signature: str, compact: bool = False
    ) -> bool:
        return self._reader.verify(message, signature, compact=compact)

    def to_reader(self) -> Reader:
        return Reader(self.address)

    def dispose(self):
        self._node.dispose()
