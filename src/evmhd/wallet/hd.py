"""
BIP32, BIP39, BIP44
"""
import logging
from typing import Union

from evmhd.bips import bip39
from evmhd.bips import bip44
from evmhd.bips.bip32 import HDNode
from evmhd.errors import InvalidMnemonicError
from evmhd.wallet.account import Signer

log = logging.getLogger(__name__)


class HD:
    """
    BIP44, BIP39, BIP32 compatible wallet

    Holds the master node only; every derive()/account() call returns a new node the
    caller owns and must dispose. Nothing is cached.
    """

    def __init__(self, master: HDNode):
        if master.depth != 0:
            raise ValueError("HD wallet requires a master (depth 0) node")
        self.master = master

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.dispose()

    @classmethod
    def from_seed(cls, seed: Union[bytes, bytearray]) -> "HD":
        return cls(HDNode.from_seed(seed))

    @classmethod
    def from_mnemonic(cls, mnemonic: str, passphrase: str = "") -> "HD":
        if not bip39.is_valid(mnemonic):
            raise InvalidMnemonicError("invalid mnemonic phrase")
        return cls(HDNode.from_mnemonic(mnemonic, passphrase=passphrase))

    @classmethod
    def generate(cls, strength: int = 128, passphrase: str = ""):
        """
        New wallet from a random mnemonic
        Returns:
            (HD, mnemonic)
        """
        mnemonic = bip39.generate_mnemonic_phrase(strength)
        return cls.from_mnemonic(mnemonic, passphrase=passphrase), mnemonic

    def derive(self, path: str) -> HDNode:
        """
        Args:
            path: str, path to key, e.g. m/44'/60'/0'/0/0
        """
        return self.master.derive_path(path)

    def account(self, index: int = 0, account: int = 0, change: int = 0) -> Signer:
        """
        Signer at m/44'/60'/account'/change/index
        """
        path = bip44.path(index, account=account, change=change)
        log.debug(f"deriving account at {path}")
        return Signer(self.derive(path))

    def dispose(self):
        self.master.dispose()
