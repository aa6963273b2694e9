"""
BIP44
m / purpose' / coin_type' / account' / change / address_index
"""
from evmhd.bips.bip32 import HARDENED_OFFSET

BIP44_PURPOSE = 44
BIP44_PURPOSE_CONST = BIP44_PURPOSE + HARDENED_OFFSET  # 44'

# https://github.com/satoshilabs/slips/blob/master/slip-0044.md
ETH_COIN_TYPE = 60


def path(index: int = 0, account: int = 0, change: int = 0) -> str:
    """
    >>> path(1)
    "m/44'/60'/0'/0/1"
    """
    for name, value in (("index", index), ("account", account), ("change", change)):
        if not 0 <= value < HARDENED_OFFSET:
            raise ValueError(f"{name} out of range: {value}")
    return f"m/{BIP44_PURPOSE}'/{ETH_COIN_TYPE}'/{account}'/{change}/{index}"
