"""
Exceptions raised by the key derivation and signing engine

All input validation happens before any key buffer is written, so catching one of
these never leaves a node or key half-updated.
"""


class EvmHDError(Exception):
    pass


class InvalidSeedLengthError(EvmHDError, ValueError):
    """
    Seed is not between 16 and 64 bytes
    """

    pass


class InvalidKeyLengthError(EvmHDError, ValueError):
    """
    Private key buffer is not exactly 32 bytes
    """

    pass


class InvalidPrivateKeyError(EvmHDError, ValueError):
    """
    Private key scalar is zero or not less than the curve order
    """

    pass


class InvalidDigestLengthError(EvmHDError, ValueError):
    pass


class InvalidPathError(EvmHDError, ValueError):
    pass


class InvalidPathComponentError(InvalidPathError):
    def __init__(self, component: str, position: int):
        self.component = component
        self.position = position
        super().__init__(f'invalid path component "{component}" at path[{position}]')


class InvalidIndexError(EvmHDError, ValueError):
    pass


class InvalidMnemonicError(EvmHDError, ValueError):
    pass


class UnsupportedOperationError(EvmHDError):
    """
    e.g. hardened derivation on a neutered (public only) node
    """

    def __init__(self, message: str, operation: str = ""):
        self.operation = operation
        super().__init__(message)


class DisposedKeyError(EvmHDError, TypeError):
    """
    Key material was used after dispose(); the private key buffer is gone
    """

    def __init__(self, message: str = "buffer expected, key has been disposed"):
        super().__init__(message)
