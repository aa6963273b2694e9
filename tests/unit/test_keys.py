import hashlib

import pytest

from evmhd.ecmath import SECP256K1_HALF_N
from evmhd.ecmath import SECP256K1_N
from evmhd.errors import DisposedKeyError
from evmhd.errors import InvalidDigestLengthError
from evmhd.errors import InvalidKeyLengthError
from evmhd.errors import InvalidPrivateKeyError
from evmhd.keys import generate_private_key
from evmhd.keys import SigningKey
from evmhd.signature import recover_address

TEST_KEY = "3a0a3ff6ae19d221c7ddfd3157d83ff9bc25fa28911e682f95fe5d0ac657ff3c"
TEST_PUBKEY = "0355e917de55a0aed9dbdafd2516f5b110c3d3a306a09ff705e2530ca5bbe07199"

ACCOUNT_KEY = "260905feebf1ec684f36f1599128b85f3a26c2b817f2065a2fc278398449c41f"
ACCOUNT_PUBKEY = "036c082582225926b9356d95b91a4acffa3511b7cc2a14ef5338c090ea2cc3d0aa"
ACCOUNT_ADDRESS = "0x405005C7c4422390F4B334F64Cf20E0b767131d0"

DIGEST = hashlib.sha256(b"evmhd").digest()


def test_public_keys():
    key = SigningKey(bytearray.fromhex(TEST_KEY))
    assert key.compressed_public_key.hex() == TEST_PUBKEY
    assert len(key.public_key) == 65
    assert key.public_key[0] == 4
    assert key.public_key[1:33] == key.compressed_public_key[1:]


def test_address():
    key = SigningKey.from_private_key(bytearray.fromhex(ACCOUNT_KEY))
    assert key.compressed_public_key.hex() == ACCOUNT_PUBKEY
    assert key.address == ACCOUNT_ADDRESS


def test_takes_ownership_of_buffer():
    buffer = bytearray.fromhex(TEST_KEY)
    key = SigningKey(buffer)
    assert key.private_key_buffer is buffer


@pytest.mark.parametrize("length", [0, 31, 33, 64])
def test_invalid_key_length(length):
    with pytest.raises(InvalidKeyLengthError):
        SigningKey(bytearray(b"\x01" * length))


@pytest.mark.parametrize("value", [0, SECP256K1_N, 2**256 - 1])
def test_invalid_private_key(value):
    with pytest.raises(InvalidPrivateKeyError):
        SigningKey(bytearray(value.to_bytes(32, "big")))


def test_immutable_buffer_rejected():
    with pytest.raises(TypeError):
        SigningKey(bytes.fromhex(TEST_KEY))


def test_sign_is_deterministic_and_low_s():
    key = SigningKey(bytearray.fromhex(TEST_KEY))
    sig_1 = key.sign(DIGEST)
    sig_2 = key.sign(DIGEST)
    assert sig_1 == sig_2
    assert len(sig_1.r) == 32 and len(sig_1.s) == 32
    assert sig_1.v in (27, 28)
    assert int.from_bytes(sig_1.s, "big") <= SECP256K1_HALF_N


def test_signature_recovers_signer():
    key = SigningKey(bytearray.fromhex(ACCOUNT_KEY))
    for i in range(5):
        digest = hashlib.sha256(i.to_bytes(1, "big")).digest()
        assert recover_address(digest, key.sign(digest)) == ACCOUNT_ADDRESS


@pytest.mark.parametrize("length", [0, 20, 31, 33, 64])
def test_invalid_digest_length(length):
    key = SigningKey(bytearray.fromhex(TEST_KEY))
    with pytest.raises(InvalidDigestLengthError):
        key.sign(bytes(length))


def test_dispose_zeroes_buffer_in_place():
    buffer = bytearray.fromhex(TEST_KEY)
    key = SigningKey(buffer)
    key.dispose()
    assert buffer == bytearray(32)
    assert key.disposed
    with pytest.raises(DisposedKeyError):
        key.private_key_buffer


def test_sign_after_dispose():
    key = SigningKey(bytearray.fromhex(TEST_KEY))
    key.dispose()
    with pytest.raises(DisposedKeyError):
        key.sign(DIGEST)
    # buffer expected class of error
    with pytest.raises(TypeError):
        key.sign(DIGEST)


def test_dispose_twice():
    buffer = bytearray.fromhex(TEST_KEY)
    key = SigningKey(buffer)
    key.dispose()
    key.dispose()
    assert buffer == bytearray(32)


def test_context_manager_disposes_on_error():
    buffer = bytearray.fromhex(TEST_KEY)
    with pytest.raises(RuntimeError):
        with SigningKey(buffer) as key:
            key.sign(DIGEST)
            raise RuntimeError("boom")
    assert key.disposed
    assert buffer == bytearray(32)


def test_public_key_survives_dispose():
    key = SigningKey(bytearray.fromhex(TEST_KEY))
    key.dispose()
    assert key.compressed_public_key.hex() == TEST_PUBKEY
    assert "disposed" in repr(key)


def test_generate_private_key():
    buffer = generate_private_key()
    assert isinstance(buffer, bytearray)
    assert 0 < int.from_bytes(buffer, "big") < SECP256K1_N
    SigningKey(buffer).dispose()
