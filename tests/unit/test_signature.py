import logging

import pytest

from evmhd.errors import InvalidDigestLengthError
from evmhd.signature import from_compact
from evmhd.signature import hash_message
from evmhd.signature import recover_address
from evmhd.signature import Signature
from evmhd.signature import to_compact
from evmhd.signature import verify
from evmhd.signature import verify_message

MESSAGE = "Dummy message to sign."
ADDRESS = "0x405005C7c4422390F4B334F64Cf20E0b767131d0"
SIGNATURE = "0xd130f94c52bf393206267278ac0b6009e14f11712578e5c1f7afe4a12685c5b96a77a0832692d96fc51f4bd403839572c55042ecbcc92d215879c5c8bb5778c51c"
R = "d130f94c52bf393206267278ac0b6009e14f11712578e5c1f7afe4a12685c5b9"
S = "6a77a0832692d96fc51f4bd403839572c55042ecbcc92d215879c5c8bb5778c5"


def test_to_compact():
    assert to_compact(SIGNATURE) == R + S + "1"
    assert to_compact(SIGNATURE[2:]) == R + S + "1"
    assert to_compact("0x" + R + S + "1b") == R + S + "0"


def test_from_compact():
    assert from_compact(R + S + "1") == SIGNATURE
    assert from_compact(R + S + "0") == "0x" + R + S + "1b"


@pytest.mark.parametrize("v", ["1b", "1c"])
def test_round_trip(v):
    standard = "0x" + R + S + v
    assert from_compact(to_compact(standard)) == standard


@pytest.mark.parametrize("v", ["2", "x", "01", ""])
def test_from_compact_non_zero_v_restores_28(v, caplog):
    with caplog.at_level(logging.WARNING, logger="evmhd.signature"):
        assert from_compact(R + S + v)[-2:] == "1c"
    assert "restoring as 28" in caplog.text


def test_to_compact_unexpected_v(caplog):
    with caplog.at_level(logging.WARNING, logger="evmhd.signature"):
        assert to_compact("0x" + R + S + "1d")[-1] == "1"
    assert "unexpected signature v value" in caplog.text


def test_signature_from_hex():
    sig = Signature.from_hex(SIGNATURE)
    assert sig.r.hex() == R
    assert sig.s.hex() == S
    assert sig.v == 28
    assert sig.recovery_id == 1
    assert sig.serialized == SIGNATURE
    assert sig.compact == R + S + "1"
    assert len(sig.to_bytes()) == 65


def test_signature_from_hex_normalizes_recovery_id():
    assert Signature.from_hex(R + S + "00").v == 27
    assert Signature.from_hex(R + S + "01").v == 28


def test_signature_from_hex_bad_length():
    with pytest.raises(ValueError):
        Signature.from_hex(SIGNATURE[:-2])


def test_verify_message():
    assert verify_message(MESSAGE, SIGNATURE) == ADDRESS
    assert verify_message(MESSAGE.encode("utf8"), SIGNATURE) == ADDRESS


def test_verify():
    digest = hash_message(MESSAGE)
    assert verify(digest, SIGNATURE, ADDRESS)
    assert verify(digest, SIGNATURE, ADDRESS.lower())
    assert verify(digest, Signature.from_hex(SIGNATURE), ADDRESS)
    assert not verify(hash_message("another message"), SIGNATURE, ADDRESS)


def test_verify_wrong_recovery_id():
    digest = hash_message(MESSAGE)
    flipped = SIGNATURE[:-2] + "1b"
    assert recover_address(digest, flipped) != ADDRESS
    assert not verify(digest, flipped, ADDRESS)


def test_verify_malformed_signature():
    digest = hash_message(MESSAGE)
    assert not verify(digest, "0x1234", ADDRESS)
    assert not verify(digest, "0x" + "00" * 64 + "1b", ADDRESS)
    assert not verify(digest, "0x" + R + S + "1e", ADDRESS)


def test_verify_invalid_digest_length():
    with pytest.raises(InvalidDigestLengthError):
        verify(b"\x00" * 31, SIGNATURE, ADDRESS)


def test_hash_message():
    assert hash_message("") == hash_message(b"")
    assert len(hash_message(MESSAGE)) == 32
    assert hash_message("a") != hash_message("b")
