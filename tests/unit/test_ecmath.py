import hashlib

import pytest

from evmhd import ecmath
from evmhd.ecmath import SECP256K1_Gx
from evmhd.ecmath import SECP256K1_Gy
from evmhd.ecmath import SECP256K1_N


def _buf(i: int) -> bytearray:
    return bytearray(i.to_bytes(32, "big"))


@pytest.mark.parametrize(
    "a,b",
    [
        (1, 1),
        (SECP256K1_N - 1, 2),
        (SECP256K1_N - 1, SECP256K1_N - 1),
        (SECP256K1_N // 2, SECP256K1_N // 2 + 1),
        (0x1234, 2**255),
        (SECP256K1_N - 2**128, 2**200 + 12345),
    ],
)
def test_add_mod_n_matches_integer_arithmetic(a, b):
    result = ecmath.add_mod_n(_buf(a), b.to_bytes(32, "big"))
    assert int.from_bytes(result, "big") == (a + b) % SECP256K1_N


def test_add_mod_n_does_not_touch_input():
    parent = _buf(SECP256K1_N - 1)
    snapshot = bytes(parent)
    result = ecmath.add_mod_n(parent, (5).to_bytes(32, "big"))
    assert bytes(parent) == snapshot
    assert result is not parent


def test_add_to_private_key_reports_overflow():
    buf = bytearray(b"\xff" * 32)
    assert ecmath.add_to_private_key(buf, (2).to_bytes(32, "big"))
    assert int.from_bytes(buf, "big") == 1

    buf = _buf(10)
    assert not ecmath.add_to_private_key(buf, (20).to_bytes(32, "big"))
    assert int.from_bytes(buf, "big") == 30


def test_subtract_curve_order():
    buf = _buf(SECP256K1_N + 7)
    ecmath.subtract_curve_order(buf)
    assert int.from_bytes(buf, "big") == 7


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, -1),
        (SECP256K1_N - 1, -1),
        (SECP256K1_N, 0),
        (SECP256K1_N + 1, 1),
        (2**256 - 1, 1),
    ],
)
def test_compare_with_curve_order(value, expected):
    assert ecmath.compare_with_curve_order(value.to_bytes(32, "big")) == expected


def test_compare_with_curve_order_offset():
    data = b"\x00" + SECP256K1_N.to_bytes(32, "big")
    assert ecmath.compare_with_curve_order(data, offset=1) == 0


@pytest.mark.parametrize(
    "value,valid",
    [(0, False), (1, True), (SECP256K1_N - 1, True), (SECP256K1_N, False)],
)
def test_is_valid_private_key(value, valid):
    assert ecmath.is_valid_private_key(value.to_bytes(32, "big")) is valid


def test_zeroize_clears_same_buffer():
    buf = bytearray(range(32))
    view = memoryview(buf)
    ecmath.zeroize(buf)
    assert buf == bytearray(32)
    assert bytes(view) == bytes(32)


def test_decode_pubkey_compressed_and_uncompressed():
    compressed = ecmath.pubkey(SECP256K1_Gx, SECP256K1_Gy, compressed=True)
    uncompressed = ecmath.pubkey(SECP256K1_Gx, SECP256K1_Gy, compressed=False)
    assert ecmath.decode_pubkey(compressed) == (SECP256K1_Gx, SECP256K1_Gy)
    assert ecmath.decode_pubkey(uncompressed) == (SECP256K1_Gx, SECP256K1_Gy)


def test_decode_pubkey_rejects_garbage():
    with pytest.raises(ValueError):
        ecmath.decode_pubkey(b"\x05" + bytes(32))
    with pytest.raises(ValueError):
        ecmath.decode_pubkey(b"\x02" + bytes(31))


def test_point_add_matches_scalar_multiplication():
    assert ecmath.point_add(ecmath.point(2), ecmath.point(3)) == ecmath.point(5)
    assert ecmath.point_add(None, ecmath.point(3)) == ecmath.point(3)
    assert ecmath.point_add(ecmath.point(1), ecmath.point(SECP256K1_N - 1)) is None


def test_sign_rfc6979_vector():
    # private key 1, sha256("Satoshi Nakamoto")
    digest = hashlib.sha256(b"Satoshi Nakamoto").digest()
    r, s, _ = ecmath.sign(1, digest)
    assert r == 0x934B1EA10A4B3C1757E2B0C017D0B6143CE3C9A7E6A4A49860D7A6AB210EE3D8
    assert s == 0x2442CE9D2B916064108014783E923EC36B49743E2FFA1C4496F01A512AAFD9E5


@pytest.mark.parametrize("key", [1, 2, 0xDEADBEEF, SECP256K1_N - 1])
def test_sign_then_recover(key):
    digest = hashlib.sha256(key.to_bytes(32, "big")).digest()
    r, s, recovery_id = ecmath.sign(key, digest)
    assert s <= ecmath.SECP256K1_HALF_N
    assert recovery_id in (0, 1)
    assert ecmath.recover(digest, r, s, recovery_id) == ecmath.point(key)
    assert ecmath.recover(digest, r, s, recovery_id ^ 1) != ecmath.point(key)


def test_recover_rejects_out_of_range():
    with pytest.raises(ValueError):
        ecmath.recover(bytes(32), 0, 1, 0)
    with pytest.raises(ValueError):
        ecmath.recover(bytes(32), 1, SECP256K1_N, 0)
