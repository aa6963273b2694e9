"""
Test bip39

https://github.com/trezor/python-mnemonic/blob/master/vectors.json
"""
import pytest

from evmhd.bips import bip39

TREZOR_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
TREZOR_SEED = "c55257c360c07c72029aebc1b53c05ed0362ada38ead3e3e9efa3708e53495531f09a6987599d18264c1e1c92f2cf141630c7a3c4ab7c81b2f001698e7463b04"


def test_calculate_mnemonic_phrase():
    assert bip39.calculate_mnemonic_phrase(bytes(16)) == TREZOR_MNEMONIC


def test_to_entropy():
    assert bip39.to_entropy(TREZOR_MNEMONIC) == bytes(16)


@pytest.mark.parametrize("strength", [128, 160, 192, 224, 256])
def test_generate_mnemonic_phrase(strength):
    mnemonic = bip39.generate_mnemonic_phrase(strength)
    assert len(mnemonic.split()) == strength // 32 * 3
    assert bip39.is_valid(mnemonic)
    assert len(bip39.to_entropy(mnemonic)) == strength // 8


def test_invalid_entropy_length():
    with pytest.raises(ValueError):
        bip39.calculate_mnemonic_phrase(bytes(15))


def test_to_seed():
    assert bip39.to_seed(TREZOR_MNEMONIC, passphrase="TREZOR").hex() == TREZOR_SEED


def test_to_seed_collapses_whitespace():
    spaced = "  " + TREZOR_MNEMONIC.replace(" ", "   ") + "\n"
    assert bip39.to_seed(spaced, passphrase="TREZOR").hex() == TREZOR_SEED


def test_passphrase_changes_seed():
    assert bip39.to_seed(TREZOR_MNEMONIC) != bip39.to_seed(
        TREZOR_MNEMONIC, passphrase="TREZOR"
    )


@pytest.mark.parametrize(
    "mnemonic",
    [
        "",
        "abandon " * 11 + "abandon",  # checksum
        "abandon " * 11 + "notaword",
        "abandon " * 10 + "about",  # 11 words
        None,
    ],
)
def test_is_valid_rejects(mnemonic):
    assert not bip39.is_valid(mnemonic)


def test_is_valid():
    assert bip39.is_valid(TREZOR_MNEMONIC)
    assert bip39.is_valid(
        "cook voyage document eight skate token alien guide drink uncle term abuse"
    )


def test_wordlist():
    words = bip39.load_wordlist()
    assert len(words) == 2048
    assert words[0] == "abandon"
    assert words[-1] == "zoo"
