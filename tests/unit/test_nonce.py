import pytest

from pgpvalidation.application.nonce import NONCE_LENGTH, generate_nonce, nonce_from_string, nonce_to_string
from pgpvalidation.domain.errors import InvalidNonceError


def test_generated_nonces_are_random_and_fixed_length():
    nonces = {generate_nonce() for _ in range(50)}
    assert len(nonces) == 50
    assert all(len(nonce) == NONCE_LENGTH for nonce in nonces)


def test_string_form_is_lowercase_hex():
    nonce = bytes(range(NONCE_LENGTH))
    text = nonce_to_string(nonce)
    assert text == nonce.hex()
    assert len(text) == 2 * NONCE_LENGTH
    assert nonce_from_string(text.upper()) == nonce


@pytest.mark.parametrize("value", ["", "abcd", "zz" * NONCE_LENGTH, "00" * (NONCE_LENGTH + 1)])
def test_invalid_strings_are_rejected(value):
    with pytest.raises(InvalidNonceError):
        nonce_from_string(value)
