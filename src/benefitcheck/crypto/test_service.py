"""Tests for the field encryption service and masking."""

import base64

import pytest

from benefitcheck.crypto.config import CryptoSettings
from benefitcheck.crypto.service import (
    IV_SIZE,
    SALT_SIZE,
    TAG_SIZE,
    CryptoService,
    FieldKind,
    mask,
)
from benefitcheck.exceptions import AuthenticationFailureError


def _flip_byte(envelope: str, part: int, index: int) -> str:
    parts = envelope.split(":")
    raw = bytearray(base64.b64decode(parts[part]))
    raw[index] ^= 0x01
    parts[part] = base64.b64encode(bytes(raw)).decode("ascii")
    return ":".join(parts)


@pytest.mark.parametrize(
    "plaintext",
    ["1990-05-15", "", "José Ñúñez 東京", "x" * 10_000],
)
def test_decrypt_returns_original_value(crypto, plaintext):
    assert crypto.decrypt(crypto.encrypt(plaintext)) == plaintext


def test_encrypt_produces_fresh_envelope_each_call(crypto):
    first = crypto.encrypt("123-45-6789")
    second = crypto.encrypt("123-45-6789")

    assert first != second
    assert crypto.decrypt(first) == crypto.decrypt(second) == "123-45-6789"


def test_envelope_layout(crypto):
    envelope = crypto.encrypt("POL-1")
    salt, iv, tag, ciphertext = (base64.b64decode(p) for p in envelope.split(":"))

    assert len(salt) == SALT_SIZE
    assert len(iv) == IV_SIZE
    assert len(tag) == TAG_SIZE
    assert len(ciphertext) == len("POL-1")


def test_empty_input_gives_empty_envelope(crypto):
    assert crypto.encrypt("") == ""
    assert crypto.decrypt("") == ""


@pytest.mark.parametrize("part", [0, 1, 2, 3], ids=["salt", "iv", "tag", "ciphertext"])
def test_tampered_envelope_fails_authentication(crypto, part):
    envelope = crypto.encrypt("sensitive value")

    for index in (0, -1):
        with pytest.raises(AuthenticationFailureError):
            crypto.decrypt(_flip_byte(envelope, part, index))


@pytest.mark.parametrize(
    "envelope",
    [
        "not-an-envelope",
        "a:b:c",
        "a:b:c:d:e",
        "!!!:@@@:###:$$$",
        # Right part count, wrong salt length
        ":".join(base64.b64encode(b"x" * n).decode() for n in (8, IV_SIZE, TAG_SIZE, 4)),
    ],
)
def test_malformed_envelope_fails_authentication(crypto, envelope):
    with pytest.raises(AuthenticationFailureError):
        crypto.decrypt(envelope)


def test_wrong_master_key_fails_authentication(crypto):
    envelope = crypto.encrypt("1985-03-22")
    other = CryptoService("a-different-master-key", iterations=1_000)

    with pytest.raises(AuthenticationFailureError):
        other.decrypt(envelope)


def test_iteration_count_is_bounded():
    with pytest.raises(ValueError):
        CryptoService("key", iterations=999)
    with pytest.raises(ValueError):
        CryptoService("key", iterations=600_001)
    with pytest.raises(ValueError):
        CryptoService("", iterations=1_000)


def test_settings_reject_out_of_bounds_iterations():
    with pytest.raises(ValueError):
        CryptoSettings(key="k", kdf_iterations=10)


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (FieldKind.DATE, "****-**-**"),
        (FieldKind.NATIONAL_ID, "***-**-****"),
        (FieldKind.PHONE, "(***) ***-****"),
        (FieldKind.EMAIL, "****@****.***"),
        (FieldKind.IDENTIFIER, "************"),
        (FieldKind.GENERIC, "********"),
    ],
)
def test_mask_is_fixed_per_kind(kind, expected):
    assert mask("a", kind) == expected
    assert mask("a much longer value than the mask", kind) == expected


def test_mask_of_empty_value_is_empty():
    assert mask("", FieldKind.DATE) == ""
    assert mask(None, FieldKind.PHONE) == ""
