"""Tests for SensitiveFieldStore."""

from unittest.mock import MagicMock

import pytest

from benefitcheck.crypto.service import FieldKind
from benefitcheck.exceptions import AccessDeniedError, NotFoundError
from benefitcheck.sensitive.schemas import SensitiveField
from benefitcheck.sensitive.store import SensitiveFieldStore


def test_put_encrypts_value(store):
    field = store.put(FieldKind.NATIONAL_ID, "123-45-6789")

    assert field.is_encrypted is True
    assert "123-45-6789" not in field.envelope


def test_put_empty_value_is_not_set(store):
    field = store.put(FieldKind.DATE, "")

    assert field.is_encrypted is False
    assert field.envelope is None


def test_put_reencrypts_on_every_write(store):
    assert store.put(FieldKind.DATE, "1990-01-01").envelope != store.put(
        FieldKind.DATE, "1990-01-01"
    ).envelope


def test_get_masked_never_decrypts():
    crypto = MagicMock()
    store = SensitiveFieldStore(crypto)

    masked = store.get_masked(SensitiveField.from_envelope("a:b:c:d"), FieldKind.PHONE)

    assert masked.masked_value == "(***) ***-****"
    assert masked.is_encrypted is True
    crypto.decrypt.assert_not_called()


def test_get_masked_unset_field(store):
    masked = store.get_masked(SensitiveField.from_envelope(None), FieldKind.EMAIL)

    assert masked.masked_value is None
    assert masked.is_encrypted is False


def test_reveal_returns_plaintext_for_owner(store):
    field = store.put(FieldKind.IDENTIFIER, "POL-42")

    assert store.reveal(lambda: True, field) == "POL-42"


def test_reveal_checks_owner_before_decrypting():
    crypto = MagicMock()
    store = SensitiveFieldStore(crypto)

    with pytest.raises(AccessDeniedError):
        store.reveal(lambda: False, SensitiveField.from_envelope("a:b:c:d"))
    crypto.decrypt.assert_not_called()


def test_reveal_denied_even_when_field_missing(store):
    with pytest.raises(AccessDeniedError):
        store.reveal(lambda: False, None)


def test_reveal_unset_field_is_not_found(store):
    with pytest.raises(NotFoundError):
        store.reveal(lambda: True, SensitiveField.from_envelope(None))
