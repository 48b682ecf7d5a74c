"""Authenticated encryption and masking for sensitive patient fields.

Envelope format (all parts base64, joined by ``:``)::

    salt:iv:tag:ciphertext

A fresh salt and IV are drawn for every call, and the AES-256-GCM key is
derived from the master secret and the salt with PBKDF2-HMAC-SHA512, so
encrypting the same value twice never yields the same envelope.
"""

import base64
import binascii
import secrets
from enum import Enum

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from benefitcheck.crypto.config import (
    MAX_KDF_ITERATIONS,
    MIN_KDF_ITERATIONS,
    get_crypto_settings,
)
from benefitcheck.exceptions import AuthenticationFailureError

SALT_SIZE = 64
IV_SIZE = 16
TAG_SIZE = 16
KEY_SIZE = 32
ENVELOPE_SEPARATOR = ":"


class FieldKind(str, Enum):
    """Shape of a sensitive value, used to pick its mask."""

    DATE = "date"
    PHONE = "phone"
    EMAIL = "email"
    NATIONAL_ID = "national_id"
    IDENTIFIER = "identifier"
    GENERIC = "generic"


MASK_PATTERNS: dict[FieldKind, str] = {
    FieldKind.DATE: "****-**-**",
    FieldKind.PHONE: "(***) ***-****",
    FieldKind.EMAIL: "****@****.***",
    FieldKind.NATIONAL_ID: "***-**-****",
    FieldKind.IDENTIFIER: "************",
    FieldKind.GENERIC: "********",
}


def mask(value: str | None, kind: FieldKind) -> str:
    """
    Mask a value for display.

    The mask depends only on the field kind, never on the value, so its
    length does not leak the plaintext length.

    Args:
        value: The value (plaintext or envelope) being masked
        kind: The field kind

    Returns:
        str: The mask pattern, or an empty string when there is no value
    """
    if not value:
        return ""
    return MASK_PATTERNS[kind]


class CryptoService:
    """AES-256-GCM field encryption with per-call PBKDF2 key derivation.

    Example:
        >>> service = CryptoService(b"master-secret", iterations=10_000)
        >>> envelope = service.encrypt("1990-05-15")
        >>> service.decrypt(envelope)
        '1990-05-15'
    """

    def __init__(self, master_key: str | bytes, iterations: int = 100_000):
        """
        Initialize the service.

        Args:
            master_key: Long-lived master secret
            iterations: PBKDF2 iteration count

        Raises:
            ValueError: If the key is empty or iterations are out of bounds
        """
        if not master_key:
            raise ValueError("Master key must not be empty")
        if not MIN_KDF_ITERATIONS <= iterations <= MAX_KDF_ITERATIONS:
            raise ValueError(
                f"KDF iterations must be between {MIN_KDF_ITERATIONS} "
                f"and {MAX_KDF_ITERATIONS}, got {iterations}"
            )
        self._master_key = (
            master_key.encode("utf-8") if isinstance(master_key, str) else master_key
        )
        self._iterations = iterations

    def _derive_key(self, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA512(),
            length=KEY_SIZE,
            salt=salt,
            iterations=self._iterations,
        )
        return kdf.derive(self._master_key)

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a value into a self-contained envelope.

        Args:
            plaintext: Value to encrypt

        Returns:
            str: ``salt:iv:tag:ciphertext`` envelope, or ``""`` for empty input
        """
        if not plaintext:
            return ""

        salt = secrets.token_bytes(SALT_SIZE)
        iv = secrets.token_bytes(IV_SIZE)
        key = self._derive_key(salt)

        # AESGCM appends the tag to the ciphertext
        sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]

        return ENVELOPE_SEPARATOR.join(
            base64.b64encode(part).decode("ascii")
            for part in (salt, iv, tag, ciphertext)
        )

    def decrypt(self, envelope: str) -> str:
        """
        Decrypt an envelope produced by encrypt().

        Args:
            envelope: ``salt:iv:tag:ciphertext`` envelope

        Returns:
            str: The plaintext, or ``""`` for an empty envelope

        Raises:
            AuthenticationFailureError: If the envelope is malformed or the
                tag does not verify
        """
        if not envelope:
            return ""

        parts = envelope.split(ENVELOPE_SEPARATOR)
        if len(parts) != 4:
            raise AuthenticationFailureError("Invalid encrypted data format")

        try:
            salt, iv, tag, ciphertext = (
                base64.b64decode(part, validate=True) for part in parts
            )
        except (binascii.Error, ValueError) as e:
            raise AuthenticationFailureError("Invalid encrypted data encoding", e)

        if len(salt) != SALT_SIZE or len(iv) != IV_SIZE or len(tag) != TAG_SIZE:
            raise AuthenticationFailureError("Invalid encrypted data format")

        key = self._derive_key(salt)
        try:
            plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise AuthenticationFailureError("Failed to decrypt data", e)

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise AuthenticationFailureError("Decrypted data is not valid UTF-8", e)

    def mask(self, value: str | None, kind: FieldKind) -> str:
        return mask(value, kind)


def build_crypto_service() -> CryptoService:
    """Create a CryptoService from environment settings."""
    settings = get_crypto_settings()
    return CryptoService(
        settings.key.get_secret_value(), iterations=settings.kdf_iterations
    )
