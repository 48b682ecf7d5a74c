"""
Bridge between entity columns and the crypto service.

Writes encrypt, reads mask, and only reveal() ever decrypts.
"""

from collections.abc import Callable

from benefitcheck.crypto.service import CryptoService, FieldKind, mask
from benefitcheck.exceptions import AccessDeniedError, NotFoundError
from benefitcheck.sensitive.schemas import MaskedField, SensitiveField

OwnerCheck = Callable[[], bool]


class SensitiveFieldStore:
    """Encrypts sensitive values on write, masks on read, decrypts on reveal."""

    def __init__(self, crypto: CryptoService):
        """
        Initialize the store.

        Args:
            crypto: Crypto service holding the master secret
        """
        self.crypto = crypto

    def put(self, kind: FieldKind, plaintext: str | None) -> SensitiveField:
        """
        Encrypt a value for storage.

        Every call re-encrypts from scratch; an update never merges with the
        previous envelope.

        Args:
            kind: Field kind being stored
            plaintext: Value to store; empty means "not set"

        Returns:
            SensitiveField: Envelope and encrypted flag to persist
        """
        if not plaintext:
            return SensitiveField(envelope=None, is_encrypted=False)
        return SensitiveField(envelope=self.crypto.encrypt(plaintext), is_encrypted=True)

    def get_masked(self, field: SensitiveField, kind: FieldKind) -> MaskedField:
        """Masked view of a stored field. Never decrypts."""
        if not field.is_encrypted:
            return MaskedField(masked_value=None, is_encrypted=False)
        return MaskedField(masked_value=mask(field.envelope, kind), is_encrypted=True)

    def reveal(self, owner_check: OwnerCheck, field: SensitiveField | None) -> str:
        """
        Decrypt a single field for a single caller.

        The owner check runs before anything else so that a missing field
        and a foreign record look the same to an unauthorised caller. The
        returned plaintext is not logged or kept.

        Args:
            owner_check: Returns True if the requester may see this record
            field: Stored field, or None if the record has no such field

        Returns:
            str: The plaintext value

        Raises:
            AccessDeniedError: If owner_check fails
            NotFoundError: If the field was never set
            AuthenticationFailureError: If the envelope fails authentication
        """
        if not owner_check():
            raise AccessDeniedError()
        if field is None or not field.is_encrypted:
            raise NotFoundError("Field has no stored value")
        return self.crypto.decrypt(field.envelope)
