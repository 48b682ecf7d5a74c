"""Error taxonomy shared by the crypto, sensitive-field and pipeline layers."""


class BenefitCheckError(Exception):
    """Base exception for all benefitcheck errors."""

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error.

        Args:
            message: Error message
            original_error: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class AccessDeniedError(BenefitCheckError):
    """Requester neither owns the record nor holds an elevated role."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class AuthenticationFailureError(BenefitCheckError):
    """Ciphertext failed authentication (tampered, corrupted or malformed)."""

    def __init__(
        self,
        message: str = "Failed to decrypt data",
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error)


class NotFoundError(BenefitCheckError):
    """Requested entity or field does not exist."""

    pass


class UnsupportedFieldError(BenefitCheckError):
    """Requested field is not one of the revealable sensitive fields."""

    pass


class ConcurrentUpdateLostError(BenefitCheckError):
    """Compare-and-set update lost the race; reread and retry."""

    def __init__(
        self,
        transaction_id: str,
        expected_status: str,
        message: str | None = None,
    ):
        super().__init__(
            message
            or f"Transaction {transaction_id} is no longer in status {expected_status}"
        )
        self.transaction_id = transaction_id
        self.expected_status = expected_status


class ReplicationInconsistencyError(BenefitCheckError):
    """Spawned transaction was kept but its interface snapshot was not written."""

    def __init__(
        self,
        call_transaction_id: str,
        source_transaction_id: str,
        original_error: Exception | None = None,
    ):
        super().__init__(
            f"Interface replication failed for call transaction {call_transaction_id}",
            original_error,
        )
        self.call_transaction_id = call_transaction_id
        self.source_transaction_id = source_transaction_id

    def to_dict(self) -> dict[str, str | None]:
        return {
            "call_transaction_id": self.call_transaction_id,
            "source_transaction_id": self.source_transaction_id,
            "error": str(self.original_error) if self.original_error else None,
        }
