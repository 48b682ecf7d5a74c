"""
Pydantic schemas for sensitive fields and reveal requests.
"""

from pydantic import BaseModel, ConfigDict, Field


class SensitiveField(BaseModel):
    """Stored shape of a sensitive attribute."""

    model_config = ConfigDict(frozen=True)

    envelope: str | None = Field(None, description="Encryption envelope, or None")
    is_encrypted: bool = Field(False, description="Whether a value is stored")

    @classmethod
    def from_envelope(cls, envelope: str | None) -> "SensitiveField":
        """Build the field from a stored envelope column."""
        if not envelope:
            return cls(envelope=None, is_encrypted=False)
        return cls(envelope=envelope, is_encrypted=True)


class MaskedField(BaseModel):
    """What readers see by default."""

    masked_value: str | None = Field(None, description="Fixed mask, or None if unset")
    is_encrypted: bool = Field(..., description="Whether a value is stored")


class RevealRequest(BaseModel):
    """Request model for revealing one sensitive field."""

    field: str = Field(..., description="Sensitive field name, e.g. 'birth_date'")
    insurance_id: str | None = Field(
        None, description="Insurance record ID for insurance fields"
    )


class RevealResponse(BaseModel):
    """Response model carrying one revealed value."""

    success: bool = Field(default=True)
    field: str = Field(..., description="Field that was revealed")
    value: str = Field(..., description="Plaintext value")


class MaskedInsurance(BaseModel):
    """Insurance record with its identifiers masked."""

    id: str
    provider: str
    type: str
    fields: dict[str, MaskedField]


class MaskedPatientResponse(BaseModel):
    """Masked view of every sensitive field a patient has."""

    success: bool = Field(default=True)
    patient_id: str
    fields: dict[str, MaskedField]
    insurances: list[MaskedInsurance] = Field(default_factory=list)
