"""
Pydantic schemas for transaction and verification status endpoints.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from benefitcheck.db.transactions.constants import (
    MessageKind,
    Speaker,
    StageType,
    TransactionStatus,
)
from benefitcheck.pipeline.status import StageState


class CommunicationItem(BaseModel):
    """One transcript message."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    timestamp: str = Field(..., description="Time of the message within the call")
    speaker: Speaker = Field(..., description="Who spoke")
    message: str = Field(..., description="Message text")
    message_type: MessageKind = Field(..., description="Kind of message")


class TransactionFields(BaseModel):
    """Optional transaction columns accepted on create and update."""

    method: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: str | None = None
    patient_name: str | None = None
    insurance_provider: str | None = None
    insurance_rep: str | None = None
    run_by: str | None = None
    verification_score: int | None = None
    fetch_status: str | None = None
    save_status: str | None = None
    response_code: str | None = None
    endpoint: str | None = None
    phone_number: str | None = None
    error_message: str | None = None
    eligibility_check: str | None = None
    benefits_verification: str | None = None
    coverage_details: str | None = None
    deductible_info: str | None = None
    transcript: str | None = None
    raw_response: str | None = None

    data_verified: list[str] | None = Field(
        None, description="Replacement verified item tags"
    )
    call_communications: list[CommunicationItem] | None = Field(
        None, description="Replacement call transcript"
    )

    def column_values(self) -> dict[str, Any]:
        """Transaction columns the client actually sent."""
        return self.model_dump(include=TRANSACTION_COLUMNS, exclude_unset=True)

    def communication_values(self) -> list[dict[str, Any]] | None:
        if self.call_communications is None:
            return None
        return [item.model_dump() for item in self.call_communications]


TRANSACTION_COLUMNS = set(TransactionFields.model_fields) - {
    "data_verified",
    "call_communications",
}


class CreateTransactionRequest(TransactionFields):
    """Request model for recording a verification attempt."""

    patient_id: str = Field(..., description="Patient the attempt belongs to")
    stage_type: StageType = Field(..., description="Pipeline stage")
    status: TransactionStatus = Field(
        default=TransactionStatus.WAITING, description="Initial status"
    )
    request_id: str | None = Field(None, description="Request ID; generated if omitted")


class UpdateTransactionRequest(TransactionFields):
    """Request model for a status change."""

    status: TransactionStatus = Field(..., description="New status")
    expected_status: TransactionStatus | None = Field(
        None,
        description="Status the client last saw; the update is rejected if it changed",
    )


class TransactionResponse(BaseModel):
    """Response model for a single transaction."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    request_id: str
    patient_id: str
    stage_type: str
    method: str | None = None
    status: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: str | None = None
    patient_name: str
    insurance_provider: str | None = None
    insurance_rep: str | None = None
    run_by: str | None = None
    verification_score: int | None = None
    fetch_status: str | None = None
    save_status: str | None = None
    response_code: str | None = None
    endpoint: str | None = None
    phone_number: str | None = None
    error_message: str | None = None
    eligibility_check: str | None = None
    benefits_verification: str | None = None
    coverage_details: str | None = None
    deductible_info: str | None = None
    transcript: str | None = None
    raw_response: str | None = None
    created_at: datetime
    updated_at: datetime


class InconsistencyResponse(BaseModel):
    call_transaction_id: str
    source_transaction_id: str
    error: str | None = None


class UpdateTransactionResponse(BaseModel):
    """Response model for a status change and what it triggered."""

    success: bool = Field(default=True)
    transaction: TransactionResponse
    spawned_transactions: list[TransactionResponse] = Field(default_factory=list)
    inconsistencies: list[InconsistencyResponse] = Field(default_factory=list)


class CommunicationsResponse(BaseModel):
    success: bool = Field(default=True)
    communications: list[CommunicationItem]


class VerifiedDataResponse(BaseModel):
    success: bool = Field(default=True)
    verified_data: list[str]


class VerificationStatusResponse(BaseModel):
    """Five-stage verification status of a patient."""

    patient_id: str
    data_mode: bool = Field(..., description="Whether the status was derived")
    fetch_pms: StageState
    api_verification: StageState
    document_analysis: StageState
    call_center: StageState
    save_to_pms: StageState
