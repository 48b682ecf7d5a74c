"""
Verification status derived from a patient's transaction log.

The five workflow stages run in a fixed order. Each transaction moves the
stage it belongs to, and implies that every earlier stage is done.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, Field

from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.db.transactions.constants import StageType, TransactionStatus
from benefitcheck.db.transactions.repository import TransactionRepository
from benefitcheck.utils.logger import logger


class StageState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Pipeline order; each stage type maps to one VerificationStatus field
STAGE_FIELDS: tuple[tuple[StageType, str], ...] = (
    (StageType.FETCH, "fetch_pms"),
    (StageType.API_VERIFY, "api_verification"),
    (StageType.DOCUMENT_FAX, "document_analysis"),
    (StageType.CALL, "call_center"),
    (StageType.SAVE, "save_to_pms"),
)
STAGE_INDEX = {stage: index for index, (stage, _) in enumerate(STAGE_FIELDS)}

_RANK = {StageState.PENDING: 0, StageState.IN_PROGRESS: 1, StageState.COMPLETED: 2}
_DONE_STATUSES = {TransactionStatus.SUCCESS.value, TransactionStatus.PARTIAL.value}


class VerificationStatus(BaseModel):
    """Per-stage progress of a patient's verification workflow."""

    fetch_pms: StageState = Field(default=StageState.PENDING)
    api_verification: StageState = Field(default=StageState.PENDING)
    document_analysis: StageState = Field(default=StageState.PENDING)
    call_center: StageState = Field(default=StageState.PENDING)
    save_to_pms: StageState = Field(default=StageState.PENDING)


class TransactionLike(Protocol):
    stage_type: str
    status: str
    start_time: datetime | None


def _sort_key(transaction: TransactionLike) -> tuple[int, datetime]:
    start = transaction.start_time
    if start is None:
        return (1, datetime.min.replace(tzinfo=UTC))
    if start.tzinfo is None:
        # SQLite hands back naive datetimes; they were written as UTC
        start = start.replace(tzinfo=UTC)
    return (0, start)


def derive_verification_status(
    transactions: Iterable[TransactionLike], monotonic: bool = False
) -> VerificationStatus:
    """
    Derive the five-stage status from a transaction log.

    Transactions are applied oldest start time first; those that have not
    started yet go last, in their given order.

    - Waiting: every earlier stage completed, this stage in progress
    - SUCCESS or PARTIAL: this stage and every earlier stage completed
    - FAILED: no change

    By default the last transaction applied to a stage wins, so a later
    Waiting attempt moves a completed stage back to in progress. With
    monotonic=True a stage never moves backwards.

    Args:
        transactions: The patient's transactions, in any order
        monotonic: Never regress a stage

    Returns:
        VerificationStatus: Derived status
    """
    states = {field: StageState.PENDING for _, field in STAGE_FIELDS}

    def assign(field: str, state: StageState) -> None:
        if monotonic and _RANK[state] < _RANK[states[field]]:
            return
        states[field] = state

    for transaction in sorted(transactions, key=_sort_key):
        try:
            index = STAGE_INDEX[StageType(transaction.stage_type)]
        except ValueError:
            logger.warning(
                "Skipping transaction with unknown stage type",
                stage_type=transaction.stage_type,
            )
            continue

        if transaction.status == TransactionStatus.WAITING.value:
            current = StageState.IN_PROGRESS
        elif transaction.status in _DONE_STATUSES:
            current = StageState.COMPLETED
        else:
            continue

        for _, field in STAGE_FIELDS[:index]:
            assign(field, StageState.COMPLETED)
        assign(STAGE_FIELDS[index][1], current)

    return VerificationStatus(**states)


class VerificationStatusService:
    """Answers "where is this patient in the workflow" in either data mode."""

    def __init__(
        self,
        transactions: TransactionRepository,
        patients: PatientRepository,
        monotonic: bool = False,
    ):
        self.transactions = transactions
        self.patients = patients
        self.monotonic = monotonic

    async def get_status(self, patient_id: str, data_mode: bool) -> VerificationStatus:
        """
        Get a patient's verification status.

        With data mode on, the status is derived from the transaction log.
        With it off, the stored status record is returned as edited, and a
        patient with no record is all pending.
        """
        if data_mode:
            log = await self.transactions.list_patient_transactions(patient_id)
            return derive_verification_status(log, monotonic=self.monotonic)

        record = await self.patients.get_verification_status(patient_id)
        if record is None:
            return VerificationStatus()
        return VerificationStatus(
            **{field: getattr(record, field) for _, field in STAGE_FIELDS}
        )

    async def update_stored_status(
        self, patient_id: str, status: VerificationStatus
    ) -> VerificationStatus:
        """Overwrite the stored status record used when data mode is off."""
        await self.patients.upsert_verification_status(
            patient_id,
            {field: getattr(status, field).value for _, field in STAGE_FIELDS},
        )
        logger.info(
            "[VerificationStatusService] Stored verification status updated",
            patient_id=patient_id,
        )
        return status
