"""
Repository for transaction log database operations.

Provides create, read and compare-and-set status updates for Transaction
records and their transcript/verified-item children.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import asc, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from benefitcheck.db.transactions.constants import (
    REQUEST_ID_PREFIX,
    StageType,
    TransactionStatus,
)
from benefitcheck.db.transactions.model import (
    CallCommunication,
    Transaction,
    TransactionDataVerified,
)
from benefitcheck.utils.logger import logger

# Columns callers may set on create/update besides stage and status
MUTABLE_FIELDS = frozenset(
    {
        "method",
        "start_time",
        "end_time",
        "duration",
        "patient_name",
        "insurance_provider",
        "insurance_rep",
        "run_by",
        "verification_score",
        "fetch_status",
        "save_status",
        "response_code",
        "endpoint",
        "phone_number",
        "error_message",
        "eligibility_check",
        "benefits_verification",
        "coverage_details",
        "deductible_info",
        "transcript",
        "raw_response",
    }
)


def generate_request_id(suffix: str | None = None, now: datetime | None = None) -> str:
    """
    Build a human-readable, time-derived request ID.

    Example: ``REQ-2025-12-27T12-30-00`` or ``REQ-2025-12-27T12-30-00-CALL``.
    """
    stamp = (now or datetime.now(UTC)).strftime("%Y-%m-%dT%H-%M-%S")
    request_id = f"{REQUEST_ID_PREFIX}-{stamp}"
    return f"{request_id}-{suffix}" if suffix else request_id


def _clean_fields(fields: dict[str, Any] | None) -> dict[str, Any]:
    if not fields:
        return {}
    unknown = set(fields) - MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown transaction fields: {', '.join(sorted(unknown))}")
    return dict(fields)


class TransactionRepository:
    """Repository for managing verification transactions in the database."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def create_transaction(
        self,
        patient_id: str,
        stage_type: StageType,
        status: TransactionStatus,
        patient_name: str,
        request_id: str | None = None,
        fields: dict[str, Any] | None = None,
        data_verified: list[str] | None = None,
        communications: list[dict[str, Any]] | None = None,
    ) -> Transaction:
        """
        Create a new transaction, optionally with verified items and transcript.

        Args:
            patient_id: Owning patient ID
            stage_type: Pipeline stage
            status: Initial lifecycle status
            patient_name: Patient display name
            request_id: Request ID (generated when omitted)
            fields: Other transaction columns
            data_verified: Verified item tags
            communications: Call transcript messages

        Returns:
            Transaction: Created transaction
        """
        values = _clean_fields(fields)
        values["patient_name"] = patient_name

        transaction = Transaction(
            request_id=request_id or generate_request_id(),
            patient_id=patient_id,
            stage_type=StageType(stage_type).value,
            status=TransactionStatus(status).value,
            **values,
        )
        self.session.add(transaction)
        await self.session.flush()

        if data_verified:
            await self.replace_data_verified(transaction.id, data_verified)
        if communications:
            await self.replace_communications(transaction.id, communications)

        await self.session.refresh(transaction)

        logger.info(
            f"[TransactionRepository] Created transaction: id={transaction.id}, "
            f"stage_type={transaction.stage_type}, status={transaction.status}",
            patient_id=patient_id,
        )
        return transaction

    async def get_transaction(self, transaction_id: str) -> Transaction | None:
        """
        Get a transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction | None: Transaction if found, None otherwise
        """
        stmt = select(Transaction).where(Transaction.id == transaction_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_patient_transactions(self, patient_id: str) -> list[Transaction]:
        """
        List a patient's transactions, oldest start first, unstarted last.

        Args:
            patient_id: Patient ID

        Returns:
            list[Transaction]: The patient's transaction log
        """
        stmt = (
            select(Transaction)
            .where(Transaction.patient_id == patient_id)
            .order_by(asc(Transaction.start_time).nulls_last(), asc(Transaction.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def compare_and_set_status(
        self,
        transaction_id: str,
        expected_status: TransactionStatus | str,
        new_status: TransactionStatus | str,
        fields: dict[str, Any] | None = None,
    ) -> bool:
        """
        Update status only if the stored status still equals expected_status.

        Args:
            transaction_id: Transaction ID
            expected_status: Status the caller read before deciding to update
            new_status: Status to write
            fields: Other columns to write in the same statement

        Returns:
            bool: True if this call won the update, False if the row changed
        """
        expected = TransactionStatus(expected_status).value
        values = _clean_fields(fields)
        values["status"] = TransactionStatus(new_status).value
        values["updated_at"] = datetime.now(UTC)

        stmt = (
            update(Transaction)
            .where(Transaction.id == transaction_id)
            .where(Transaction.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)

        if result.rowcount != 1:
            logger.warning(
                f"[TransactionRepository] Compare-and-set lost: id={transaction_id}, "
                f"expected={expected}"
            )
            return False

        transaction = await self.session.get(Transaction, transaction_id)
        if transaction is not None:
            await self.session.refresh(transaction)

        logger.info(
            f"[TransactionRepository] Updated transaction status: id={transaction_id}, "
            f"{expected} -> {values['status']}"
        )
        return True

    async def replace_data_verified(
        self, transaction_id: str, items: Iterable[str]
    ) -> list[TransactionDataVerified]:
        """Replace the verified item tags of a transaction."""
        await self.session.execute(
            delete(TransactionDataVerified).where(
                TransactionDataVerified.transaction_id == transaction_id
            )
        )
        rows = [
            TransactionDataVerified(transaction_id=transaction_id, item=item)
            for item in items
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def replace_communications(
        self, transaction_id: str, communications: Iterable[dict[str, Any]]
    ) -> list[CallCommunication]:
        """Replace the call transcript of a transaction."""
        await self.session.execute(
            delete(CallCommunication).where(
                CallCommunication.transaction_id == transaction_id
            )
        )
        rows = [
            CallCommunication(
                transaction_id=transaction_id,
                timestamp=comm["timestamp"],
                speaker=comm["speaker"],
                message=comm["message"],
                message_type=comm["message_type"],
            )
            for comm in communications
        ]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def list_communications(self, transaction_id: str) -> list[CallCommunication]:
        """List a transaction's transcript ordered by timestamp."""
        stmt = (
            select(CallCommunication)
            .where(CallCommunication.transaction_id == transaction_id)
            .order_by(asc(CallCommunication.timestamp))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_data_verified(
        self, transaction_id: str
    ) -> list[TransactionDataVerified]:
        """List a transaction's verified item tags."""
        stmt = select(TransactionDataVerified).where(
            TransactionDataVerified.transaction_id == transaction_id
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
