"""
SQLAlchemy models for the verification transaction log.

Each row is one verification attempt for a patient. Transactions are
never deleted one by one; they go away only with their patient.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from benefitcheck.db.database import Base, new_id


class Transaction(Base):
    """
    One verification attempt at a single pipeline stage.

    start_time is NULL until the attempt actually begins (spawned call
    transactions start out that way).
    """

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    request_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True, comment="Human-readable request ID"
    )
    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    stage_type: Mapped[str] = mapped_column(
        String(10), nullable=False, comment="FETCH | API | FAX | CALL | SAVE"
    )
    method: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True, comment="Waiting | SUCCESS | PARTIAL | FAILED"
    )

    start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="NULL until started"
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration: Mapped[str | None] = mapped_column(Text, nullable=True)

    patient_name: Mapped[str] = mapped_column(Text, nullable=False)
    insurance_provider: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_rep: Mapped[str | None] = mapped_column(Text, nullable=True)
    run_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    verification_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fetch_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    save_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    endpoint: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Opaque results from eligibility/OCR integrations
    eligibility_check: Mapped[str | None] = mapped_column(Text, nullable=True)
    benefits_verification: Mapped[str | None] = mapped_column(Text, nullable=True)
    coverage_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    deductible_info: Mapped[str | None] = mapped_column(Text, nullable=True)
    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)
    raw_response: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Record creation timestamp",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        comment="Record last update timestamp",
    )

    __table_args__ = (
        # Status derivation reads a patient's log ordered by start time
        Index("idx_transactions_patient_start", "patient_id", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, request_id={self.request_id}, "
            f"stage_type={self.stage_type}, status={self.status})>"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model to dictionary representation.

        Returns:
            dict: Dictionary with all transaction data
        """
        data: dict[str, Any] = {
            column.name: getattr(self, column.key) for column in self.__table__.columns
        }
        for key in ("start_time", "end_time", "created_at", "updated_at"):
            value = data.get(key)
            data[key] = value.isoformat() if value else None
        return data


class CallCommunication(Base):
    """One message in a transaction's call transcript."""

    __tablename__ = "call_communications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    transaction_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    timestamp: Mapped[str] = mapped_column(Text, nullable=False)
    speaker: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="'AI' | 'InsuranceRep' | 'System'"
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="question | answer | confirmation | hold | transfer | note",
    )


class TransactionDataVerified(Base):
    """Marker for a data item a transaction confirmed."""

    __tablename__ = "transaction_data_verified"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    transaction_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item: Mapped[str] = mapped_column(Text, nullable=False)
