"""
SQLAlchemy models for the call interface tables.

These tables hold snapshots of call transactions for export to external
systems. They are copies, not references: transaction_id and patient_id
carry no foreign key, so a snapshot outlives its source transaction.
Coverage code and message rows cascade from their snapshot.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from benefitcheck.db.database import Base, new_id


class IfCallTransaction(Base):
    """
    Snapshot of a call transaction at spawn time.

    policy_number, group_number and subscriber_id are copied as encryption
    envelopes; nothing is decrypted on the way in.
    """

    __tablename__ = "if_call_transaction_list"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    # Source references (no FK constraints - independent copy)
    transaction_id: Mapped[str] = mapped_column(
        String(36), nullable=False, index=True, comment="Original transaction ID (no FK)"
    )
    request_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    patient_id: Mapped[str] = mapped_column(
        String(36), nullable=False, index=True, comment="Patient ID (no FK)"
    )
    patient_name: Mapped[str] = mapped_column(Text, nullable=False)

    insurance_provider: Mapped[str | None] = mapped_column(Text, nullable=True)
    policy_number: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    group_number: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    subscriber_id: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    phone_number: Mapped[str | None] = mapped_column(Text, nullable=True)

    start_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    insurance_rep: Mapped[str | None] = mapped_column(Text, nullable=True)
    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        index=True,
        comment="Record creation timestamp",
    )

    coverage_codes: Mapped[list["IfCallCoverageCode"]] = relationship(
        "IfCallCoverageCode",
        back_populates="snapshot",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    messages: Mapped[list["IfCallMessage"]] = relationship(
        "IfCallMessage",
        back_populates="snapshot",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return (
            f"<IfCallTransaction(id={self.id}, transaction_id={self.transaction_id}, "
            f"patient_id={self.patient_id}, status={self.status})>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "request_id": self.request_id,
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "insurance_provider": self.insurance_provider,
            "policy_number": self.policy_number,
            "group_number": self.group_number,
            "subscriber_id": self.subscriber_id,
            "phone_number": self.phone_number,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "status": self.status,
            "insurance_rep": self.insurance_rep,
            "transcript": self.transcript,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class IfCallCoverageCode(Base):
    """Coverage-by-code row copied into a snapshot."""

    __tablename__ = "if_call_coverage_code_list"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    if_call_transaction_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("if_call_transaction_list.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sai_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    ref_ins_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    pre_step_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    verified_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    coverage_data: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="JSON string of complete coverage data"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    snapshot: Mapped[IfCallTransaction] = relationship(
        IfCallTransaction, back_populates="coverage_codes"
    )

    __table_args__ = (Index("idx_if_call_coverage_code_verified", "verified"),)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "if_call_transaction_id": self.if_call_transaction_id,
            "sai_code": self.sai_code,
            "ref_ins_code": self.ref_ins_code,
            "category": self.category,
            "field_name": self.field_name,
            "pre_step_value": self.pre_step_value,
            "verified": self.verified,
            "verified_by": self.verified_by,
            "coverage_data": self.coverage_data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class IfCallMessage(Base):
    """Call communication copied into a snapshot."""

    __tablename__ = "if_call_message_list"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    if_call_transaction_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("if_call_transaction_list.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    timestamp: Mapped[str] = mapped_column(Text, nullable=False)
    speaker: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    snapshot: Mapped[IfCallTransaction] = relationship(
        IfCallTransaction, back_populates="messages"
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "if_call_transaction_id": self.if_call_transaction_id,
            "timestamp": self.timestamp,
            "speaker": self.speaker,
            "message": self.message,
            "message_type": self.message_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
