"""
SQLAlchemy models for patients and their directly owned collections.

Columns holding sensitive values store encryption envelopes, never
plaintext; see benefitcheck.sensitive for how they are written and read.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from benefitcheck.db.database import Base, new_id


def _patient_fk() -> Any:
    return ForeignKey("patients.id", ondelete="CASCADE")


class Patient(Base):
    """
    Patient record owned by a single user.

    birth_date and ssn hold encryption envelopes.
    """

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    user_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Owning user ID"
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    given_name: Mapped[str] = mapped_column(Text, nullable=False)
    family_name: Mapped[str] = mapped_column(Text, nullable=False)
    gender: Mapped[str | None] = mapped_column(Text, nullable=True)

    birth_date: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    ssn: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )

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

    @property
    def display_name(self) -> str:
        return f"{self.given_name} {self.family_name}".strip()

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, user_id={self.user_id})>"


class PatientTelecom(Base):
    """Phone number or email address; value holds an encryption envelope."""

    __tablename__ = "patient_telecoms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36), _patient_fk(), nullable=False, index=True
    )
    system: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="'phone' | 'email'"
    )
    value: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )


class PatientAddress(Base):
    """Postal address; street lines hold encryption envelopes."""

    __tablename__ = "patient_addresses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36), _patient_fk(), nullable=False, index=True
    )
    line1: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    line2: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    city: Mapped[str | None] = mapped_column(Text, nullable=True)
    state: Mapped[str | None] = mapped_column(Text, nullable=True)
    postal_code: Mapped[str | None] = mapped_column(Text, nullable=True)


class Insurance(Base):
    """Insurance policy; policy, group and subscriber identifiers are encrypted."""

    __tablename__ = "insurances"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36), _patient_fk(), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="'Primary' | 'Secondary'"
    )
    provider: Mapped[str] = mapped_column(Text, nullable=False)
    policy_number: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    group_number: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    subscriber_id: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Encrypted - HIPAA sensitive"
    )
    subscriber_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    relationship: Mapped[str | None] = mapped_column(Text, nullable=True)
    effective_date: Mapped[str | None] = mapped_column(Text, nullable=True)
    expiration_date: Mapped[str | None] = mapped_column(Text, nullable=True)
    deductible: Mapped[str | None] = mapped_column(Text, nullable=True)
    deductible_met: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_benefit: Mapped[str | None] = mapped_column(Text, nullable=True)
    preventive_coverage: Mapped[str | None] = mapped_column(Text, nullable=True)
    basic_coverage: Mapped[str | None] = mapped_column(Text, nullable=True)
    major_coverage: Mapped[str | None] = mapped_column(Text, nullable=True)


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36), _patient_fk(), nullable=False, index=True
    )
    date: Mapped[str] = mapped_column(Text, nullable=False)
    time: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="'scheduled' | 'completed' | 'cancelled'"
    )
    provider: Mapped[str | None] = mapped_column(Text, nullable=True)


class Treatment(Base):
    __tablename__ = "treatments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36), _patient_fk(), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(Text, nullable=False)
    cost: Mapped[str | None] = mapped_column(Text, nullable=True)


class AiCallHistory(Base):
    """Summary rows for past AI calls shown on the patient page."""

    __tablename__ = "ai_call_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36), _patient_fk(), nullable=False, index=True
    )
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(Text, nullable=False)
    time: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[str | None] = mapped_column(Text, nullable=True)
    agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="'completed' | 'in_progress'"
    )


class VerificationStatusRecord(Base):
    """
    Stored, hand-edited verification status.

    Authoritative only while data mode is off; with data mode on the status
    is derived from the transaction log instead.
    """

    __tablename__ = "verification_statuses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36), _patient_fk(), nullable=False, unique=True
    )
    fetch_pms: Mapped[str] = mapped_column(String(20), nullable=False)
    document_analysis: Mapped[str] = mapped_column(String(20), nullable=False)
    api_verification: Mapped[str] = mapped_column(String(20), nullable=False)
    call_center: Mapped[str] = mapped_column(String(20), nullable=False)
    save_to_pms: Mapped[str] = mapped_column(String(20), nullable=False)
