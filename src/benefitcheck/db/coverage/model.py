"""
SQLAlchemy models for coverage data.

coverage_details owns procedures; coverage_by_code rows are the per-code
benefit breakdown that gets copied into the interface tables when a call
transaction is spawned.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from benefitcheck.db.database import Base, new_id

# verified_by marker written by automated eligibility verification
VERIFIED_BY_API = "API"


class CoverageDetail(Base):
    __tablename__ = "coverage_details"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    annual_maximum: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    annual_used: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    deductible: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    deductible_met: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)


class Procedure(Base):
    __tablename__ = "procedures"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    coverage_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("coverage_details.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        Text, nullable=False, comment="'Preventive' | 'Basic' | 'Major' | 'Orthodontic'"
    )
    coverage: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimated_cost: Mapped[str | None] = mapped_column(Text, nullable=True)
    patient_pays: Mapped[str | None] = mapped_column(Text, nullable=True)


class CoverageByCode(Base):
    """Benefit breakdown per procedure code for a patient."""

    __tablename__ = "coverage_by_code"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    patient_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    sai_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    ref_ins_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    pre_step_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    verified: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    verified_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    coverage_data: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="JSON string of complete coverage data"
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
