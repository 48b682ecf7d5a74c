"""
Patient deletion across every table that references a patient.

Interface snapshots carry no foreign key to their source rows, so the
database cannot cascade into them. The coordinator deletes everything
explicitly, children before parents, in one transaction.
"""

from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from benefitcheck.db.coverage.model import CoverageByCode, CoverageDetail, Procedure
from benefitcheck.db.interface.repository import InterfaceRepository
from benefitcheck.db.patients.model import (
    AiCallHistory,
    Appointment,
    Insurance,
    Patient,
    PatientAddress,
    PatientTelecom,
    Treatment,
    VerificationStatusRecord,
)
from benefitcheck.db.transactions.model import (
    CallCommunication,
    Transaction,
    TransactionDataVerified,
)
from benefitcheck.exceptions import NotFoundError
from benefitcheck.utils.logger import logger

# Leaf tables keyed directly by patient_id, deleted after transactions and coverage
PATIENT_SCOPED_TABLES = (
    CoverageByCode,
    AiCallHistory,
    VerificationStatusRecord,
    Treatment,
    Appointment,
    Insurance,
    PatientAddress,
    PatientTelecom,
)


@dataclass
class DeletionReport:
    """Row counts removed per table."""

    patient_id: str
    counts: dict[str, int] = field(default_factory=dict)

    def record(self, table: str, count: int) -> None:
        self.counts[table] = self.counts.get(table, 0) + max(count, 0)


class CascadeDeletionCoordinator:
    """Deletes a patient and everything recorded about them."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the coordinator.

        Args:
            session: SQLAlchemy async session; the coordinator owns its
                commit and rollback
        """
        self.session = session
        self.interface = InterfaceRepository(session)

    async def delete_patient(self, patient_id: str) -> DeletionReport:
        """
        Delete a patient and all dependent rows atomically.

        The patient row is locked first so no new transaction can be
        created for the patient while the deletion runs.

        Args:
            patient_id: Patient ID

        Returns:
            DeletionReport: Rows deleted per table

        Raises:
            NotFoundError: If the patient does not exist
        """
        report = DeletionReport(patient_id=patient_id)
        try:
            stmt = select(Patient).where(Patient.id == patient_id).with_for_update()
            patient = (await self.session.execute(stmt)).scalar_one_or_none()
            if patient is None:
                raise NotFoundError(f"Patient not found: {patient_id}")

            await self._delete_interface_snapshots(patient_id, report)
            await self._delete_transactions(patient_id, report)
            await self._delete_coverage(patient_id, report)
            await self._delete_patient_scoped(patient_id, report)

            result = await self.session.execute(
                delete(Patient).where(Patient.id == patient_id)
            )
            report.record(Patient.__tablename__, result.rowcount)

            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            if not isinstance(e, NotFoundError):
                logger.exception(
                    "[CascadeDeletionCoordinator] Patient deletion rolled back",
                    patient_id=patient_id,
                )
            raise

        logger.info(
            f"[CascadeDeletionCoordinator] Deleted patient: id={patient_id}",
            counts=report.counts,
        )
        return report

    async def _delete_interface_snapshots(
        self, patient_id: str, report: DeletionReport
    ) -> None:
        count = await self.interface.delete_patient_snapshots(patient_id)
        report.record("if_call_transaction_list", count)

    async def _delete_transactions(self, patient_id: str, report: DeletionReport) -> None:
        transaction_ids = select(Transaction.id).where(
            Transaction.patient_id == patient_id
        )
        result = await self.session.execute(
            delete(CallCommunication).where(
                CallCommunication.transaction_id.in_(transaction_ids)
            )
        )
        report.record(CallCommunication.__tablename__, result.rowcount)

        result = await self.session.execute(
            delete(TransactionDataVerified).where(
                TransactionDataVerified.transaction_id.in_(transaction_ids)
            )
        )
        report.record(TransactionDataVerified.__tablename__, result.rowcount)

        result = await self.session.execute(
            delete(Transaction).where(Transaction.patient_id == patient_id)
        )
        report.record(Transaction.__tablename__, result.rowcount)

    async def _delete_coverage(self, patient_id: str, report: DeletionReport) -> None:
        coverage_ids = select(CoverageDetail.id).where(
            CoverageDetail.patient_id == patient_id
        )
        result = await self.session.execute(
            delete(Procedure).where(Procedure.coverage_id.in_(coverage_ids))
        )
        report.record(Procedure.__tablename__, result.rowcount)

        result = await self.session.execute(
            delete(CoverageDetail).where(CoverageDetail.patient_id == patient_id)
        )
        report.record(CoverageDetail.__tablename__, result.rowcount)

    async def _delete_patient_scoped(
        self, patient_id: str, report: DeletionReport
    ) -> None:
        for model in PATIENT_SCOPED_TABLES:
            result = await self.session.execute(
                delete(model).where(model.patient_id == patient_id)
            )
            report.record(model.__tablename__, result.rowcount)
