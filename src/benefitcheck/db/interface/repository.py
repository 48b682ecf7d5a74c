"""
Repository for the call interface tables.

Snapshots are written by the pipeline orchestrator and read/pruned by the
admin interface screens. Deleting a snapshot always deletes its coverage
code and message rows with it.
"""

from collections.abc import Iterable
from typing import Any

from sqlalchemy import asc, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from benefitcheck.db.coverage.model import VERIFIED_BY_API, CoverageByCode
from benefitcheck.db.interface.model import (
    IfCallCoverageCode,
    IfCallMessage,
    IfCallTransaction,
)
from benefitcheck.db.transactions.model import CallCommunication
from benefitcheck.utils.logger import logger


class InterfaceRepository:
    """Repository for interface snapshot tables."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    # ========== Writes ==========

    async def create_snapshot(self, **values: Any) -> IfCallTransaction:
        """
        Create a call transaction snapshot.

        Args:
            **values: IfCallTransaction column values

        Returns:
            IfCallTransaction: Created snapshot
        """
        snapshot = IfCallTransaction(**values)
        self.session.add(snapshot)
        await self.session.flush()

        logger.info(
            f"[InterfaceRepository] Created snapshot: id={snapshot.id}, "
            f"transaction_id={snapshot.transaction_id}",
            patient_id=snapshot.patient_id,
        )
        return snapshot

    async def add_coverage_codes(
        self, snapshot_id: str, rows: Iterable[CoverageByCode]
    ) -> list[IfCallCoverageCode]:
        """
        Copy coverage-by-code rows under a snapshot.

        Rows verified by automated API verification are marked verified;
        every other row keeps its own flag.
        """
        copies = [
            IfCallCoverageCode(
                if_call_transaction_id=snapshot_id,
                sai_code=row.sai_code,
                ref_ins_code=row.ref_ins_code,
                category=row.category,
                field_name=row.field_name,
                pre_step_value=row.pre_step_value,
                verified=True if row.verified_by == VERIFIED_BY_API else row.verified,
                verified_by=row.verified_by,
                coverage_data=row.coverage_data,
            )
            for row in rows
        ]
        self.session.add_all(copies)
        await self.session.flush()
        return copies

    async def add_messages(
        self, snapshot_id: str, communications: Iterable[CallCommunication]
    ) -> list[IfCallMessage]:
        """Copy call communications under a snapshot."""
        copies = [
            IfCallMessage(
                if_call_transaction_id=snapshot_id,
                timestamp=comm.timestamp,
                speaker=comm.speaker,
                message=comm.message,
                message_type=comm.message_type,
            )
            for comm in communications
        ]
        self.session.add_all(copies)
        await self.session.flush()
        return copies

    # ========== Reads ==========

    async def list_snapshots(
        self,
        patient_id: str | None = None,
        transaction_id: str | None = None,
    ) -> list[IfCallTransaction]:
        """
        List snapshots, oldest first.

        Args:
            patient_id: Filter by patient ID (optional)
            transaction_id: Filter by source transaction ID (optional)

        Returns:
            list[IfCallTransaction]: Matching snapshots
        """
        stmt = select(IfCallTransaction).order_by(asc(IfCallTransaction.created_at))
        if patient_id:
            stmt = stmt.where(IfCallTransaction.patient_id == patient_id)
        if transaction_id:
            stmt = stmt.where(IfCallTransaction.transaction_id == transaction_id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_coverage_codes(
        self, snapshot_id: str | None = None
    ) -> list[IfCallCoverageCode]:
        stmt = select(IfCallCoverageCode).order_by(asc(IfCallCoverageCode.created_at))
        if snapshot_id:
            stmt = stmt.where(IfCallCoverageCode.if_call_transaction_id == snapshot_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_messages(self, snapshot_id: str | None = None) -> list[IfCallMessage]:
        stmt = select(IfCallMessage).order_by(asc(IfCallMessage.created_at))
        if snapshot_id:
            stmt = stmt.where(IfCallMessage.if_call_transaction_id == snapshot_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ========== Deletes ==========

    async def _delete_children(self, snapshot_ids: list[str]) -> None:
        if not snapshot_ids:
            return
        await self.session.execute(
            delete(IfCallMessage).where(
                IfCallMessage.if_call_transaction_id.in_(snapshot_ids)
            )
        )
        await self.session.execute(
            delete(IfCallCoverageCode).where(
                IfCallCoverageCode.if_call_transaction_id.in_(snapshot_ids)
            )
        )

    async def delete_snapshot(self, snapshot_id: str) -> bool:
        """
        Delete a snapshot together with its coverage codes and messages.

        Returns:
            bool: True if a snapshot was deleted
        """
        await self._delete_children([snapshot_id])
        result = await self.session.execute(
            delete(IfCallTransaction).where(IfCallTransaction.id == snapshot_id)
        )
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"[InterfaceRepository] Deleted snapshot: id={snapshot_id}")
        return deleted

    async def delete_patient_snapshots(self, patient_id: str) -> int:
        """
        Delete every snapshot (and its children) recorded for a patient.

        Returns:
            int: Number of snapshots deleted
        """
        stmt = select(IfCallTransaction.id).where(
            IfCallTransaction.patient_id == patient_id
        )
        snapshot_ids = list((await self.session.execute(stmt)).scalars().all())
        await self._delete_children(snapshot_ids)
        result = await self.session.execute(
            delete(IfCallTransaction).where(IfCallTransaction.patient_id == patient_id)
        )
        return result.rowcount

    async def delete_coverage_code(self, coverage_code_id: str) -> bool:
        """Delete a single coverage code row from a snapshot."""
        result = await self.session.execute(
            delete(IfCallCoverageCode).where(IfCallCoverageCode.id == coverage_code_id)
        )
        deleted = result.rowcount > 0
        if deleted:
            logger.info(
                f"[InterfaceRepository] Deleted coverage code: id={coverage_code_id}"
            )
        return deleted

    async def delete_message(self, message_id: str) -> bool:
        """Delete a single transcript message from a snapshot."""
        result = await self.session.execute(
            delete(IfCallMessage).where(IfCallMessage.id == message_id)
        )
        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"[InterfaceRepository] Deleted message: id={message_id}")
        return deleted
