"""
Transaction lifecycle and the follow-up work it triggers.

Status updates are compare-and-set: the update only lands if the stored
status is still the one the caller read. The API verification stage moving
into SUCCESS spawns a Call-stage transaction and snapshots it into the
interface tables. The spawn is never undone because of a failed snapshot;
that failure is reported on the result instead.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from benefitcheck.db.interface.repository import InterfaceRepository
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.db.transactions.constants import (
    CALL_TRANSACTION_METHOD,
    StageType,
    TransactionStatus,
)
from benefitcheck.db.transactions.model import Transaction
from benefitcheck.db.transactions.repository import (
    TransactionRepository,
    generate_request_id,
)
from benefitcheck.exceptions import (
    ConcurrentUpdateLostError,
    NotFoundError,
    ReplicationInconsistencyError,
)
from benefitcheck.pipeline.commands import (
    Command,
    ReplicateCallSnapshot,
    SpawnCallTransaction,
)
from benefitcheck.utils.logger import logger

PENDING_SUB_STATUS = "pending"
UNKNOWN_PROVIDER = "-"


def plan_follow_ups(
    transaction: Transaction,
    previous_status: TransactionStatus | str,
    new_status: TransactionStatus | str,
) -> list[Command]:
    """
    Work to do after a transaction moved from previous_status to new_status.

    Only an API verification transaction entering SUCCESS from any other
    status produces a follow-up.
    """
    previous = TransactionStatus(previous_status)
    new = TransactionStatus(new_status)
    if (
        transaction.stage_type == StageType.API_VERIFY.value
        and new == TransactionStatus.SUCCESS
        and previous != TransactionStatus.SUCCESS
    ):
        return [
            SpawnCallTransaction(
                source_transaction_id=transaction.id,
                patient_id=transaction.patient_id,
            )
        ]
    return []


@dataclass
class StatusUpdateResult:
    """Outcome of a status update and everything it triggered."""

    transaction: Transaction
    previous_status: str
    commands: list[Command] = field(default_factory=list)
    spawned_transactions: list[Transaction] = field(default_factory=list)
    inconsistencies: list[ReplicationInconsistencyError] = field(default_factory=list)


class PipelineOrchestrator:
    """Creates transactions and applies status changes with their follow-ups."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the orchestrator.

        Args:
            session: SQLAlchemy async session; the orchestrator commits its
                own unit of work
        """
        self.session = session
        self.transactions = TransactionRepository(session)
        self.patients = PatientRepository(session)
        self.interface = InterfaceRepository(session)

    async def create_transaction(
        self,
        patient_id: str,
        stage_type: StageType | str,
        status: TransactionStatus | str = TransactionStatus.WAITING,
        fields: dict[str, Any] | None = None,
        data_verified: list[str] | None = None,
        communications: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> Transaction:
        """
        Record a new verification attempt for a patient.

        The patient row is share-locked so a concurrent cascade deletion
        cannot remove the patient underneath the insert.

        Raises:
            NotFoundError: If the patient does not exist
        """
        try:
            transaction = await self._insert_transaction(
                patient_id,
                stage_type,
                status,
                fields=fields,
                data_verified=data_verified,
                communications=communications,
                request_id=request_id,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return transaction

    async def update_transaction_status(
        self,
        transaction_id: str,
        new_status: TransactionStatus | str,
        fields: dict[str, Any] | None = None,
        expected_status: TransactionStatus | str | None = None,
        data_verified: list[str] | None = None,
        communications: list[dict[str, Any]] | None = None,
    ) -> StatusUpdateResult:
        """
        Apply a status change and run the follow-ups it triggers.

        Args:
            transaction_id: Transaction ID
            new_status: Status to move to
            fields: Other transaction columns to write with the status
            expected_status: Status the caller last saw; defaults to the
                status read at the start of this call
            data_verified: Replacement verified item tags, if given
            communications: Replacement call transcript, if given

        Returns:
            StatusUpdateResult: Updated transaction, spawned transactions
                and any replication inconsistencies

        Raises:
            NotFoundError: If the transaction does not exist
            ConcurrentUpdateLostError: If the stored status no longer
                matches the expected status
        """
        new_status = TransactionStatus(new_status)
        try:
            transaction = await self.transactions.get_transaction(transaction_id)
            if transaction is None:
                raise NotFoundError(f"Transaction not found: {transaction_id}")

            previous_status = TransactionStatus(expected_status or transaction.status)
            won = await self.transactions.compare_and_set_status(
                transaction_id, previous_status, new_status, fields
            )
            if not won:
                raise ConcurrentUpdateLostError(transaction_id, previous_status.value)

            if data_verified is not None:
                await self.transactions.replace_data_verified(transaction_id, data_verified)
            if communications is not None:
                await self.transactions.replace_communications(
                    transaction_id, communications
                )

            result = StatusUpdateResult(
                transaction=transaction, previous_status=previous_status.value
            )
            queue: deque[Command] = deque(
                plan_follow_ups(transaction, previous_status, new_status)
            )
            while queue:
                command = queue.popleft()
                result.commands.append(command)
                queue.extend(await self._execute(command, result))

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return result

    async def _execute(self, command: Command, result: StatusUpdateResult) -> list[Command]:
        if isinstance(command, SpawnCallTransaction):
            return await self._spawn_call_transaction(command, result)
        if isinstance(command, ReplicateCallSnapshot):
            await self._replicate_call_snapshot(command, result)
            return []
        raise TypeError(f"Unknown command: {command!r}")

    async def _spawn_call_transaction(
        self, command: SpawnCallTransaction, result: StatusUpdateResult
    ) -> list[Command]:
        source = result.transaction
        call = await self._insert_transaction(
            command.patient_id,
            StageType.CALL,
            TransactionStatus.WAITING,
            request_id=generate_request_id(suffix=StageType.CALL.value),
            fields={
                "patient_name": source.patient_name,
                "method": CALL_TRANSACTION_METHOD,
                "start_time": None,
                "insurance_provider": source.insurance_provider or UNKNOWN_PROVIDER,
                "fetch_status": PENDING_SUB_STATUS,
                "save_status": PENDING_SUB_STATUS,
            },
        )
        result.spawned_transactions.append(call)

        logger.info(
            f"[PipelineOrchestrator] Spawned call transaction: id={call.id}",
            source_transaction_id=command.source_transaction_id,
            patient_id=command.patient_id,
        )
        return [
            ReplicateCallSnapshot(
                call_transaction_id=call.id,
                source_transaction_id=command.source_transaction_id,
                patient_id=command.patient_id,
            )
        ]

    async def _replicate_call_snapshot(
        self, command: ReplicateCallSnapshot, result: StatusUpdateResult
    ) -> None:
        try:
            async with self.session.begin_nested():
                await self._write_snapshot(command)
        except Exception as e:
            inconsistency = ReplicationInconsistencyError(
                command.call_transaction_id, command.source_transaction_id, e
            )
            result.inconsistencies.append(inconsistency)
            logger.exception(
                "[PipelineOrchestrator] Interface replication failed; call transaction kept",
                **inconsistency.to_dict(),
                patient_id=command.patient_id,
            )

    async def _write_snapshot(self, command: ReplicateCallSnapshot) -> None:
        call = await self.transactions.get_transaction(command.call_transaction_id)
        if call is None:
            raise NotFoundError(f"Transaction not found: {command.call_transaction_id}")

        # Identifiers are copied as stored; nothing is decrypted here
        insurance = await self.patients.get_primary_insurance(command.patient_id)
        snapshot = await self.interface.create_snapshot(
            transaction_id=call.id,
            request_id=call.request_id,
            patient_id=call.patient_id,
            patient_name=call.patient_name,
            insurance_provider=call.insurance_provider,
            policy_number=insurance.policy_number if insurance else None,
            group_number=insurance.group_number if insurance else None,
            subscriber_id=insurance.subscriber_id if insurance else None,
            phone_number=call.phone_number,
            start_time=call.start_time,
            end_time=call.end_time,
            duration=call.duration,
            status=call.status,
            insurance_rep=call.insurance_rep,
            transcript=call.transcript,
        )

        coverage_rows = await self.patients.list_coverage_by_code(command.patient_id)
        await self.interface.add_coverage_codes(snapshot.id, coverage_rows)

        communications = await self.transactions.list_communications(
            command.source_transaction_id
        )
        await self.interface.add_messages(snapshot.id, communications)

        logger.info(
            f"[PipelineOrchestrator] Replicated call transaction into interface: "
            f"snapshot_id={snapshot.id}",
            call_transaction_id=call.id,
            coverage_codes=len(coverage_rows),
            messages=len(communications),
        )

    async def _insert_transaction(
        self,
        patient_id: str,
        stage_type: StageType | str,
        status: TransactionStatus | str,
        fields: dict[str, Any] | None = None,
        data_verified: list[str] | None = None,
        communications: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> Transaction:
        patient = await self.patients.get_patient(patient_id, for_share=True)
        if patient is None:
            raise NotFoundError(f"Patient not found: {patient_id}")

        values = dict(fields or {})
        patient_name = values.pop("patient_name", None) or patient.display_name
        return await self.transactions.create_transaction(
            patient_id=patient_id,
            stage_type=stage_type,
            status=status,
            patient_name=patient_name,
            request_id=request_id,
            fields=values,
            data_verified=data_verified,
            communications=communications,
        )
