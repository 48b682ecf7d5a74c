"""
Tests for PipelineOrchestrator.

Covers the call transaction spawn on API verification success, its
interface snapshot, and compare-and-set protection against double spawns.
"""

from datetime import UTC, datetime

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from benefitcheck.db.interface.model import (
    IfCallCoverageCode,
    IfCallMessage,
    IfCallTransaction,
)
from benefitcheck.db.interface.repository import InterfaceRepository
from benefitcheck.db.transactions.constants import (
    CALL_TRANSACTION_METHOD,
    StageType,
    TransactionStatus,
)
from benefitcheck.db.transactions.model import Transaction
from benefitcheck.db.transactions.repository import TransactionRepository
from benefitcheck.exceptions import (
    ConcurrentUpdateLostError,
    NotFoundError,
    ReplicationInconsistencyError,
)
from benefitcheck.pipeline.commands import SpawnCallTransaction
from benefitcheck.pipeline.orchestrator import PipelineOrchestrator, plan_follow_ups

COMMUNICATIONS = [
    {
        "timestamp": "00:00:05",
        "speaker": "System",
        "message": "Dialing",
        "message_type": "note",
    },
    {
        "timestamp": "00:00:12",
        "speaker": "AI",
        "message": "Is the policy active?",
        "message_type": "question",
    },
    {
        "timestamp": "00:00:20",
        "speaker": "InsuranceRep",
        "message": "Yes",
        "message_type": "answer",
    },
]


@pytest.fixture
def orchestrator(session):
    return PipelineOrchestrator(session)


@pytest_asyncio.fixture
async def api_transaction(orchestrator, patient):
    return await orchestrator.create_transaction(
        patient.id,
        StageType.API_VERIFY,
        TransactionStatus.WAITING,
        fields={
            "start_time": datetime(2025, 6, 2, 9, 0, tzinfo=UTC),
            "insurance_provider": "Delta Dental",
            "method": "Eligibility API",
        },
        communications=COMMUNICATIONS,
    )


async def _count(session_factory, model, *criteria) -> int:
    async with session_factory() as fresh:
        stmt = select(func.count()).select_from(model)
        for criterion in criteria:
            stmt = stmt.where(criterion)
        return (await fresh.execute(stmt)).scalar_one()


# plan_follow_ups


@pytest.mark.parametrize(
    ("stage", "previous", "new", "spawns"),
    [
        (StageType.API_VERIFY, TransactionStatus.WAITING, TransactionStatus.SUCCESS, True),
        (StageType.API_VERIFY, TransactionStatus.PARTIAL, TransactionStatus.SUCCESS, True),
        (StageType.API_VERIFY, TransactionStatus.FAILED, TransactionStatus.SUCCESS, True),
        (StageType.API_VERIFY, TransactionStatus.SUCCESS, TransactionStatus.SUCCESS, False),
        (StageType.API_VERIFY, TransactionStatus.WAITING, TransactionStatus.PARTIAL, False),
        (StageType.DOCUMENT_FAX, TransactionStatus.WAITING, TransactionStatus.SUCCESS, False),
        (StageType.CALL, TransactionStatus.WAITING, TransactionStatus.SUCCESS, False),
    ],
)
def test_plan_follow_ups(stage, previous, new, spawns):
    transaction = Transaction(id="txn-1", patient_id="patient-1", stage_type=stage.value)

    commands = plan_follow_ups(transaction, previous, new)

    if spawns:
        assert commands == [
            SpawnCallTransaction(source_transaction_id="txn-1", patient_id="patient-1")
        ]
    else:
        assert commands == []


# Spawn


@pytest.mark.asyncio
async def test_api_success_spawns_one_call_transaction(orchestrator, api_transaction, patient):
    result = await orchestrator.update_transaction_status(
        api_transaction.id, TransactionStatus.SUCCESS
    )

    assert result.transaction.status == TransactionStatus.SUCCESS.value
    assert result.previous_status == TransactionStatus.WAITING.value
    assert result.inconsistencies == []
    assert len(result.spawned_transactions) == 1

    call = result.spawned_transactions[0]
    assert call.stage_type == StageType.CALL.value
    assert call.status == TransactionStatus.WAITING.value
    assert call.start_time is None
    assert call.method == CALL_TRANSACTION_METHOD
    assert call.patient_id == patient.id
    assert call.patient_name == api_transaction.patient_name == "Maria Lopez"
    assert call.insurance_provider == "Delta Dental"
    assert call.fetch_status == "pending"
    assert call.save_status == "pending"
    assert call.request_id.startswith("REQ-") and call.request_id.endswith("-CALL")


@pytest.mark.asyncio
async def test_repeated_success_update_does_not_spawn_again(
    orchestrator, api_transaction, session_factory
):
    await orchestrator.update_transaction_status(api_transaction.id, TransactionStatus.SUCCESS)
    second = await orchestrator.update_transaction_status(
        api_transaction.id, TransactionStatus.SUCCESS
    )

    assert second.spawned_transactions == []
    assert second.commands == []
    assert await _count(session_factory, Transaction, Transaction.stage_type == "CALL") == 1


@pytest.mark.asyncio
async def test_stale_duplicate_update_loses_compare_and_set(
    orchestrator, api_transaction, session_factory
):
    transaction_id = api_transaction.id

    # Both callers read Waiting; only the first may fire the transition
    await orchestrator.update_transaction_status(
        transaction_id,
        TransactionStatus.SUCCESS,
        expected_status=TransactionStatus.WAITING,
    )
    with pytest.raises(ConcurrentUpdateLostError) as exc_info:
        await orchestrator.update_transaction_status(
            transaction_id,
            TransactionStatus.SUCCESS,
            expected_status=TransactionStatus.WAITING,
        )

    assert exc_info.value.transaction_id == transaction_id
    assert await _count(session_factory, Transaction, Transaction.stage_type == "CALL") == 1
    assert await _count(session_factory, IfCallTransaction) == 1


@pytest.mark.asyncio
async def test_success_created_directly_does_not_spawn(orchestrator, patient, session_factory):
    await orchestrator.create_transaction(
        patient.id, StageType.API_VERIFY, TransactionStatus.SUCCESS
    )

    assert await _count(session_factory, Transaction, Transaction.stage_type == "CALL") == 0


@pytest.mark.asyncio
async def test_missing_provider_falls_back_to_dash(orchestrator, patient):
    source = await orchestrator.create_transaction(
        patient.id, StageType.API_VERIFY, TransactionStatus.WAITING
    )

    result = await orchestrator.update_transaction_status(source.id, TransactionStatus.SUCCESS)

    assert result.spawned_transactions[0].insurance_provider == "-"


# Replication


@pytest.mark.asyncio
async def test_snapshot_copies_encrypted_identifiers(
    orchestrator, api_transaction, patient, patient_repository, session, crypto
):
    result = await orchestrator.update_transaction_status(
        api_transaction.id, TransactionStatus.SUCCESS
    )
    call = result.spawned_transactions[0]

    snapshots = await InterfaceRepository(session).list_snapshots(transaction_id=call.id)
    assert len(snapshots) == 1
    snapshot = snapshots[0]

    insurance = await patient_repository.get_primary_insurance(patient.id)
    assert snapshot.policy_number == insurance.policy_number
    assert snapshot.group_number == insurance.group_number
    assert snapshot.subscriber_id == insurance.subscriber_id
    assert "POL-998877" not in snapshot.policy_number
    assert crypto.decrypt(snapshot.policy_number) == "POL-998877"

    assert snapshot.request_id == call.request_id
    assert snapshot.patient_id == patient.id
    assert snapshot.status == TransactionStatus.WAITING.value
    assert snapshot.start_time is None


@pytest.mark.asyncio
async def test_snapshot_copies_coverage_codes_with_verified_rule(
    orchestrator, api_transaction, session
):
    result = await orchestrator.update_transaction_status(
        api_transaction.id, TransactionStatus.SUCCESS
    )
    interface = InterfaceRepository(session)
    snapshot = (
        await interface.list_snapshots(transaction_id=result.spawned_transactions[0].id)
    )[0]

    codes = {code.sai_code: code for code in await interface.list_coverage_codes(snapshot.id)}

    assert set(codes) == {"D0120", "D2740"}
    assert codes["D0120"].verified is True
    assert codes["D2740"].verified is False
    assert codes["D2740"].verified_by == "Manual"


@pytest.mark.asyncio
async def test_snapshot_copies_source_transcript(orchestrator, api_transaction, session):
    result = await orchestrator.update_transaction_status(
        api_transaction.id, TransactionStatus.SUCCESS
    )
    interface = InterfaceRepository(session)
    snapshot = (
        await interface.list_snapshots(transaction_id=result.spawned_transactions[0].id)
    )[0]

    messages = await interface.list_messages(snapshot.id)

    assert sorted((m.timestamp, m.speaker, m.message, m.message_type) for m in messages) == [
        (c["timestamp"], c["speaker"], c["message"], c["message_type"]) for c in COMMUNICATIONS
    ]


@pytest.mark.asyncio
async def test_replication_failure_keeps_spawn_and_reports_inconsistency(
    orchestrator, api_transaction, session_factory, monkeypatch
):
    async def broken_add_messages(*args, **kwargs):
        raise RuntimeError("interface store unavailable")

    monkeypatch.setattr(orchestrator.interface, "add_messages", broken_add_messages)

    result = await orchestrator.update_transaction_status(
        api_transaction.id, TransactionStatus.SUCCESS
    )

    assert result.transaction.status == TransactionStatus.SUCCESS.value
    assert len(result.spawned_transactions) == 1
    assert len(result.inconsistencies) == 1

    inconsistency = result.inconsistencies[0]
    assert isinstance(inconsistency, ReplicationInconsistencyError)
    assert inconsistency.call_transaction_id == result.spawned_transactions[0].id
    assert inconsistency.source_transaction_id == api_transaction.id
    assert isinstance(inconsistency.original_error, RuntimeError)

    # Spawn committed, partial snapshot rolled back
    assert await _count(session_factory, Transaction, Transaction.stage_type == "CALL") == 1
    assert await _count(session_factory, IfCallTransaction) == 0
    assert await _count(session_factory, IfCallCoverageCode) == 0
    assert await _count(session_factory, IfCallMessage) == 0


# Updates


@pytest.mark.asyncio
async def test_update_replaces_verified_items_and_transcript(
    orchestrator, api_transaction, session
):
    await orchestrator.update_transaction_status(
        api_transaction.id,
        TransactionStatus.PARTIAL,
        fields={"verification_score": 80, "response_code": "200"},
        data_verified=["Eligibility", "Deductible"],
        communications=COMMUNICATIONS[:1],
    )
    repository = TransactionRepository(session)

    transaction = await repository.get_transaction(api_transaction.id)
    verified = await repository.list_data_verified(api_transaction.id)
    communications = await repository.list_communications(api_transaction.id)

    assert transaction.status == TransactionStatus.PARTIAL.value
    assert transaction.verification_score == 80
    assert sorted(row.item for row in verified) == ["Deductible", "Eligibility"]
    assert [c.message for c in communications] == ["Dialing"]


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(orchestrator, api_transaction):
    transaction_id = api_transaction.id

    with pytest.raises(ValueError):
        await orchestrator.update_transaction_status(
            transaction_id, TransactionStatus.FAILED, fields={"patient_id": "someone-else"}
        )


@pytest.mark.asyncio
async def test_update_missing_transaction(orchestrator, patient):
    with pytest.raises(NotFoundError):
        await orchestrator.update_transaction_status("missing", TransactionStatus.SUCCESS)


@pytest.mark.asyncio
async def test_create_for_missing_patient(orchestrator, patient):
    with pytest.raises(NotFoundError):
        await orchestrator.create_transaction(
            "missing", StageType.FETCH, TransactionStatus.WAITING
        )
