"""Tests for InterfaceRepository against a real database."""

from types import SimpleNamespace

import pytest
import pytest_asyncio

from benefitcheck.db.interface.repository import InterfaceRepository


@pytest.fixture
def interface_repository(session) -> InterfaceRepository:
    return InterfaceRepository(session)


@pytest_asyncio.fixture
async def snapshot(interface_repository, patient_repository, patient):
    snapshot = await interface_repository.create_snapshot(
        transaction_id="txn-call-1",
        request_id="REQ-2025-06-02T09-00-00-CALL",
        patient_id=patient.id,
        patient_name="Maria Lopez",
        status="Waiting",
    )
    coverage_rows = await patient_repository.list_coverage_by_code(patient.id)
    await interface_repository.add_coverage_codes(snapshot.id, coverage_rows)
    await interface_repository.add_messages(
        snapshot.id,
        [
            SimpleNamespace(
                timestamp="00:00:01",
                speaker="AI",
                message="Calling to verify benefits",
                message_type="question",
            ),
            SimpleNamespace(
                timestamp="00:00:04",
                speaker="InsuranceRep",
                message="Member is active",
                message_type="answer",
            ),
        ],
    )
    return snapshot


@pytest.mark.asyncio
async def test_api_verified_rows_are_marked_verified(interface_repository, snapshot):
    codes = await interface_repository.list_coverage_codes(snapshot_id=snapshot.id)

    by_code = {code.sai_code: code for code in codes}
    assert by_code["D0120"].verified is True
    assert by_code["D2740"].verified_by == "Manual"


@pytest.mark.asyncio
async def test_delete_coverage_code_keeps_snapshot(interface_repository, snapshot):
    [first, second] = await interface_repository.list_coverage_codes(snapshot_id=snapshot.id)

    assert await interface_repository.delete_coverage_code(first.id) is True
    assert await interface_repository.delete_coverage_code(first.id) is False

    remaining = await interface_repository.list_coverage_codes(snapshot_id=snapshot.id)
    assert [row.id for row in remaining] == [second.id]
    assert len(await interface_repository.list_snapshots(patient_id=snapshot.patient_id)) == 1


@pytest.mark.asyncio
async def test_delete_message_keeps_other_messages(interface_repository, snapshot):
    messages = await interface_repository.list_messages(snapshot_id=snapshot.id)

    assert await interface_repository.delete_message(messages[0].id) is True
    assert await interface_repository.delete_message("missing") is False

    remaining = await interface_repository.list_messages(snapshot_id=snapshot.id)
    assert [row.id for row in remaining] == [messages[1].id]


@pytest.mark.asyncio
async def test_delete_snapshot_removes_children(interface_repository, snapshot):
    assert await interface_repository.delete_snapshot(snapshot.id) is True

    assert await interface_repository.list_coverage_codes(snapshot_id=snapshot.id) == []
    assert await interface_repository.list_messages(snapshot_id=snapshot.id) == []
    assert await interface_repository.delete_snapshot(snapshot.id) is False
