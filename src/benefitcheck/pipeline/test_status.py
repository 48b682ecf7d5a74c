"""Tests for verification status derivation."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from benefitcheck.db.transactions.constants import StageType, TransactionStatus
from benefitcheck.db.transactions.repository import TransactionRepository
from benefitcheck.pipeline.status import (
    StageState,
    VerificationStatus,
    VerificationStatusService,
    derive_verification_status,
)

T0 = datetime(2025, 6, 2, 9, 0, tzinfo=UTC)

PENDING = StageState.PENDING
IN_PROGRESS = StageState.IN_PROGRESS
COMPLETED = StageState.COMPLETED


@dataclass
class Txn:
    stage_type: str
    status: str
    start_time: datetime | None


def txn(stage: StageType, status: TransactionStatus, minutes: int | None) -> Txn:
    start = None if minutes is None else T0 + timedelta(minutes=minutes)
    return Txn(stage.value, status.value, start)


def test_no_transactions_is_all_pending():
    assert derive_verification_status([]) == VerificationStatus()


def test_fetch_success_then_api_waiting():
    status = derive_verification_status(
        [
            txn(StageType.FETCH, TransactionStatus.SUCCESS, 0),
            txn(StageType.API_VERIFY, TransactionStatus.WAITING, 5),
        ]
    )

    assert status == VerificationStatus(
        fetch_pms=COMPLETED,
        api_verification=IN_PROGRESS,
        document_analysis=PENDING,
        call_center=PENDING,
        save_to_pms=PENDING,
    )


def test_fetch_waiting_only_marks_itself():
    status = derive_verification_status([txn(StageType.FETCH, TransactionStatus.WAITING, 0)])

    assert status == VerificationStatus(fetch_pms=IN_PROGRESS)


def test_waiting_call_completes_every_earlier_stage():
    status = derive_verification_status([txn(StageType.CALL, TransactionStatus.WAITING, 0)])

    assert status.fetch_pms == COMPLETED
    assert status.api_verification == COMPLETED
    assert status.document_analysis == COMPLETED
    assert status.call_center == IN_PROGRESS
    assert status.save_to_pms == PENDING


@pytest.mark.parametrize("done", [TransactionStatus.SUCCESS, TransactionStatus.PARTIAL])
def test_success_and_partial_complete_the_stage(done):
    status = derive_verification_status([txn(StageType.SAVE, done, 0)])

    assert status == VerificationStatus(
        fetch_pms=COMPLETED,
        api_verification=COMPLETED,
        document_analysis=COMPLETED,
        call_center=COMPLETED,
        save_to_pms=COMPLETED,
    )


def test_failed_changes_nothing():
    status = derive_verification_status(
        [
            txn(StageType.FETCH, TransactionStatus.SUCCESS, 0),
            txn(StageType.DOCUMENT_FAX, TransactionStatus.FAILED, 5),
        ]
    )

    assert status == VerificationStatus(fetch_pms=COMPLETED)


def test_transactions_are_applied_in_start_time_order():
    # Given newest first; the older Waiting must not win over the newer SUCCESS
    status = derive_verification_status(
        [
            txn(StageType.API_VERIFY, TransactionStatus.SUCCESS, 10),
            txn(StageType.API_VERIFY, TransactionStatus.WAITING, 0),
        ]
    )

    assert status.api_verification == COMPLETED


def test_unstarted_transactions_are_applied_last():
    status = derive_verification_status(
        [
            txn(StageType.CALL, TransactionStatus.WAITING, None),
            txn(StageType.CALL, TransactionStatus.SUCCESS, 0),
        ]
    )

    assert status.call_center == IN_PROGRESS


def test_naive_and_aware_start_times_sort_together():
    naive = Txn(
        StageType.API_VERIFY.value,
        TransactionStatus.WAITING.value,
        datetime(2025, 6, 2, 9, 30),
    )
    aware = txn(StageType.API_VERIFY, TransactionStatus.SUCCESS, 0)

    assert derive_verification_status([naive, aware]).api_verification == IN_PROGRESS


# A retry opened after a completed attempt: the two readings of the log differ

REGRESSION_LOG = [
    txn(StageType.FETCH, TransactionStatus.SUCCESS, 0),
    txn(StageType.API_VERIFY, TransactionStatus.SUCCESS, 5),
    txn(StageType.API_VERIFY, TransactionStatus.WAITING, 10),
]


def test_last_write_wins_lets_a_stage_regress():
    status = derive_verification_status(REGRESSION_LOG)

    assert status.fetch_pms == COMPLETED
    assert status.api_verification == IN_PROGRESS


def test_monotonic_never_regresses_a_stage():
    status = derive_verification_status(REGRESSION_LOG, monotonic=True)

    assert status.fetch_pms == COMPLETED
    assert status.api_verification == COMPLETED


def test_monotonic_still_advances():
    status = derive_verification_status(
        [
            txn(StageType.FETCH, TransactionStatus.WAITING, 0),
            txn(StageType.FETCH, TransactionStatus.SUCCESS, 5),
            txn(StageType.API_VERIFY, TransactionStatus.WAITING, 10),
        ],
        monotonic=True,
    )

    assert status.fetch_pms == COMPLETED
    assert status.api_verification == IN_PROGRESS


# Dual-mode service


@pytest.fixture
def status_service(session, patient_repository):
    return VerificationStatusService(TransactionRepository(session), patient_repository)


@pytest.mark.asyncio
async def test_data_mode_off_without_record_is_all_pending(status_service, patient):
    assert await status_service.get_status(patient.id, data_mode=False) == VerificationStatus()


@pytest.mark.asyncio
async def test_data_mode_off_returns_stored_status(status_service, patient, session):
    stored = VerificationStatus(fetch_pms=COMPLETED, call_center=IN_PROGRESS)
    await status_service.update_stored_status(patient.id, stored)
    await session.commit()

    assert await status_service.get_status(patient.id, data_mode=False) == stored


@pytest.mark.asyncio
async def test_data_mode_on_derives_from_transactions(status_service, patient, session):
    repository = TransactionRepository(session)
    await repository.create_transaction(
        patient.id,
        StageType.FETCH,
        TransactionStatus.SUCCESS,
        patient.display_name,
        fields={"start_time": T0},
    )
    await repository.create_transaction(
        patient.id,
        StageType.API_VERIFY,
        TransactionStatus.WAITING,
        patient.display_name,
        fields={"start_time": T0 + timedelta(minutes=1)},
    )
    # Stored record disagrees and must be ignored
    await status_service.update_stored_status(
        patient.id, VerificationStatus(save_to_pms=COMPLETED)
    )
    await session.commit()

    status = await status_service.get_status(patient.id, data_mode=True)

    assert status == VerificationStatus(fetch_pms=COMPLETED, api_verification=IN_PROGRESS)
