"""Tests for RevealService against a real database."""

import logging

import pytest

from benefitcheck.auth.constants import Role
from benefitcheck.auth.schemas import User
from benefitcheck.conftest import OTHER_USER_ID, OWNER_ID
from benefitcheck.exceptions import (
    AccessDeniedError,
    AuthenticationFailureError,
    NotFoundError,
    UnsupportedFieldError,
)
from benefitcheck.sensitive.service import RevealService

OWNER = User(id=OWNER_ID)
STRANGER = User(id=OTHER_USER_ID)
ADMIN = User(id="admin-1", role=Role.ADMIN)


@pytest.fixture
def reveal_service(patient_repository, store):
    return RevealService(patient_repository, store)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("field_name", "expected"),
    [
        ("birth_date", "1985-03-22"),
        ("ssn", "123-45-6789"),
        ("phone", "(555) 123-4567"),
        ("email", "maria@example.com"),
        ("address", "742 Evergreen Terrace, Apt 2, Springfield, IL 62704"),
        ("policy_number", "POL-998877"),
        ("group_number", "GRP-1234"),
        ("subscriber_id", "SUB-5555"),
    ],
)
async def test_owner_can_reveal_each_field(reveal_service, patient, field_name, expected):
    value = await reveal_service.reveal_field(patient.id, field_name, OWNER)

    assert value == expected


@pytest.mark.asyncio
async def test_admin_can_reveal_any_patient(reveal_service, patient):
    assert await reveal_service.reveal_field(patient.id, "ssn", ADMIN) == "123-45-6789"


@pytest.mark.asyncio
async def test_stored_columns_are_not_plaintext(patient):
    assert patient.ssn and "123-45-6789" not in patient.ssn
    assert patient.birth_date and "1985-03-22" not in patient.birth_date


@pytest.mark.asyncio
async def test_non_owner_is_denied(reveal_service, patient):
    with pytest.raises(AccessDeniedError):
        await reveal_service.reveal_field(patient.id, "ssn", STRANGER)


@pytest.mark.asyncio
async def test_non_owner_is_denied_for_missing_patient(reveal_service, patient):
    with pytest.raises(AccessDeniedError):
        await reveal_service.reveal_field("no-such-patient", "ssn", STRANGER)


@pytest.mark.asyncio
async def test_admin_gets_not_found_for_missing_patient(reveal_service, patient):
    with pytest.raises(NotFoundError):
        await reveal_service.reveal_field("no-such-patient", "ssn", ADMIN)


@pytest.mark.asyncio
async def test_unsupported_field(reveal_service, patient):
    with pytest.raises(UnsupportedFieldError):
        await reveal_service.reveal_field(patient.id, "given_name", OWNER)


@pytest.mark.asyncio
async def test_unknown_insurance_is_not_found(reveal_service, patient):
    with pytest.raises(NotFoundError):
        await reveal_service.reveal_field(
            patient.id, "policy_number", OWNER, insurance_id="missing"
        )


@pytest.mark.asyncio
async def test_corrupt_envelope_fails_authentication(reveal_service, patient, session):
    patient.ssn = patient.ssn[:-4] + "AAAA"
    await session.flush()

    with pytest.raises(AuthenticationFailureError):
        await reveal_service.reveal_field(patient.id, "ssn", OWNER)


@pytest.mark.asyncio
async def test_overwrite_reencrypts(reveal_service, patient, patient_repository):
    old_envelope = patient.ssn
    await patient_repository.update_sensitive_field(patient, "ssn", "987-65-4321")

    assert patient.ssn != old_envelope
    assert await reveal_service.reveal_field(patient.id, "ssn", OWNER) == "987-65-4321"


@pytest.mark.asyncio
async def test_reveal_is_audited_without_value(reveal_service, patient, caplog):
    caplog.set_level(logging.INFO, logger="benefitcheck")

    await reveal_service.reveal_field(patient.id, "ssn", OWNER)

    audit = [r for r in caplog.records if getattr(r, "audit", False)]
    assert len(audit) == 1
    assert audit[0].outcome == "revealed"
    assert audit[0].field == "ssn"
    assert audit[0].requester_id == OWNER_ID
    assert "123-45-6789" not in caplog.text


@pytest.mark.asyncio
async def test_denied_reveal_is_audited(reveal_service, patient, caplog):
    caplog.set_level(logging.INFO, logger="benefitcheck")

    with pytest.raises(AccessDeniedError):
        await reveal_service.reveal_field(patient.id, "ssn", STRANGER)

    audit = [r for r in caplog.records if getattr(r, "audit", False)]
    assert [r.outcome for r in audit] == ["AccessDeniedError"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("address", "expected"),
    [
        (
            {"line2": "Apt 2", "city": "Springfield", "state": "IL", "postal_code": "62704"},
            "Apt 2, Springfield, IL 62704",
        ),
        (
            {"line1": "742 Evergreen Terrace", "state": "IL", "postal_code": "62704"},
            "742 Evergreen Terrace, IL 62704",
        ),
        ({"city": "Springfield", "postal_code": "62704"}, "Springfield, 62704"),
    ],
)
async def test_address_skips_empty_parts(reveal_service, patient_repository, address, expected):
    other = await patient_repository.create_patient(
        user_id=OWNER_ID, given_name="Ana", family_name="Ruiz"
    )
    await patient_repository.add_address(other.id, **address)

    assert await reveal_service.reveal_field(other.id, "address", OWNER) == expected


@pytest.mark.asyncio
async def test_empty_address_is_not_found(reveal_service, patient_repository):
    other = await patient_repository.create_patient(
        user_id=OWNER_ID, given_name="Ana", family_name="Ruiz"
    )
    await patient_repository.add_address(other.id)

    with pytest.raises(NotFoundError):
        await reveal_service.reveal_field(other.id, "address", OWNER)
