"""Ownership checks for patient-scoped operations."""

from benefitcheck.auth.dependencies import owner_check_for
from benefitcheck.auth.schemas import User
from benefitcheck.db.patients.model import Patient
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.exceptions import AccessDeniedError, NotFoundError


async def authorize_patient(
    patients: PatientRepository, user: User, patient_id: str
) -> Patient:
    """
    Load a patient the requester is allowed to act on.

    Ownership is checked before existence, so a non-admin gets the same
    AccessDeniedError for a missing patient as for someone else's.

    Raises:
        AccessDeniedError: If the requester is neither owner nor admin
        NotFoundError: If the patient does not exist (admins only)
    """
    patient = await patients.get_patient(patient_id)
    check = owner_check_for(user, patient.user_id if patient else None)
    if not check():
        raise AccessDeniedError()
    if patient is None:
        raise NotFoundError(f"Patient not found: {patient_id}")
    return patient
