"""
Reveal router: explicit, audited, single-field decryption.

Everything else in the API only ever returns masked values, as the
sensitive-fields view here does.
"""

from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException

from benefitcheck.auth.access import authorize_patient
from benefitcheck.auth.dependencies import get_current_user
from benefitcheck.auth.schemas import User
from benefitcheck.db.dependencies import get_patient_repository, get_reveal_service
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.exceptions import BenefitCheckError
from benefitcheck.sensitive.schemas import (
    MaskedPatientResponse,
    RevealRequest,
    RevealResponse,
)
from benefitcheck.sensitive.service import RevealService
from benefitcheck.utils.http_errors import http_exception_for

router = APIRouter(prefix="/patients", tags=["Sensitive Data"])


@router.post("/{patient_id}/reveal", response_model=RevealResponse)
async def reveal_field(
    patient_id: str,
    request: RevealRequest,
    current_user: User = Depends(get_current_user),
    reveal_service: RevealService = Depends(get_reveal_service),
) -> RevealResponse:
    """
    Decrypt one sensitive field of a patient.

    Args:
        patient_id: Patient ID
        request: Field name and, for insurance fields, the insurance ID
        current_user: The authenticated user
        reveal_service: Reveal service

    Returns:
        RevealResponse: The plaintext value

    Raises:
        HTTPException: 400 for an unsupported field, 403 if the patient is
            not the user's, 404 if there is nothing to reveal, 422 if the
            stored value fails decryption
    """
    try:
        value = await reveal_service.reveal_field(
            patient_id, request.field, current_user, insurance_id=request.insurance_id
        )
        return RevealResponse(field=request.field, value=value)

    except BenefitCheckError as e:
        raise http_exception_for(e)
    except Exception as e:
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to reveal field: {str(e)}",
        )


@router.get("/{patient_id}/sensitive", response_model=MaskedPatientResponse)
async def get_masked_fields(
    patient_id: str,
    current_user: User = Depends(get_current_user),
    patients: PatientRepository = Depends(get_patient_repository),
    reveal_service: RevealService = Depends(get_reveal_service),
) -> MaskedPatientResponse:
    """
    Get a patient's sensitive fields masked, with their encrypted flags.

    Raises:
        HTTPException: 403 if the patient is not the user's, 404 if missing
    """
    try:
        patient = await authorize_patient(patients, current_user, patient_id)
        return await reveal_service.masked_fields(patient)
    except BenefitCheckError as e:
        raise http_exception_for(e)
