"""
Patient deletion router.

Deleting a patient removes every row recorded about them, interface
snapshots included.
"""

from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException

from benefitcheck.auth.access import authorize_patient
from benefitcheck.auth.dependencies import get_current_user
from benefitcheck.auth.schemas import User
from benefitcheck.db.dependencies import get_cascade_coordinator, get_patient_repository
from benefitcheck.db.patients.cascade import CascadeDeletionCoordinator
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.exceptions import BenefitCheckError
from benefitcheck.utils.http_errors import http_exception_for

router = APIRouter(prefix="/patients", tags=["Patients"])


@router.delete("/{patient_id}", status_code=HTTPStatus.NO_CONTENT)
async def delete_patient(
    patient_id: str,
    current_user: User = Depends(get_current_user),
    patients: PatientRepository = Depends(get_patient_repository),
    coordinator: CascadeDeletionCoordinator = Depends(get_cascade_coordinator),
) -> None:
    """
    Delete a patient and everything that references them.

    Raises:
        HTTPException: 403 if the patient is not the user's, 404 if missing
    """
    try:
        await authorize_patient(patients, current_user, patient_id)
        await coordinator.delete_patient(patient_id)

    except BenefitCheckError as e:
        raise http_exception_for(e)
    except Exception as e:
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete patient: {str(e)}",
        )
