"""
Transaction and verification status router.

Transactions are recorded and moved through their lifecycle here; every
status change goes through the pipeline orchestrator so follow-up work
(the call transaction spawn and its interface snapshot) happens exactly
once per transition.
"""

from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Query

from benefitcheck.auth.access import authorize_patient
from benefitcheck.auth.dependencies import get_current_user
from benefitcheck.auth.schemas import User
from benefitcheck.config import get_app_settings
from benefitcheck.db.dependencies import (
    get_patient_repository,
    get_pipeline_orchestrator,
    get_transaction_repository,
    get_verification_status_service,
)
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.db.transactions.model import Transaction
from benefitcheck.db.transactions.repository import TransactionRepository
from benefitcheck.exceptions import BenefitCheckError, NotFoundError
from benefitcheck.pipeline.orchestrator import PipelineOrchestrator
from benefitcheck.pipeline.schemas import (
    CommunicationItem,
    CommunicationsResponse,
    CreateTransactionRequest,
    InconsistencyResponse,
    TransactionResponse,
    UpdateTransactionRequest,
    UpdateTransactionResponse,
    VerificationStatusResponse,
    VerifiedDataResponse,
)
from benefitcheck.pipeline.status import VerificationStatus, VerificationStatusService
from benefitcheck.utils.http_errors import http_exception_for

router = APIRouter(prefix="/transactions", tags=["Transactions"])
status_router = APIRouter(prefix="/patients", tags=["Verification Status"])


async def _authorized_transaction(
    transaction_id: str,
    current_user: User,
    transactions: TransactionRepository,
    patients: PatientRepository,
) -> Transaction:
    transaction = await transactions.get_transaction(transaction_id)
    if transaction is None:
        raise NotFoundError(f"Transaction not found: {transaction_id}")
    await authorize_patient(patients, current_user, transaction.patient_id)
    return transaction


@router.post("", response_model=TransactionResponse, status_code=HTTPStatus.CREATED)
async def create_transaction(
    request: CreateTransactionRequest,
    current_user: User = Depends(get_current_user),
    patients: PatientRepository = Depends(get_patient_repository),
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> TransactionResponse:
    """
    Record a new verification attempt.

    Args:
        request: Stage, status and result fields of the attempt
        current_user: The authenticated user
        patients: Patient repository for the ownership check
        orchestrator: Pipeline orchestrator

    Returns:
        TransactionResponse: The created transaction

    Raises:
        HTTPException: 403 if the patient is not the user's, 404 if missing
    """
    try:
        await authorize_patient(patients, current_user, request.patient_id)
        transaction = await orchestrator.create_transaction(
            patient_id=request.patient_id,
            stage_type=request.stage_type,
            status=request.status,
            fields=request.column_values(),
            data_verified=request.data_verified,
            communications=request.communication_values(),
            request_id=request.request_id,
        )
        return TransactionResponse.model_validate(transaction)

    except BenefitCheckError as e:
        raise http_exception_for(e)
    except Exception as e:
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to create transaction: {str(e)}",
        )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    transactions: TransactionRepository = Depends(get_transaction_repository),
    patients: PatientRepository = Depends(get_patient_repository),
) -> TransactionResponse:
    """Get a single transaction."""
    try:
        transaction = await _authorized_transaction(
            transaction_id, current_user, transactions, patients
        )
        return TransactionResponse.model_validate(transaction)
    except BenefitCheckError as e:
        raise http_exception_for(e)


@router.put("/{transaction_id}", response_model=UpdateTransactionResponse)
async def update_transaction(
    transaction_id: str,
    request: UpdateTransactionRequest,
    current_user: User = Depends(get_current_user),
    transactions: TransactionRepository = Depends(get_transaction_repository),
    patients: PatientRepository = Depends(get_patient_repository),
    orchestrator: PipelineOrchestrator = Depends(get_pipeline_orchestrator),
) -> UpdateTransactionResponse:
    """
    Change a transaction's status and result fields.

    A successful API verification spawns the call transaction. A snapshot
    that could not be written is reported under inconsistencies; the
    update itself still succeeds.

    Raises:
        HTTPException: 409 if the status changed since the client read it
    """
    try:
        await _authorized_transaction(transaction_id, current_user, transactions, patients)
        result = await orchestrator.update_transaction_status(
            transaction_id,
            request.status,
            fields=request.column_values(),
            expected_status=request.expected_status,
            data_verified=request.data_verified,
            communications=request.communication_values(),
        )
        return UpdateTransactionResponse(
            transaction=TransactionResponse.model_validate(result.transaction),
            spawned_transactions=[
                TransactionResponse.model_validate(spawned)
                for spawned in result.spawned_transactions
            ],
            inconsistencies=[
                InconsistencyResponse(**inconsistency.to_dict())
                for inconsistency in result.inconsistencies
            ],
        )

    except BenefitCheckError as e:
        raise http_exception_for(e)
    except Exception as e:
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to update transaction: {str(e)}",
        )


@router.get("/{transaction_id}/communications", response_model=CommunicationsResponse)
async def get_communications(
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    transactions: TransactionRepository = Depends(get_transaction_repository),
    patients: PatientRepository = Depends(get_patient_repository),
) -> CommunicationsResponse:
    """Get a transaction's call transcript."""
    try:
        await _authorized_transaction(transaction_id, current_user, transactions, patients)
        communications = await transactions.list_communications(transaction_id)
        return CommunicationsResponse(
            communications=[
                CommunicationItem.model_validate(comm) for comm in communications
            ]
        )
    except BenefitCheckError as e:
        raise http_exception_for(e)


@router.get("/{transaction_id}/verified-data", response_model=VerifiedDataResponse)
async def get_verified_data(
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    transactions: TransactionRepository = Depends(get_transaction_repository),
    patients: PatientRepository = Depends(get_patient_repository),
) -> VerifiedDataResponse:
    """Get the data items a transaction verified."""
    try:
        await _authorized_transaction(transaction_id, current_user, transactions, patients)
        rows = await transactions.list_data_verified(transaction_id)
        return VerifiedDataResponse(verified_data=[row.item for row in rows])
    except BenefitCheckError as e:
        raise http_exception_for(e)


@status_router.get(
    "/{patient_id}/verification-status", response_model=VerificationStatusResponse
)
async def get_verification_status(
    patient_id: str,
    data_mode: bool | None = Query(
        None, description="Derive from transactions; defaults to the DATA_MODE setting"
    ),
    current_user: User = Depends(get_current_user),
    patients: PatientRepository = Depends(get_patient_repository),
    status_service: VerificationStatusService = Depends(get_verification_status_service),
) -> VerificationStatusResponse:
    """
    Get a patient's five-stage verification status.

    With data mode on the status is derived from the transaction log;
    otherwise the stored status record is returned.
    """
    if data_mode is None:
        data_mode = get_app_settings().data_mode
    try:
        await authorize_patient(patients, current_user, patient_id)
        status = await status_service.get_status(patient_id, data_mode)
        return VerificationStatusResponse(
            patient_id=patient_id, data_mode=data_mode, **status.model_dump()
        )
    except BenefitCheckError as e:
        raise http_exception_for(e)


@status_router.put(
    "/{patient_id}/verification-status", response_model=VerificationStatusResponse
)
async def update_verification_status(
    patient_id: str,
    request: VerificationStatus,
    current_user: User = Depends(get_current_user),
    patients: PatientRepository = Depends(get_patient_repository),
    status_service: VerificationStatusService = Depends(get_verification_status_service),
) -> VerificationStatusResponse:
    """
    Edit the stored verification status.

    Only meaningful while data mode is off; with it on the derived status
    takes precedence on read.
    """
    try:
        await authorize_patient(patients, current_user, patient_id)
        status = await status_service.update_stored_status(patient_id, request)
        await patients.session.commit()
        return VerificationStatusResponse(
            patient_id=patient_id, data_mode=False, **status.model_dump()
        )

    except BenefitCheckError as e:
        raise http_exception_for(e)
    except Exception as e:
        await patients.session.rollback()
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to update verification status: {str(e)}",
        )
