"""
FastAPI dependencies for database services.

Provides dependency injection for repositories and the services built on
them.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from benefitcheck.config import get_app_settings
from benefitcheck.crypto.service import CryptoService, build_crypto_service
from benefitcheck.db.database import get_db
from benefitcheck.db.interface.repository import InterfaceRepository
from benefitcheck.db.patients.cascade import CascadeDeletionCoordinator
from benefitcheck.db.patients.repository import PatientRepository
from benefitcheck.db.transactions.repository import TransactionRepository
from benefitcheck.pipeline.orchestrator import PipelineOrchestrator
from benefitcheck.pipeline.status import VerificationStatusService
from benefitcheck.sensitive.service import RevealService
from benefitcheck.sensitive.store import SensitiveFieldStore
from benefitcheck.utils.logger import logger

# Singleton crypto service; key derivation settings are read once
_crypto_service: CryptoService | None = None


def get_crypto_service() -> CryptoService:
    """
    Get or create the crypto service singleton.

    Returns:
        CryptoService: The crypto service instance
    """
    global _crypto_service
    if _crypto_service is None:
        _crypto_service = build_crypto_service()
        logger.info("Initialized CryptoService")
    return _crypto_service


def get_sensitive_field_store(
    crypto: CryptoService = Depends(get_crypto_service),
) -> SensitiveFieldStore:
    return SensitiveFieldStore(crypto)


def get_patient_repository(
    session: AsyncSession = Depends(get_db),
    store: SensitiveFieldStore = Depends(get_sensitive_field_store),
) -> PatientRepository:
    """
    FastAPI dependency for getting the patient repository.

    Args:
        session: Database session from get_db dependency
        store: Sensitive field store for encrypting writes

    Returns:
        PatientRepository: Repository instance with injected session
    """
    return PatientRepository(session, store)


def get_transaction_repository(
    session: AsyncSession = Depends(get_db),
) -> TransactionRepository:
    """
    FastAPI dependency for getting the transaction repository.

    Args:
        session: Database session from get_db dependency

    Returns:
        TransactionRepository: Repository instance with injected session
    """
    return TransactionRepository(session)


def get_interface_repository(
    session: AsyncSession = Depends(get_db),
) -> InterfaceRepository:
    return InterfaceRepository(session)


def get_pipeline_orchestrator(
    session: AsyncSession = Depends(get_db),
) -> PipelineOrchestrator:
    return PipelineOrchestrator(session)


def get_cascade_coordinator(
    session: AsyncSession = Depends(get_db),
) -> CascadeDeletionCoordinator:
    return CascadeDeletionCoordinator(session)


def get_verification_status_service(
    session: AsyncSession = Depends(get_db),
) -> VerificationStatusService:
    # Status reads and writes never touch encrypted columns
    return VerificationStatusService(
        TransactionRepository(session),
        PatientRepository(session),
        monotonic=get_app_settings().monotonic_status,
    )


def get_reveal_service(
    patients: PatientRepository = Depends(get_patient_repository),
    store: SensitiveFieldStore = Depends(get_sensitive_field_store),
) -> RevealService:
    return RevealService(patients, store)
