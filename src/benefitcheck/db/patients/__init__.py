"""Patients, their contact points, insurances and cascade deletion."""

from benefitcheck.db.patients.cascade import CascadeDeletionCoordinator, DeletionReport
from benefitcheck.db.patients.model import (
    AiCallHistory,
    Appointment,
    Insurance,
    Patient,
    PatientAddress,
    PatientTelecom,
    Treatment,
    VerificationStatusRecord,
)
from benefitcheck.db.patients.repository import PatientRepository

__all__ = [
    "AiCallHistory",
    "Appointment",
    "CascadeDeletionCoordinator",
    "DeletionReport",
    "Insurance",
    "Patient",
    "PatientAddress",
    "PatientRepository",
    "PatientTelecom",
    "Treatment",
    "VerificationStatusRecord",
]
