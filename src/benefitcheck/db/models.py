"""Import every model so Base.metadata knows about all tables."""

from benefitcheck.db.coverage.model import CoverageByCode, CoverageDetail, Procedure
from benefitcheck.db.interface.model import (
    IfCallCoverageCode,
    IfCallMessage,
    IfCallTransaction,
)
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
from benefitcheck.db.transactions.model import (
    CallCommunication,
    Transaction,
    TransactionDataVerified,
)

__all__ = [
    "AiCallHistory",
    "Appointment",
    "CallCommunication",
    "CoverageByCode",
    "CoverageDetail",
    "IfCallCoverageCode",
    "IfCallMessage",
    "IfCallTransaction",
    "Insurance",
    "Patient",
    "PatientAddress",
    "PatientTelecom",
    "Procedure",
    "Transaction",
    "TransactionDataVerified",
    "Treatment",
    "VerificationStatusRecord",
]
