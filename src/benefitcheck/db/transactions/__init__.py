"""Verification transaction log."""

from benefitcheck.db.transactions.constants import StageType, TransactionStatus
from benefitcheck.db.transactions.model import (
    CallCommunication,
    Transaction,
    TransactionDataVerified,
)
from benefitcheck.db.transactions.repository import TransactionRepository

__all__ = [
    "CallCommunication",
    "StageType",
    "Transaction",
    "TransactionDataVerified",
    "TransactionRepository",
    "TransactionStatus",
]
