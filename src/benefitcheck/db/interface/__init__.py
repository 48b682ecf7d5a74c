"""Call interface tables (export snapshots)."""

from benefitcheck.db.interface.model import (
    IfCallCoverageCode,
    IfCallMessage,
    IfCallTransaction,
)
from benefitcheck.db.interface.repository import InterfaceRepository

__all__ = [
    "IfCallCoverageCode",
    "IfCallMessage",
    "IfCallTransaction",
    "InterfaceRepository",
]
