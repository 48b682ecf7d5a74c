"""Sensitive field storage: encrypt on write, mask on read, reveal on request."""

from benefitcheck.sensitive.schemas import (
    MaskedField,
    RevealRequest,
    RevealResponse,
    SensitiveField,
)
from benefitcheck.sensitive.store import SensitiveFieldStore

__all__ = [
    "MaskedField",
    "RevealRequest",
    "RevealResponse",
    "SensitiveField",
    "SensitiveFieldStore",
]
