"""
Follow-up work produced by a transaction status change.

Planning is pure; the orchestrator executes commands in order, and a
command may yield further commands.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SpawnCallTransaction:
    """Create the Call-stage transaction that follows a successful API verification."""

    source_transaction_id: str
    patient_id: str


@dataclass(frozen=True)
class ReplicateCallSnapshot:
    """Copy a spawned call transaction and its context into the interface tables."""

    call_transaction_id: str
    source_transaction_id: str
    patient_id: str


Command = SpawnCallTransaction | ReplicateCallSnapshot
