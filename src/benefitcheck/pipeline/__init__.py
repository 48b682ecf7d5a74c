"""Verification pipeline: status derivation and transaction orchestration."""

from benefitcheck.pipeline.commands import ReplicateCallSnapshot, SpawnCallTransaction
from benefitcheck.pipeline.orchestrator import (
    PipelineOrchestrator,
    StatusUpdateResult,
    plan_follow_ups,
)
from benefitcheck.pipeline.status import (
    StageState,
    VerificationStatus,
    VerificationStatusService,
    derive_verification_status,
)

__all__ = [
    "PipelineOrchestrator",
    "ReplicateCallSnapshot",
    "SpawnCallTransaction",
    "StageState",
    "StatusUpdateResult",
    "VerificationStatus",
    "VerificationStatusService",
    "derive_verification_status",
    "plan_follow_ups",
]
