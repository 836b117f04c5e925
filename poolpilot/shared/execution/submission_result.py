"""
Submission Outcome
==================
Standardized per-batch result for the submission layer.

Every batch handed to the TransactionSubmitter produces exactly one
SubmissionOutcome: SIMULATED (dry run), CONFIRMED (landed) or FAILED.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum
import time


class OutcomeStatus(Enum):
    """Terminal states of a batch."""

    SIMULATED = "SIMULATED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class ErrorCode(Enum):
    """Standardized error codes for submission failures."""

    # Size
    TRANSACTION_TOO_LARGE = "TRANSACTION_TOO_LARGE"

    # Network errors (retryable)
    RPC_ERROR = "RPC_ERROR"
    TIMEOUT = "TIMEOUT"
    BLOCKHASH_EXPIRED = "BLOCKHASH_EXPIRED"

    # Rejections
    PROGRAM_ERROR = "PROGRAM_ERROR"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"

    # General
    UNKNOWN = "UNKNOWN"


@dataclass
class SubmissionOutcome:
    """
    Result of simulating or submitting one TransactionBatch.

    Usage:
        outcome = await submitter.submit(batch, signers, dry_run=False)
        if outcome.success:
            Logger.info(f"Landed {outcome.signature}")
    """

    status: OutcomeStatus
    batch_index: int = 0

    # Transaction details
    signature: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    retries: int = 0
    units_consumed: Optional[int] = None

    # Error handling
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None

    timestamp: float = field(default_factory=time.time)
    latency_ms: float = 0.0

    @property
    def success(self) -> bool:
        return self.status in (OutcomeStatus.SIMULATED, OutcomeStatus.CONFIRMED)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/storage."""
        return {
            "status": self.status.value,
            "batch_index": self.batch_index,
            "signature": self.signature,
            "retries": self.retries,
            "units_consumed": self.units_consumed,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": self.error_message,
            "latency_ms": self.latency_ms,
        }

    def __repr__(self) -> str:
        if self.status == OutcomeStatus.CONFIRMED:
            return f"SubmissionOutcome(CONFIRMED #{self.batch_index}: {self.signature}, retries={self.retries})"
        if self.status == OutcomeStatus.SIMULATED:
            return f"SubmissionOutcome(SIMULATED #{self.batch_index}: {len(self.logs)} log lines)"
        return f"SubmissionOutcome(FAILED #{self.batch_index}: {self.error_code}, {self.error_message})"


# ═══════════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def simulated_outcome(batch_index: int, logs: Optional[List[str]] = None, **kwargs) -> SubmissionOutcome:
    """Create a successful dry-run outcome."""
    return SubmissionOutcome(
        status=OutcomeStatus.SIMULATED,
        batch_index=batch_index,
        logs=list(logs or []),
        units_consumed=kwargs.get("units_consumed"),
        latency_ms=kwargs.get("latency_ms", 0.0),
    )


def confirmed_outcome(batch_index: int, signature: str, retries: int = 0, **kwargs) -> SubmissionOutcome:
    """Create a confirmed (landed) outcome."""
    return SubmissionOutcome(
        status=OutcomeStatus.CONFIRMED,
        batch_index=batch_index,
        signature=signature,
        retries=retries,
        latency_ms=kwargs.get("latency_ms", 0.0),
    )


def failed_outcome(
    batch_index: int,
    error_code: ErrorCode,
    error_message: str,
    logs: Optional[List[str]] = None,
    retries: int = 0,
    **kwargs
) -> SubmissionOutcome:
    """Create a failed outcome."""
    return SubmissionOutcome(
        status=OutcomeStatus.FAILED,
        batch_index=batch_index,
        error_code=error_code,
        error_message=error_message,
        logs=list(logs or []),
        retries=retries,
        signature=kwargs.get("signature"),
        latency_ms=kwargs.get("latency_ms", 0.0),
    )
