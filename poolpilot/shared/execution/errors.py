"""
Submission Error Taxonomy
=========================
Exceptions raised by the config loader and the submission layer.

    PoolPilotError
    ├── ConfigurationError          malformed or contradictory input
    ├── ProofUploadError            proof upload gave up after max attempts
    └── BatchSubmissionError        a batch ended FAILED (carries the outcome)
        ├── TransactionTooLargeError    network reported oversize, never retried
        ├── TransactionRejectedError    simulation/program error, never retried
        ├── TransientNetworkError       timeout/expiry/transport, retried
        └── RetryBudgetExhaustedError   transient failures past the ceiling

classify_send_error() maps raw RPC/transport exceptions onto the tree.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, TYPE_CHECKING

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.core import (
    RPCException,
    TransactionExpiredBlockheightExceededError,
    UnconfirmedTxError,
)

from poolpilot.shared.execution.submission_result import ErrorCode

if TYPE_CHECKING:
    from poolpilot.shared.execution.submission_result import SubmissionOutcome


class PoolPilotError(Exception):
    """Base class for every error raised by poolpilot."""


class ConfigurationError(PoolPilotError):
    """Configuration file or CLI input is malformed or contradictory."""


class ProofUploadError(PoolPilotError):
    """A proof chunk could not be uploaded within the attempt budget."""


class BatchSubmissionError(PoolPilotError):
    """A batch failed; `outcome` holds the FAILED SubmissionOutcome."""

    error_code = ErrorCode.UNKNOWN
    retryable = False

    def __init__(
        self,
        message: str,
        logs: Optional[List[str]] = None,
        error_code: Optional[ErrorCode] = None,
        outcome: Optional["SubmissionOutcome"] = None,
    ):
        super().__init__(message)
        self.message = message
        self.logs = list(logs or [])
        if error_code is not None:
            self.error_code = error_code
        self.outcome = outcome


class TransactionTooLargeError(BatchSubmissionError):
    error_code = ErrorCode.TRANSACTION_TOO_LARGE


class TransactionRejectedError(BatchSubmissionError):
    error_code = ErrorCode.PROGRAM_ERROR


class TransientNetworkError(BatchSubmissionError):
    error_code = ErrorCode.RPC_ERROR
    retryable = True


class RetryBudgetExhaustedError(BatchSubmissionError):
    error_code = ErrorCode.RETRIES_EXHAUSTED


# ═══════════════════════════════════════════════════════════════════════════════
# CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

_TOO_LARGE_MARKERS = ("too large", "transaction too big", "exceeds maximum transaction size")
_EXPIRED_MARKERS = ("blockhash not found", "block height exceeded", "blockhash expired")
_ALREADY_PROCESSED_MARKERS = ("already been processed", "alreadyprocessed")


def extract_logs(exc: BaseException) -> List[str]:
    """Pull program log lines out of a preflight failure, if any."""
    for arg in getattr(exc, "args", ()):
        data = getattr(arg, "data", None)
        logs = getattr(data, "logs", None)
        if logs:
            return [str(line) for line in logs]
    return []


def error_message(exc: BaseException) -> str:
    """The RPC error message of `exc`, without the attached simulation logs."""
    for arg in getattr(exc, "args", ()):
        message = getattr(arg, "message", None)
        if isinstance(message, str) and message:
            return message
    return str(exc) or getattr(exc, "error_msg", "") or type(exc).__name__


def is_already_processed(exc: BaseException) -> bool:
    """True when the node refused a resend because the signature already landed."""
    lowered = error_message(exc).lower()
    return any(marker in lowered for marker in _ALREADY_PROCESSED_MARKERS)


def classify_send_error(exc: BaseException) -> BatchSubmissionError:
    """Map an exception from send/confirm onto the submission taxonomy."""
    if isinstance(exc, BatchSubmissionError):
        return exc

    text = error_message(exc)
    lowered = text.lower()

    if any(marker in lowered for marker in _TOO_LARGE_MARKERS):
        return TransactionTooLargeError(text, logs=extract_logs(exc))

    if isinstance(exc, TransactionExpiredBlockheightExceededError) or any(
        marker in lowered for marker in _EXPIRED_MARKERS
    ):
        return TransientNetworkError(text, error_code=ErrorCode.BLOCKHASH_EXPIRED)

    if isinstance(exc, (UnconfirmedTxError, asyncio.TimeoutError, httpx.TimeoutException)):
        return TransientNetworkError(text, error_code=ErrorCode.TIMEOUT)

    if isinstance(exc, (SolanaRpcException, httpx.TransportError)):
        return TransientNetworkError(text, error_code=ErrorCode.RPC_ERROR)

    if isinstance(exc, RPCException):
        return TransactionRejectedError(text, logs=extract_logs(exc))

    return BatchSubmissionError(text, error_code=ErrorCode.UNKNOWN)
