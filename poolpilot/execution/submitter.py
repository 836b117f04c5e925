"""
Transaction Submitter
=====================
Simulation, submission and confirmation of assembled batches.

The "Pilot" of the batching layer. Per batch:

    dry run:  Built -> Simulating -> SIMULATED | FAILED (raised, no retry)
    live:     Built -> Signing -> Submitting -> Confirming -> CONFIRMED | FAILED

Only transient network failures (timeouts, expired blockhash, transport
errors) are resent, reusing the same signed payload, up to
ExecutionConfig.max_retries times. A resend the node rejects as already
processed means an earlier attempt landed; its signature is then confirmed.
Batches run strictly one after another and the first FAILED batch aborts
the rest.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, AsyncIterable, Iterable, List, NoReturn, Optional, Sequence, Union

from solana.rpc.types import TxOpts
from solders.keypair import Keypair

from poolpilot.config.constants import DEFAULT_COMMITMENT_LEVEL, DEFAULT_SEND_TX_MAX_RETRIES
from poolpilot.config.settings import Settings
from poolpilot.execution.priority_fee import TransactionVariant
from poolpilot.execution.transaction_assembler import TransactionBatch
from poolpilot.shared.execution.errors import (
    BatchSubmissionError,
    RetryBudgetExhaustedError,
    TransactionRejectedError,
    classify_send_error,
    is_already_processed,
)
from poolpilot.shared.execution.submission_result import (
    SubmissionOutcome,
    confirmed_outcome,
    failed_outcome,
    simulated_outcome,
)
from poolpilot.shared.system.logging import Logger


# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ExecutionConfig:
    """Per-invocation execution settings, built once and passed explicitly."""

    dry_run: bool = True
    compute_unit_price_micro_lamports: int = 0
    commitment: str = DEFAULT_COMMITMENT_LEVEL

    # Retries
    max_retries: int = DEFAULT_SEND_TX_MAX_RETRIES
    retry_delay_sec: float = Settings.RETRY_DELAY_SEC
    max_retry_delay_sec: float = Settings.MAX_RETRY_DELAY_SEC

    # Confirmation polling
    confirm_sleep_sec: float = Settings.CONFIRM_SLEEP_SEC
    skip_preflight: bool = False

    def __post_init__(self):
        if self.compute_unit_price_micro_lamports < 0:
            raise ValueError("compute_unit_price_micro_lamports must be non-negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")

    def backoff(self, attempt: int) -> float:
        """Delay before resend number `attempt` (1-based)."""
        return min(self.retry_delay_sec * (2 ** (attempt - 1)), self.max_retry_delay_sec)


# ═══════════════════════════════════════════════════════════════════════════════
# SUBMITTER
# ═══════════════════════════════════════════════════════════════════════════════

class TransactionSubmitter:
    """
    Simulates or sends transactions through a solana-py AsyncClient.

    Usage:
        submitter = TransactionSubmitter(rpc_client, config)
        outcome = await submitter.submit(batch, [payer], dry_run=config.dry_run)
    """

    def __init__(self, rpc_client: Any, config: Optional[ExecutionConfig] = None):
        self.rpc = rpc_client
        self.config = config or ExecutionConfig()

        # Statistics
        self._submissions = 0
        self._confirmations = 0
        self._simulations = 0
        self._failures = 0
        self._resends = 0

    async def submit(
        self,
        batch: TransactionBatch,
        signers: Sequence[Keypair],
        dry_run: Optional[bool] = None,
    ) -> SubmissionOutcome:
        """Run one assembled batch. Raises BatchSubmissionError on FAILED."""
        return await self.submit_transaction(
            batch.transaction,
            signers,
            dry_run=dry_run,
            batch_index=batch.sequence_index,
            description=batch.describe(),
            last_valid_block_height=batch.last_valid_block_height,
        )

    async def submit_all(
        self,
        batches: Union[Iterable[TransactionBatch], AsyncIterable[TransactionBatch]],
        signers: Sequence[Keypair],
        dry_run: Optional[bool] = None,
    ) -> List[SubmissionOutcome]:
        """Submit batches in order; the first failure propagates and stops the run."""
        outcomes: List[SubmissionOutcome] = []
        if hasattr(batches, "__aiter__"):
            async for batch in batches:
                outcomes.append(await self.submit(batch, signers, dry_run))
        else:
            for batch in batches:
                outcomes.append(await self.submit(batch, signers, dry_run))
        return outcomes

    async def submit_transaction(
        self,
        transaction: TransactionVariant,
        signers: Sequence[Keypair],
        dry_run: Optional[bool] = None,
        batch_index: int = 1,
        description: str = "transaction",
        last_valid_block_height: Optional[int] = None,
    ) -> SubmissionOutcome:
        """Sign once, then simulate or send-and-confirm."""
        dry_run = self.config.dry_run if dry_run is None else dry_run
        self._submissions += 1
        start_time = time.time()

        try:
            signed = transaction.sign(signers)
        except Exception as e:
            self._fail(
                BatchSubmissionError(f"Signing failed: {e}"),
                batch_index, description, start_time,
            )

        if dry_run:
            Logger.info(f"[SUBMIT] Simulating {description}...")
            return await self._simulate(signed, batch_index, description, start_time)

        Logger.info(f"[SUBMIT] Sending {description}...")
        return await self._send_and_confirm(
            signed, batch_index, description, start_time, last_valid_block_height,
        )

    # ═══════════════════════════════════════════════════════════════════════
    # DRY RUN
    # ═══════════════════════════════════════════════════════════════════════

    async def _simulate(
        self,
        signed_tx: Any,
        batch_index: int,
        description: str,
        start_time: float,
    ) -> SubmissionOutcome:
        try:
            resp = await self.rpc.simulate_transaction(
                signed_tx, sig_verify=False, commitment=self.config.commitment,
            )
        except Exception as e:
            self._fail(classify_send_error(e), batch_index, description, start_time)

        value = resp.value
        logs = [str(line) for line in (value.logs or [])]

        if value.err is not None:
            self._fail(
                TransactionRejectedError(f"Simulation failed: {value.err}", logs=logs),
                batch_index, description, start_time,
            )

        self._simulations += 1
        Logger.success(f"[SUBMIT] Simulated {description} successfully")
        for line in logs:
            Logger.debug(f"[SUBMIT]   {line}")

        return simulated_outcome(
            batch_index,
            logs,
            units_consumed=getattr(value, "units_consumed", None),
            latency_ms=(time.time() - start_time) * 1000,
        )

    # ═══════════════════════════════════════════════════════════════════════
    # LIVE
    # ═══════════════════════════════════════════════════════════════════════

    async def _send_and_confirm(
        self,
        signed_tx: Any,
        batch_index: int,
        description: str,
        start_time: float,
        last_valid_block_height: Optional[int],
    ) -> SubmissionOutcome:
        payload = bytes(signed_tx)
        signature = signed_tx.signatures[0]
        opts = TxOpts(
            skip_confirmation=True,
            skip_preflight=self.config.skip_preflight,
            preflight_commitment=self.config.commitment,
            max_retries=self.config.max_retries,
        )

        retries = 0
        while True:
            try:
                await self._send(payload, opts, signature, description)
                await self._confirm(signature, last_valid_block_height)
                break
            except Exception as e:
                error = classify_send_error(e)

                if not error.retryable:
                    self._fail(error, batch_index, description, start_time, retries)

                if retries >= self.config.max_retries:
                    self._fail(
                        RetryBudgetExhaustedError(
                            f"Gave up after {retries} resends: {error.message}",
                            logs=error.logs,
                        ),
                        batch_index, description, start_time, retries,
                    )

                retries += 1
                self._resends += 1
                delay = self.config.backoff(retries)
                Logger.warning(
                    f"[SUBMIT] {description} attempt {retries} failed ({error.error_code.value}): "
                    f"{error.message}. Resending in {delay:.1f}s ({retries}/{self.config.max_retries})"
                )
                await asyncio.sleep(delay)

        self._confirmations += 1
        sig = str(signature)
        Logger.success(f"[SUBMIT] {description} landed successfully with tx hash: {sig}")

        return confirmed_outcome(
            batch_index,
            sig,
            retries=retries,
            latency_ms=(time.time() - start_time) * 1000,
        )

    async def _send(self, payload: bytes, opts: TxOpts, signature: Any, description: str) -> None:
        """Send the signed bytes; a resend of a landed transaction counts as sent."""
        try:
            await self.rpc.send_raw_transaction(payload, opts=opts)
        except Exception as e:
            if not is_already_processed(e):
                raise
            Logger.info(f"[SUBMIT] {description} was already processed, confirming {signature}")

    async def _confirm(self, signature: Any, last_valid_block_height: Optional[int]) -> None:
        resp = await self.rpc.confirm_transaction(
            signature,
            commitment=self.config.commitment,
            sleep_seconds=self.config.confirm_sleep_sec,
            last_valid_block_height=last_valid_block_height,
        )

        statuses = getattr(resp, "value", None) or []
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise TransactionRejectedError(f"Transaction {signature} failed: {status.err}")

    # ═══════════════════════════════════════════════════════════════════════
    # FAILURE
    # ═══════════════════════════════════════════════════════════════════════

    def _fail(
        self,
        error: BatchSubmissionError,
        batch_index: int,
        description: str,
        start_time: float,
        retries: int = 0,
    ) -> NoReturn:
        """Record the FAILED outcome on the error, print diagnostics, raise."""
        self._failures += 1
        error.outcome = failed_outcome(
            batch_index,
            error.error_code,
            error.message,
            logs=error.logs,
            retries=retries,
            latency_ms=(time.time() - start_time) * 1000,
        )

        Logger.error(f"[SUBMIT] {description} failed: {error.message}")
        for line in error.logs:
            Logger.error(f"[SUBMIT]   {line}")
        raise error

    def get_stats(self) -> dict:
        """Get submission statistics."""
        return {
            "submissions": self._submissions,
            "confirmations": self._confirmations,
            "simulations": self._simulations,
            "failures": self._failures,
            "resends": self._resends,
        }
