"""
Batch Sender
============
Entry points used by pool/vault launch routines.

- send_instructions_in_batches: plan -> assemble -> simulate/send, fail-fast
- simulate_instructions:        one-shot simulation of a handful of instructions
- send_prepared_transaction:    fee injection + simulate/send of a transaction
                                built by an external SDK
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from poolpilot.execution.batch_planner import plan_batches
from poolpilot.execution.priority_fee import LegacyTransaction, TransactionVariant, inject_priority_fee
from poolpilot.execution.submitter import ExecutionConfig, TransactionSubmitter
from poolpilot.execution.transaction_assembler import TransactionAssembler
from poolpilot.shared.execution.submission_result import SubmissionOutcome
from poolpilot.shared.system.logging import Logger


async def send_instructions_in_batches(
    rpc_client: Any,
    instructions: Sequence[Instruction],
    instructions_per_tx: int,
    payer: Keypair,
    config: ExecutionConfig,
    extra_signers: Sequence[Keypair] = (),
    label: str = "",
) -> List[SubmissionOutcome]:
    """
    Split `instructions` into transactions of `instructions_per_tx` each and
    run them in order.

    Every transaction gets the invocation's priority fee as its first
    instruction. A failed batch raises BatchSubmissionError and no later
    batch is attempted; batches that already landed stay landed.

    Returns:
        One SubmissionOutcome per batch (SIMULATED or CONFIRMED).
    """
    groups = plan_batches(instructions, instructions_per_tx)
    mode = "dry run" if config.dry_run else "live"
    Logger.info(
        f"[BATCH] {len(instructions)} instructions -> {len(groups)} transactions "
        f"({instructions_per_tx} per tx, {mode})"
    )
    if not groups:
        return []

    assembler = TransactionAssembler(payer.pubkey(), config.compute_unit_price_micro_lamports, label=label)
    submitter = TransactionSubmitter(rpc_client, config)
    signers = [payer, *extra_signers]

    outcomes = await submitter.submit_all(
        assembler.assemble_all(groups, rpc_client, config.commitment),
        signers,
        dry_run=config.dry_run,
    )

    Logger.success(f"[BATCH] All {len(outcomes)} {label + ' ' if label else ''}transactions done")
    return outcomes


async def simulate_instructions(
    rpc_client: Any,
    instructions: Sequence[Instruction],
    signers: Sequence[Keypair],
    fee_payer: Pubkey,
    config: Optional[ExecutionConfig] = None,
    description: str = "transaction",
) -> SubmissionOutcome:
    """Simulate `instructions` as a single transaction. Raises on simulation error."""
    config = config or ExecutionConfig()
    resp = await rpc_client.get_latest_blockhash(config.commitment)

    tx = LegacyTransaction(fee_payer=fee_payer, recent_blockhash=resp.value.blockhash)
    tx.add(*instructions)

    submitter = TransactionSubmitter(rpc_client, config)
    return await submitter.submit_transaction(tx, signers, dry_run=True, description=description)


async def send_prepared_transaction(
    rpc_client: Any,
    transaction: TransactionVariant,
    signers: Sequence[Keypair],
    config: ExecutionConfig,
    description: str = "transaction",
) -> SubmissionOutcome:
    """
    Apply the invocation's priority fee to an SDK-built transaction, then
    simulate or send it.

    Legacy transactions get a fresh blockhash. Compiled transactions keep
    the blockhash they were built with, and if they carry no fee
    instruction they are sent without one (logged as a warning).
    """
    if not inject_priority_fee(transaction, config.compute_unit_price_micro_lamports):
        Logger.warning(
            f"[FEE] {description} has no compute unit price instruction; "
            "sending without a priority fee"
        )

    last_valid_block_height = None
    if isinstance(transaction, LegacyTransaction):
        resp = await rpc_client.get_latest_blockhash(config.commitment)
        transaction.recent_blockhash = resp.value.blockhash
        last_valid_block_height = resp.value.last_valid_block_height
        Logger.info(f"[ASSEMBLER] {description} txSize = {transaction.serialized_size()}")

    submitter = TransactionSubmitter(rpc_client, config)
    return await submitter.submit_transaction(
        transaction,
        signers,
        dry_run=config.dry_run,
        description=description,
        last_valid_block_height=last_valid_block_height,
    )
