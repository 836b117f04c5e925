"""
Transaction Assembler
=====================
Turns one planned instruction group into one TransactionBatch.

Each batch carries:
- a fresh blockhash snapshot (fetched right before the batch is submitted)
- the fee payer
- exactly one SetComputeUnitPrice instruction, first
- the group's instructions, in order

Serialized size is measured for diagnostics only. Oversize batches are
logged but still handed on; the network's rejection is the fatal signal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional, Sequence

from solders.hash import Hash
from solders.instruction import Instruction
from solders.pubkey import Pubkey

from poolpilot.config.constants import DEFAULT_COMMITMENT_LEVEL, MAX_TRANSACTION_SIZE
from poolpilot.execution.priority_fee import LegacyTransaction, build_priority_fee_instruction
from poolpilot.shared.system.logging import Logger


@dataclass(frozen=True)
class TransactionBatch:
    """One assembled, unsigned transaction ready for the submitter."""

    sequence_index: int                 # 1-based, for progress logging only
    total: int
    transaction: LegacyTransaction
    serialized_size: int
    last_valid_block_height: Optional[int] = None
    label: str = ""

    @property
    def instruction_count(self) -> int:
        return len(self.transaction.instructions)

    @property
    def fee_payer(self) -> Pubkey:
        return self.transaction.fee_payer

    @property
    def recent_blockhash(self) -> Hash:
        return self.transaction.recent_blockhash

    @property
    def oversized(self) -> bool:
        return self.serialized_size > MAX_TRANSACTION_SIZE

    def describe(self) -> str:
        label = f"{self.label} " if self.label else ""
        return f"{label}tx number {self.sequence_index} of {self.total}"


class TransactionAssembler:
    """
    Builds TransactionBatch objects for a single invocation.

    Usage:
        assembler = TransactionAssembler(payer.pubkey(), micro_lamports=50_000)
        async for batch in assembler.assemble_all(groups, rpc_client):
            await submitter.submit(batch, [payer], dry_run=False)
    """

    def __init__(self, fee_payer: Pubkey, micro_lamports: int, label: str = ""):
        if micro_lamports < 0:
            raise ValueError(f"Priority fee must be non-negative, got {micro_lamports}")
        self.fee_payer = fee_payer
        self.micro_lamports = micro_lamports
        self.label = label

    def assemble(
        self,
        group: Sequence[Instruction],
        blockhash: Hash,
        sequence_index: int,
        total: Optional[int] = None,
        last_valid_block_height: Optional[int] = None,
    ) -> TransactionBatch:
        """Build the batch for one group: fee instruction first, then the group."""
        tx = LegacyTransaction(fee_payer=self.fee_payer, recent_blockhash=blockhash)
        tx.add(build_priority_fee_instruction(self.micro_lamports))
        tx.add(*group)

        size = tx.serialized_size()
        batch = TransactionBatch(
            sequence_index=sequence_index,
            total=total if total is not None else sequence_index,
            transaction=tx,
            serialized_size=size,
            last_valid_block_height=last_valid_block_height,
            label=self.label,
        )

        Logger.info(f"[ASSEMBLER] Tx number {sequence_index} of {batch.total} txSize = {size}")
        if batch.oversized:
            Logger.warning(
                f"[ASSEMBLER] Tx number {sequence_index} is {size} bytes "
                f"(limit {MAX_TRANSACTION_SIZE}); expect the network to reject it"
            )
        return batch

    async def assemble_all(
        self,
        groups: List[List[Instruction]],
        rpc_client: Any,
        commitment: str = DEFAULT_COMMITMENT_LEVEL,
    ) -> AsyncIterator[TransactionBatch]:
        """
        Yield one batch per group, in order.

        The blockhash for batch N is only fetched once batch N-1 has been
        consumed, so a long run never submits with a stale hash.
        """
        total = len(groups)
        for i, group in enumerate(groups):
            resp = await rpc_client.get_latest_blockhash(commitment)
            yield self.assemble(
                group,
                resp.value.blockhash,
                sequence_index=i + 1,
                total=total,
                last_valid_block_height=resp.value.last_valid_block_height,
            )
