"""
Priority Fee Injection
======================
Set-compute-unit-price handling for the two transaction shapes the launch
scripts deal with.

- LegacyTransaction: a mutable instruction list plus fee payer/blockhash.
  Built by this package (TransactionAssembler) or by callers.
- CompiledTransaction: wraps a solders VersionedTransaction produced by an
  external SDK. Its instructions are already compiled against a static
  account-key table, so a fee instruction can be rewritten but never added.

Usage:
    from poolpilot.execution.priority_fee import CompiledTransaction, inject_priority_fee

    tx = CompiledTransaction(sdk_versioned_tx)
    if not inject_priority_fee(tx, 50_000):
        Logger.warning("[FEE] No fee instruction to rewrite")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Union

from solders.compute_budget import set_compute_unit_price
from solders.hash import Hash
from solders.instruction import CompiledInstruction, Instruction
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.transaction import Transaction, VersionedTransaction

from poolpilot.config.constants import (
    COMPUTE_BUDGET_PROGRAM_ID,
    SET_COMPUTE_UNIT_PRICE_DISCRIMINATOR,
)
from poolpilot.shared.system.logging import Logger


def build_priority_fee_instruction(micro_lamports: int) -> Instruction:
    """SetComputeUnitPrice instruction (micro-lamports per compute unit)."""
    if micro_lamports < 0:
        raise ValueError(f"Priority fee must be non-negative, got {micro_lamports}")
    return set_compute_unit_price(int(micro_lamports))


def is_priority_fee_instruction(program_id: Pubkey, data: bytes) -> bool:
    """True for a compute-budget instruction whose opcode sets the unit price."""
    return (
        program_id == COMPUTE_BUDGET_PROGRAM_ID
        and len(data) > 0
        and data[0] == SET_COMPUTE_UNIT_PRICE_DISCRIMINATOR
    )


# ═══════════════════════════════════════════════════════════════════════════════
# LEGACY VARIANT
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class LegacyTransaction:
    """Unsigned legacy transaction with a flat, editable instruction list."""

    fee_payer: Pubkey
    recent_blockhash: Hash = field(default_factory=Hash.default)
    instructions: List[Instruction] = field(default_factory=list)

    def add(self, *instructions: Instruction) -> "LegacyTransaction":
        self.instructions.extend(instructions)
        return self

    def compile_message(self) -> Message:
        return Message.new_with_blockhash(self.instructions, self.fee_payer, self.recent_blockhash)

    def serialize_unsigned(self) -> bytes:
        """Wire bytes with placeholder (all-zero) signatures."""
        return bytes(Transaction.new_unsigned(self.compile_message()))

    def serialized_size(self) -> int:
        return len(self.serialize_unsigned())

    def sign(self, signers: Sequence[Keypair]) -> Transaction:
        # SignerError on signer mismatch
        tx = Transaction.new_unsigned(self.compile_message())
        tx.sign(list(signers), self.recent_blockhash)
        return tx

    def find_or_append_fee_instruction(self, micro_lamports: int) -> bool:
        fee_ix = build_priority_fee_instruction(micro_lamports)

        for i, ix in enumerate(self.instructions):
            if is_priority_fee_instruction(ix.program_id, bytes(ix.data)):
                self.instructions[i] = Instruction(ix.program_id, bytes(fee_ix.data), ix.accounts)
                return True

        self.instructions.append(fee_ix)
        return True


# ═══════════════════════════════════════════════════════════════════════════════
# VERSIONED VARIANT
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class CompiledTransaction:
    """
    Already-compiled versioned transaction (legacy or v0 message).

    The wrapped transaction is replaced, not edited, when a fee instruction
    is rewritten; existing signatures are carried over and must be refreshed
    with sign() before sending.
    """

    transaction: VersionedTransaction

    @property
    def message(self) -> Union[Message, MessageV0]:
        return self.transaction.message

    @property
    def instructions(self) -> List[CompiledInstruction]:
        return list(self.message.instructions)

    def serialized_size(self) -> int:
        return len(bytes(self.transaction))

    def sign(self, signers: Sequence[Keypair]) -> VersionedTransaction:
        return VersionedTransaction(self.message, list(signers))

    def find_or_append_fee_instruction(self, micro_lamports: int) -> bool:
        fee_data = bytes(build_priority_fee_instruction(micro_lamports).data)
        message = self.message
        account_keys = list(message.account_keys)
        instructions = list(message.instructions)

        for i, ix in enumerate(instructions):
            if ix.program_id_index >= len(account_keys):
                continue
            program_id = account_keys[ix.program_id_index]
            if is_priority_fee_instruction(program_id, bytes(ix.data)):
                instructions[i] = CompiledInstruction(ix.program_id_index, fee_data, bytes(ix.accounts))
                self.transaction = VersionedTransaction.populate(
                    _rebuild_message(message, instructions),
                    list(self.transaction.signatures),
                )
                return True

        # Appending would require recompiling against the account table
        return False


def _rebuild_message(
    message: Union[Message, MessageV0],
    instructions: List[CompiledInstruction],
) -> Union[Message, MessageV0]:
    header = message.header
    if isinstance(message, MessageV0):
        return MessageV0(
            header,
            list(message.account_keys),
            message.recent_blockhash,
            instructions,
            list(message.address_table_lookups),
        )
    return Message.new_with_compiled_instructions(
        header.num_required_signatures,
        header.num_readonly_signed_accounts,
        header.num_readonly_unsigned_accounts,
        list(message.account_keys),
        message.recent_blockhash,
        instructions,
    )


TransactionVariant = Union[LegacyTransaction, CompiledTransaction]


def inject_priority_fee(transaction: TransactionVariant, micro_lamports: int) -> bool:
    """
    Rewrite (or, for legacy transactions, append) the priority fee instruction.

    Returns:
        True if the transaction now carries `micro_lamports`, False when a
        compiled transaction has no fee instruction to rewrite.
    """
    if not isinstance(transaction, (LegacyTransaction, CompiledTransaction)):
        raise TypeError(f"Unsupported transaction type: {type(transaction).__name__}")

    injected = transaction.find_or_append_fee_instruction(micro_lamports)
    if injected:
        Logger.debug(f"[FEE] Priority fee set to {micro_lamports} micro-lamports/CU")
    else:
        Logger.debug("[FEE] No compute unit price instruction found in compiled transaction")
    return injected
