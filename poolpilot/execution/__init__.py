"""
Execution Pipeline
==================
Instruction batching and submission.

Components:
- priority_fee: Fee instruction injection (legacy / compiled transactions)
- batch_planner: Instruction grouping
- TransactionAssembler: One transaction per group (The Architect)
- TransactionSubmitter: Simulation, sending, confirmation (The Pilot)
- batch_sender: Caller-facing entry points
"""

from poolpilot.execution.priority_fee import (
    LegacyTransaction,
    CompiledTransaction,
    TransactionVariant,
    build_priority_fee_instruction,
    inject_priority_fee,
)

from poolpilot.execution.batch_planner import (
    count_batches,
    plan_batches,
)

from poolpilot.execution.transaction_assembler import (
    TransactionAssembler,
    TransactionBatch,
)

from poolpilot.execution.submitter import (
    ExecutionConfig,
    TransactionSubmitter,
)

from poolpilot.execution.batch_sender import (
    send_instructions_in_batches,
    send_prepared_transaction,
    simulate_instructions,
)


__all__ = [
    # Fee
    "LegacyTransaction",
    "CompiledTransaction",
    "TransactionVariant",
    "build_priority_fee_instruction",
    "inject_priority_fee",
    # Planner
    "count_batches",
    "plan_batches",
    # Assembler
    "TransactionAssembler",
    "TransactionBatch",
    # Submitter
    "ExecutionConfig",
    "TransactionSubmitter",
    # Entry points
    "send_instructions_in_batches",
    "send_prepared_transaction",
    "simulate_instructions",
]
