"""
Network Constants
=================
Compute budget program, well-known mints and transaction limits.
"""

from solders.pubkey import Pubkey

# ═══════════════════════════════════════════════════════════════════
# PROGRAMS
# ═══════════════════════════════════════════════════════════════════

COMPUTE_BUDGET_PROGRAM_ID = Pubkey.from_string("ComputeBudget111111111111111111111111111111")

# Set compute unit price opcode (first data byte)
SET_COMPUTE_UNIT_PRICE_DISCRIMINATOR = 3

# ═══════════════════════════════════════════════════════════════════
# TOKENS
# ═══════════════════════════════════════════════════════════════════

SOL_TOKEN_MINT = "So11111111111111111111111111111111111111112"
SOL_TOKEN_DECIMALS = 9
USDC_TOKEN_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDC_TOKEN_DECIMALS = 6

# ═══════════════════════════════════════════════════════════════════
# TRANSACTIONS
# ═══════════════════════════════════════════════════════════════════

DEFAULT_COMMITMENT_LEVEL = "confirmed"
DEFAULT_SEND_TX_MAX_RETRIES = 3

# Max serialized (raw) transaction size accepted by the cluster
MAX_TRANSACTION_SIZE = 1232
