"""
PoolPilot Test Configuration
============================
Shared fixtures and pytest markers for the test suite.
"""

import os
import sys
import tempfile

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep test runs out of the real log directory and off the console
os.environ.setdefault("POOLPILOT_LOG_DIR", tempfile.mkdtemp(prefix="poolpilot_logs_"))
os.environ.setdefault("POOLPILOT_SILENT", "1")


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: pure logic tests with no I/O"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def payer():
    """Fresh fee payer keypair."""
    from solders.keypair import Keypair

    return Keypair()


@pytest.fixture
def make_instructions():
    """
    Factory for distinct dummy instructions.

    Each instruction targets its own program with one writable account and
    carries its position as data, so order can be checked after batching.
    """
    from solders.instruction import AccountMeta, Instruction
    from solders.pubkey import Pubkey

    def _make(count: int):
        return [
            Instruction(
                Pubkey.new_unique(),
                bytes([i % 256, i // 256]),
                [AccountMeta(Pubkey.new_unique(), False, True)],
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def mock_rpc():
    """Scriptable async RPC client."""
    from tests.mocks.mock_rpc import MockRpcClient

    return MockRpcClient()


@pytest.fixture
def fast_config():
    """ExecutionConfig factory with zero backoff and confirm sleep."""
    from poolpilot.execution.submitter import ExecutionConfig

    def _make(**kwargs):
        params = dict(retry_delay_sec=0.0, max_retry_delay_sec=0.0, confirm_sleep_sec=0.0)
        params.update(kwargs)
        return ExecutionConfig(**params)

    return _make


@pytest.fixture
def sample_config_dict():
    """Minimal valid launch config (DLMM with alpha vault)."""
    return {
        "rpcUrl": "https://api.devnet.solana.com",
        "dryRun": True,
        "keypairFilePath": "./keypair.json",
        "computeUnitPriceMicroLamports": 100000,
        "quoteSymbol": "SOL",
        "dlmm": {
            "binStep": 200,
            "feeBps": 200,
            "initialPrice": 0.5,
            "activationType": "timestamp",
            "activationPoint": 1733315300,
            "priceRounding": "up",
            "hasAlphaVault": True,
        },
        "alphaVault": {
            "poolType": "dlmm",
            "alphaVaultType": "fcfs",
            "depositingPoint": 1733300000,
            "startVestingPoint": 1733315400,
            "endVestingPoint": 1733315500,
            "maxDepositCap": 5,
            "individualDepositingCap": 1,
            "escrowFee": 0,
            "whitelistMode": "permissionless",
        },
    }
