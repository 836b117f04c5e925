"""
PoolPilot Test Mocks
====================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockRpcClient, MockSimulation

__all__ = [
    "MockRpcClient",
    "MockSimulation",
]
