"""
poolpilot
=========
Batching and submission layer for Solana pool and alpha-vault launch scripts.
"""

__version__ = "0.1.0"
