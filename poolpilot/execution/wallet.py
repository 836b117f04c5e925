"""
Keypair loading for launch configs.

Keypair files use the solana-keygen format: a JSON array of 64 byte values.
"""

import json

from solders.keypair import Keypair
from solders.signature import Signature

from poolpilot.shared.execution.errors import ConfigurationError
from poolpilot.shared.system.logging import Logger


def load_keypair_file(path: str) -> Keypair:
    """Read a solana-keygen JSON keypair file."""
    try:
        with open(path, "r") as f:
            secret = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        Logger.error(f"[CONFIG] Error reading or parsing keypair file {path}: {e}")
        raise ConfigurationError(f"failed to parse file {path}") from e

    if not isinstance(secret, list) or len(secret) != 64:
        raise ConfigurationError(f"Keypair file {path} must hold a JSON array of 64 bytes")

    try:
        return Keypair.from_bytes(bytes(secret))
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid keypair in {path}: {e}") from e


def keypair_from_secret_key(secret_key: str) -> Keypair:
    """Decode a base58 encoded 64-byte secret key."""
    try:
        # Signature parses any 64-byte base58 string
        raw = bytes(Signature.from_string(secret_key.strip()))
        return Keypair.from_bytes(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid base58 secret key: {e}") from e
