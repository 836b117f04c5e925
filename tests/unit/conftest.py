"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO NETWORK ALLOWED.

RPC traffic goes through tests.mocks.MockRpcClient; HTTP traffic through
injected AsyncMock clients. File system access is limited to tmp_path.
"""

import pytest


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Inject a mock client instead."
        )

    monkeypatch.setattr("httpx.AsyncClient.get", block_network)
    monkeypatch.setattr("httpx.AsyncClient.post", block_network)
    monkeypatch.setattr("httpx.AsyncClient.put", block_network)
    monkeypatch.setattr("httpx.AsyncClient.send", block_network)


# ============================================================================
# FILE FIXTURES
# ============================================================================


@pytest.fixture
def keypair_file(tmp_path, payer):
    """solana-keygen style keypair file for the `payer` fixture."""
    import json

    path = tmp_path / "keypair.json"
    path.write_text(json.dumps(list(bytes(payer))))
    return path


@pytest.fixture
def config_file(tmp_path, sample_config_dict, keypair_file):
    """Launch config on disk pointing at `keypair_file`."""
    import json

    data = dict(sample_config_dict, keypairFilePath=str(keypair_file))
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    return path
