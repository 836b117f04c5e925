"""
CLI Unit Tests
==============
Typer commands driven through CliRunner with the RPC client mocked out.
"""

import base64
import json

import pytest
from solders.pubkey import Pubkey
from typer.testing import CliRunner

from poolpilot.cli import app
from tests.mocks.mock_rpc import MockSimulation

runner = CliRunner()


@pytest.fixture
def instructions_file(tmp_path):
    entries = [
        {
            "programId": str(Pubkey.new_unique()),
            "accounts": [{"pubkey": str(Pubkey.new_unique()), "isSigner": False, "isWritable": True}],
            "data": base64.b64encode(bytes([i])).decode(),
        }
        for i in range(5)
    ]
    path = tmp_path / "ixs.json"
    path.write_text(json.dumps(entries))
    return path


@pytest.fixture
def patched_rpc(monkeypatch, mock_rpc):
    monkeypatch.setattr("poolpilot.cli.AsyncClient", lambda *args, **kwargs: mock_rpc)
    return mock_rpc


@pytest.mark.unit
class TestShowConfig:

    def test_valid_config(self, config_file):
        result = runner.invoke(app, ["show-config", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "dlmm" in result.stdout

    def test_invalid_config_exits_1(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"rpcUrl": "x"}))

        result = runner.invoke(app, ["show-config", "--config", str(path)])

        assert result.exit_code == 1


@pytest.mark.unit
class TestSend:

    def test_dry_run_simulates_batches(self, config_file, instructions_file, patched_rpc):
        result = runner.invoke(
            app,
            ["send", "--config", str(config_file), "--instructions", str(instructions_file), "--per-tx", "2"],
        )

        assert result.exit_code == 0, result.stdout
        assert len(patched_rpc.simulated) == 3
        assert patched_rpc.sent_payloads == []

    def test_failed_batch_exits_1(self, config_file, instructions_file, patched_rpc):
        patched_rpc.queue_simulation(MockSimulation(), MockSimulation(err="InstructionError"))

        result = runner.invoke(
            app,
            ["send", "--config", str(config_file), "--instructions", str(instructions_file), "--per-tx", "2"],
        )

        assert result.exit_code == 1
        assert len(patched_rpc.simulated) == 2

    def test_missing_instruction_file_exits_1(self, config_file, tmp_path, patched_rpc):
        result = runner.invoke(
            app,
            ["send", "--config", str(config_file), "--instructions", str(tmp_path / "none.json")],
        )

        assert result.exit_code == 1
        assert patched_rpc.call_count == 0

    def test_per_tx_must_be_positive(self, config_file, instructions_file):
        result = runner.invoke(
            app,
            ["send", "--config", str(config_file), "--instructions", str(instructions_file), "--per-tx", "0"],
        )

        assert result.exit_code != 0


@pytest.mark.unit
class TestUploadProofs:

    def test_requires_cloudflare_section(self, config_file):
        result = runner.invoke(app, ["upload-proofs", "--config", str(config_file), "--vault", "vault1"])

        assert result.exit_code == 1
        assert "cloudflareKvProofUpload" in result.stdout
