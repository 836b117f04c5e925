"""
Merkle Proof Uploader Unit Tests
================================
Chunking, request shape and bounded retries, with an AsyncMock HTTP client.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from poolpilot.proofs.kv_uploader import MerkleProofUploader, chunks
from poolpilot.shared.execution.errors import ProofUploadError


def _response(status_code=200, success=True):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = {"success": success, "errors": [] if success else [{"code": 10000}]}
    return resp


def _write_proofs(folder, count, name="proofs_0.json"):
    folder.mkdir(exist_ok=True)
    proofs = {
        f"wallet{i}": {"merkle_tree": "tree", "amount": i, "proof": [[i, i + 1]]}
        for i in range(count)
    }
    (folder / name).write_text(json.dumps(proofs))
    return proofs


def _uploader(client, **kwargs):
    params = dict(max_attempts=3, concurrency=2, base_delay_sec=0.0, max_delay_sec=0.0, client=client)
    params.update(kwargs)
    return MerkleProofUploader("acct", "ns", "secret", **params)


@pytest.mark.unit
def test_chunks():
    assert chunks([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunks([], 3) == []


@pytest.mark.unit
class TestMerkleProofUploader:

    def test_bulk_url(self):
        uploader = _uploader(None)
        assert uploader.bulk_url == (
            "https://api.cloudflare.com/client/v4/accounts/acct/storage/kv/namespaces/ns/bulk"
        )

    def test_build_items_keys_by_vault_and_wallet(self):
        items = MerkleProofUploader.build_items("vault1", {"w1": {"amount": 1}})

        assert items == [{"key": "vault1-w1", "value": json.dumps({"amount": 1}), "base64": False}]

    @pytest.mark.asyncio
    async def test_uploads_in_request_chunks(self, tmp_path):
        _write_proofs(tmp_path / "proofs", 600)
        client = AsyncMock()
        client.put.return_value = _response()

        count = await _uploader(client).upload(str(tmp_path / "proofs"), "vault1")

        assert count == 600
        # 600 items -> 250 + 250 + 100
        sizes = sorted(len(json.loads(c.kwargs["content"])) for c in client.put.call_args_list)
        assert sizes == [100, 250, 250]

    @pytest.mark.asyncio
    async def test_sends_bearer_token(self, tmp_path):
        _write_proofs(tmp_path / "proofs", 1)
        client = AsyncMock()
        client.put.return_value = _response()

        await _uploader(client).upload(str(tmp_path / "proofs"), "vault1")

        headers = client.put.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, tmp_path):
        _write_proofs(tmp_path / "proofs", 3)
        client = AsyncMock()
        client.put.side_effect = [httpx.ConnectError("refused"), _response(500, False), _response()]

        count = await _uploader(client).upload(str(tmp_path / "proofs"), "vault1")

        assert count == 3
        assert client.put.call_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, tmp_path):
        _write_proofs(tmp_path / "proofs", 3)
        client = AsyncMock()
        client.put.return_value = _response(200, False)

        with pytest.raises(ProofUploadError, match="after 3 attempts"):
            await _uploader(client).upload(str(tmp_path / "proofs"), "vault1")

        assert client.put.call_count == 3

    @pytest.mark.asyncio
    async def test_failed_chunk_cancels_requests_in_flight(self, tmp_path):
        _write_proofs(tmp_path / "proofs", 2)
        second_started = asyncio.Event()
        calls = []
        cancelled = []

        async def put(url, content=None, headers=None):
            calls.append(content)
            if len(calls) == 1:
                await second_started.wait()
                raise httpx.ConnectError("refused")
            second_started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(content)
                raise

        client = AsyncMock()
        client.put.side_effect = put
        uploader = _uploader(client, max_attempts=1)
        uploader.REQUEST_CHUNK_SIZE = 1

        with pytest.raises(ProofUploadError, match="after 1 attempts"):
            await uploader.upload(str(tmp_path / "proofs"), "vault1")

        assert len(calls) == 2
        assert cancelled == [calls[1]]

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self, tmp_path):
        _write_proofs(tmp_path / "proofs", 1)
        client = AsyncMock()
        client.put.return_value = _response()

        await _uploader(client).upload(str(tmp_path / "proofs"), "vault1")

        client.aclose.assert_not_called()

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            _uploader(None, max_attempts=0)

    def test_malformed_proof_file(self, tmp_path):
        folder = tmp_path / "proofs"
        folder.mkdir()
        (folder / "bad.json").write_text("[1, 2]")

        with pytest.raises(ProofUploadError, match="JSON object"):
            MerkleProofUploader.read_proof_files(str(folder))
