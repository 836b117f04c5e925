"""
Merkle Proof Uploader
=====================
Pushes per-wallet merkle proofs for a permissioned alpha vault to a
Cloudflare KV namespace, where the vault's proof API serves them.

Proof files are JSON objects keyed by wallet address:

    {"<wallet>": {"merkle_tree": "...", "amount": 100, "proof": [[...], ...]}}

Each entry becomes a KV item keyed "<vault>-<wallet>". Items go out in
bulk requests of 250, several requests in flight at once. A failed request
is retried with exponential backoff up to `max_attempts`, then the upload
aborts with ProofUploadError.
"""

import asyncio
import json
import os
from typing import Any, Dict, List, Optional, Sequence, TypeVar

import httpx

from poolpilot.config.settings import Settings
from poolpilot.shared.execution.errors import ProofUploadError
from poolpilot.shared.system.logging import Logger

T = TypeVar("T")


def chunks(items: Sequence[T], size: int) -> List[List[T]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class MerkleProofUploader:
    """
    Usage:
        uploader = MerkleProofUploader(account_id, namespace_id, api_key)
        count = await uploader.upload("./proofs", str(vault_pubkey))
    """

    BASE_URL = "https://api.cloudflare.com/client/v4"
    FILE_CHUNK_SIZE = 10_000
    REQUEST_CHUNK_SIZE = 250

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_key: str,
        max_attempts: int = Settings.PROOF_UPLOAD_MAX_ATTEMPTS,
        concurrency: int = Settings.PROOF_UPLOAD_CONCURRENCY,
        base_delay_sec: float = 1.0,
        max_delay_sec: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.account_id = account_id
        self.namespace_id = namespace_id
        self.api_key = api_key
        self.max_attempts = max_attempts
        self.concurrency = max(1, concurrency)
        self.base_delay_sec = base_delay_sec
        self.max_delay_sec = max_delay_sec
        self._client = client

    @property
    def bulk_url(self) -> str:
        return (
            f"{self.BASE_URL}/accounts/{self.account_id}"
            f"/storage/kv/namespaces/{self.namespace_id}/bulk"
        )

    @staticmethod
    def read_proof_files(folder: str) -> List[Dict[str, Any]]:
        """Load every proof file in `folder`, sorted by name."""
        files = []
        for file_name in sorted(os.listdir(folder)):
            path = os.path.join(folder, file_name)
            if not os.path.isfile(path):
                continue
            Logger.info(f"[PROOF] Reading file {path}")
            try:
                with open(path, "r", encoding="utf-8") as f:
                    proofs = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ProofUploadError(f"failed to parse file {path}") from e
            if not isinstance(proofs, dict):
                raise ProofUploadError(f"Proof file {path} must contain a JSON object")
            files.append(proofs)
        return files

    @staticmethod
    def build_items(vault_address: str, proofs: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [
            {
                "key": f"{vault_address}-{wallet}",
                "value": json.dumps(value),
                "base64": False,
            }
            for wallet, value in proofs.items()
        ]

    async def upload(self, folder: str, vault_address: str) -> int:
        """Upload all proofs in `folder`. Returns the number of KV items written."""
        files = self.read_proof_files(folder)
        uploaded = 0

        client = self._client or httpx.AsyncClient(timeout=30.0)
        try:
            semaphore = asyncio.Semaphore(self.concurrency)
            for proofs in files:
                entries = list(proofs.items())
                for file_chunk in chunks(entries, self.FILE_CHUNK_SIZE):
                    items = self.build_items(vault_address, dict(file_chunk))
                    bodies = chunks(items, self.REQUEST_CHUNK_SIZE)
                    await self._put_all(client, semaphore, bodies)
                    uploaded += len(items)
                    Logger.info(f"[PROOF] Uploaded {uploaded} proofs")
        finally:
            if self._client is None:
                await client.aclose()

        Logger.success(f"[PROOF] Uploaded {uploaded} proofs for vault {vault_address}")
        return uploaded

    async def _put_all(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        bodies: List[List[Dict[str, Any]]],
    ) -> None:
        """Upload request bodies concurrently; the first failure cancels the rest."""
        tasks = [asyncio.ensure_future(self._put_chunk(client, semaphore, body)) for body in bodies]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Drain before the client is closed
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _put_chunk(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        body: List[Dict[str, Any]],
    ) -> None:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        last_error = ""
        for attempt in range(1, self.max_attempts + 1):
            async with semaphore:
                try:
                    resp = await client.put(self.bulk_url, content=json.dumps(body), headers=headers)
                    payload = resp.json()
                    if not isinstance(payload, dict):
                        payload = {"response": payload}
                    if resp.status_code == 200 and payload.get("success"):
                        return
                    last_error = f"HTTP {resp.status_code}: {payload.get('errors') or payload}"
                except (httpx.HTTPError, ValueError) as e:
                    last_error = str(e) or type(e).__name__

            if attempt < self.max_attempts:
                delay = min(self.base_delay_sec * (2 ** (attempt - 1)), self.max_delay_sec)
                Logger.warning(
                    f"[PROOF] Chunk of {len(body)} failed ({last_error}); "
                    f"retry {attempt}/{self.max_attempts - 1} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise ProofUploadError(
            f"Chunk of {len(body)} proofs failed after {self.max_attempts} attempts: {last_error}"
        )
