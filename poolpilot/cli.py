"""
PoolPilot CLI
=============
Operator commands built with Typer + Rich.

Commands:
    poolpilot send --config launch.json --instructions ixs.json --per-tx 4
    poolpilot upload-proofs --config launch.json --vault <ALPHA_VAULT>
    poolpilot show-config --config launch.json

Whether `send` simulates or submits is decided by `dryRun` in the config.
"""

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair
from solders.instruction import Instruction

from poolpilot.config.constants import DEFAULT_COMMITMENT_LEVEL
from poolpilot.config.launch_config import LaunchConfig, load_config
from poolpilot.execution.batch_sender import send_instructions_in_batches
from poolpilot.execution.instruction_file import load_instructions_file
from poolpilot.execution.wallet import load_keypair_file
from poolpilot.proofs.kv_uploader import MerkleProofUploader
from poolpilot.shared.execution.errors import ConfigurationError, PoolPilotError
from poolpilot.shared.execution.submission_result import SubmissionOutcome
from poolpilot.shared.system.logging import Logger

app = typer.Typer(
    name="poolpilot",
    help="PoolPilot - batched transaction sender for Solana pool and alpha vault launches",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def _print_general(config: LaunchConfig, payer: Keypair) -> None:
    console.print(Panel.fit(
        f"RPC: {config.rpc_url}\n"
        f"Dry run: {'[green]YES[/green]' if config.dry_run else '[bold red]NO (LIVE)[/bold red]'}\n"
        f"Payer: {payer.pubkey()}\n"
        f"Priority fee: {config.compute_unit_price_micro_lamports} micro-lamports/CU",
        title="General configuration",
        border_style="cyan",
    ))


def _print_outcomes(outcomes: List[SubmissionOutcome]) -> None:
    table = Table(title="Batches")
    table.add_column("#", justify="right")
    table.add_column("Status")
    table.add_column("Signature")
    table.add_column("Resends", justify="right")
    table.add_column("Latency (ms)", justify="right")
    for outcome in outcomes:
        table.add_row(
            str(outcome.batch_index),
            outcome.status.value,
            outcome.signature or "-",
            str(outcome.retries),
            f"{outcome.latency_ms:.0f}",
        )
    console.print(table)


async def _send(
    config: LaunchConfig,
    payer: Keypair,
    extra_signers: List[Keypair],
    instructions: List[Instruction],
    per_tx: int,
    label: str,
) -> List[SubmissionOutcome]:
    async with AsyncClient(config.rpc_url, commitment=DEFAULT_COMMITMENT_LEVEL) as client:
        return await send_instructions_in_batches(
            client,
            instructions,
            per_tx,
            payer,
            config.execution_config(),
            extra_signers=extra_signers,
            label=label,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: SEND
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def send(
    config: str = typer.Option(..., "--config", "-c", help="Launch config JSON file"),
    instructions: str = typer.Option(..., "--instructions", "-i", help="Instruction JSON file"),
    per_tx: int = typer.Option(4, "--per-tx", min=1, help="Instructions per transaction"),
    label: str = typer.Option("", "--label", help="Label used in progress lines"),
    signer: Optional[List[str]] = typer.Option(None, "--signer", help="Extra signer keypair file (repeatable)"),
):
    """
    Simulate or send a list of instructions in batched transactions.

    Each transaction gets the configured priority fee as its first
    instruction. The run stops at the first failed batch.
    """
    try:
        launch = load_config(config)
        payer = load_keypair_file(launch.keypair_file_path)
        extra_signers = [load_keypair_file(path) for path in (signer or [])]
        ixs = load_instructions_file(instructions)
    except PoolPilotError as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    _print_general(launch, payer)
    Logger.info(f"[CLI] Loaded {len(ixs)} instructions from {instructions}")

    try:
        outcomes = asyncio.run(_send(launch, payer, extra_signers, ixs, per_tx, label))
    except PoolPilotError as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    _print_outcomes(outcomes)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: UPLOAD-PROOFS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("upload-proofs")
def upload_proofs(
    config: str = typer.Option(..., "--config", "-c", help="Launch config JSON file"),
    vault: str = typer.Option(..., "--vault", help="Alpha vault address"),
):
    """
    Upload merkle proofs for a permissioned alpha vault to Cloudflare KV.

    Reads `alphaVault.cloudflareKvProofUpload` credentials from the config
    and proofs from `alphaVault.kvProofFilepath` (default: ./<vault>).
    """
    try:
        launch = load_config(config)
        vault_config = launch.alpha_vault
        if vault_config is None:
            raise ConfigurationError("Missing alpha vault in configuration")
        kv = vault_config.cloudflare_kv_proof_upload
        if kv is None:
            raise ConfigurationError("Missing alphaVault.cloudflareKvProofUpload in configuration")

        folder = vault_config.kv_proof_filepath or f"./{vault}"
        uploader = MerkleProofUploader(kv.account_id, kv.kv_namespace_id, kv.api_key)
        count = asyncio.run(uploader.upload(folder, vault))
    except (PoolPilotError, OSError) as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Uploaded {count} proofs[/green]")


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: SHOW-CONFIG
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("show-config")
def show_config(
    config: str = typer.Option(..., "--config", "-c", help="Launch config JSON file"),
):
    """Validate a launch config and print which sections it enables."""
    try:
        launch = load_config(config)
    except PoolPilotError as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        raise typer.Exit(1)

    table = Table(title=config)
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("rpcUrl", launch.rpc_url)
    table.add_row("dryRun", str(launch.dry_run))
    table.add_row("keypairFilePath", launch.keypair_file_path)
    table.add_row("computeUnitPriceMicroLamports", str(launch.compute_unit_price_micro_lamports))
    sections = {
        "createBaseToken": launch.create_base_token,
        "dynamicAmm": launch.dynamic_amm,
        "dynamicAmmV2": launch.dynamic_amm_v2,
        "dlmm": launch.dlmm,
        "alphaVault": launch.alpha_vault,
        "lockLiquidity": launch.lock_liquidity,
        "lfgSeedLiquidity": launch.lfg_seed_liquidity,
        "singleBinSeedLiquidity": launch.single_bin_seed_liquidity,
        "m3m3": launch.m3m3,
        "setDlmmPoolStatus": launch.set_dlmm_pool_status,
    }
    for name, section in sections.items():
        table.add_row(name, "[green]set[/green]" if section is not None else "[dim]-[/dim]")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
