"""
Launch Configuration
====================
Pydantic models for the JSON config file shared by every launch script.

Field names follow the camelCase keys of the file (via aliases). Pool and
vault sections are validated for shape only; their business rules belong to
the SDKs that consume them.

Usage:
    config = load_config("config/create_dlmm_pool.json")
    exec_config = config.execution_config()
"""

import json
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from poolpilot.execution.submitter import ExecutionConfig
from poolpilot.shared.execution.errors import ConfigurationError
from poolpilot.shared.system.logging import Logger

Amount = Union[int, float, str]
ActivationType = Literal["slot", "timestamp"]


class PoolTypeConfig(str, Enum):
    DYNAMIC = "dynamic"
    DLMM = "dlmm"
    DAMM_V2 = "damm2"


class AlphaVaultTypeConfig(str, Enum):
    FCFS = "fcfs"
    PRORATA = "prorata"


class WhitelistModeConfig(str, Enum):
    PERMISSIONLESS = "permissionless"
    PERMISSIONED_WITH_MERKLE_PROOF = "permissioned_with_merkle_proof"
    PERMISSIONED_WITH_AUTHORITY = "permissioned_with_authority"


class _Strict(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class _Open(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# ═══════════════════════════════════════════════════════════════════════════════
# SECTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class CreateBaseTokenConfig(_Strict):
    mint_base_token_amount: Amount = Field(..., alias="mintBaseTokenAmount")
    base_decimals: int = Field(..., alias="baseDecimals", ge=0)


class DynamicAmmConfig(_Strict):
    base_amount: Amount = Field(..., alias="baseAmount")
    quote_amount: Amount = Field(..., alias="quoteAmount")
    trade_fee_numerator: int = Field(..., alias="tradeFeeNumerator")
    activation_type: ActivationType = Field(..., alias="activationType")
    activation_point: Optional[int] = Field(default=None, alias="activationPoint")
    has_alpha_vault: bool = Field(..., alias="hasAlphaVault")


class DynamicFeeConfig(_Open):
    filter_period: int = Field(..., alias="filterPeriod")
    decay_period: int = Field(..., alias="decayPeriod")
    reduction_factor: int = Field(..., alias="reductionFactor")
    variable_fee_control: int = Field(..., alias="variableFeeControl")
    max_volatility_accumulator: int = Field(..., alias="maxVolatilityAccumulator")


class DynamicAmmV2Config(_Strict):
    creator: Optional[str] = None
    base_amount: Optional[Amount] = Field(default=None, alias="baseAmount")
    quote_amount: Optional[Amount] = Field(default=None, alias="quoteAmount")
    cliff_fee_numerator: int = Field(..., alias="cliffFeeNumerator")
    number_of_period: int = Field(default=0, alias="numberOfPeriod")
    period_frequency: int = Field(..., alias="periodFrequency")
    reduction_factor: int = Field(default=0, alias="reductionFactor")
    fee_scheduler_mode: Literal[0, 1] = Field(default=0, alias="feeSchedulerMode")
    collect_fee_mode: Literal[0, 1] = Field(..., alias="collectFeeMode")
    init_price: Optional[str] = Field(default=None, alias="initPrice")
    create_pool_single_side: bool = Field(default=False, alias="createPoolSingleSide")
    min_sqrt_price: Optional[str] = Field(default=None, alias="minSqrtPrice")
    max_sqrt_price: Optional[str] = Field(default=None, alias="maxSqrtPrice")
    activation_type: ActivationType = Field(..., alias="activationType")
    activation_point: Optional[int] = Field(default=None, alias="activationPoint")
    has_alpha_vault: bool = Field(..., alias="hasAlphaVault")
    dynamic_fee: Optional[DynamicFeeConfig] = Field(default=None, alias="dynamicFee")


class DlmmConfig(_Strict):
    bin_step: int = Field(..., alias="binStep")
    fee_bps: int = Field(..., alias="feeBps")
    initial_price: float = Field(..., alias="initialPrice")
    activation_type: ActivationType = Field(..., alias="activationType")
    activation_point: Optional[int] = Field(default=None, alias="activationPoint")
    price_rounding: Literal["up", "down"] = Field(..., alias="priceRounding")
    has_alpha_vault: bool = Field(..., alias="hasAlphaVault")
    creator_pool_on_off_control: bool = Field(default=False, alias="creatorPoolOnOffControl")


class CloudflareKvProofUploadConfig(_Open):
    kv_namespace_id: str = Field(..., alias="kvNamespaceId")
    account_id: str = Field(..., alias="accountId")
    api_key: str = Field(..., alias="apiKey")


class AlphaVaultConfig(_Open):
    # Kept as plain strings; unsupported values are reported by
    # extra_config_validation with the same messages as the launch scripts.
    pool_type: str = Field(..., alias="poolType")
    alpha_vault_type: str = Field(..., alias="alphaVaultType")
    depositing_point: int = Field(..., alias="depositingPoint")
    start_vesting_point: int = Field(..., alias="startVestingPoint")
    end_vesting_point: int = Field(..., alias="endVestingPoint")
    max_deposit_cap: Optional[float] = Field(default=None, alias="maxDepositCap")
    individual_depositing_cap: Optional[float] = Field(default=None, alias="individualDepositingCap")
    max_buying_cap: Optional[float] = Field(default=None, alias="maxBuyingCap")
    escrow_fee: float = Field(..., alias="escrowFee")
    whitelist_mode: WhitelistModeConfig = Field(..., alias="whitelistMode")
    whitelist_filepath: Optional[str] = Field(default=None, alias="whitelistFilepath")
    merkle_proof_base_url: Optional[str] = Field(default=None, alias="merkleProofBaseUrl")
    cloudflare_kv_proof_upload: Optional[CloudflareKvProofUploadConfig] = Field(
        default=None, alias="cloudflareKvProofUpload"
    )
    kv_proof_filepath: Optional[str] = Field(default=None, alias="kvProofFilepath")


class LockLiquidityAllocation(_Open):
    percentage: float
    address: str


class LockLiquidityConfig(_Open):
    allocations: List[LockLiquidityAllocation]


class _SeedLiquidityBase(_Open):
    seed_amount: str = Field(..., alias="seedAmount")
    base_position_keypair_filepath: str = Field(..., alias="basePositionKeypairFilepath")
    operator_keypair_filepath: str = Field(..., alias="operatorKeypairFilepath")
    position_owner: str = Field(..., alias="positionOwner")
    fee_owner: str = Field(..., alias="feeOwner")
    lock_release_point: int = Field(..., alias="lockReleasePoint")
    seed_token_x_to_position_owner: bool = Field(..., alias="seedTokenXToPositionOwner")


class LfgSeedLiquidityConfig(_SeedLiquidityBase):
    min_price: float = Field(..., alias="minPrice")
    max_price: float = Field(..., alias="maxPrice")
    curvature: float


class SingleBinSeedLiquidityConfig(_SeedLiquidityBase):
    price: float
    price_rounding: str = Field(..., alias="priceRounding")


class M3m3Config(_Open):
    top_list_length: int = Field(..., alias="topListLength")
    unstake_lock_duration_secs: int = Field(..., alias="unstakeLockDurationSecs")
    seconds_to_full_unlock: int = Field(..., alias="secondsToFullUnlock")
    start_fee_distribute_timestamp: int = Field(..., alias="startFeeDistributeTimestamp")


class SetDlmmPoolStatusConfig(_Open):
    pool_address: str = Field(..., alias="poolAddress")
    enabled: bool


# ═══════════════════════════════════════════════════════════════════════════════
# ROOT
# ═══════════════════════════════════════════════════════════════════════════════

class LaunchConfig(_Open):
    """Root of a launch config file."""

    rpc_url: str = Field(..., alias="rpcUrl")
    dry_run: bool = Field(..., alias="dryRun")
    keypair_file_path: str = Field(..., alias="keypairFilePath")
    compute_unit_price_micro_lamports: int = Field(..., alias="computeUnitPriceMicroLamports", ge=0)

    create_base_token: Optional[CreateBaseTokenConfig] = Field(default=None, alias="createBaseToken")
    base_mint: Optional[str] = Field(default=None, alias="baseMint")
    quote_symbol: Optional[str] = Field(default=None, alias="quoteSymbol")
    quote_mint: Optional[str] = Field(default=None, alias="quoteMint")

    dynamic_amm: Optional[DynamicAmmConfig] = Field(default=None, alias="dynamicAmm")
    dynamic_amm_v2: Optional[DynamicAmmV2Config] = Field(default=None, alias="dynamicAmmV2")
    dlmm: Optional[DlmmConfig] = None
    alpha_vault: Optional[AlphaVaultConfig] = Field(default=None, alias="alphaVault")
    lock_liquidity: Optional[LockLiquidityConfig] = Field(default=None, alias="lockLiquidity")
    lfg_seed_liquidity: Optional[LfgSeedLiquidityConfig] = Field(default=None, alias="lfgSeedLiquidity")
    single_bin_seed_liquidity: Optional[SingleBinSeedLiquidityConfig] = Field(
        default=None, alias="singleBinSeedLiquidity"
    )
    m3m3: Optional[M3m3Config] = None
    set_dlmm_pool_status: Optional[SetDlmmPoolStatusConfig] = Field(default=None, alias="setDlmmPoolStatus")

    def execution_config(self, **overrides) -> ExecutionConfig:
        """Explicit per-invocation settings for the batching layer."""
        return ExecutionConfig(
            dry_run=self.dry_run,
            compute_unit_price_micro_lamports=self.compute_unit_price_micro_lamports,
            **overrides,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════════════

def extra_config_validation(config: LaunchConfig) -> None:
    """Cross-field rules the schema alone cannot express."""
    if not config.keypair_file_path:
        raise ConfigurationError("Missing keypairFilePath in config file.")
    if not config.rpc_url:
        raise ConfigurationError("Missing rpcUrl in config file.")

    if config.create_base_token and config.base_mint:
        raise ConfigurationError("Both createBaseToken and baseMint cannot be set simultaneously.")

    if config.dynamic_amm and config.dlmm:
        raise ConfigurationError("Both Dynamic AMM and DLMM configuration cannot be set simultaneously.")

    if config.dlmm and config.dlmm.has_alpha_vault:
        if config.quote_symbol is None and config.quote_mint is None:
            raise ConfigurationError("Either quoteSymbol or quoteMint must be provided for DLMM")

    if config.alpha_vault:
        vault_types = [t.value for t in AlphaVaultTypeConfig]
        if config.alpha_vault.alpha_vault_type not in vault_types:
            raise ConfigurationError(
                f"Alpha vault type {config.alpha_vault.alpha_vault_type} isn't supported."
            )
        pool_types = [t.value for t in PoolTypeConfig]
        if config.alpha_vault.pool_type not in pool_types:
            raise ConfigurationError(
                f"Alpha vault pool type {config.alpha_vault.pool_type} isn't supported."
            )


def validate_config(raw: dict) -> LaunchConfig:
    """Schema + cross-field validation of an already-decoded config."""
    try:
        config = LaunchConfig.model_validate(raw)
    except ValidationError as e:
        Logger.error(f"[CONFIG] {e}")
        raise ConfigurationError("Config file is invalid") from e

    extra_config_validation(config)
    return config


def load_config(path: str) -> LaunchConfig:
    """Read, parse and validate a launch config file."""
    Logger.info(f"[CONFIG] Using config file: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        Logger.error(f"[CONFIG] Error reading or parsing JSON file: {e}")
        raise ConfigurationError(f"failed to parse file {path}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    return validate_config(raw)
