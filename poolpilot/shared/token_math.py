"""
Token amount and price helpers shared by the launch scripts.
"""

from decimal import Decimal, ROUND_FLOOR, localcontext
from typing import Any, Optional, Union

from solders.pubkey import Pubkey

from poolpilot.config.constants import (
    SOL_TOKEN_DECIMALS,
    SOL_TOKEN_MINT,
    USDC_TOKEN_DECIMALS,
    USDC_TOKEN_MINT,
)
from poolpilot.shared.execution.errors import ConfigurationError

# SPL mint layout: COption<Pubkey> (36) + supply u64 (8) -> decimals at 44
_MINT_DECIMALS_OFFSET = 44

Number = Union[int, float, str, Decimal]


def get_quote_mint(quote_symbol: Optional[str] = None, quote_mint: Optional[str] = None) -> Pubkey:
    """Resolve the quote token from either a symbol (SOL/USDC) or a mint address."""
    if quote_symbol is None and quote_mint is None:
        raise ConfigurationError("Either quoteSymbol or quoteMint must be provided")
    if quote_symbol and quote_mint:
        raise ConfigurationError("Cannot provide quoteSymbol and quoteMint at the same time")

    if quote_mint:
        return Pubkey.from_string(quote_mint)

    symbol = quote_symbol.lower()
    if symbol == "sol":
        return Pubkey.from_string(SOL_TOKEN_MINT)
    if symbol == "usdc":
        return Pubkey.from_string(USDC_TOKEN_MINT)
    raise ConfigurationError(f"Unsupported quote symbol: {quote_symbol}")


async def get_quote_decimals(
    rpc_client: Any,
    quote_symbol: Optional[str] = None,
    quote_mint: Optional[str] = None,
) -> int:
    """Decimals of the quote token; reads the mint account for custom mints."""
    if quote_symbol is None and quote_mint is None:
        raise ConfigurationError("Either quoteSymbol or quoteMint must be provided")

    if quote_mint:
        resp = await rpc_client.get_account_info(Pubkey.from_string(quote_mint))
        account = resp.value
        if account is None:
            raise ConfigurationError(f"Quote mint {quote_mint} not found")
        data = bytes(account.data)
        if len(data) <= _MINT_DECIMALS_OFFSET:
            raise ConfigurationError(f"Account {quote_mint} is not a token mint")
        return data[_MINT_DECIMALS_OFFSET]

    symbol = quote_symbol.lower()
    if symbol == "sol":
        return SOL_TOKEN_DECIMALS
    if symbol == "usdc":
        return USDC_TOKEN_DECIMALS
    raise ConfigurationError(f"Unsupported quote symbol: {quote_symbol}")


def get_amount_in_lamports(amount: Number, decimals: int) -> int:
    """UI amount -> base units (truncated toward zero)."""
    return int(Decimal(str(amount)) * (Decimal(10) ** decimals))


def get_decimalized_amount(amount_lamports: int, decimals: int) -> int:
    """Base units -> whole UI units (integer division)."""
    return amount_lamports // (10 ** decimals)


def get_sqrt_price_from_price(price: Number, token_a_decimals: int, token_b_decimals: int) -> int:
    """Q64.64 sqrt price for a UI price of token A in token B."""
    # Q64.64 needs more than the default 28 significant digits
    with localcontext() as ctx:
        ctx.prec = 60
        adjusted = Decimal(str(price)) / (Decimal(10) ** (token_a_decimals - token_b_decimals))
        sqrt_q64 = adjusted.sqrt() * (Decimal(2) ** 64)
        return int(sqrt_q64.to_integral_value(rounding=ROUND_FLOOR))
