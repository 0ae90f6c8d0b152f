"""
Token registry for Ethereum, Arbitrum, BNB Chain and Solana

Maps user-facing symbols to contract addresses / mints and decimals.
Lookups are case-insensitive. Some symbols map to a wrapped asset,
e.g. BTC on Ethereum resolves to WBTC.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union

from ..errors import UnsupportedTokenError
from .network import Network


# Stablecoins subject to the withdrawal minimum
STABLECOINS: FrozenSet[str] = frozenset({
    "USDT", "USDC", "BUSD", "DAI", "TUSD",
})

STABLECOIN_MIN_WITHDRAWAL = Decimal("1")


class TokenKind(Enum):
    NATIVE = "native"
    ERC20 = "erc20"
    SPL = "spl"


@dataclass(frozen=True)
class TokenDescriptor:
    """
    Token information

    Attributes:
        symbol: On-chain symbol (e.g., "WBTC" for the BTC entry on Ethereum)
        name: Full token name
        decimals: Number of decimal places (None when read live from chain)
        kind: Native, ERC20 or SPL
        address: Contract address or mint (None for native)
    """
    symbol: str
    name: str
    decimals: Optional[int]
    kind: TokenKind
    address: Optional[str] = None

    def __str__(self) -> str:
        return self.symbol

    @property
    def is_native(self) -> bool:
        return self.kind == TokenKind.NATIVE

    def raw_amount(self, ui_amount: Union[Decimal, int, str]) -> int:
        """
        Convert UI amount to raw amount

        Args:
            ui_amount: UI amount (Decimal, int, or str)

        Returns:
            Raw token amount (smallest units)
        """
        if self.decimals is None:
            raise ValueError(f"Decimals unknown for {self.symbol}")
        if not isinstance(ui_amount, Decimal):
            ui_amount = Decimal(str(ui_amount))
        return int(ui_amount * (Decimal(10) ** self.decimals))

    def ui_amount(self, raw_amount: int) -> Decimal:
        if self.decimals is None:
            raise ValueError(f"Decimals unknown for {self.symbol}")
        return Decimal(raw_amount) / (Decimal(10) ** self.decimals)


def _native(symbol: str, name: str, decimals: int) -> TokenDescriptor:
    return TokenDescriptor(symbol=symbol, name=name, decimals=decimals, kind=TokenKind.NATIVE)


def _erc20(symbol: str, name: str, address: str, decimals: int) -> TokenDescriptor:
    return TokenDescriptor(symbol=symbol, name=name, decimals=decimals, kind=TokenKind.ERC20, address=address)


def _spl(symbol: str, name: str, mint: str, decimals: int) -> TokenDescriptor:
    return TokenDescriptor(symbol=symbol, name=name, decimals=decimals, kind=TokenKind.SPL, address=mint)


# =============================================================================
# Registry keyed by network, then by lookup symbol
# =============================================================================

TOKENS: Dict[Network, Dict[str, TokenDescriptor]] = {
    Network.ETHEREUM: {
        "ETH": _native("ETH", "Ethereum", 18),
        "USDT": _erc20("USDT", "Tether USD", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6),
        "USD1": _erc20("USD1", "USD1", "0x8d0d000ee44948fc98c9b98a4fa4921476f08b0d", 18),
        "USDC": _erc20("USDC", "Token USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
        "BTC": _erc20("WBTC", "Wrapped Bitcoin", "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", 8),
    },
    Network.ARBITRUM: {
        "ETH": _native("ETH", "Ethereum", 18),
        "USDT": _erc20("USDT", "Tether USD", "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", 6),
        "USDC": _erc20("USDC", "Token USD Coin", "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", 6),
    },
    Network.BNB: {
        "BNB": _native("BNB", "BNB", 18),
        "USDT": _erc20("USDT", "Tether USD", "0x55d398326f99059fF775485246999027B3197955", 18),
        "ASTER": _erc20("ASTER", "Aster Token", "0x000Ae314E2A2172a039B26378814C252734f556A", 18),
        "USD1": _erc20("USD1", "USD1", "0x8d0D000Ee44948FC98c9B98A4FA4921476f08B0d", 18),
        "APX": _erc20("APX", "Token APX Token", "0x78F5d389F5CDCcFc41594aBaB4B0Ed02F31398b3", 18),
        "ETH": _erc20("wBETH", "Token Wrapped Binance Beacon ETH", "0xa2E3356610840701BDf5611a53974510Ae27E2e1", 18),
        "BTC": _erc20("BTCB", "Token Binance-Peg BTCB Token", "0x7130d2A12B9BCbFAe4f2634d864A1Ee1Ce3Ead9c", 18),
    },
    Network.SOLANA: {
        "SOL": _native("SOL", "Solana", 9),
        "USDT": _spl("USDT", "Tether USD", "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB", 6),
        "USDC": _spl("USDC", "USD Coin", "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", 6),
        "JLP": _spl("JLP", "Jupiter LP Token", "27G8MtK7VtTcCHkpASjSDdkWWYfoqT6ggEuKidVJidD4", 6),
        "USD1": _spl("USD1", "USD1", "USD1ttGY1N17NEEHLmELoaybftRBUSErhqYiQzvEmuB", 9),
        "BTC": _spl("BTC", "Wrapped Bitcoin (Sollet)", "9n4nbM75f5Ui33ZbPYXn59EwSgE8CGsHtAeTH5YFeJ9E", 6),
    },
}


_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_evm_address(value: str) -> bool:
    return bool(value) and bool(_EVM_ADDRESS_RE.match(value))


def is_solana_address(value: str) -> bool:
    return bool(value) and bool(_SOLANA_ADDRESS_RE.match(value))


def get_token(network, symbol: str) -> Optional[TokenDescriptor]:
    """
    Look up a registered token by symbol (case-insensitive)

    Returns:
        TokenDescriptor or None if not registered
    """
    network = Network.from_string(network)
    if not symbol:
        return None
    return TOKENS[network].get(symbol.strip().upper())


def resolve_token(network, token: str) -> TokenDescriptor:
    """
    Resolve a symbol or raw address to a token descriptor

    Registered symbols resolve case-insensitively. A raw contract address
    (EVM) or mint (Solana) yields an ad-hoc descriptor whose decimals
    must be read from chain.

    Raises:
        UnsupportedTokenError: Symbol unknown on network
    """
    network = Network.from_string(network)
    descriptor = get_token(network, token)
    if descriptor is not None:
        return descriptor

    if network.is_evm and is_evm_address(token):
        for known in TOKENS[network].values():
            if known.address and known.address.lower() == token.lower():
                return known
        return TokenDescriptor(symbol=token, name=token, decimals=None, kind=TokenKind.ERC20, address=token)

    if network == Network.SOLANA and is_solana_address(token):
        for known in TOKENS[network].values():
            if known.address == token:
                return known
        return TokenDescriptor(symbol=token, name=token, decimals=None, kind=TokenKind.SPL, address=token)

    raise UnsupportedTokenError.not_found(token, network.value, list_tokens(network))


def list_tokens(network) -> List[str]:
    """List registered lookup symbols for a network"""
    return list(TOKENS[Network.from_string(network)].keys())


def list_all_tokens() -> Dict[str, List[str]]:
    """List registered symbols for every network"""
    return {network.value: list(tokens.keys()) for network, tokens in TOKENS.items()}


def is_stablecoin(symbol: str) -> bool:
    return bool(symbol) and symbol.strip().upper() in STABLECOINS
