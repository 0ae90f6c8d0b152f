"""
Type definitions for Aster Adapter
"""

from .network import (
    Network,
    NetworkKind,
    DepositContract,
    DEPOSIT_CONTRACTS,
    get_deposit_contract,
)
from .tokens import (
    TokenKind,
    TokenDescriptor,
    TOKENS,
    STABLECOINS,
    STABLECOIN_MIN_WITHDRAWAL,
    get_token,
    resolve_token,
    list_tokens,
    list_all_tokens,
    is_stablecoin,
    is_evm_address,
    is_solana_address,
)
from .requests import DepositRequest, WithdrawRequest, parse_amount, format_amount
from .result import (
    TxStatus,
    SignedOperationResult,
    FeeQuote,
    WithdrawalResult,
    OrderResult,
    AssetBalance,
    AccountSnapshot,
    TokenBalance,
    GeneratedWallet,
    WorkflowStep,
    WorkflowTrace,
)

__all__ = [
    # Networks
    "Network",
    "NetworkKind",
    "DepositContract",
    "DEPOSIT_CONTRACTS",
    "get_deposit_contract",
    # Tokens
    "TokenKind",
    "TokenDescriptor",
    "TOKENS",
    "STABLECOINS",
    "STABLECOIN_MIN_WITHDRAWAL",
    "get_token",
    "resolve_token",
    "list_tokens",
    "list_all_tokens",
    "is_stablecoin",
    "is_evm_address",
    "is_solana_address",
    # Requests
    "DepositRequest",
    "WithdrawRequest",
    "parse_amount",
    "format_amount",
    # Results
    "TxStatus",
    "SignedOperationResult",
    "FeeQuote",
    "WithdrawalResult",
    "OrderResult",
    "AssetBalance",
    "AccountSnapshot",
    "TokenBalance",
    "GeneratedWallet",
    "WorkflowStep",
    "WorkflowTrace",
]
