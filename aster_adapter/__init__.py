"""
Aster Adapter - Agent-facing interface to the AsterDEX exchange

Provides operations for:
- Deposits from Ethereum, Arbitrum, BNB Chain (AstherusVault) and Solana (treasury program)
- Withdrawals authorized with EIP-712 signatures
- Exchange account balances, prices, trading rules and market buys
- On-chain wallet balances and wallet creation
- Swap-and-bridge: deposit, market buy, withdraw to another network
"""

from .client import AsterClient
from .config import Config, config, get_config, reload_config, setup_logging
from .types import (
    Network,
    NetworkKind,
    TokenDescriptor,
    TokenKind,
    TxStatus,
    SignedOperationResult,
    FeeQuote,
    WithdrawalResult,
    OrderResult,
    AccountSnapshot,
    TokenBalance,
    GeneratedWallet,
    WorkflowTrace,
)
from .errors import (
    AsterAdapterError,
    ErrorCode,
    ValidationError,
    MissingCredentialsError,
    KeyDerivationError,
    InvalidAddressError,
    SignerError,
    UnsupportedTokenError,
    UnsupportedNetworkError,
    NetworkTransportError,
    ApiError,
    ChainSubmissionError,
    WorkflowStepError,
    ConfigurationError,
    OperationNotSupported,
)

# Modules
from .modules import WalletModule, MarketModule, TransferModule, BridgeModule

# Infrastructure
from .infra import ExchangeClient, EVMSigner, LocalSigner, RpcClient, resolve_key

__all__ = [
    # Client
    "AsterClient",
    # Config
    "Config",
    "config",
    "get_config",
    "reload_config",
    "setup_logging",
    # Types
    "Network",
    "NetworkKind",
    "TokenDescriptor",
    "TokenKind",
    "TxStatus",
    "SignedOperationResult",
    "FeeQuote",
    "WithdrawalResult",
    "OrderResult",
    "AccountSnapshot",
    "TokenBalance",
    "GeneratedWallet",
    "WorkflowTrace",
    # Errors
    "AsterAdapterError",
    "ErrorCode",
    "ValidationError",
    "MissingCredentialsError",
    "KeyDerivationError",
    "InvalidAddressError",
    "SignerError",
    "UnsupportedTokenError",
    "UnsupportedNetworkError",
    "NetworkTransportError",
    "ApiError",
    "ChainSubmissionError",
    "WorkflowStepError",
    "ConfigurationError",
    "OperationNotSupported",
    # Modules
    "WalletModule",
    "MarketModule",
    "TransferModule",
    "BridgeModule",
    # Infrastructure
    "ExchangeClient",
    "EVMSigner",
    "LocalSigner",
    "RpcClient",
    "resolve_key",
]

__version__ = "1.0.0"
