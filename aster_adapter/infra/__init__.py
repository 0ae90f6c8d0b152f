"""
Infrastructure layer for Aster Adapter

Provides:
- Signing: HMAC request signatures and EIP-712 withdrawal signatures
- Keys: Three-tier key resolution and wallet generation
- ExchangeClient: Authenticated AsterDEX REST client
- EVMSigner: EVM transaction signing using web3.py
- RpcClient / LocalSigner: Solana JSON-RPC and keypair signing
- Tracing: Correlation IDs for operation logs
"""

from .signing import (
    build_query_string,
    hmac_sign,
    sign_typed_withdrawal,
    build_withdraw_typed_data,
    normalize_evm_address,
)
from .keys import (
    KeySource,
    WalletCredential,
    resolve_key,
    resolve_credential,
    acquire_credential,
    derive_key_from_mnemonic,
    create_wallet,
    create_evm_wallet,
    create_solana_wallet,
)
from .exchange_client import ExchangeClient, ApiResponse, current_timestamp_ms
from .evm_signer import EVMSigner, create_web3, add_gas_price
from .rpc import RpcClient, RpcClientConfig
from .solana_signer import LocalSigner
from .tracing import CorrelationContext, get_correlation_id, log_with_correlation

__all__ = [
    # Signing
    "build_query_string",
    "hmac_sign",
    "sign_typed_withdrawal",
    "build_withdraw_typed_data",
    "normalize_evm_address",
    # Keys
    "KeySource",
    "WalletCredential",
    "resolve_key",
    "resolve_credential",
    "acquire_credential",
    "derive_key_from_mnemonic",
    "create_wallet",
    "create_evm_wallet",
    "create_solana_wallet",
    # Exchange
    "ExchangeClient",
    "ApiResponse",
    "current_timestamp_ms",
    # EVM
    "EVMSigner",
    "create_web3",
    "add_gas_price",
    # Solana
    "RpcClient",
    "RpcClientConfig",
    "LocalSigner",
    # Tracing
    "CorrelationContext",
    "get_correlation_id",
    "log_with_correlation",
]
