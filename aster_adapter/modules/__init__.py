"""
Functional modules for AsterClient

Provides high-level operations:
- WalletModule: On-chain balances, addresses, wallet creation
- MarketModule: Exchange account, prices, trading rules, market buys
- TransferModule: Deposits, withdrawal fees, withdrawals
- BridgeModule: Swap-and-bridge workflow
"""

from .wallet import WalletModule
from .market import MarketModule, validate_trading_symbol
from .transfer import TransferModule, OperationState
from .bridge import BridgeModule

__all__ = [
    "WalletModule",
    "MarketModule",
    "TransferModule",
    "BridgeModule",
    "OperationState",
    "validate_trading_symbol",
]
