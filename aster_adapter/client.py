"""
AsterClient - Unified entry point for exchange agent operations

Provides a high-level interface to AsterDEX and its settlement networks
through functional modules (wallet, market, transfer, bridge).
"""

from __future__ import annotations

from typing import Dict, Optional, TYPE_CHECKING

from .config import Config, get_config
from .infra import ExchangeClient, RpcClient, RpcClientConfig, create_web3
from .types.network import Network, NetworkKind

if TYPE_CHECKING:
    from web3 import Web3


class AsterClient:
    """
    Unified Aster adapter client

    Provides access to operations through functional modules:
    - wallet: On-chain balances, addresses, wallet creation
    - market: Exchange account, prices, symbol info, market buys
    - transfer: Deposits, withdrawal fee quotes, withdrawals
    - bridge: Deposit -> market buy -> withdraw workflow

    Connections are created lazily on first use. Keys are never held by the
    client; they are resolved per operation.

    Usage:
        with AsterClient() as client:
            balance = client.wallet.balance("bnb", token="USDT")
            result = client.transfer.deposit("bnb", "USDT", "25")
            trace = client.bridge.swap_and_bridge(
                "bnb", "USDT", "25", "ETH", "arbitrum", "0xReceiver...",
            )
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        exchange: Optional[ExchangeClient] = None,
    ):
        """
        Initialize AsterClient

        Args:
            config: Configuration (uses global config if None)
            exchange: Optional pre-built exchange client
        """
        self._config = config or get_config()
        self._exchange = exchange
        self._web3: Dict[Network, "Web3"] = {}
        self._solana_rpc: Optional[RpcClient] = None

        # Lazy-loaded modules
        self._wallet: Optional["WalletModule"] = None
        self._market: Optional["MarketModule"] = None
        self._transfer: Optional["TransferModule"] = None
        self._bridge: Optional["BridgeModule"] = None

    @property
    def config(self) -> Config:
        return self._config

    @property
    def exchange(self) -> ExchangeClient:
        """Access to the authenticated exchange REST client"""
        if self._exchange is None:
            self._exchange = ExchangeClient(self._config)
        return self._exchange

    def web3(self, network) -> "Web3":
        """Web3 connection for an EVM network (created on first use)"""
        network = Network.from_string(network)
        if network.kind != NetworkKind.EVM:
            from .errors import UnsupportedNetworkError
            raise UnsupportedNetworkError.not_evm(network.value, "web3")
        if network not in self._web3:
            self._web3[network] = create_web3(
                self._config.wallet_for(network).rpc_url,
                chain_id=network.chain_id,
                timeout=self._config.tx.rpc_timeout_seconds,
            )
        return self._web3[network]

    @property
    def solana_rpc(self) -> RpcClient:
        """Solana JSON-RPC client (created on first use)"""
        if self._solana_rpc is None:
            self._solana_rpc = RpcClient(
                self._config.wallet_for(Network.SOLANA).rpc_url,
                config=RpcClientConfig.from_config(self._config),
            )
        return self._solana_rpc

    @property
    def wallet(self) -> "WalletModule":
        """
        Wallet module for on-chain queries

        Provides:
        - balance(network, address, token): Native or token balance
        - address(network, private_key): Wallet address for a network
        - create_wallet(network): New wallet with mnemonic
        """
        if self._wallet is None:
            from .modules.wallet import WalletModule
            self._wallet = WalletModule(self)
        return self._wallet

    @property
    def market(self) -> "MarketModule":
        """
        Market module for exchange reads and trading

        Provides:
        - account_balance(): Spot balances and permissions
        - price(symbol): Latest price
        - exchange_info(symbol): Trading rules
        - market_buy(symbol, quote_amount): Market buy by quote amount
        """
        if self._market is None:
            from .modules.market import MarketModule
            self._market = MarketModule(self)
        return self._market

    @property
    def transfer(self) -> "TransferModule":
        """
        Transfer module for moving funds in and out of the exchange

        Provides:
        - deposit(network, token, amount): Deposit from a wallet
        - withdraw_fee(token, network): Fee quote
        - withdraw(network, token, amount, to_address): Signed withdrawal
        """
        if self._transfer is None:
            from .modules.transfer import TransferModule
            self._transfer = TransferModule(self)
        return self._transfer

    @property
    def bridge(self) -> "BridgeModule":
        """
        Bridge module for the swap-and-bridge workflow

        Provides:
        - swap_and_bridge(...): Deposit, buy, withdraw with a step trace
        """
        if self._bridge is None:
            from .modules.bridge import BridgeModule
            self._bridge = BridgeModule(self)
        return self._bridge

    def close(self):
        """Close client connections and release resources"""
        if self._exchange is not None:
            self._exchange.close()
        if self._solana_rpc is not None:
            self._solana_rpc.close()
        self._web3.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"AsterClient(base_url={self._config.exchange.base_url})"


# Type hints for modules (resolved at runtime)
if TYPE_CHECKING:
    from .modules.wallet import WalletModule
    from .modules.market import MarketModule
    from .modules.transfer import TransferModule
    from .modules.bridge import BridgeModule
