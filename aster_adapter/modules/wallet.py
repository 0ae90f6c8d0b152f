"""
Wallet Module

Provides on-chain balance queries and wallet management.

Supports:
- Ethereum / Arbitrum: ETH and ERC20 tokens
- BNB Chain: BNB and BEP20 tokens
- Solana: SOL and SPL tokens
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from solders.pubkey import Pubkey
from web3 import Web3

from ..errors import InvalidAddressError, NetworkTransportError
from ..infra.keys import acquire_credential, create_wallet
from ..infra.signing import normalize_evm_address
from ..protocols.aster.constants import ERC20_ABI
from ..types.network import Network, NetworkKind
from ..types.result import GeneratedWallet, TokenBalance
from ..types.tokens import TokenDescriptor, TokenKind, resolve_token

if TYPE_CHECKING:
    from ..client import AsterClient

logger = logging.getLogger(__name__)


def _ui_amount(raw: int, decimals: int) -> Decimal:
    return Decimal(raw) / (Decimal(10) ** decimals)


class WalletModule:
    """
    Multi-network wallet operations module

    Usage:
        client = AsterClient()

        bnb = client.wallet.balance("bnb")
        usdt = client.wallet.balance("bnb", token="usdt")
        sol = client.wallet.balance("solana", address="Wallet...")

        address = client.wallet.address("arbitrum")
        new_wallet = client.wallet.create_wallet("solana")
    """

    def __init__(self, client: "AsterClient"):
        """
        Initialize wallet module

        Args:
            client: AsterClient instance
        """
        self._client = client
        self._config = client.config

    def address(self, network, private_key: Optional[str] = None) -> str:
        """
        Get wallet address for a network

        Args:
            network: Network name or enum
            private_key: Optional explicit key (configured key/mnemonic otherwise)
        """
        with acquire_credential(network, private_key, self._config) as credential:
            return credential.address

    def create_wallet(self, network) -> GeneratedWallet:
        """Generate a new wallet (12-word mnemonic) for a network"""
        wallet = create_wallet(network)
        logger.info(f"Created new {wallet.network.value} wallet {wallet.address}")
        return wallet

    def balance(
        self,
        network,
        address: Optional[str] = None,
        token: Optional[str] = None,
    ) -> TokenBalance:
        """
        Get native or token balance

        Args:
            network: Network name or enum
            address: Wallet to query (defaults to the configured wallet)
            token: Symbol (case-insensitive) or contract/mint address;
                native asset when omitted

        Returns:
            TokenBalance in UI units with raw balance and decimals

        Raises:
            UnsupportedTokenError: Symbol not registered on network
            InvalidAddressError: Address malformed for network
            NetworkTransportError: RPC unreachable
        """
        network = Network.from_string(network)
        descriptor = resolve_token(network, token or network.native_symbol)

        if not address:
            address = self.address(network)

        if network.kind == NetworkKind.SOLANA:
            return self._solana_balance(address, descriptor)
        return self._evm_balance(network, address, descriptor)

    # =========================================================================
    # EVM
    # =========================================================================

    def _evm_balance(self, network: Network, address: str, token: TokenDescriptor) -> TokenBalance:
        owner = normalize_evm_address(address)
        web3 = self._client.web3(network)

        try:
            if token.kind == TokenKind.NATIVE:
                raw = web3.eth.get_balance(owner)
                return TokenBalance(
                    network=network,
                    address=owner,
                    token=token.symbol,
                    balance=_ui_amount(raw, 18),
                    decimals=18,
                    raw_balance=raw,
                )

            contract = web3.eth.contract(
                address=Web3.to_checksum_address(token.address),
                abi=ERC20_ABI,
            )
            with ThreadPoolExecutor(max_workers=3) as pool:
                balance_future = pool.submit(contract.functions.balanceOf(owner).call)
                decimals_future = pool.submit(contract.functions.decimals().call)
                symbol_future = pool.submit(contract.functions.symbol().call)
                raw = balance_future.result()
                decimals = decimals_future.result()
                symbol = symbol_future.result()
        except OSError as e:
            raise NetworkTransportError.connection_failed(f"{network.value} rpc", e)

        return TokenBalance(
            network=network,
            address=owner,
            token=symbol or token.symbol,
            balance=_ui_amount(raw, decimals),
            decimals=decimals,
            raw_balance=raw,
            token_address=token.address,
        )

    # =========================================================================
    # Solana
    # =========================================================================

    def _solana_balance(self, address: str, token: TokenDescriptor) -> TokenBalance:
        try:
            Pubkey.from_string(address)
        except ValueError:
            raise InvalidAddressError.invalid(address, "Solana")

        rpc = self._client.solana_rpc

        if token.kind == TokenKind.NATIVE:
            lamports = rpc.get_balance(address)
            return TokenBalance(
                network=Network.SOLANA,
                address=address,
                token="SOL",
                balance=_ui_amount(lamports, 9),
                decimals=9,
                raw_balance=lamports,
            )

        accounts = rpc.get_token_accounts_by_owner(address, mint=token.address)

        # No token account means the wallet never held the token
        if not accounts:
            return TokenBalance(
                network=Network.SOLANA,
                address=address,
                token=token.symbol,
                balance=Decimal(0),
                decimals=0,
                raw_balance=0,
                token_address=token.address,
            )

        total = 0
        decimals = 0
        for account in accounts:
            info = account.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
            token_amount = info.get("tokenAmount", {})
            amount = token_amount.get("amount")
            decimals = token_amount.get("decimals", decimals)
            if amount:
                total += int(amount)

        return TokenBalance(
            network=Network.SOLANA,
            address=address,
            token=token.symbol,
            balance=_ui_amount(total, decimals),
            decimals=decimals,
            raw_balance=total,
            token_address=token.address,
        )
