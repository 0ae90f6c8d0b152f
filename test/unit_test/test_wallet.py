"""
Wallet Module Unit Tests

Tests on-chain balance queries with mocked web3 and Solana RPC.
"""

import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.keypair import Keypair

from aster_adapter.errors import (
    InvalidAddressError,
    MissingCredentialsError,
    NetworkTransportError,
    UnsupportedTokenError,
)
from aster_adapter.modules.wallet import WalletModule
from aster_adapter.types import Network

from conftest import OTHER_EVM_ADDRESS, TEST_EVM_ADDRESS, build_config

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


def _wallet(config=None):
    client = Mock()
    client.config = config or build_config()
    web3 = MagicMock(name="web3")
    client.web3.return_value = web3
    client.solana_rpc = MagicMock(name="solana_rpc")
    return WalletModule(client), client, web3


def _token_account(amount, decimals):
    return {
        "pubkey": str(Keypair().pubkey()),
        "account": {
            "data": {
                "parsed": {
                    "info": {
                        "mint": USDC_MINT,
                        "tokenAmount": {"amount": str(amount), "decimals": decimals},
                    }
                }
            }
        },
    }


class TestEvmBalance:
    """Tests for EVM balances"""

    def test_native(self):
        wallet, client, web3 = _wallet()
        web3.eth.get_balance.return_value = 1_500_000_000_000_000_000

        balance = wallet.balance("bnb", address=OTHER_EVM_ADDRESS.lower())

        web3.eth.get_balance.assert_called_once_with(OTHER_EVM_ADDRESS)
        client.web3.assert_called_once_with(Network.BNB)
        assert balance.token == "BNB"
        assert balance.balance == Decimal("1.5")
        assert balance.decimals == 18
        assert balance.address == OTHER_EVM_ADDRESS

    def test_erc20(self):
        wallet, _, web3 = _wallet()
        contract = web3.eth.contract.return_value
        contract.functions.balanceOf.return_value.call.return_value = 25 * 10 ** 18
        contract.functions.decimals.return_value.call.return_value = 18
        contract.functions.symbol.return_value.call.return_value = "USDT"

        balance = wallet.balance("bnb", address=OTHER_EVM_ADDRESS, token="usdt")

        contract.functions.balanceOf.assert_called_once_with(OTHER_EVM_ADDRESS)
        assert balance.balance == Decimal("25")
        assert balance.raw_balance == 25 * 10 ** 18
        assert balance.token == "USDT"
        assert balance.token_address == "0x55d398326f99059fF775485246999027B3197955"

    def test_default_address_from_config(self, keyed_config):
        wallet, _, web3 = _wallet(keyed_config)
        web3.eth.get_balance.return_value = 0

        balance = wallet.balance("arbitrum")

        web3.eth.get_balance.assert_called_once_with(TEST_EVM_ADDRESS)
        assert balance.balance == Decimal("0")

    def test_no_address_no_key(self):
        wallet, _, _ = _wallet()
        with pytest.raises(MissingCredentialsError):
            wallet.balance("bnb")

    def test_invalid_address(self):
        wallet, _, web3 = _wallet()
        with pytest.raises(InvalidAddressError):
            wallet.balance("bnb", address="0x1234")
        web3.eth.get_balance.assert_not_called()

    def test_unknown_token(self):
        wallet, _, _ = _wallet()
        with pytest.raises(UnsupportedTokenError):
            wallet.balance("arbitrum", address=OTHER_EVM_ADDRESS, token="DOGE")

    def test_rpc_down(self):
        wallet, _, web3 = _wallet()
        web3.eth.get_balance.side_effect = ConnectionError("refused")
        with pytest.raises(NetworkTransportError):
            wallet.balance("ethereum", address=OTHER_EVM_ADDRESS)


class TestSolanaBalance:
    """Tests for Solana balances"""

    def test_native(self):
        wallet, client, _ = _wallet()
        owner = str(Keypair().pubkey())
        client.solana_rpc.get_balance.return_value = 2_500_000_000

        balance = wallet.balance("solana", address=owner)

        client.solana_rpc.get_balance.assert_called_once_with(owner)
        assert balance.token == "SOL"
        assert balance.balance == Decimal("2.5")
        assert balance.decimals == 9

    def test_no_token_account(self):
        wallet, client, _ = _wallet()
        owner = str(Keypair().pubkey())
        client.solana_rpc.get_token_accounts_by_owner.return_value = []

        balance = wallet.balance("solana", address=owner, token="USDC")

        client.solana_rpc.get_token_accounts_by_owner.assert_called_once_with(owner, mint=USDC_MINT)
        assert balance.balance == Decimal(0)
        assert balance.decimals == 0
        assert balance.raw_balance == 0

    def test_sums_token_accounts(self):
        wallet, client, _ = _wallet()
        client.solana_rpc.get_token_accounts_by_owner.return_value = [
            _token_account(1_000_000, 6),
            _token_account(2_500_000, 6),
        ]

        balance = wallet.balance("solana", address=str(Keypair().pubkey()), token="usdc")

        assert balance.raw_balance == 3_500_000
        assert balance.balance == Decimal("3.5")
        assert balance.decimals == 6

    def test_invalid_address(self):
        wallet, client, _ = _wallet()
        with pytest.raises(InvalidAddressError):
            wallet.balance("solana", address="0xnot-solana")
        client.solana_rpc.get_balance.assert_not_called()


def test_address_from_explicit_key():
    from conftest import TEST_EVM_KEY

    wallet, _, _ = _wallet()
    assert wallet.address("bnb", TEST_EVM_KEY) == TEST_EVM_ADDRESS


def test_create_wallet():
    wallet, _, _ = _wallet()
    created = wallet.create_wallet("solana")
    assert created.network == Network.SOLANA
    assert len(created.mnemonic.split()) == 12
