"""
AsterClient Unit Tests

Tests lazy module and connection creation.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from aster_adapter.client import AsterClient
from aster_adapter.errors import UnsupportedNetworkError
from aster_adapter.modules import BridgeModule, MarketModule, TransferModule, WalletModule


def test_modules_are_lazy_singletons(test_config):
    client = AsterClient(config=test_config, exchange=MagicMock())

    assert isinstance(client.wallet, WalletModule)
    assert isinstance(client.market, MarketModule)
    assert isinstance(client.transfer, TransferModule)
    assert isinstance(client.bridge, BridgeModule)
    assert client.transfer is client.transfer


def test_web3_rejects_solana(test_config):
    client = AsterClient(config=test_config)
    with pytest.raises(UnsupportedNetworkError):
        client.web3("solana")


def test_web3_cached_per_network(test_config):
    client = AsterClient(config=test_config)
    with patch("aster_adapter.client.create_web3") as create:
        create.side_effect = lambda *args, **kwargs: MagicMock()
        first = client.web3("bnb")
        assert client.web3("BNB") is first
        assert client.web3("arbitrum") is not first

    create.assert_any_call("https://bnb.rpc.test", chain_id=56, timeout=5.0)
    assert create.call_count == 2


def test_close_releases_exchange(test_config):
    exchange = MagicMock()
    with AsterClient(config=test_config, exchange=exchange) as client:
        assert client.exchange is exchange
    exchange.close.assert_called_once()
