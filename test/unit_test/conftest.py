"""
Shared fixtures for unit tests

Nothing here touches the network: configuration is built explicitly and
clients are mocked.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from aster_adapter.config import (
    Config,
    DebugConfig,
    ExchangeConfig,
    TxConfig,
    WalletConfig,
    WorkflowConfig,
)

# Well-known development key (Hardhat account #0)
TEST_EVM_KEY = "0xac0974bec39a17e36ba4a4b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_EVM_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_MNEMONIC = "test test test test test test test test test test test junk"
OTHER_EVM_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


def build_config(with_api_keys: bool = True, **wallets) -> Config:
    cfg = Config()
    cfg.wallets = {
        name: WalletConfig(rpc_url=f"https://{name}.rpc.test")
        for name in ("ethereum", "arbitrum", "bnb", "solana")
    }
    for name, wallet in wallets.items():
        cfg.wallets[name] = wallet
    cfg.exchange = ExchangeConfig(
        base_url="https://api.aster.test",
        api_key="test-key" if with_api_keys else None,
        api_secret="test-secret" if with_api_keys else None,
        recv_window=5000,
        timeout=5.0,
    )
    cfg.tx = TxConfig(
        confirmation_timeout=30.0,
        approve_gas_limit=100_000,
        priority_fee_gwei=0.1,
        rpc_timeout_seconds=5.0,
        rpc_max_retries=1,
        rpc_retry_delay=0.0,
        commitment="confirmed",
        skip_preflight=False,
    )
    cfg.workflow = WorkflowConfig(deposit_settle_seconds=5.0, swap_settle_seconds=3.0)
    cfg.debug = DebugConfig(full=False)
    return cfg


@pytest.fixture
def test_config() -> Config:
    return build_config()


@pytest.fixture
def keyed_config() -> Config:
    """Config with an EVM key configured on every EVM network"""
    return build_config(
        ethereum=WalletConfig(rpc_url="https://ethereum.rpc.test", private_key=TEST_EVM_KEY),
        arbitrum=WalletConfig(rpc_url="https://arbitrum.rpc.test", private_key=TEST_EVM_KEY),
        bnb=WalletConfig(rpc_url="https://bnb.rpc.test", private_key=TEST_EVM_KEY),
    )


@pytest.fixture
def mock_exchange():
    return MagicMock()
