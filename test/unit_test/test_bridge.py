"""
Bridge Module Unit Tests

Tests the swap-and-bridge saga: step ordering, settle waits, halting on
failure and the returned trace.
"""

import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, Mock, call, patch

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from aster_adapter.errors import (
    ApiError,
    ChainSubmissionError,
    InvalidAddressError,
    NetworkTransportError,
    UnsupportedNetworkError,
    UnsupportedTokenError,
    ValidationError,
    WorkflowStepError,
)
from aster_adapter.client import AsterClient
from aster_adapter.infra.tracing import get_correlation_id
from aster_adapter.modules.bridge import BridgeModule
from aster_adapter.types import Network, OrderResult, SignedOperationResult

from conftest import OTHER_EVM_ADDRESS, build_config


def _order(executed="0.0105"):
    return OrderResult.from_api({
        "orderId": 9001,
        "symbol": "ETHUSDT",
        "side": "BUY",
        "type": "MARKET",
        "status": "FILLED",
        "executedQty": executed,
        "cumQuote": "24.99",
    })


def _bridge():
    """BridgeModule whose steps append to a shared event log"""
    events = []

    client = Mock()
    client.config = build_config()

    deposit = SignedOperationResult.confirmed(Network.BNB, "deposit", "0xdeposit")
    withdrawal = Mock(to_address=OTHER_EVM_ADDRESS)

    def on_deposit(*args):
        events.append(("deposit", get_correlation_id()))
        return deposit

    def on_buy(*args):
        events.append(("swap", get_correlation_id()))
        return _order()

    def on_withdraw(*args):
        events.append(("withdraw", get_correlation_id()))
        return withdrawal

    client.transfer.deposit.side_effect = on_deposit
    client.market.market_buy.side_effect = on_buy
    client.transfer.withdraw.side_effect = on_withdraw

    settle = Mock(side_effect=lambda seconds: events.append(("settle", seconds)))
    return BridgeModule(client, settle=settle), client, settle, events


def _run(bridge, **overrides):
    args = dict(
        from_network="bnb",
        from_token="USDT",
        from_amount="25",
        target_token="ETH",
        to_network="arbitrum",
        to_address=OTHER_EVM_ADDRESS,
    )
    args.update(overrides)
    return bridge.swap_and_bridge(**args)


class TestHappyPath:
    """Tests for a successful run"""

    def test_steps_in_order(self):
        bridge, client, settle, events = _bridge()

        trace = _run(bridge)

        assert trace.success is True
        assert trace.failed_at is None
        assert trace.completed_actions == ["deposit", "swap", "withdraw"]
        assert [e[0] for e in events] == ["deposit", "settle", "swap", "settle", "withdraw"]
        assert settle.call_args_list == [call(5.0), call(3.0)]

    def test_step_arguments(self):
        bridge, client, _, _ = _bridge()

        _run(bridge, private_key="0xkey")

        client.transfer.deposit.assert_called_once_with(Network.BNB, "USDT", Decimal("25"), "0xkey")
        client.market.market_buy.assert_called_once_with("ETHUSDT", Decimal("25"))
        # Withdraw amount is what the buy actually filled
        client.transfer.withdraw.assert_called_once_with(
            Network.ARBITRUM, "ETH", "0.0105", OTHER_EVM_ADDRESS, "0xkey",
        )

    def test_summary(self):
        bridge, _, _, _ = _bridge()
        trace = _run(bridge)
        assert trace.summary["deposited"] == "25 USDT on bnb"
        assert trace.summary["swapped"] == "0.0105 ETH"
        assert trace.summary["destination"] == OTHER_EVM_ADDRESS

    def test_single_correlation_id(self):
        bridge, _, _, events = _bridge()
        _run(bridge)
        ids = {cid for name, cid in events if name != "settle"}
        assert len(ids) == 1
        assert ids.pop().startswith("bridge_")
        assert get_correlation_id() is None


class TestPartialFailure:
    """The saga halts at the first failing step"""

    def test_deposit_fails(self):
        bridge, client, settle, _ = _bridge()
        cause = ChainSubmissionError.reverted("0xdead")
        client.transfer.deposit.side_effect = cause

        trace = _run(bridge)

        assert trace.failed_at == "deposit"
        assert trace.steps == []
        assert isinstance(trace.error, WorkflowStepError)
        assert trace.error.cause is cause
        client.market.market_buy.assert_not_called()
        settle.assert_not_called()

    def test_swap_fails_after_deposit(self):
        bridge, client, settle, _ = _bridge()
        cause = ApiError.from_response("/api/v1/order", 400, {"code": -2010, "msg": "Insufficient balance"})
        client.market.market_buy.side_effect = cause

        trace = _run(bridge)

        assert trace.success is False
        assert trace.failed_at == "swap"
        assert trace.completed_actions == ["deposit"]
        assert trace.result_of("deposit").tx_hash == "0xdeposit"
        assert trace.error.step == "swap"
        assert trace.error.cause is cause
        assert trace.error.completed_steps == ["deposit"]
        client.transfer.withdraw.assert_not_called()
        settle.assert_called_once_with(5.0)

    def test_withdraw_fails(self):
        bridge, client, _, _ = _bridge()
        client.transfer.withdraw.side_effect = ApiError.fee_unavailable("ETH", 42161)

        trace = _run(bridge)

        assert trace.failed_at == "withdraw"
        assert trace.completed_actions == ["deposit", "swap"]

    def test_unexpected_errors_propagate(self):
        bridge, client, _, _ = _bridge()
        client.transfer.deposit.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            _run(bridge)


class TestValidation:
    """Inputs are checked before the first step runs"""

    @pytest.mark.parametrize("overrides,error", [
        ({"from_amount": "0"}, ValidationError),
        ({"from_amount": "abc"}, ValidationError),
        ({"to_network": "solana"}, UnsupportedNetworkError),
        ({"to_network": "polygon"}, UnsupportedNetworkError),
        ({"to_address": "0x1234"}, InvalidAddressError),
        ({"from_token": "DOGE"}, UnsupportedTokenError),
        ({"target_token": ""}, ValidationError),
        ({"target_token": "E-T-H"}, ValidationError),
    ])
    def test_rejected_before_deposit(self, overrides, error):
        bridge, client, _, _ = _bridge()
        with pytest.raises(error):
            _run(bridge, **overrides)
        client.transfer.deposit.assert_not_called()


class TestUnreachableRpc:
    """Transport failures inside a real deposit still end in a trace"""

    def test_bnb_rpc_down(self, keyed_config):
        web3 = MagicMock()
        web3.eth.get_transaction_count.side_effect = ConnectionError("connection refused")
        token_call = web3.eth.contract.return_value.functions.decimals.return_value.call
        token_call.side_effect = ConnectionError("connection refused")
        exchange = MagicMock()

        client = AsterClient(config=keyed_config, exchange=exchange)
        settle = Mock()
        bridge = BridgeModule(client, settle=settle)

        with patch("aster_adapter.client.create_web3", return_value=web3):
            trace = _run(bridge)

        assert trace.failed_at == "deposit"
        assert trace.steps == []
        assert isinstance(trace.error.cause, NetworkTransportError)
        assert trace.error.cause.details["state"] == "approving"
        exchange.place_market_buy.assert_not_called()
        settle.assert_not_called()
