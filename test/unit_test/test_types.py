"""
Types Unit Tests

Tests networks, the token registry, request validation and result types.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from aster_adapter.errors import (
    UnsupportedNetworkError,
    UnsupportedTokenError,
    ValidationError,
    ErrorCode,
)
from aster_adapter.types import (
    Network,
    NetworkKind,
    TokenKind,
    DepositRequest,
    WithdrawRequest,
    WorkflowTrace,
    OrderResult,
    get_token,
    resolve_token,
    get_deposit_contract,
    parse_amount,
    format_amount,
    is_stablecoin,
)


class TestNetwork:
    """Tests for Network enum"""

    def test_aliases(self):
        assert Network.from_string("ETH") == Network.ETHEREUM
        assert Network.from_string("arb") == Network.ARBITRUM
        assert Network.from_string("bsc") == Network.BNB
        assert Network.from_string("56") == Network.BNB
        assert Network.from_string("Solana") == Network.SOLANA
        assert Network.from_string(Network.BNB) is Network.BNB

    def test_unknown_network(self):
        with pytest.raises(UnsupportedNetworkError):
            Network.from_string("polygon")

    def test_chain_ids(self):
        assert Network.ETHEREUM.chain_id == 1
        assert Network.ARBITRUM.chain_id == 42161
        assert Network.BNB.chain_id == 56
        assert Network.SOLANA.chain_id is None
        assert Network.from_chain_id(42161) == Network.ARBITRUM

    def test_kind(self):
        assert Network.SOLANA.kind == NetworkKind.SOLANA
        assert Network.BNB.is_evm is True
        assert Network.SOLANA.is_evm is False

    def test_native_symbols(self):
        assert Network.ETHEREUM.native_symbol == "ETH"
        assert Network.ARBITRUM.native_symbol == "ETH"
        assert Network.BNB.native_symbol == "BNB"
        assert Network.SOLANA.native_symbol == "SOL"

    def test_explorer_link(self):
        assert Network.BNB.explorer_link("0xabc") == "https://bscscan.com/tx/0xabc"

    def test_deposit_contracts(self):
        assert get_deposit_contract("bnb").address.lower() == "0x128463a60784c4d3f46c23af3f65ed859ba87974"
        assert get_deposit_contract("arbitrum").address == "0x9E36CB86a159d479cEd94Fa05036f235Ac40E1d5"
        solana = get_deposit_contract("solana")
        assert solana.address == "EhUtRgu9iEbZXXRpEvDj6n1wnQRjMi2SERDo3c6bmN2c"
        assert solana.treasury_account == "5bXxj9Qa4hj15DHvzTgVy7z2VkEGNWFVQojfbUKAiGpE"


class TestTokenRegistry:
    """Tests for token lookup"""

    def test_case_insensitive_lookup(self):
        assert get_token("bnb", "usdt") == get_token("bnb", "USDT")
        assert get_token("bnb", " Usdt ").address == "0x55d398326f99059fF775485246999027B3197955"

    def test_decimals_differ_by_network(self):
        assert get_token("ethereum", "USDT").decimals == 6
        assert get_token("bnb", "USDT").decimals == 18

    def test_wrapped_symbols(self):
        assert get_token("ethereum", "btc").symbol == "WBTC"
        assert get_token("bnb", "ETH").symbol == "wBETH"
        assert get_token("bnb", "BTC").symbol == "BTCB"

    def test_native_tokens(self):
        assert get_token("arbitrum", "ETH").kind == TokenKind.NATIVE
        assert get_token("solana", "SOL").kind == TokenKind.NATIVE
        assert get_token("bnb", "ETH").kind == TokenKind.ERC20

    def test_unknown_symbol_raises(self):
        with pytest.raises(UnsupportedTokenError):
            resolve_token("arbitrum", "DOGE")

    def test_raw_address_resolves(self):
        address = "0x1111111111111111111111111111111111111111"
        token = resolve_token("bnb", address)
        assert token.kind == TokenKind.ERC20
        assert token.address == address
        assert token.decimals is None

    def test_known_address_resolves_to_registry_entry(self):
        token = resolve_token("bnb", "0x55d398326f99059ff775485246999027b3197955")
        assert token.symbol == "USDT"
        assert token.decimals == 18

    def test_spl_mint(self):
        token = resolve_token("solana", "usdc")
        assert token.kind == TokenKind.SPL
        assert token.address == "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

    def test_stablecoins(self):
        assert is_stablecoin("usdt") is True
        assert is_stablecoin("DAI") is True
        assert is_stablecoin("ETH") is False


class TestAmounts:
    """Tests for amount parsing"""

    @pytest.mark.parametrize("value", ["0", "-5", "abc", "", "NaN", "Infinity", None, True])
    def test_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount(value)
        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT

    @pytest.mark.parametrize("value,expected", [
        ("1.5", Decimal("1.5")),
        ("100", Decimal("100")),
        (" 0.001 ", Decimal("0.001")),
        (2, Decimal("2")),
        (0.1, Decimal("0.1")),
    ])
    def test_accepted(self, value, expected):
        assert parse_amount(value) == expected

    def test_format_amount(self):
        assert format_amount(Decimal("1.500")) == "1.5"
        assert format_amount(Decimal("100")) == "100"
        assert format_amount(Decimal("1E+2")) == "100"
        assert format_amount(Decimal("0.00010")) == "0.0001"


class TestRequests:
    """Tests for request validation"""

    def test_deposit_request(self):
        request = DepositRequest.create("BSC", "usdt", "25")
        assert request.network == Network.BNB
        assert request.amount == Decimal("25")

    def test_deposit_rejects_bad_amount(self):
        with pytest.raises(ValidationError):
            DepositRequest.create("bnb", "USDT", "-1")

    def test_withdraw_uppercases_token(self):
        request = WithdrawRequest.create("arbitrum", "usdt", "20")
        assert request.token == "USDT"
        assert request.amount_str == "20"
        assert request.destination is None

    def test_stablecoin_floor(self):
        with pytest.raises(ValidationError) as exc_info:
            WithdrawRequest.create("arbitrum", "USDC", "0.5")
        assert exc_info.value.code == ErrorCode.AMOUNT_BELOW_MINIMUM

    def test_stablecoin_floor_inclusive(self):
        assert WithdrawRequest.create("arbitrum", "USDC", "1").amount == Decimal("1")

    def test_floor_only_for_stablecoins(self):
        request = WithdrawRequest.create("arbitrum", "ETH", "0.01")
        assert request.amount == Decimal("0.01")


class TestResults:
    """Tests for result types"""

    def test_order_from_api(self):
        order = OrderResult.from_api({
            "orderId": 42,
            "symbol": "ETHUSDT",
            "side": "BUY",
            "type": "MARKET",
            "status": "FILLED",
            "executedQty": "0.0105",
            "cumQuote": "24.99",
        })
        assert order.order_id == 42
        assert order.executed_qty == "0.0105"
        assert order.cummulative_quote_qty == "24.99"
        assert order.order_type == "MARKET"

    def test_order_binance_quote_field(self):
        order = OrderResult.from_api({"orderId": 1, "executedQty": "1", "cummulativeQuoteQty": "10.5"})
        assert order.cummulative_quote_qty == "10.5"

    def test_workflow_trace(self):
        trace = WorkflowTrace()
        assert trace.success is True

        step = trace.record("deposit", {"tx": "0x1"})
        assert step.index == 1
        trace.record("swap", {"order": 1})

        error = RuntimeError("withdraw rejected")
        trace.fail("withdraw", error)

        assert trace.success is False
        assert trace.failed_at == "withdraw"
        assert trace.completed_actions == ["deposit", "swap"]
        assert trace.result_of("swap") == {"order": 1}
        assert trace.result_of("withdraw") is None
