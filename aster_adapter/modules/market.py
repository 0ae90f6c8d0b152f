"""
Market Module

Exchange-side reads and trading:
- Spot account permissions and balances
- Latest symbol price
- Exchange trading rules
- Market buy by quote amount
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

if TYPE_CHECKING:
    from ..client import AsterClient

from ..errors import ApiError, ValidationError
from ..types.requests import parse_amount
from ..types.result import AccountSnapshot, AssetBalance, OrderResult

logger = logging.getLogger(__name__)

QUOTE_ASSETS = ("USDT", "USDC", "BUSD", "BTC", "ETH", "BNB", "SOL")

_SYMBOL_PATTERN = re.compile(r"^[A-Z]{2,9}(%s)$" % "|".join(QUOTE_ASSETS))


def validate_trading_symbol(symbol: str) -> str:
    """
    Check a trading pair symbol has the expected shape

    A symbol is 6 to 12 uppercase letters ending in a known quote asset,
    e.g. BTCUSDT or ETHBTC.

    Raises:
        ValidationError: Symbol is malformed
    """
    if not isinstance(symbol, str):
        raise ValidationError.invalid_symbol(str(symbol))
    if not 6 <= len(symbol) <= 12 or not _SYMBOL_PATTERN.match(symbol):
        raise ValidationError.invalid_symbol(symbol)
    return symbol


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal(0)


class MarketModule:
    """
    Exchange market operations

    Usage:
        snapshot = client.market.account_balance()
        price = client.market.price("BTCUSDT")
        order = client.market.market_buy("ETHUSDT", "25")
    """

    def __init__(self, client: "AsterClient"):
        self._client = client

    @property
    def _api(self):
        return self._client.exchange

    def account_balance(self) -> AccountSnapshot:
        """
        Spot account permissions and non-zero balances

        Raises:
            MissingCredentialsError: API key/secret not configured
            ApiError: Exchange rejected the request
        """
        data = self._api.get_account()

        balances: List[AssetBalance] = []
        for item in data.get("balances", []):
            free = _decimal(item.get("free", "0"))
            locked = _decimal(item.get("locked", "0"))
            if free == 0 and locked == 0:
                continue
            balances.append(AssetBalance(asset=item.get("asset", ""), free=free, locked=locked))

        return AccountSnapshot(
            can_trade=bool(data.get("canTrade", False)),
            can_deposit=bool(data.get("canDeposit", False)),
            can_withdraw=bool(data.get("canWithdraw", False)),
            balances=balances,
            update_time=data.get("updateTime"),
        )

    def price(self, symbol: str) -> Decimal:
        """
        Latest price for a trading pair

        Raises:
            ValidationError: Symbol malformed (checked before the request)
            ApiError: Unknown symbol or response without a price
        """
        symbol = validate_trading_symbol(symbol.upper() if isinstance(symbol, str) else symbol)
        data = self._api.get_ticker_price(symbol)
        if not isinstance(data, dict) or "price" not in data:
            raise ApiError.invalid_response(self._api.TICKER_PRICE, "missing price")
        return Decimal(str(data["price"]))

    def exchange_info(self, symbol: Optional[str] = None) -> Dict[str, Any]:
        """
        Exchange trading rules

        Args:
            symbol: When given, return only that symbol's entry

        Raises:
            ValidationError: Symbol malformed or not listed on the exchange
        """
        if symbol is None:
            return self._api.get_exchange_info()

        symbol = validate_trading_symbol(symbol.upper() if isinstance(symbol, str) else symbol)
        data = self._api.get_exchange_info(symbol)
        for entry in data.get("symbols", []):
            if entry.get("symbol") == symbol:
                return entry
        raise ValidationError(
            f"Symbol {symbol} not found in exchange info",
            field_name="symbol",
            value=symbol,
        )

    def market_buy(self, symbol: str, quote_amount: Union[str, Decimal]) -> OrderResult:
        """
        Market buy spending quote_amount of the quote asset

        Args:
            symbol: Trading pair (e.g., "ETHUSDT")
            quote_amount: Amount of quote asset to spend

        Raises:
            ValidationError: Symbol or amount invalid (checked before the request)
            ApiError: Order rejected
        """
        symbol = validate_trading_symbol(symbol.upper() if isinstance(symbol, str) else symbol)
        amount = parse_amount(quote_amount)

        logger.info(f"Market buy {symbol} spending {amount}")
        data = self._api.place_market_buy(symbol, amount)
        order = OrderResult.from_api(data)
        logger.info(
            f"Order {order.order_id} {order.status}: executed {order.executed_qty} "
            f"for {order.cummulative_quote_qty}"
        )
        return order
