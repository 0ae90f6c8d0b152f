"""
AsterDEX REST API client

Authenticated request layer for the spot API:
- Canonical query string + HMAC-SHA256 signature for signed endpoints
- API key header on every request when configured
- Typed failures: ApiError for HTTP rejections, NetworkTransportError for
  transport problems

No request made here is ever retried.
"""

import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from ..config import Config, get_config
from ..errors import ApiError, MissingCredentialsError, NetworkTransportError
from .signing import build_query_string, hmac_sign

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-MBX-APIKEY"
BODY_METHODS = ("POST", "PUT")
QUERY_METHODS = ("GET", "DELETE")


def current_timestamp_ms() -> int:
    """Current epoch time in milliseconds"""
    return int(time.time() * 1000)


@dataclass
class ApiResponse:
    """Successful API response"""
    data: Any
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


class ExchangeClient:
    """
    AsterDEX spot REST client

    Usage:
        with ExchangeClient() as api:
            account = api.get_account()
            price = api.get_ticker_price("BTCUSDT")
    """

    ACCOUNT = "/api/v1/account"
    TICKER_PRICE = "/api/v1/ticker/price"
    EXCHANGE_INFO = "/api/v1/exchangeInfo"
    ORDER = "/api/v1/order"
    WITHDRAW_FEE = "/api/v1/aster/withdraw/estimateFee"
    USER_WITHDRAW = "/api/v1/aster/user-withdraw"

    def __init__(
        self,
        config: Optional[Config] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize API client

        Args:
            config: Configuration (uses global config if None)
            http_client: Pre-built httpx client (created lazily otherwise)
        """
        self._config = config or get_config()
        self._settings = self._config.exchange
        self._client = http_client

    @property
    def base_url(self) -> str:
        return self._settings.base_url.rstrip("/")

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.Client(timeout=self._settings.timeout)
        return self._client

    def request(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        signed: bool = False,
    ) -> ApiResponse:
        """
        Make an API request

        Args:
            endpoint: API path (e.g., "/api/v1/account")
            method: HTTP method (GET, POST, PUT, DELETE)
            params: Request parameters
            signed: Add timestamp/recvWindow and HMAC signature

        Returns:
            ApiResponse with parsed JSON body

        Raises:
            MissingCredentialsError: Signed request without API key/secret (no I/O)
            ApiError: Exchange answered with an HTTP error
            NetworkTransportError: Exchange unreachable or body unparseable
        """
        method = method.upper()

        if signed and not self._settings.has_credentials:
            raise MissingCredentialsError.api_keys()

        request_params: Dict[str, Any] = dict(params or {})

        if signed:
            if not request_params.get("timestamp"):
                request_params["timestamp"] = current_timestamp_ms()
            if not request_params.get("recvWindow"):
                request_params["recvWindow"] = self._settings.recv_window

        query_string = build_query_string(request_params)

        payload = query_string
        if signed:
            signature = hmac_sign(query_string, self._settings.api_secret)
            payload = f"{query_string}&signature={signature}" if query_string else f"signature={signature}"

            if self._config.debug.full:
                logger.debug(f"API request {method} {endpoint}")
                logger.debug(f"Params: {request_params}")
                logger.debug(f"Query string: {query_string}")
                logger.debug(f"Signature: {signature}")

        headers: Dict[str, str] = {}
        if method in BODY_METHODS:
            headers["Content-Type"] = "application/x-www-form-urlencoded"
        if self._settings.api_key:
            headers[API_KEY_HEADER] = self._settings.api_key

        url = f"{self.base_url}{endpoint}"
        content = None
        if method in QUERY_METHODS:
            if payload:
                url = f"{url}?{payload}"
        elif method in BODY_METHODS:
            content = payload

        client = self._get_client()
        try:
            response = client.request(method, url, content=content, headers=headers)
        except httpx.TimeoutException:
            raise NetworkTransportError.timeout(url, self._settings.timeout)
        except httpx.RequestError as e:
            raise NetworkTransportError.connection_failed(url, e)

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            error = ApiError.from_response(endpoint, response.status_code, body)
            logger.warning(f"{method} {endpoint} rejected: {error}")
            raise error

        try:
            data = response.json()
        except ValueError:
            raise NetworkTransportError.invalid_response(url, "body is not JSON")

        return ApiResponse(
            data=data,
            status_code=response.status_code,
            headers=dict(response.headers),
        )

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    def get_account(self) -> Dict[str, Any]:
        """Spot account permissions and balances (signed)"""
        return self.request(self.ACCOUNT, "GET", signed=True).data

    def get_ticker_price(self, symbol: str) -> Dict[str, Any]:
        """Latest price for a symbol"""
        return self.request(self.TICKER_PRICE, "GET", {"symbol": symbol}).data

    def get_exchange_info(self, symbol: Optional[str] = None) -> Dict[str, Any]:
        """Trading rules and symbol information, optionally for one symbol"""
        params = {"symbol": symbol} if symbol else None
        return self.request(self.EXCHANGE_INFO, "GET", params).data

    def place_market_buy(self, symbol: str, quote_amount: Decimal) -> Dict[str, Any]:
        """Market buy spending quote_amount of the quote asset (signed)"""
        params = {
            "symbol": symbol,
            "side": "BUY",
            "type": "MARKET",
            "quoteOrderQty": str(quote_amount),
        }
        return self.request(self.ORDER, "POST", params, signed=True).data

    def estimate_withdraw_fee(self, chain_id: int, asset: str) -> Dict[str, Any]:
        """Withdrawal fee estimate (signed)"""
        params = {"chainId": chain_id, "asset": asset}
        return self.request(self.WITHDRAW_FEE, "GET", params, signed=True).data

    def submit_withdrawal(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a withdrawal carrying an EIP-712 user signature (signed)"""
        return self.request(self.USER_WITHDRAW, "POST", params, signed=True).data

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ExchangeClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
