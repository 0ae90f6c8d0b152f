"""
RPC Client for Solana

Provides a JSON-RPC interface with:
- Retry logic for idempotent reads
- Rate limit handling
- Request timeout management

sendTransaction is always a single attempt.
"""

from __future__ import annotations

import base64
import logging
import threading
import time
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

import httpx

from ..config import Config, get_config
from ..errors import ChainSubmissionError, ConfigurationError, NetworkTransportError

logger = logging.getLogger(__name__)

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Unset values are pulled from TxConfig of the given (or global) Config.
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "RpcClientConfig":
        tx = (config or get_config()).tx
        return cls(
            timeout_seconds=tx.rpc_timeout_seconds,
            max_retries=tx.rpc_max_retries,
            retry_delay_seconds=tx.rpc_retry_delay,
            commitment=tx.commitment,
        )

    def __post_init__(self):
        tx = get_config().tx
        if self.timeout_seconds is None:
            self.timeout_seconds = tx.rpc_timeout_seconds
        if self.max_retries is None:
            self.max_retries = tx.rpc_max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = tx.rpc_retry_delay
        if self.commitment is None:
            self.commitment = tx.commitment


class RpcClient:
    """
    Solana RPC client

    Usage:
        rpc = RpcClient("https://api.mainnet-beta.solana.com")
        lamports = rpc.get_balance("Wallet...")
        result = rpc.call("getSlot", [])
    """

    def __init__(
        self,
        endpoint: str,
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL
            config: RPC configuration options
        """
        if not endpoint:
            raise ConfigurationError.missing("SOLANA_RPC_URL")

        self._endpoint = endpoint
        self._config = config or RpcClientConfig()
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (thread-safe)"""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._config.timeout_seconds,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
        retry: bool = True,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override
            retry: Retry transport failures (reads only)

        Returns:
            RPC result

        Raises:
            NetworkTransportError: On transport failure or RPC error response
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        timeout_val = timeout or self._config.timeout_seconds
        attempts = self._config.max_retries if retry else 1

        last_error: Optional[NetworkTransportError] = None

        for attempt in range(max(attempts, 1)):
            try:
                response = client.post(
                    self._endpoint,
                    json=body,
                    timeout=timeout_val,
                )

                if response.status_code == 429:
                    logger.warning(f"Rate limited by {self._endpoint}")
                    last_error = NetworkTransportError.rate_limited(self._endpoint)
                else:
                    response.raise_for_status()
                    result = response.json()

                    if "error" in result:
                        error = result["error"]
                        rpc_error = NetworkTransportError.invalid_response(
                            self._endpoint,
                            error.get("message", str(error)),
                        )
                        rpc_error.recoverable = False
                        rpc_error.details["rpc_error_code"] = error.get("code")
                        rpc_error.details["rpc_error_data"] = error.get("data")
                        raise rpc_error

                    return result.get("result")

            except httpx.TimeoutException:
                last_error = NetworkTransportError.timeout(self._endpoint, timeout_val)
                logger.warning(f"RPC timeout (attempt {attempt + 1}): {method}")

            except httpx.HTTPStatusError as e:
                last_error = NetworkTransportError(
                    f"HTTP error {e.response.status_code}",
                    endpoint=self._endpoint,
                    original_error=e,
                )
                logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

            except httpx.RequestError as e:
                last_error = NetworkTransportError.connection_failed(self._endpoint, e)
                logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

            except ValueError as e:
                last_error = NetworkTransportError.invalid_response(self._endpoint, str(e))

            if attempt < attempts - 1:
                time.sleep(self._config.retry_delay_seconds * (attempt + 1))

        raise last_error

    def get_latest_blockhash(
        self,
        commitment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get latest blockhash

        Returns:
            Dict with blockhash and lastValidBlockHeight
        """
        params = [{"commitment": commitment or self.commitment}]
        result = self.call("getLatestBlockhash", params)
        return result.get("value", {})

    def get_balance(
        self,
        address: str,
        commitment: Optional[str] = None,
    ) -> int:
        """
        Get SOL balance in lamports

        Args:
            address: Account address

        Returns:
            Balance in lamports
        """
        params = [address, {"commitment": commitment or self.commitment}]
        result = self.call("getBalance", params)
        return result.get("value", 0)

    def get_token_accounts_by_owner(
        self,
        owner: str,
        mint: Optional[str] = None,
        encoding: str = "jsonParsed",
        commitment: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get token accounts owned by address

        Args:
            owner: Owner address
            mint: Optional mint filter (SPL Token program otherwise)
            encoding: Data encoding

        Returns:
            List of token account info
        """
        filter_param = {"mint": mint} if mint else {"programId": SPL_TOKEN_PROGRAM_ID}

        params = [
            owner,
            filter_param,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = self.call("getTokenAccountsByOwner", params)
        return result.get("value", []) if result else []

    def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
    ) -> str:
        """
        Send signed transaction (single attempt)

        Args:
            transaction: Signed transaction bytes
            skip_preflight: Skip preflight simulation
            preflight_commitment: Preflight commitment level

        Returns:
            Transaction signature (base58)

        Raises:
            ChainSubmissionError: Node rejected the transaction
            NetworkTransportError: Node unreachable
        """
        tx_data = base64.b64encode(transaction).decode("ascii")

        params = [
            tx_data,
            {
                "skipPreflight": skip_preflight,
                "preflightCommitment": preflight_commitment or self.commitment,
                "encoding": "base64",
                "maxRetries": 0,
            },
        ]

        try:
            return self.call("sendTransaction", params, retry=False)
        except NetworkTransportError as e:
            if "rpc_error_code" in e.details:
                raise ChainSubmissionError.send_failed(e.message, e)
            raise

    def confirm_transaction(
        self,
        signature: str,
        commitment: Optional[str] = None,
        timeout_seconds: float = 60.0,
        poll_interval: float = 1.0,
    ) -> Optional[bool]:
        """
        Wait for transaction confirmation

        Args:
            signature: Transaction signature
            commitment: Commitment level
            timeout_seconds: Max wait time

        Returns:
            True if confirmed successfully
            False if transaction failed on-chain (has error)
            None if timeout (transaction never landed or status unknown)
        """
        start_time = time.time()
        last_status = None

        while time.time() - start_time < timeout_seconds:
            try:
                result = self.call(
                    "getSignatureStatuses",
                    [[signature], {"searchTransactionHistory": False}],
                )
                if result and result.get("value"):
                    status = result["value"][0]
                    if status:
                        last_status = status
                        if status.get("err"):
                            logger.warning(
                                f"Transaction {signature} failed on-chain: {status.get('err')}"
                            )
                            return False
                        conf = status.get("confirmationStatus")
                        if conf in ("confirmed", "finalized"):
                            return True
            except NetworkTransportError as e:
                logger.debug(f"Error checking transaction status: {e}")

            time.sleep(poll_interval)

        if last_status is None:
            logger.warning(
                f"Transaction {signature} was never seen on chain (dropped/expired)"
            )
        else:
            logger.warning(
                f"Transaction {signature} timeout. Last status: {last_status.get('confirmationStatus', 'unknown')}"
            )

        return None

    def get_transaction_slot(self, signature: str) -> Optional[int]:
        """Get the slot a confirmed transaction landed in"""
        params = [
            signature,
            {
                "encoding": "json",
                "commitment": self.commitment,
                "maxSupportedTransactionVersion": 0,
            },
        ]
        result = self.call("getTransaction", params)
        return result.get("slot") if result else None

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
