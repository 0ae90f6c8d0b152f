"""
Exception definitions for Aster Adapter
"""

from enum import Enum
from typing import List, Optional
from decimal import Decimal


class ErrorCode(Enum):
    """
    Unified error codes for exchange agent operations

    1xxx - Transport errors
    2xxx - Chain submission errors
    3xxx - Exchange API errors
    4xxx - Registry errors
    5xxx - Validation errors
    6xxx - Signer/credential errors
    7xxx - Operation/workflow errors
    9xxx - Configuration errors
    """
    # Transport errors (recoverable)
    TRANSPORT_CONNECTION_FAILED = "1001"
    TRANSPORT_TIMEOUT = "1002"
    TRANSPORT_RATE_LIMITED = "1003"
    TRANSPORT_INVALID_RESPONSE = "1004"

    # Chain submission errors
    TX_SEND_FAILED = "2001"
    TX_REVERTED = "2002"
    TX_CONFIRMATION_FAILED = "2003"
    TX_APPROVAL_FAILED = "2004"
    TX_PDA_DERIVATION_FAILED = "2005"

    # Exchange API errors
    API_REQUEST_REJECTED = "3001"
    API_FEE_UNAVAILABLE = "3002"
    API_INVALID_RESPONSE = "3003"

    # Registry errors
    UNSUPPORTED_TOKEN = "4001"
    UNSUPPORTED_NETWORK = "4002"

    # Validation errors
    VALIDATION_FAILED = "5001"
    INVALID_AMOUNT = "5002"
    AMOUNT_BELOW_MINIMUM = "5003"
    INVALID_SYMBOL = "5004"

    # Signer/credential errors
    CREDENTIALS_MISSING = "6001"
    KEY_DERIVATION_FAILED = "6002"
    INVALID_ADDRESS = "6003"
    SIGNER_FAILED = "6004"

    # Operation/workflow errors
    OPERATION_NOT_SUPPORTED = "7001"
    WORKFLOW_STEP_FAILED = "7002"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class AsterAdapterError(Exception):
    """
    Base exception for all Aster adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on a later attempt
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if a caller may safely try again"""
        return self.recoverable


class ValidationError(AsterAdapterError):
    """
    Input rejected before any I/O

    Raised when:
    - Amount is not a positive finite decimal
    - Stablecoin withdrawal is below the minimum
    - Trading symbol is malformed
    - Instruction data cannot be encoded or decoded
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        field_name: Optional[str] = None,
        value: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"field": field_name, "value": value},
        )
        self.field_name = field_name
        self.value = value

    @classmethod
    def invalid_amount(cls, value) -> "ValidationError":
        return cls(
            f"Invalid amount: {value!r}. Must be a positive number",
            ErrorCode.INVALID_AMOUNT,
            field_name="amount",
            value=str(value),
        )

    @classmethod
    def below_minimum(cls, token: str, amount: Decimal, minimum: Decimal) -> "ValidationError":
        return cls(
            f"Minimum withdrawal for {token} is {minimum}, got {amount}",
            ErrorCode.AMOUNT_BELOW_MINIMUM,
            field_name="amount",
            value=str(amount),
        )

    @classmethod
    def invalid_symbol(cls, symbol: str) -> "ValidationError":
        return cls(
            f"Invalid trading symbol: {symbol!r}",
            ErrorCode.INVALID_SYMBOL,
            field_name="symbol",
            value=symbol,
        )


class MissingCredentialsError(AsterAdapterError):
    """
    No key material available for signing

    Raised when:
    - No explicit key, configured key or mnemonic exists for a network
    - Exchange API key or secret is not configured for a signed request
    """

    def __init__(self, message: str, scope: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.CREDENTIALS_MISSING,
            recoverable=False,
            details={"scope": scope},
        )
        self.scope = scope

    @classmethod
    def for_network(cls, network: str) -> "MissingCredentialsError":
        env = network.upper()
        return cls(
            f"No credentials for {network}. Provide a private key, "
            f"or set {env}_WALLET_PRIVATE_KEY or {env}_WALLET_MNEMONIC",
            scope=network,
        )

    @classmethod
    def api_keys(cls) -> "MissingCredentialsError":
        return cls(
            "API credentials not configured. Set ASTER_API_KEY and ASTER_API_SECRET",
            scope="exchange",
        )


class KeyDerivationError(AsterAdapterError):
    """Mnemonic present but unusable"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            ErrorCode.KEY_DERIVATION_FAILED,
            recoverable=False,
            original_error=original_error,
        )

    @classmethod
    def invalid_mnemonic(cls, network: str, error: Exception = None) -> "KeyDerivationError":
        return cls(f"Invalid mnemonic phrase for {network}", original_error=error)


class InvalidAddressError(AsterAdapterError):
    """Destination or owner address failed validation"""

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.INVALID_ADDRESS,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def invalid(cls, address: str, network: str = "EVM") -> "InvalidAddressError":
        return cls(f"Invalid {network} address: {address}", address=address)


class SignerError(AsterAdapterError):
    """
    Signing-related errors

    Raised when:
    - Key material is malformed
    - Typed-data or transaction signing fails
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(
            message,
            ErrorCode.SIGNER_FAILED,
            recoverable=False,
            original_error=original_error,
        )

    @classmethod
    def failed(cls, reason: str, error: Exception = None) -> "SignerError":
        return cls(f"Signing failed: {reason}", original_error=error)


class UnsupportedTokenError(AsterAdapterError):
    """Token symbol not known on the requested network"""

    def __init__(self, message: str, token: Optional[str] = None, network: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.UNSUPPORTED_TOKEN,
            recoverable=False,
            details={"token": token, "network": network},
        )
        self.token = token
        self.network = network

    @classmethod
    def not_found(cls, token: str, network: str, available: Optional[List[str]] = None) -> "UnsupportedTokenError":
        message = f"Token {token} not supported on {network}"
        if available:
            message += f". Available: {', '.join(available)}"
        return cls(message, token=token, network=network)


class UnsupportedNetworkError(AsterAdapterError):
    """Network name not in the registry, or not valid for the operation"""

    def __init__(self, message: str, network: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.UNSUPPORTED_NETWORK,
            recoverable=False,
            details={"network": network},
        )
        self.network = network

    @classmethod
    def unknown(cls, network: str) -> "UnsupportedNetworkError":
        return cls(
            f"Unsupported network: {network}. Supported: ethereum, arbitrum, bnb, solana",
            network=network,
        )

    @classmethod
    def not_evm(cls, network: str, operation: str) -> "UnsupportedNetworkError":
        return cls(
            f"{operation} is only available on EVM networks, got {network}",
            network=network,
        )


class NetworkTransportError(AsterAdapterError):
    """
    RPC or HTTP endpoint unreachable - recoverable

    Raised when:
    - Connection to an endpoint fails
    - Request times out
    - Rate limit is hit
    - Response body cannot be parsed
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TRANSPORT_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "NetworkTransportError":
        return cls(
            f"Failed to connect to endpoint: {endpoint}",
            ErrorCode.TRANSPORT_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "NetworkTransportError":
        return cls(
            f"Request timed out after {timeout_seconds}s",
            ErrorCode.TRANSPORT_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "NetworkTransportError":
        return cls(
            "Rate limit exceeded",
            ErrorCode.TRANSPORT_RATE_LIMITED,
            endpoint=endpoint,
        )

    @classmethod
    def invalid_response(cls, endpoint: str, reason: str) -> "NetworkTransportError":
        return cls(
            f"Invalid response from {endpoint}: {reason}",
            ErrorCode.TRANSPORT_INVALID_RESPONSE,
            endpoint=endpoint,
        )


class ApiError(AsterAdapterError):
    """
    Exchange rejected a request

    Carries the provider error code when the body has one, otherwise the
    HTTP status, along with the provider message.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.API_REQUEST_REJECTED,
        api_code=None,
        http_status: Optional[int] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"api_code": api_code, "http_status": http_status, "endpoint": endpoint},
        )
        self.api_code = api_code
        self.http_status = http_status
        self.endpoint = endpoint

    @classmethod
    def from_response(cls, endpoint: str, http_status: int, body) -> "ApiError":
        api_code = None
        api_msg = None
        if isinstance(body, dict):
            api_code = body.get("code")
            api_msg = body.get("msg")
        if api_code is None:
            api_code = http_status
        if not api_msg:
            api_msg = f"HTTP {http_status}"
        return cls(
            f"API Error {api_code}: {api_msg}",
            api_code=api_code,
            http_status=http_status,
            endpoint=endpoint,
        )

    @classmethod
    def fee_unavailable(cls, token: str, chain_id: int) -> "ApiError":
        return cls(
            f"Withdrawal fee unavailable for {token} on chain {chain_id}",
            ErrorCode.API_FEE_UNAVAILABLE,
            endpoint="/api/v1/aster/withdraw/estimateFee",
        )

    @classmethod
    def invalid_response(cls, endpoint: str, reason: str) -> "ApiError":
        return cls(
            f"Unexpected response from {endpoint}: {reason}",
            ErrorCode.API_INVALID_RESPONSE,
            endpoint=endpoint,
        )


class ChainSubmissionError(AsterAdapterError):
    """
    Chain write failed

    Raised when:
    - Transaction send fails
    - Transaction reverts or confirmation times out
    - ERC20 approval fails or leaves allowance insufficient
    - Solana deposit PDA cannot be derived
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_SEND_FAILED,
        tx_hash: Optional[str] = None,
        reason: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"tx_hash": tx_hash, "reason": reason},
        )
        self.tx_hash = tx_hash
        self.reason = reason

    @classmethod
    def send_failed(cls, reason: str, error: Exception = None) -> "ChainSubmissionError":
        return cls(
            f"Failed to send transaction: {reason}",
            ErrorCode.TX_SEND_FAILED,
            reason=reason,
            original_error=error,
        )

    @classmethod
    def reverted(cls, tx_hash: str) -> "ChainSubmissionError":
        return cls(
            f"Transaction reverted: {tx_hash}",
            ErrorCode.TX_REVERTED,
            tx_hash=tx_hash,
            reason="reverted",
        )

    @classmethod
    def confirmation_failed(cls, tx_hash: str, reason: str) -> "ChainSubmissionError":
        return cls(
            f"Transaction confirmation failed: {reason}",
            ErrorCode.TX_CONFIRMATION_FAILED,
            tx_hash=tx_hash,
            reason=reason,
        )

    @classmethod
    def approval_failed(cls, reason: str, tx_hash: Optional[str] = None) -> "ChainSubmissionError":
        return cls(
            f"Token approval failed: {reason}",
            ErrorCode.TX_APPROVAL_FAILED,
            tx_hash=tx_hash,
            reason=reason,
        )

    @classmethod
    def pda_not_found(cls, owner: str) -> "ChainSubmissionError":
        return cls(
            f"Could not derive deposit account for {owner}",
            ErrorCode.TX_PDA_DERIVATION_FAILED,
            reason="no seed pattern produced a program address",
        )


class WorkflowStepError(AsterAdapterError):
    """
    A step of the swap-and-bridge saga failed

    Attributes:
        step: Name of the failing step (deposit, swap, withdraw)
        completed_steps: Names of steps that committed before the failure
        cause: The underlying error
    """

    def __init__(
        self,
        step: str,
        cause: Exception,
        completed_steps: Optional[List[str]] = None,
    ):
        completed = list(completed_steps or [])
        super().__init__(
            f"Workflow failed at {step}: {cause}",
            ErrorCode.WORKFLOW_STEP_FAILED,
            recoverable=False,
            original_error=cause,
            details={"step": step, "completed_steps": completed},
        )
        self.step = step
        self.cause = cause
        self.completed_steps = completed


class ConfigurationError(AsterAdapterError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)


class OperationNotSupported(AsterAdapterError):
    """Operation not available for the requested network or token"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        network: Optional[str] = None,
    ):
        super().__init__(
            message,
            ErrorCode.OPERATION_NOT_SUPPORTED,
            recoverable=False,
            details={"operation": operation, "network": network},
        )
        self.operation = operation
        self.network = network

    @classmethod
    def not_implemented(cls, operation: str, network: str) -> "OperationNotSupported":
        return cls(
            f"Operation '{operation}' is not supported on {network}",
            operation=operation,
            network=network,
        )
