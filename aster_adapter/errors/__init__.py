"""
Error definitions for Aster Adapter
"""

from .exceptions import (
    ErrorCode,
    AsterAdapterError,
    ValidationError,
    MissingCredentialsError,
    KeyDerivationError,
    InvalidAddressError,
    SignerError,
    UnsupportedTokenError,
    UnsupportedNetworkError,
    NetworkTransportError,
    ApiError,
    ChainSubmissionError,
    WorkflowStepError,
    ConfigurationError,
    OperationNotSupported,
)

__all__ = [
    "ErrorCode",
    "AsterAdapterError",
    "ValidationError",
    "MissingCredentialsError",
    "KeyDerivationError",
    "InvalidAddressError",
    "SignerError",
    "UnsupportedTokenError",
    "UnsupportedNetworkError",
    "NetworkTransportError",
    "ApiError",
    "ChainSubmissionError",
    "WorkflowStepError",
    "ConfigurationError",
    "OperationNotSupported",
]
