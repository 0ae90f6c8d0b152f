"""
Request and withdrawal signing

- HMAC-SHA256 over a canonical query string for exchange API calls
- EIP-712 typed-data signature authorizing withdrawals
"""

import hashlib
import hmac
import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from eth_account import Account
from eth_account.messages import encode_typed_data
from web3 import Web3

from ..errors import InvalidAddressError, SignerError

logger = logging.getLogger(__name__)


# Characters encodeURIComponent leaves untouched besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Chain names the exchange expects in the "destination Chain" field
WITHDRAW_CHAIN_NAMES: Dict[int, str] = {
    1: "ETH",
    56: "BSC",
    42161: "Arbi",
}

WITHDRAW_DOMAIN_NAME = "Aster"
WITHDRAW_DOMAIN_VERSION = "1"
ASTER_CHAIN = "Mainnet"

WITHDRAW_ACTION_TYPE = [
    {"name": "type", "type": "string"},
    {"name": "destination", "type": "address"},
    {"name": "destination Chain", "type": "string"},
    {"name": "token", "type": "string"},
    {"name": "amount", "type": "string"},
    {"name": "fee", "type": "string"},
    {"name": "nonce", "type": "uint256"},
    {"name": "aster chain", "type": "string"},
]

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        value = "true" if value else "false"
    return quote(str(value), safe=_URI_COMPONENT_SAFE)


def build_query_string(params: Optional[Mapping[str, Any]]) -> str:
    """
    Build the canonical query string that gets signed and sent

    Keys are sorted lexicographically and both keys and values are
    percent-encoded. None values are dropped.

    Example:
        >>> build_query_string({"symbol": "BTCUSDT", "limit": 5})
        'limit=5&symbol=BTCUSDT'
    """
    if not params:
        return ""
    return "&".join(
        f"{_encode_value(key)}={_encode_value(params[key])}"
        for key in sorted(params)
        if params[key] is not None
    )


def hmac_sign(query_string: str, secret: str) -> str:
    """HMAC-SHA256 of a query string, hex encoded"""
    return hmac.new(
        secret.encode("utf-8"),
        query_string.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def normalize_evm_address(address: str) -> str:
    """
    Lower-case then re-checksum an EVM address

    Raises:
        InvalidAddressError: Address is empty or malformed
    """
    if not address or not isinstance(address, str):
        raise InvalidAddressError.invalid(str(address))
    lowered = address.strip().lower()
    if not Web3.is_address(lowered):
        raise InvalidAddressError.invalid(address)
    return Web3.to_checksum_address(lowered)


def withdraw_chain_name(chain_id: int) -> str:
    return WITHDRAW_CHAIN_NAMES.get(int(chain_id), "ETH")


def build_withdraw_typed_data(
    chain_id: int,
    destination: str,
    token: str,
    amount: str,
    fee: str,
    nonce: int,
) -> Dict[str, Any]:
    """
    Build the full EIP-712 message for a withdrawal

    Args:
        chain_id: Destination EVM chain ID
        destination: Receiving address (normalized to checksum form)
        token: Asset symbol
        amount: Amount as decimal string
        fee: Fee as decimal string from the fee quote
        nonce: Microsecond nonce

    Returns:
        Dict with types, primaryType, domain and message
    """
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            "Action": WITHDRAW_ACTION_TYPE,
        },
        "primaryType": "Action",
        "domain": {
            "name": WITHDRAW_DOMAIN_NAME,
            "version": WITHDRAW_DOMAIN_VERSION,
            "chainId": int(chain_id),
            "verifyingContract": ZERO_ADDRESS,
        },
        "message": {
            "type": "Withdraw",
            "destination": normalize_evm_address(destination),
            "destination Chain": withdraw_chain_name(chain_id),
            "token": str(token),
            "amount": str(amount),
            "fee": str(fee),
            "nonce": int(nonce),
            "aster chain": ASTER_CHAIN,
        },
    }


def sign_typed_withdrawal(
    private_key: str,
    chain_id: int,
    destination: str,
    token: str,
    amount: str,
    fee: str,
    nonce: int,
    debug: bool = False,
) -> str:
    """
    Sign a withdrawal authorization with EIP-712

    The destination is validated before any signing happens.

    Returns:
        0x-prefixed hex signature

    Raises:
        InvalidAddressError: Destination is not a valid EVM address
        SignerError: Key is malformed or signing fails
    """
    typed_data = build_withdraw_typed_data(chain_id, destination, token, amount, fee, nonce)

    if debug:
        logger.debug(f"EIP-712 domain: {typed_data['domain']}")
        logger.debug(f"EIP-712 types: {typed_data['types']['Action']}")
        logger.debug(f"EIP-712 message: {typed_data['message']}")

    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    try:
        signable = encode_typed_data(full_message=typed_data)
        signed = Account.sign_message(signable, private_key=private_key)
    except (ValueError, TypeError) as e:
        raise SignerError.failed("withdrawal typed data", e)

    signature = signed.signature.hex()
    if not signature.startswith("0x"):
        signature = "0x" + signature

    if debug:
        logger.debug(f"EIP-712 signature: {signature}")

    return signature
