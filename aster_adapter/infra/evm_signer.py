"""
EVM Transaction Signer using web3.py

Provides local signing for Ethereum, Arbitrum and BNB Chain transactions.
Nonces come from the RPC's pending transaction count; every send is a
single attempt.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Any, Iterator, Tuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3, HTTPProvider
from web3.exceptions import TimeExhausted, Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware

from ..errors import (
    AsterAdapterError,
    ChainSubmissionError,
    ConfigurationError,
    NetworkTransportError,
    SignerError,
)

logger = logging.getLogger(__name__)

# Chains that still price gas with legacy gasPrice
LEGACY_GAS_CHAINS = (56, 97)
POA_CHAINS = (56, 97)


@contextmanager
def evm_rpc_errors(endpoint: str = "evm rpc", action: str = "rpc call") -> Iterator[None]:
    """
    Map failures of web3 calls to adapter errors

    Transport failures (requests raises OSError subclasses) become
    NetworkTransportError; JSON-RPC and contract errors become
    ChainSubmissionError. Adapter errors pass through untouched.
    """
    try:
        yield
    except AsterAdapterError:
        raise
    except OSError as e:
        logger.error(f"{action}: {endpoint} unreachable: {e}")
        raise NetworkTransportError.connection_failed(endpoint, e)
    except (Web3Exception, ValueError, TypeError) as e:
        logger.error(f"{action} failed: {e}")
        raise ChainSubmissionError.send_failed(f"{action}: {e}", e)


class EVMSigner:
    """
    Local EVM signer using web3.py

    Usage:
        signer = EVMSigner.from_private_key("0x...")
        result = signer.sign_and_send(web3, tx_dict)
    """

    def __init__(self, account: "LocalAccount"):
        """
        Initialize with eth_account LocalAccount

        Args:
            account: LocalAccount from eth_account
        """
        self._account = account

    @property
    def address(self) -> str:
        """Get wallet address (checksummed)"""
        return self._account.address

    def sign_transaction(self, tx_dict: Dict[str, Any]) -> Tuple[bytes, str]:
        """
        Sign a transaction

        Args:
            tx_dict: Transaction dictionary with to, data, value, gas, gasPrice, nonce, chainId

        Returns:
            (raw_tx_bytes, tx_hash_hex)
        """
        signed = self._account.sign_transaction(tx_dict)
        return signed.raw_transaction, _hex(signed.hash)

    def sign_and_send(
        self,
        web3: "Web3",
        tx_dict: Dict[str, Any],
        wait_for_receipt: bool = True,
        timeout: float = 300,
    ) -> Dict[str, Any]:
        """
        Sign and send a transaction, optionally waiting for one confirmation

        Args:
            web3: Web3 instance connected to RPC
            tx_dict: Transaction dictionary
            wait_for_receipt: Wait for transaction receipt
            timeout: Timeout in seconds for receipt

        Returns:
            Dict with status, tx_hash, and block_number/gas_used when confirmed

        Raises:
            ChainSubmissionError: Send failed, receipt timed out or the
                transaction reverted
        """
        with evm_rpc_errors(action="prepare transaction"):
            if "nonce" not in tx_dict:
                tx_dict["nonce"] = web3.eth.get_transaction_count(self.address, "pending")
            if "chainId" not in tx_dict:
                tx_dict["chainId"] = web3.eth.chain_id

        try:
            signed = self._account.sign_transaction(tx_dict)
            tx_hash = web3.eth.send_raw_transaction(signed.raw_transaction)
        except (Web3Exception, ValueError, TypeError) as e:
            logger.error(f"Transaction send failed: {e}")
            raise ChainSubmissionError.send_failed(str(e), e)
        except OSError as e:
            logger.error(f"RPC unreachable while sending: {e}")
            raise NetworkTransportError.connection_failed("evm rpc", e)

        tx_hash_hex = _hex(tx_hash)
        logger.info(f"Transaction sent: {tx_hash_hex}")

        if not wait_for_receipt:
            return {"status": "pending", "tx_hash": tx_hash_hex}

        try:
            receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted:
            raise ChainSubmissionError.confirmation_failed(
                tx_hash_hex, f"no receipt after {timeout}s"
            )
        except (OSError, Web3Exception, ValueError) as e:
            # Already broadcast, so the error carries the hash
            logger.error(f"Receipt lookup failed for {tx_hash_hex}: {e}")
            raise ChainSubmissionError.confirmation_failed(tx_hash_hex, f"receipt lookup failed: {e}")

        if receipt["status"] != 1:
            logger.error(f"Transaction reverted: {tx_hash_hex}")
            raise ChainSubmissionError.reverted(tx_hash_hex)

        return {
            "status": "success",
            "tx_hash": tx_hash_hex,
            "block_number": receipt["blockNumber"],
            "gas_used": receipt["gasUsed"],
            "effective_gas_price": receipt.get("effectiveGasPrice", 0),
        }

    @classmethod
    def from_private_key(cls, private_key: str) -> "EVMSigner":
        """
        Create signer from private key

        Args:
            private_key: Hex-encoded private key (with or without 0x prefix)

        Returns:
            EVMSigner instance
        """
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key

        try:
            account = Account.from_key(private_key)
        except ValueError as e:
            raise SignerError.failed("invalid EVM private key", e)
        return cls(account)

    def __repr__(self) -> str:
        return f"EVMSigner(address={self.address})"


def _hex(value) -> str:
    if isinstance(value, str):
        text = value
    else:
        text = value.hex()
    return text if text.startswith("0x") else "0x" + text


def create_web3(
    rpc_url: str,
    chain_id: int,
    timeout: float = 30,
) -> "Web3":
    """
    Create Web3 instance for a chain

    Args:
        rpc_url: RPC endpoint URL
        chain_id: Chain ID (1, 42161 or 56)
        timeout: Request timeout in seconds

    Returns:
        Configured Web3 instance
    """
    if not rpc_url:
        raise ConfigurationError.missing(f"RPC URL for chain {chain_id}")

    provider = HTTPProvider(
        rpc_url,
        request_kwargs={"timeout": timeout},
    )

    web3 = Web3(provider)

    # BNB Chain uses Proof of Staked Authority
    if chain_id in POA_CHAINS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

    return web3


def add_gas_price(
    web3: "Web3",
    tx: Dict[str, Any],
    chain_id: int,
    priority_fee_gwei: float = 0.1,
) -> Dict[str, Any]:
    """
    Add gas pricing to a transaction

    EIP-1559 fields on Ethereum and Arbitrum, legacy gasPrice on BNB Chain.
    web3's build_transaction may pre-fill either set, so the other is removed.
    """
    if chain_id in LEGACY_GAS_CHAINS:
        tx.pop("maxFeePerGas", None)
        tx.pop("maxPriorityFeePerGas", None)
        tx["gasPrice"] = web3.eth.gas_price
        return tx

    latest_block = web3.eth.get_block("latest")
    base_fee = latest_block.get("baseFeePerGas", 0)
    max_priority_fee = web3.to_wei(priority_fee_gwei, "gwei")
    tx["maxFeePerGas"] = int(base_fee * 2) + max_priority_fee
    tx["maxPriorityFeePerGas"] = max_priority_fee
    tx.pop("gasPrice", None)
    return tx
