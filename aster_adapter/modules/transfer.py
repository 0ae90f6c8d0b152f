"""
Transfer Module

Moves funds between wallets and the exchange account:
- Deposits: AstherusVault on Ethereum/Arbitrum/BNB, treasury program on Solana
- Withdrawal fee quotes
- Withdrawals authorized with an EIP-712 signature

Every operation runs through a small state machine
(VALIDATING -> RESOLVING_CREDENTIAL -> SUBMITTING -> CONFIRMING -> DONE)
whose transitions are logged under the active correlation ID.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from ..client import AsterClient

from ..errors import (
    ApiError,
    AsterAdapterError,
    OperationNotSupported,
    UnsupportedNetworkError,
)
from ..infra.evm_signer import EVMSigner
from ..infra.exchange_client import current_timestamp_ms
from ..infra.keys import acquire_credential, create_wallet
from ..infra.signing import normalize_evm_address, sign_typed_withdrawal
from ..infra.solana_signer import LocalSigner
from ..infra.tracing import CorrelationContext, log_with_correlation
from ..protocols.aster import AsterVault, TreasuryDeposit
from ..types.network import Network, NetworkKind
from ..types.requests import DepositRequest, WithdrawRequest
from ..types.result import FeeQuote, GeneratedWallet, SignedOperationResult, WithdrawalResult
from ..types.tokens import TokenKind, resolve_token

logger = logging.getLogger(__name__)


class OperationState(Enum):
    """Lifecycle of a deposit or withdrawal"""
    VALIDATING = "validating"
    RESOLVING_CREDENTIAL = "resolving_credential"
    APPROVING = "approving"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    DONE = "done"
    FAILED = "failed"


class _StateTracker:
    def __init__(self, operation: str):
        self.operation = operation
        self.state = OperationState.VALIDATING

    def advance(self, state: OperationState, **extra) -> None:
        self.state = state
        log_with_correlation(
            logging.INFO,
            f"-> {state.value}",
            self.operation,
            log=logger,
            **extra
        )


@contextmanager
def _tracked(operation: str) -> Iterator[_StateTracker]:
    """Run an operation with state logging; errors are tagged with the failing state"""
    with CorrelationContext(operation):
        tracker = _StateTracker(operation)
        tracker.advance(OperationState.VALIDATING)
        try:
            yield tracker
        except AsterAdapterError as e:
            e.details.setdefault("state", tracker.state.value)
            log_with_correlation(
                logging.ERROR,
                f"failed in {tracker.state.value}: {e}",
                operation,
                log=logger,
            )
            tracker.state = OperationState.FAILED
            raise
        tracker.advance(OperationState.DONE)


class TransferModule:
    """
    Deposit and withdrawal operations

    Usage:
        result = client.transfer.deposit("bnb", "USDT", "25")
        quote = client.transfer.withdraw_fee("USDT", "arbitrum")
        withdrawal = client.transfer.withdraw("arbitrum", "USDT", "20")
    """

    def __init__(self, client: "AsterClient"):
        self._client = client
        self._config = client.config

    # =========================================================================
    # Deposit
    # =========================================================================

    def deposit(
        self,
        network,
        token: str,
        amount,
        private_key: Optional[str] = None,
    ) -> SignedOperationResult:
        """
        Deposit tokens from a wallet into the exchange

        Args:
            network: ethereum, arbitrum, bnb or solana
            token: Token symbol or contract address
            amount: Amount in whole units (decimal string preferred)
            private_key: Explicit key (configured key/mnemonic otherwise)

        Returns:
            SignedOperationResult for the confirmed deposit transaction

        Raises:
            ValidationError: Amount invalid
            UnsupportedTokenError: Token unknown on network
            OperationNotSupported: SPL token deposit on Solana
            MissingCredentialsError: No key available
            ChainSubmissionError: Approval or deposit failed
        """
        with _tracked("deposit") as tracker:
            request = DepositRequest.create(network, token, amount, private_key)
            descriptor = resolve_token(request.network, request.token)

            if request.network.kind == NetworkKind.SOLANA and descriptor.kind != TokenKind.NATIVE:
                raise OperationNotSupported(
                    f"Only SOL deposits are supported on Solana, got {descriptor.symbol}",
                    operation="deposit",
                    network=request.network.value,
                )

            tracker.advance(OperationState.RESOLVING_CREDENTIAL, network=request.network.value)
            with acquire_credential(request.network, request.private_key, self._config) as credential:
                if request.network.kind == NetworkKind.SOLANA:
                    signer = LocalSigner.from_base58(credential.private_key)
                    tracker.advance(OperationState.SUBMITTING, token="SOL", amount=str(request.amount))
                    treasury = TreasuryDeposit(
                        self._client.solana_rpc,
                        signer,
                        self._config.tx,
                        broker_id=self._config.solana_deposit.broker_id,
                        pda_seeds=self._config.solana_deposit.pda_seeds,
                    )
                    result = treasury.deposit_sol(request.amount)
                else:
                    signer = EVMSigner.from_private_key(credential.private_key)
                    vault = AsterVault(
                        self._client.web3(request.network),
                        signer,
                        request.network,
                        self._config.tx,
                    )
                    if descriptor.kind == TokenKind.NATIVE:
                        tracker.advance(OperationState.SUBMITTING, token=descriptor.symbol)
                        result = vault.deposit_native(request.amount)
                    else:
                        tracker.advance(OperationState.APPROVING, token=descriptor.symbol)
                        result = vault.deposit_token(descriptor, request.amount)

            tracker.advance(OperationState.CONFIRMING, tx_hash=result.tx_hash)
            logger.info(f"Deposit confirmed: {result.explorer_url}")
            return result

    # =========================================================================
    # Withdraw
    # =========================================================================

    def withdraw_fee(self, token: str, network) -> FeeQuote:
        """
        Quote the withdrawal fee for a token on an EVM network

        Raises:
            UnsupportedNetworkError: Network is not EVM
            ApiError: Exchange returned no fee
        """
        network = Network.from_string(network)
        if network.kind != NetworkKind.EVM:
            raise UnsupportedNetworkError.not_evm(network.value, "withdraw_fee")

        asset = token.strip().upper()
        data = self._client.exchange.estimate_withdraw_fee(network.chain_id, asset)

        fee = None
        if isinstance(data, dict):
            fee = data.get("gasCost")
            if fee is None:
                fee = data.get("fee")
        if fee is None or fee == "":
            raise ApiError.fee_unavailable(asset, network.chain_id)

        return FeeQuote(token=asset, chain_id=network.chain_id, fee=str(fee), raw=data)

    def withdraw(
        self,
        network,
        token: str,
        amount,
        to_address: Optional[str] = None,
        private_key: Optional[str] = None,
    ) -> WithdrawalResult:
        """
        Withdraw from the exchange account to an EVM address

        The fee is quoted and the nonce taken fresh on every call.

        Args:
            network: Destination EVM network
            token: Asset symbol
            amount: Amount to withdraw
            to_address: Destination (defaults to the signing wallet)
            private_key: Explicit key (configured key/mnemonic otherwise)

        Raises:
            ValidationError: Amount invalid or below the stablecoin minimum
            UnsupportedNetworkError: Network is not EVM
            InvalidAddressError: Destination malformed
            MissingCredentialsError: No wallet key or API keys
            ApiError: Fee unavailable or withdrawal rejected
        """
        with _tracked("withdraw") as tracker:
            request = WithdrawRequest.create(network, token, amount, to_address, private_key)
            if request.network.kind != NetworkKind.EVM:
                raise UnsupportedNetworkError.not_evm(request.network.value, "withdraw")
            if request.destination:
                normalize_evm_address(request.destination)
            chain_id = request.network.chain_id

            tracker.advance(OperationState.RESOLVING_CREDENTIAL, network=request.network.value)
            with acquire_credential(request.network, request.private_key, self._config) as credential:
                receiver = credential.address
                destination = normalize_evm_address(request.destination or receiver)

                quote = self.withdraw_fee(request.token, request.network)

                timestamp = current_timestamp_ms()
                nonce = timestamp * 1000

                signature = sign_typed_withdrawal(
                    credential.private_key,
                    chain_id=chain_id,
                    destination=destination,
                    token=request.token,
                    amount=request.amount_str,
                    fee=quote.fee,
                    nonce=nonce,
                    debug=self._config.debug.full,
                )

            params = {
                "chainId": chain_id,
                "asset": request.token,
                "amount": request.amount_str,
                "fee": quote.fee,
                "receiver": receiver,
                "nonce": str(nonce),
                "userSignature": signature,
                "timestamp": timestamp,
            }

            tracker.advance(
                OperationState.SUBMITTING,
                token=request.token,
                amount=request.amount_str,
                fee=quote.fee,
            )
            data = self._client.exchange.submit_withdrawal(params) or {}

            tracker.advance(OperationState.CONFIRMING)
            withdraw_id = data.get("id") or data.get("withdrawId")
            result = WithdrawalResult(
                withdraw_id=str(withdraw_id) if withdraw_id is not None else None,
                network=request.network,
                token=request.token,
                amount=request.amount_str,
                fee=quote.fee,
                from_address=receiver,
                to_address=destination,
                nonce=nonce,
                status=data.get("status") or "pending",
                tx_hash=data.get("txHash") or data.get("txId"),
                raw=data,
            )
            logger.info(f"Withdrawal {result.withdraw_id} submitted to {destination}")
            return result

    # =========================================================================
    # Wallets
    # =========================================================================

    def create_wallet(self, network) -> GeneratedWallet:
        """New wallet (12-word mnemonic) using the same derivation as key resolution"""
        return create_wallet(network)
