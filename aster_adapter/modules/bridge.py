"""
Bridge Module

Swap-and-bridge workflow: deposit on one network, market buy on the
exchange, withdraw the bought asset to another network.

The steps run strictly in sequence and the run halts at the first failing
step. Nothing is reversed automatically; the returned trace says which
steps committed so the caller can recover.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from ..client import AsterClient

from ..errors import AsterAdapterError, UnsupportedNetworkError, ValidationError, WorkflowStepError
from ..infra.signing import normalize_evm_address
from ..infra.tracing import CorrelationContext, log_with_correlation
from ..types.network import Network, NetworkKind
from ..types.requests import format_amount, parse_amount
from ..types.result import WorkflowTrace
from ..types.tokens import resolve_token
from .market import validate_trading_symbol

logger = logging.getLogger(__name__)

STEP_DEPOSIT = "deposit"
STEP_SWAP = "swap"
STEP_WITHDRAW = "withdraw"


class BridgeModule:
    """
    Deposit -> market buy -> withdraw

    Usage:
        trace = client.bridge.swap_and_bridge(
            "bnb", "USDT", "25", "ETH", "arbitrum", "0xReceiver...",
        )
        if not trace.success:
            print(trace.failed_at, trace.completed_actions)
    """

    def __init__(self, client: "AsterClient", settle: Callable[[float], None] = time.sleep):
        """
        Initialize bridge module

        Args:
            client: AsterClient instance
            settle: Called with a delay in seconds between steps
        """
        self._client = client
        self._config = client.config
        self._settle = settle

    def _log(self, message: str, level: int = logging.INFO, **extra) -> None:
        log_with_correlation(level, message, "swap_and_bridge", log=logger, **extra)

    def swap_and_bridge(
        self,
        from_network,
        from_token: str,
        from_amount,
        target_token: str,
        to_network,
        to_address: Optional[str] = None,
        private_key: Optional[str] = None,
    ) -> WorkflowTrace:
        """
        Run the swap-and-bridge saga

        Args:
            from_network: Network to deposit from
            from_token: Token deposited (also the quote asset of the trade)
            from_amount: Amount deposited and spent on the buy
            target_token: Asset bought and withdrawn
            to_network: EVM network to withdraw to
            to_address: Destination (defaults to the signing wallet)
            private_key: Explicit key used for every step

        Returns:
            WorkflowTrace; failed_at is set when a step failed

        Raises:
            ValidationError: Inputs invalid (nothing was executed)
            UnsupportedNetworkError: Unknown network or non-EVM destination
            UnsupportedTokenError: from_token unknown on from_network
            InvalidAddressError: Destination malformed
        """
        with CorrelationContext("bridge", reuse=False):
            source = Network.from_string(from_network)
            destination_network = Network.from_string(to_network)
            if destination_network.kind != NetworkKind.EVM:
                raise UnsupportedNetworkError.not_evm(destination_network.value, "withdraw")

            amount = parse_amount(from_amount)
            resolve_token(source, from_token)
            if not target_token or not target_token.strip():
                raise ValidationError("Target token is required", field_name="target_token")
            if to_address:
                normalize_evm_address(to_address)

            pair = validate_trading_symbol(f"{target_token.strip()}{from_token.strip()}".upper())

            trace = WorkflowTrace()
            self._log(
                f"Starting: {amount} {from_token} on {source.value} -> "
                f"{target_token} on {destination_network.value}"
            )

            # Step 1: deposit
            self._log(f"[1/3] Depositing {amount} {from_token}")
            try:
                deposit = self._client.transfer.deposit(source, from_token, amount, private_key)
            except AsterAdapterError as e:
                return self._halt(trace, STEP_DEPOSIT, e)
            trace.record(STEP_DEPOSIT, deposit)

            self._settle(self._config.workflow.deposit_settle_seconds)

            # Step 2: market buy
            self._log(f"[2/3] Buying {pair} with {amount} {from_token}")
            try:
                order = self._client.market.market_buy(pair, amount)
            except AsterAdapterError as e:
                return self._halt(trace, STEP_SWAP, e)
            trace.record(STEP_SWAP, order)

            self._settle(self._config.workflow.swap_settle_seconds)

            # Step 3: withdraw what was bought
            withdraw_amount = order.executed_qty
            self._log(f"[3/3] Withdrawing {withdraw_amount} {target_token} to {destination_network.value}")
            try:
                withdrawal = self._client.transfer.withdraw(
                    destination_network,
                    target_token,
                    withdraw_amount,
                    to_address,
                    private_key,
                )
            except AsterAdapterError as e:
                return self._halt(trace, STEP_WITHDRAW, e)
            trace.record(STEP_WITHDRAW, withdrawal)

            trace.summary = {
                "deposited": f"{format_amount(amount)} {from_token} on {source.value}",
                "swapped": f"{order.executed_qty} {target_token}",
                "withdrawn": f"{withdraw_amount} {target_token} to {destination_network.value}",
                "destination": withdrawal.to_address,
            }
            self._log("Completed")
            return trace

    def _halt(self, trace: WorkflowTrace, step: str, cause: Exception) -> WorkflowTrace:
        error = WorkflowStepError(step, cause, trace.completed_actions)
        trace.fail(step, error)
        self._log(
            f"Halted at {step} after {trace.completed_actions or 'no steps'}: {cause}",
            level=logging.ERROR,
        )
        return trace
