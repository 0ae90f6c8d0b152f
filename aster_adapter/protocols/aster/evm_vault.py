"""
AstherusVault deposits on EVM networks

Native deposits call depositNative(broker) with value attached.
ERC20 deposits are two-phase: approve the vault when the current allowance
is short, wait for the approval to confirm, then call deposit().
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from web3 import Web3
from web3.exceptions import ContractLogicError

from ...config import TxConfig
from ...errors import ChainSubmissionError
from ...infra.evm_signer import EVMSigner, add_gas_price, evm_rpc_errors
from ...types.network import Network, get_deposit_contract
from ...types.result import SignedOperationResult
from ...types.tokens import TokenDescriptor
from .constants import ERC20_ABI, SPOT_BROKER, VAULT_ABI

logger = logging.getLogger(__name__)


def to_raw_amount(amount: Decimal, decimals: int) -> int:
    """Scale a UI amount to integer base units (truncating)"""
    return int(amount * (Decimal(10) ** decimals))


class AsterVault:
    """
    Deposit builder for one EVM network

    Usage:
        vault = AsterVault(web3, signer, Network.BNB, config.tx)
        result = vault.deposit_native(Decimal("0.1"))
        result = vault.deposit_token(usdt, Decimal("25"))
    """

    def __init__(
        self,
        web3: "Web3",
        signer: EVMSigner,
        network: Network,
        tx_config: TxConfig,
    ):
        self._web3 = web3
        self._signer = signer
        self._network = network
        self._chain_id = network.chain_id
        self._tx_config = tx_config
        self._endpoint = f"{network.value} rpc"
        self._vault_address = Web3.to_checksum_address(get_deposit_contract(network).address)
        self._vault = web3.eth.contract(address=self._vault_address, abi=VAULT_ABI)

    @property
    def vault_address(self) -> str:
        return self._vault_address

    def _token_contract(self, token_address: str):
        return self._web3.eth.contract(
            address=Web3.to_checksum_address(token_address),
            abi=ERC20_ABI,
        )

    def _base_tx(self, value: int = 0) -> Dict[str, Any]:
        with evm_rpc_errors(self._endpoint, "nonce lookup"):
            nonce = self._web3.eth.get_transaction_count(self._signer.address, "pending")
        tx: Dict[str, Any] = {
            "from": self._signer.address,
            "nonce": nonce,
            "chainId": self._chain_id,
        }
        if value:
            tx["value"] = value
        return tx

    def _send(self, tx: Dict[str, Any]) -> Dict[str, Any]:
        with evm_rpc_errors(self._endpoint, "gas price"):
            add_gas_price(self._web3, tx, self._chain_id, self._tx_config.priority_fee_gwei)
        return self._signer.sign_and_send(
            self._web3,
            tx,
            wait_for_receipt=True,
            timeout=self._tx_config.confirmation_timeout,
        )

    def deposit_native(self, amount: Decimal, broker: int = SPOT_BROKER) -> SignedOperationResult:
        """
        Deposit native ETH/BNB into the vault

        Args:
            amount: Amount in whole units (18 decimals)
            broker: Broker tag (1000 = spot)
        """
        value = to_raw_amount(amount, 18)
        logger.info(
            f"Depositing {amount} {self._network.native_symbol} to vault "
            f"{self._vault_address} on {self._network.value}"
        )

        base_tx = self._base_tx(value)
        with evm_rpc_errors(self._endpoint, "depositNative"):
            try:
                tx = self._vault.functions.depositNative(broker).build_transaction(base_tx)
            except ContractLogicError as e:
                raise ChainSubmissionError.send_failed(f"depositNative would revert: {e}", e)

        result = self._send(tx)

        return SignedOperationResult.confirmed(
            network=self._network,
            action="deposit",
            tx_hash=result["tx_hash"],
            block=result.get("block_number"),
            token=self._network.native_symbol,
            amount=amount,
            extra={
                "vault": self._vault_address,
                "from": self._signer.address,
                "gas_used": result.get("gas_used"),
            },
        )

    def get_allowance(self, token_address: str) -> int:
        contract = self._token_contract(token_address)
        with evm_rpc_errors(self._endpoint, "allowance"):
            return contract.functions.allowance(self._signer.address, self._vault_address).call()

    def ensure_allowance(self, token_address: str, required: int) -> Optional[str]:
        """
        Approve the vault for required when the allowance is short

        Returns:
            Approval tx hash, or None when no approval was needed

        Raises:
            ChainSubmissionError: Approval failed, reverted, or left the
                allowance still insufficient
        """
        current = self.get_allowance(token_address)
        if current >= required:
            logger.info(f"Allowance {current} covers {required}, skipping approval")
            return None

        logger.info(f"Approving vault {self._vault_address} for {required} of {token_address}")
        contract = self._token_contract(token_address)
        tx = self._base_tx()
        tx["gas"] = self._tx_config.approve_gas_limit

        try:
            with evm_rpc_errors(self._endpoint, "approve"):
                approve_tx = contract.functions.approve(self._vault_address, required).build_transaction(tx)
            result = self._send(approve_tx)
        except ChainSubmissionError as e:
            raise ChainSubmissionError.approval_failed(e.reason or e.message, e.tx_hash)

        approval_hash = result["tx_hash"]

        after = self.get_allowance(token_address)
        if after < required:
            raise ChainSubmissionError.approval_failed(
                f"allowance {after} still below {required} after approval",
                approval_hash,
            )

        logger.info(f"Token approval confirmed: {approval_hash}")
        return approval_hash

    def deposit_token(
        self,
        token: TokenDescriptor,
        amount: Decimal,
        broker: int = SPOT_BROKER,
    ) -> SignedOperationResult:
        """
        Deposit an ERC20 token into the vault

        Decimals are read from the token contract, not the registry.
        """
        contract = self._token_contract(token.address)
        with evm_rpc_errors(self._endpoint, "decimals"):
            decimals = contract.functions.decimals().call()
        raw_amount = to_raw_amount(amount, decimals)
        if raw_amount <= 0:
            raise ChainSubmissionError.send_failed(
                f"{amount} {token.symbol} is below one base unit ({decimals} decimals)"
            )

        approval_hash = self.ensure_allowance(token.address, raw_amount)

        logger.info(
            f"Depositing {amount} {token.symbol} ({raw_amount} units) to vault "
            f"{self._vault_address} on {self._network.value}"
        )

        base_tx = self._base_tx()
        with evm_rpc_errors(self._endpoint, "deposit"):
            try:
                tx = self._vault.functions.deposit(
                    Web3.to_checksum_address(token.address),
                    raw_amount,
                    broker,
                ).build_transaction(base_tx)
            except ContractLogicError as e:
                raise ChainSubmissionError.send_failed(f"deposit would revert: {e}", e)

        result = self._send(tx)

        return SignedOperationResult.confirmed(
            network=self._network,
            action="deposit",
            tx_hash=result["tx_hash"],
            block=result.get("block_number"),
            token=token.symbol,
            amount=amount,
            approval_tx_hash=approval_hash,
            extra={
                "vault": self._vault_address,
                "from": self._signer.address,
                "token_address": token.address,
                "raw_amount": str(raw_amount),
                "decimals": decimals,
                "gas_used": result.get("gas_used"),
            },
        )
