"""
Aster treasury deposits on Solana
"""

import logging
from decimal import Decimal
from typing import Sequence

from ...config import TxConfig
from ...errors import ChainSubmissionError, NetworkTransportError, ValidationError
from ...infra.rpc import RpcClient
from ...infra.solana_signer import LocalSigner
from ...types.network import Network
from ...types.result import SignedOperationResult
from .constants import BROKER_ID, DEFAULT_PDA_SEEDS, LAMPORTS_PER_SOL, TREASURY_ACCOUNT
from .instructions import build_deposit_instruction, derive_user_pda

logger = logging.getLogger(__name__)


def sol_to_lamports(amount: Decimal) -> int:
    """Convert SOL to lamports, truncating sub-lamport dust"""
    return int(amount * LAMPORTS_PER_SOL)


class TreasuryDeposit:
    """
    SOL deposit into the Aster treasury program

    Usage:
        treasury = TreasuryDeposit(rpc, signer, config.tx)
        result = treasury.deposit_sol(Decimal("0.5"))
    """

    def __init__(
        self,
        rpc: RpcClient,
        signer: LocalSigner,
        tx_config: TxConfig,
        broker_id: int = BROKER_ID,
        pda_seeds: Sequence[str] = DEFAULT_PDA_SEEDS,
    ):
        self._rpc = rpc
        self._signer = signer
        self._tx_config = tx_config
        self._broker_id = broker_id
        self._pda_seeds = tuple(pda_seeds) or DEFAULT_PDA_SEEDS

    def deposit_sol(self, amount: Decimal) -> SignedOperationResult:
        """
        Build, sign, send and confirm a SOL deposit

        Raises:
            ValidationError: Amount rounds to zero lamports
            ChainSubmissionError: Send rejected, failed on chain or not confirmed
            NetworkTransportError: RPC unreachable
        """
        lamports = sol_to_lamports(amount)
        if lamports <= 0:
            raise ValidationError.invalid_amount(amount)

        owner = self._signer.pubkey
        user_pda, seed = derive_user_pda(owner, self._pda_seeds)
        instruction = build_deposit_instruction(owner, lamports, self._broker_id, user_pda=user_pda)

        blockhash = self._rpc.get_latest_blockhash().get("blockhash")
        if not blockhash:
            raise ChainSubmissionError.send_failed("no recent blockhash from RPC")

        tx_bytes, signature = self._signer.build_signed_transaction([instruction], blockhash)

        logger.info(f"Depositing {amount} SOL ({lamports} lamports) from {owner} to treasury")
        sent_signature = self._rpc.send_transaction(
            tx_bytes,
            skip_preflight=self._tx_config.skip_preflight,
        ) or signature

        confirmed = self._rpc.confirm_transaction(
            sent_signature,
            timeout_seconds=self._tx_config.confirmation_timeout,
        )
        if confirmed is False:
            raise ChainSubmissionError.confirmation_failed(sent_signature, "transaction failed on chain")
        if confirmed is None:
            raise ChainSubmissionError.confirmation_failed(
                sent_signature,
                f"not confirmed within {self._tx_config.confirmation_timeout}s",
            )

        try:
            slot = self._rpc.get_transaction_slot(sent_signature)
        except NetworkTransportError as e:
            logger.warning(f"Deposit {sent_signature} confirmed but slot lookup failed: {e}")
            slot = None

        return SignedOperationResult.confirmed(
            network=Network.SOLANA,
            action="deposit",
            tx_hash=sent_signature,
            block=slot,
            token="SOL",
            amount=amount,
            extra={
                "from": str(owner),
                "treasury": TREASURY_ACCOUNT,
                "user_pda": str(user_pda),
                "pda_seed": seed,
                "lamports": lamports,
            },
        )
