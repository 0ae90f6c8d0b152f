"""
Solana transaction signing

Compiles instructions into a v0 message and signs it with a local keypair.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import base58
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from ..errors import SignerError

logger = logging.getLogger(__name__)


class LocalSigner:
    """
    Local signer using Solana keypair

    Usage:
        signer = LocalSigner.from_base58(secret)
        tx_bytes, signature = signer.build_signed_transaction([ix], blockhash)
    """

    def __init__(self, keypair: "Keypair"):
        """
        Initialize with keypair

        Args:
            keypair: solders.keypair.Keypair instance
        """
        self._keypair = keypair

    @property
    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    @property
    def address(self) -> str:
        """Public key as base58 string"""
        return str(self._keypair.pubkey())

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes"""
        return bytes(self._keypair.sign_message(message))

    def build_signed_transaction(
        self,
        instructions: List[Instruction],
        recent_blockhash: str,
    ) -> Tuple[bytes, str]:
        """
        Compile and sign a transaction paid for by this keypair

        Args:
            instructions: Instructions in execution order
            recent_blockhash: Base58 blockhash from getLatestBlockhash

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        message = MessageV0.try_compile(
            payer=self._keypair.pubkey(),
            instructions=instructions,
            address_lookup_table_accounts=[],
            recent_blockhash=Hash.from_string(recent_blockhash),
        )
        tx = VersionedTransaction(message, [self._keypair])
        return bytes(tx), str(tx.signatures[0])

    @classmethod
    def from_bytes(cls, secret_key: bytes) -> "LocalSigner":
        """Create signer from secret key bytes (64 bytes)"""
        try:
            keypair = Keypair.from_bytes(secret_key)
        except ValueError as e:
            raise SignerError.failed("invalid Solana secret key", e)
        return cls(keypair)

    @classmethod
    def from_base58(cls, secret_key: str) -> "LocalSigner":
        """Create signer from base58 secret key"""
        try:
            secret_bytes = base58.b58decode(secret_key.strip())
        except ValueError as e:
            raise SignerError.failed("secret key is not base58", e)
        return cls.from_bytes(secret_bytes)

    def __repr__(self) -> str:
        return f"LocalSigner(pubkey={self.address})"
