"""
Key resolution and wallet generation

A signing key for a network is resolved fresh on every call, in priority
order:
1. Explicit key passed by the caller
2. Configured key ({NETWORK}_WALLET_PRIVATE_KEY)
3. Configured mnemonic ({NETWORK}_WALLET_MNEMONIC), expanded with the
   network's standard derivation

The first available source wins; sources are never merged.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple

import base58
from eth_account import Account
from eth_account.hdaccount.mnemonic import Mnemonic
from solders.keypair import Keypair

from ..config import Config, get_config
from ..errors import KeyDerivationError, MissingCredentialsError, SignerError
from ..types.network import Network, NetworkKind
from ..types.result import GeneratedWallet

logger = logging.getLogger(__name__)

Account.enable_unaudited_hdwallet_features()

EVM_DERIVATION_PATH = "m/44'/60'/0'/0/0"
MNEMONIC_WORDS = 12


class KeySource(Enum):
    """Where a resolved key came from"""
    EXPLICIT = "explicit"
    CONFIGURED_KEY = "configured_key"
    MNEMONIC = "mnemonic"


def _hex_key(key_bytes) -> str:
    key = key_bytes.hex()
    return key if key.startswith("0x") else "0x" + key


def _normalize_phrase(mnemonic: str) -> str:
    return " ".join(mnemonic.strip().split())


def derive_evm_key(mnemonic: str) -> str:
    """Derive the first BIP-44 Ethereum account key from a phrase"""
    phrase = _normalize_phrase(mnemonic)
    if not Mnemonic().is_mnemonic_valid(phrase):
        raise KeyDerivationError.invalid_mnemonic("evm")
    try:
        account = Account.from_mnemonic(phrase, account_path=EVM_DERIVATION_PATH)
    except ValueError as e:
        raise KeyDerivationError.invalid_mnemonic("evm", e)
    return _hex_key(account.key)


def derive_solana_keypair(mnemonic: str) -> Keypair:
    """Derive an ed25519 keypair from the first 32 bytes of the BIP-39 seed"""
    phrase = _normalize_phrase(mnemonic)
    if not Mnemonic().is_mnemonic_valid(phrase):
        raise KeyDerivationError.invalid_mnemonic("solana")
    seed = Mnemonic.to_seed(phrase)
    return Keypair.from_seed(seed[:32])


def derive_solana_key(mnemonic: str) -> str:
    """Derive a base58 encoded 64-byte Solana secret key from a phrase"""
    return base58.b58encode(bytes(derive_solana_keypair(mnemonic))).decode("ascii")


def derive_key_from_mnemonic(mnemonic: str, network) -> str:
    """
    Expand a mnemonic to a private key using the network's derivation

    Raises:
        KeyDerivationError: Phrase is malformed
    """
    network = Network.from_string(network)
    if network.kind == NetworkKind.SOLANA:
        return derive_solana_key(mnemonic)
    return derive_evm_key(mnemonic)


def resolve_key_with_source(
    network,
    explicit: Optional[str] = None,
    configured_key: Optional[str] = None,
    configured_mnemonic: Optional[str] = None,
) -> Tuple[str, "KeySource"]:
    """
    Resolve a key and report which source supplied it

    Raises:
        MissingCredentialsError: No source available
        KeyDerivationError: Mnemonic present but malformed
    """
    network = Network.from_string(network)

    if explicit:
        return explicit.strip(), KeySource.EXPLICIT

    if configured_key and configured_key.strip():
        return configured_key.strip(), KeySource.CONFIGURED_KEY

    if configured_mnemonic and configured_mnemonic.strip():
        return derive_key_from_mnemonic(configured_mnemonic, network), KeySource.MNEMONIC

    raise MissingCredentialsError.for_network(network.value)


def resolve_key(
    network,
    explicit: Optional[str] = None,
    configured_key: Optional[str] = None,
    configured_mnemonic: Optional[str] = None,
) -> str:
    """Resolve the signing key for a network (explicit > key > mnemonic)"""
    key, _ = resolve_key_with_source(network, explicit, configured_key, configured_mnemonic)
    return key


def evm_address_from_key(private_key: str) -> str:
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    try:
        return Account.from_key(private_key).address
    except ValueError as e:
        raise SignerError.failed("invalid EVM private key", e)


def solana_keypair_from_key(private_key: str) -> Keypair:
    """Load a Solana keypair from a base58 encoded 64-byte secret"""
    try:
        return Keypair.from_bytes(base58.b58decode(private_key))
    except ValueError as e:
        raise SignerError.failed("invalid Solana private key", e)


@dataclass
class WalletCredential:
    """
    Key material for one network, held only for one operation

    Attributes:
        network: Network the key signs for
        private_key: 0x hex (EVM) or base58 64-byte secret (Solana)
        source: Which resolution tier produced the key
    """
    network: Network
    private_key: str
    source: KeySource

    @property
    def address(self) -> str:
        if not self.private_key:
            raise SignerError.failed("credential already discarded")
        if self.network.kind == NetworkKind.SOLANA:
            return str(solana_keypair_from_key(self.private_key).pubkey())
        return evm_address_from_key(self.private_key)

    def discard(self) -> None:
        self.private_key = ""

    def __repr__(self) -> str:
        return f"WalletCredential(network={self.network.value}, source={self.source.value})"


def resolve_credential(
    network,
    explicit: Optional[str] = None,
    config: Optional[Config] = None,
) -> WalletCredential:
    """Resolve a credential using the network's configured key and mnemonic"""
    network = Network.from_string(network)
    wallet = (config or get_config()).wallet_for(network)
    key, source = resolve_key_with_source(
        network,
        explicit=explicit,
        configured_key=wallet.private_key,
        configured_mnemonic=wallet.mnemonic,
    )
    logger.debug(f"Resolved {network.value} key from {source.value}")
    return WalletCredential(network=network, private_key=key, source=source)


@contextmanager
def acquire_credential(
    network,
    explicit: Optional[str] = None,
    config: Optional[Config] = None,
) -> Iterator[WalletCredential]:
    """
    Scope a credential to a block; key material is dropped on exit

    Usage:
        with acquire_credential("bnb") as credential:
            signer = EVMSigner.from_private_key(credential.private_key)
    """
    credential = resolve_credential(network, explicit, config)
    try:
        yield credential
    finally:
        credential.discard()


def create_evm_wallet() -> GeneratedWallet:
    """Generate a new EVM wallet with a 12-word mnemonic"""
    account, mnemonic = Account.create_with_mnemonic(num_words=MNEMONIC_WORDS)
    return GeneratedWallet(
        network=Network.ETHEREUM,
        address=account.address,
        private_key=_hex_key(account.key),
        mnemonic=mnemonic,
    )


def create_solana_wallet() -> GeneratedWallet:
    """Generate a new Solana wallet with a 12-word mnemonic"""
    mnemonic = Mnemonic().generate(num_words=MNEMONIC_WORDS)
    keypair = derive_solana_keypair(mnemonic)
    return GeneratedWallet(
        network=Network.SOLANA,
        address=str(keypair.pubkey()),
        private_key=base58.b58encode(bytes(keypair)).decode("ascii"),
        mnemonic=mnemonic,
    )


def create_wallet(network) -> GeneratedWallet:
    """Generate a wallet for a network; EVM networks share one key format"""
    network = Network.from_string(network)
    if network.kind == NetworkKind.SOLANA:
        return create_solana_wallet()
    wallet = create_evm_wallet()
    return GeneratedWallet(
        network=network,
        address=wallet.address,
        private_key=wallet.private_key,
        mnemonic=wallet.mnemonic,
    )
