"""
Network registry

Supported settlement networks with their chain IDs, native assets,
explorers and AsterDEX deposit endpoints.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..errors import UnsupportedNetworkError


class NetworkKind(Enum):
    """Transaction model of a network"""
    EVM = "evm"
    SOLANA = "solana"


class Network(Enum):
    """Supported networks"""
    ETHEREUM = "ethereum"
    ARBITRUM = "arbitrum"
    BNB = "bnb"
    SOLANA = "solana"

    @classmethod
    def from_string(cls, value) -> "Network":
        """Convert string or chain ID to Network (case-insensitive)"""
        if isinstance(value, Network):
            return value
        value_lower = str(value).strip().lower()
        if value_lower in ("ethereum", "eth", "1"):
            return cls.ETHEREUM
        elif value_lower in ("arbitrum", "arb", "arbitrum one", "42161"):
            return cls.ARBITRUM
        elif value_lower in ("bnb", "bsc", "bnb chain", "56"):
            return cls.BNB
        elif value_lower in ("solana", "sol"):
            return cls.SOLANA
        raise UnsupportedNetworkError.unknown(str(value))

    @property
    def kind(self) -> NetworkKind:
        if self == Network.SOLANA:
            return NetworkKind.SOLANA
        return NetworkKind.EVM

    @property
    def is_evm(self) -> bool:
        """Check if this is an EVM network"""
        return self.kind == NetworkKind.EVM

    @property
    def chain_id(self) -> Optional[int]:
        """Get EVM chain ID (None for Solana)"""
        return _CHAIN_IDS.get(self)

    @property
    def native_symbol(self) -> str:
        """Get native token symbol"""
        if self == Network.SOLANA:
            return "SOL"
        elif self == Network.BNB:
            return "BNB"
        return "ETH"

    @property
    def native_decimals(self) -> int:
        return 9 if self == Network.SOLANA else 18

    @property
    def display_name(self) -> str:
        return DEPOSIT_CONTRACTS[self].network_name

    @property
    def explorer_tx_url(self) -> str:
        return DEPOSIT_CONTRACTS[self].explorer_url

    def explorer_link(self, tx_hash: str) -> str:
        """Build explorer URL for a transaction hash or signature"""
        return f"{self.explorer_tx_url}{tx_hash}"

    @classmethod
    def from_chain_id(cls, chain_id: int) -> "Network":
        for network, cid in _CHAIN_IDS.items():
            if cid == int(chain_id):
                return network
        raise UnsupportedNetworkError.unknown(str(chain_id))


_CHAIN_IDS: Dict[Network, int] = {
    Network.ETHEREUM: 1,
    Network.ARBITRUM: 42161,
    Network.BNB: 56,
}


@dataclass(frozen=True)
class DepositContract:
    """
    AsterDEX deposit endpoint on one network

    Attributes:
        address: Vault contract (EVM) or treasury program ID (Solana)
        network_name: Human-readable network name
        explorer_url: Transaction explorer prefix
        chain_id: EVM chain ID (None for Solana)
        treasury_account: Treasury wallet receiving Solana deposits
    """
    address: str
    network_name: str
    explorer_url: str
    chain_id: Optional[int] = None
    treasury_account: Optional[str] = None


# AstherusVault contracts and the Solana treasury program
DEPOSIT_CONTRACTS: Dict[Network, DepositContract] = {
    Network.ETHEREUM: DepositContract(
        address="0x604dd02d620633ae427888d41bfd15e38483736e",
        network_name="Ethereum",
        explorer_url="https://etherscan.io/tx/",
        chain_id=1,
    ),
    Network.ARBITRUM: DepositContract(
        address="0x9E36CB86a159d479cEd94Fa05036f235Ac40E1d5",
        network_name="Arbitrum One",
        explorer_url="https://arbiscan.io/tx/",
        chain_id=42161,
    ),
    Network.BNB: DepositContract(
        address="0x128463a60784c4d3f46c23af3f65ed859ba87974",
        network_name="BNB Chain",
        explorer_url="https://bscscan.com/tx/",
        chain_id=56,
    ),
    Network.SOLANA: DepositContract(
        address="EhUtRgu9iEbZXXRpEvDj6n1wnQRjMi2SERDo3c6bmN2c",
        network_name="Solana",
        explorer_url="https://solscan.io/tx/",
        treasury_account="5bXxj9Qa4hj15DHvzTgVy7z2VkEGNWFVQojfbUKAiGpE",
    ),
}


def get_deposit_contract(network) -> DepositContract:
    """Get deposit contract for a network name or enum"""
    return DEPOSIT_CONTRACTS[Network.from_string(network)]
