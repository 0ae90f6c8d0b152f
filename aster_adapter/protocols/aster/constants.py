"""
AsterDEX deposit constants and contract ABIs
"""

from ...types.network import DEPOSIT_CONTRACTS, Network

# Broker tag routing EVM vault deposits to the spot account (0 = futures)
SPOT_BROKER = 1000

# Solana treasury program
TREASURY_PROGRAM_ID = DEPOSIT_CONTRACTS[Network.SOLANA].address
TREASURY_ACCOUNT = DEPOSIT_CONTRACTS[Network.SOLANA].treasury_account
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# Broker tag embedded in the Solana deposit instruction
BROKER_ID = 56357235818057297
DEPOSIT_OPCODE = 0x6c
DEPOSIT_DATA_LEN = 16

# Seed suffixes for the user deposit account, tried in order
DEFAULT_PDA_SEEDS = ("deposit", "user")
MAX_SEED_LEN = 32

LAMPORTS_PER_SOL = 10 ** 9

U64_MAX = 2 ** 64 - 1
BROKER_MAX = 2 ** 56 - 1


# AstherusVault deposit functions
VAULT_ABI = [
    {
        "inputs": [
            {"name": "currency", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "broker", "type": "uint256"},
        ],
        "name": "deposit",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "broker", "type": "uint256"}],
        "name": "depositNative",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]

ERC20_ABI = [
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]
