"""
AsterDEX deposit protocol

- AsterVault: EVM native and ERC20 deposits into AstherusVault
- TreasuryDeposit: SOL deposits into the Aster treasury program
- Instruction encoding for the treasury program
"""

from .constants import (
    SPOT_BROKER,
    BROKER_ID,
    DEPOSIT_OPCODE,
    TREASURY_PROGRAM_ID,
    TREASURY_ACCOUNT,
    VAULT_ABI,
    ERC20_ABI,
)
from .instructions import (
    DecodedDeposit,
    encode_deposit_data,
    decode_deposit_data,
    derive_user_pda,
    build_deposit_instruction,
)
from .evm_vault import AsterVault
from .treasury import TreasuryDeposit, sol_to_lamports

__all__ = [
    "SPOT_BROKER",
    "BROKER_ID",
    "DEPOSIT_OPCODE",
    "TREASURY_PROGRAM_ID",
    "TREASURY_ACCOUNT",
    "VAULT_ABI",
    "ERC20_ABI",
    "DecodedDeposit",
    "encode_deposit_data",
    "decode_deposit_data",
    "derive_user_pda",
    "build_deposit_instruction",
    "AsterVault",
    "TreasuryDeposit",
    "sol_to_lamports",
]
