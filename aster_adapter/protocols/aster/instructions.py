"""
Aster treasury deposit instruction

Instruction data layout (16 bytes):
    bytes 0-7   u64 LE  (broker_id << 8) | opcode
    bytes 8-15  u64 LE  amount in lamports

Accounts:
    0  owner           signer, writable
    1  user deposit    writable (program derived)
    2  treasury        writable
    3  system program  readonly
"""

import logging
import struct
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from ...errors import ChainSubmissionError, ValidationError
from .constants import (
    BROKER_ID,
    BROKER_MAX,
    DEFAULT_PDA_SEEDS,
    DEPOSIT_DATA_LEN,
    DEPOSIT_OPCODE,
    MAX_SEED_LEN,
    SYSTEM_PROGRAM_ID,
    TREASURY_ACCOUNT,
    TREASURY_PROGRAM_ID,
    U64_MAX,
)

logger = logging.getLogger(__name__)

_LAYOUT = struct.Struct("<QQ")


@dataclass(frozen=True)
class DecodedDeposit:
    opcode: int
    broker_id: int
    amount_lamports: int


def encode_deposit_data(
    amount_lamports: int,
    broker_id: int = BROKER_ID,
    opcode: int = DEPOSIT_OPCODE,
) -> bytes:
    """
    Encode deposit instruction data

    Raises:
        ValidationError: Amount or broker out of range
    """
    if not isinstance(amount_lamports, int) or isinstance(amount_lamports, bool):
        raise ValidationError.invalid_amount(amount_lamports)
    if amount_lamports <= 0 or amount_lamports > U64_MAX:
        raise ValidationError.invalid_amount(amount_lamports)
    if broker_id < 0 or broker_id > BROKER_MAX:
        raise ValidationError(f"Broker ID does not fit in 56 bits: {broker_id}", field_name="broker_id")
    if opcode < 0 or opcode > 0xFF:
        raise ValidationError(f"Opcode does not fit in one byte: {opcode}", field_name="opcode")
    return _LAYOUT.pack((broker_id << 8) | opcode, amount_lamports)


def decode_deposit_data(data: bytes) -> DecodedDeposit:
    """Inverse of encode_deposit_data"""
    if len(data) != DEPOSIT_DATA_LEN:
        raise ValidationError(
            f"Invalid data length: {len(data)}, expected {DEPOSIT_DATA_LEN}",
            field_name="data",
        )
    head, amount = _LAYOUT.unpack(bytes(data))
    return DecodedDeposit(
        opcode=head & 0xFF,
        broker_id=head >> 8,
        amount_lamports=amount,
    )


def derive_user_pda(
    owner: Pubkey,
    seeds: Sequence[str] = DEFAULT_PDA_SEEDS,
    program_id: Optional[Pubkey] = None,
) -> Tuple[Pubkey, str]:
    """
    Derive the user deposit account from the first seed pattern that works

    Each pattern is [owner, suffix]. The matched suffix is logged since the
    program's canonical seeds are not published.

    Returns:
        (pda, matched_suffix)

    Raises:
        ChainSubmissionError: No pattern derives an address
    """
    program = program_id or Pubkey.from_string(TREASURY_PROGRAM_ID)

    for suffix in seeds:
        seed = suffix.encode("utf-8")
        if not seed or len(seed) > MAX_SEED_LEN:
            logger.warning(f"Skipping deposit PDA seed {suffix!r}: invalid length")
            continue
        try:
            pda, _bump = Pubkey.find_program_address([bytes(owner), seed], program)
        except ValueError as e:
            logger.warning(f"Deposit PDA seed {suffix!r} did not derive: {e}")
            continue
        logger.info(f"Deposit PDA for {owner} derived with seed {suffix!r}: {pda}")
        return pda, suffix

    raise ChainSubmissionError.pda_not_found(str(owner))


def build_deposit_instruction(
    owner: Pubkey,
    amount_lamports: int,
    broker_id: int = BROKER_ID,
    seeds: Sequence[str] = DEFAULT_PDA_SEEDS,
    user_pda: Optional[Pubkey] = None,
) -> Instruction:
    """
    Build the treasury deposit instruction for a SOL amount

    The user PDA is derived from seeds unless one is passed in.
    """
    data = encode_deposit_data(amount_lamports, broker_id)
    if user_pda is None:
        user_pda, _ = derive_user_pda(owner, seeds)

    accounts = [
        AccountMeta(pubkey=owner, is_signer=True, is_writable=True),
        AccountMeta(pubkey=user_pda, is_signer=False, is_writable=True),
        AccountMeta(pubkey=Pubkey.from_string(TREASURY_ACCOUNT), is_signer=False, is_writable=True),
        AccountMeta(pubkey=Pubkey.from_string(SYSTEM_PROGRAM_ID), is_signer=False, is_writable=False),
    ]

    return Instruction(
        program_id=Pubkey.from_string(TREASURY_PROGRAM_ID),
        accounts=accounts,
        data=data,
    )
