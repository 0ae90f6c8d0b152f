"""
Protocol Unit Tests

Tests the Solana treasury instruction encoding, the EVM vault deposit
flow and the SOL deposit flow with mocked chains.
"""

import struct
import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from web3 import Web3

from aster_adapter.errors import ChainSubmissionError, ErrorCode, NetworkTransportError, ValidationError
from aster_adapter.infra.solana_signer import LocalSigner
from aster_adapter.protocols.aster import (
    AsterVault,
    TreasuryDeposit,
    build_deposit_instruction,
    decode_deposit_data,
    derive_user_pda,
    encode_deposit_data,
    sol_to_lamports,
)
from aster_adapter.protocols.aster.constants import (
    BROKER_ID,
    DEPOSIT_OPCODE,
    SPOT_BROKER,
    SYSTEM_PROGRAM_ID,
    TREASURY_ACCOUNT,
    TREASURY_PROGRAM_ID,
    VAULT_ABI,
)
from aster_adapter.types import Network, TxStatus, get_token

from conftest import TEST_EVM_ADDRESS, build_config

# 32 zero bytes, a valid base58 blockhash
ZERO_BLOCKHASH = "11111111111111111111111111111111"


class TestDepositData:
    """Tests for treasury instruction data"""

    def test_layout(self):
        data = encode_deposit_data(1_500_000_000)
        assert len(data) == 16
        assert data[0] == DEPOSIT_OPCODE
        head, amount = struct.unpack("<QQ", data)
        assert head == (BROKER_ID << 8) | 0x6C
        assert amount == 1_500_000_000

    def test_decode_inverse(self):
        decoded = decode_deposit_data(encode_deposit_data(42, broker_id=7))
        assert decoded.opcode == DEPOSIT_OPCODE
        assert decoded.broker_id == 7
        assert decoded.amount_lamports == 42

    @pytest.mark.parametrize("amount", [0, -1, 2 ** 64, "100", 1.5])
    def test_bad_amount(self, amount):
        with pytest.raises(ValidationError):
            encode_deposit_data(amount)

    def test_broker_too_wide(self):
        with pytest.raises(ValidationError):
            encode_deposit_data(1, broker_id=2 ** 56)

    def test_decode_wrong_length(self):
        with pytest.raises(ValidationError):
            decode_deposit_data(b"\x00" * 15)

    def test_sol_to_lamports(self):
        assert sol_to_lamports(Decimal("0.5")) == 500_000_000
        assert sol_to_lamports(Decimal("0.0000000019")) == 1


class TestUserPda:
    """Tests for deposit account derivation"""

    def test_first_seed_used(self):
        owner = Keypair().pubkey()
        pda, seed = derive_user_pda(owner)
        expected, _ = Pubkey.find_program_address(
            [bytes(owner), b"deposit"],
            Pubkey.from_string(TREASURY_PROGRAM_ID),
        )
        assert seed == "deposit"
        assert pda == expected

    def test_oversized_seed_skipped(self):
        owner = Keypair().pubkey()
        _, seed = derive_user_pda(owner, seeds=("x" * 40, "user"))
        assert seed == "user"

    def test_no_usable_seed(self):
        owner = Keypair().pubkey()
        with pytest.raises(ChainSubmissionError) as exc_info:
            derive_user_pda(owner, seeds=("", "y" * 33))
        assert exc_info.value.code == ErrorCode.TX_PDA_DERIVATION_FAILED


class TestDepositInstruction:
    """Tests for the assembled instruction"""

    def test_accounts(self):
        owner = Keypair().pubkey()
        ix = build_deposit_instruction(owner, 1_000_000)
        user_pda, _ = derive_user_pda(owner)

        assert ix.program_id == Pubkey.from_string(TREASURY_PROGRAM_ID)
        accounts = ix.accounts
        assert [a.pubkey for a in accounts] == [
            owner,
            user_pda,
            Pubkey.from_string(TREASURY_ACCOUNT),
            Pubkey.from_string(SYSTEM_PROGRAM_ID),
        ]
        assert accounts[0].is_signer and accounts[0].is_writable
        assert not accounts[1].is_signer and accounts[1].is_writable
        assert accounts[2].is_writable
        assert not accounts[3].is_writable
        assert decode_deposit_data(bytes(ix.data)).amount_lamports == 1_000_000

    def test_given_pda_used(self):
        owner = Keypair().pubkey()
        other = Keypair().pubkey()
        ix = build_deposit_instruction(owner, 1_000_000, user_pda=other)
        assert ix.accounts[1].pubkey == other


def _vault_fixture(network=Network.BNB):
    """AsterVault over a mocked web3 with separate vault and token contracts"""
    vault_contract = MagicMock(name="vault")
    token_contract = MagicMock(name="token")

    def contract(address, abi):
        return vault_contract if abi is VAULT_ABI else token_contract

    web3 = MagicMock()
    web3.eth.contract.side_effect = contract
    web3.eth.get_transaction_count.return_value = 3

    signer = Mock()
    signer.address = TEST_EVM_ADDRESS

    vault = AsterVault(web3, signer, network, build_config().tx)
    return vault, vault_contract, token_contract, signer


@patch("aster_adapter.protocols.aster.evm_vault.add_gas_price")
class TestAsterVault:
    """Tests for EVM vault deposits"""

    def test_vault_address(self, _gas):
        vault, _, _, _ = _vault_fixture(Network.ARBITRUM)
        assert vault.vault_address == "0x9E36CB86a159d479cEd94Fa05036f235Ac40E1d5"

    def test_sufficient_allowance_skips_approval(self, _gas):
        vault, _, token, signer = _vault_fixture()
        token.functions.allowance.return_value.call.return_value = 10 ** 30

        assert vault.ensure_allowance(get_token("bnb", "USDT").address, 10 ** 18) is None
        token.functions.approve.assert_not_called()
        signer.sign_and_send.assert_not_called()

    def test_short_allowance_approves_exact_amount(self, _gas):
        vault, _, token, signer = _vault_fixture()
        token.functions.allowance.return_value.call.side_effect = [0, 10 ** 18]
        token.functions.approve.return_value.build_transaction.return_value = {"to": "token"}
        signer.sign_and_send.return_value = {"status": 1, "tx_hash": "0xapprove"}

        approval = vault.ensure_allowance(get_token("bnb", "USDT").address, 10 ** 18)

        assert approval == "0xapprove"
        token.functions.approve.assert_called_once_with(vault.vault_address, 10 ** 18)
        tx = token.functions.approve.return_value.build_transaction.call_args[0][0]
        assert tx["gas"] == 100_000
        assert tx["chainId"] == 56

    def test_allowance_still_short_after_approval(self, _gas):
        vault, _, token, signer = _vault_fixture()
        token.functions.allowance.return_value.call.side_effect = [0, 5]
        token.functions.approve.return_value.build_transaction.return_value = {}
        signer.sign_and_send.return_value = {"status": 1, "tx_hash": "0xapprove"}

        with pytest.raises(ChainSubmissionError) as exc_info:
            vault.ensure_allowance(get_token("bnb", "USDT").address, 10 ** 18)
        assert exc_info.value.code == ErrorCode.TX_APPROVAL_FAILED
        assert exc_info.value.tx_hash == "0xapprove"

    def test_approval_send_failure(self, _gas):
        vault, _, token, signer = _vault_fixture()
        token.functions.allowance.return_value.call.return_value = 0
        token.functions.approve.return_value.build_transaction.return_value = {}
        signer.sign_and_send.side_effect = ChainSubmissionError.reverted("0xbad")

        with pytest.raises(ChainSubmissionError) as exc_info:
            vault.ensure_allowance(get_token("bnb", "USDT").address, 1)
        assert exc_info.value.code == ErrorCode.TX_APPROVAL_FAILED
        assert exc_info.value.tx_hash == "0xbad"

    def test_deposit_token(self, _gas):
        vault, vault_contract, token, signer = _vault_fixture()
        usdt = get_token("bnb", "USDT")
        token.functions.decimals.return_value.call.return_value = 18
        token.functions.allowance.return_value.call.return_value = 10 ** 30
        vault_contract.functions.deposit.return_value.build_transaction.return_value = {"to": "vault"}
        signer.sign_and_send.return_value = {"status": 1, "tx_hash": "0xdeposit", "block_number": 123}

        result = vault.deposit_token(usdt, Decimal("25"))

        vault_contract.functions.deposit.assert_called_once_with(
            Web3.to_checksum_address(usdt.address),
            25 * 10 ** 18,
            SPOT_BROKER,
        )
        assert result.tx_hash == "0xdeposit"
        assert result.status == TxStatus.CONFIRMED
        assert result.block == 123
        assert result.approval_tx_hash is None
        assert result.explorer_url == "https://bscscan.com/tx/0xdeposit"
        assert result.extra["raw_amount"] == str(25 * 10 ** 18)

    def test_deposit_token_uses_live_decimals(self, _gas):
        vault, vault_contract, token, signer = _vault_fixture(Network.ETHEREUM)
        token.functions.decimals.return_value.call.return_value = 6
        token.functions.allowance.return_value.call.return_value = 10 ** 30
        vault_contract.functions.deposit.return_value.build_transaction.return_value = {}
        signer.sign_and_send.return_value = {"status": 1, "tx_hash": "0xdeposit"}

        vault.deposit_token(get_token("ethereum", "USDT"), Decimal("1.5"))

        assert vault_contract.functions.deposit.call_args[0][1] == 1_500_000

    def test_deposit_native(self, _gas):
        vault, vault_contract, _, signer = _vault_fixture()
        vault_contract.functions.depositNative.return_value.build_transaction.return_value = {}
        signer.sign_and_send.return_value = {"status": 1, "tx_hash": "0xnative"}

        result = vault.deposit_native(Decimal("0.1"))

        vault_contract.functions.depositNative.assert_called_once_with(SPOT_BROKER)
        tx = vault_contract.functions.depositNative.return_value.build_transaction.call_args[0][0]
        assert tx["value"] == 10 ** 17
        assert result.token == "BNB"
        assert result.tx_hash == "0xnative"

    def test_nonce_lookup_unreachable(self, _gas):
        vault, _, _, signer = _vault_fixture()
        vault._web3.eth.get_transaction_count.side_effect = ConnectionError("refused")

        with pytest.raises(NetworkTransportError) as exc_info:
            vault.deposit_native(Decimal("0.1"))
        assert exc_info.value.endpoint == "bnb rpc"
        signer.sign_and_send.assert_not_called()

    def test_decimals_read_unreachable(self, _gas):
        vault, vault_contract, token, _ = _vault_fixture()
        token.functions.decimals.return_value.call.side_effect = ConnectionError("refused")

        with pytest.raises(NetworkTransportError):
            vault.deposit_token(get_token("bnb", "USDT"), Decimal("25"))
        vault_contract.functions.deposit.assert_not_called()

    def test_allowance_read_unreachable(self, _gas):
        vault, _, token, signer = _vault_fixture()
        token.functions.allowance.return_value.call.side_effect = ConnectionError("refused")

        with pytest.raises(NetworkTransportError):
            vault.ensure_allowance(get_token("bnb", "USDT").address, 1)
        signer.sign_and_send.assert_not_called()

    def test_gas_estimate_rpc_error(self, _gas):
        vault, vault_contract, token, signer = _vault_fixture()
        token.functions.decimals.return_value.call.return_value = 18
        token.functions.allowance.return_value.call.return_value = 10 ** 30
        vault_contract.functions.deposit.return_value.build_transaction.side_effect = ValueError(
            {"code": -32000, "message": "insufficient funds for gas"}
        )

        with pytest.raises(ChainSubmissionError) as exc_info:
            vault.deposit_token(get_token("bnb", "USDT"), Decimal("25"))
        assert exc_info.value.code == ErrorCode.TX_SEND_FAILED
        signer.sign_and_send.assert_not_called()

    def test_approve_estimate_rpc_error(self, _gas):
        vault, _, token, signer = _vault_fixture()
        token.functions.allowance.return_value.call.return_value = 0
        token.functions.approve.return_value.build_transaction.side_effect = ValueError("execution reverted")

        with pytest.raises(ChainSubmissionError) as exc_info:
            vault.ensure_allowance(get_token("bnb", "USDT").address, 1)
        assert exc_info.value.code == ErrorCode.TX_APPROVAL_FAILED
        signer.sign_and_send.assert_not_called()

    def test_gas_price_unreachable(self, gas):
        vault, vault_contract, _, signer = _vault_fixture()
        vault_contract.functions.depositNative.return_value.build_transaction.return_value = {}
        gas.side_effect = ConnectionError("refused")

        with pytest.raises(NetworkTransportError):
            vault.deposit_native(Decimal("0.1"))
        signer.sign_and_send.assert_not_called()


class TestTreasuryDeposit:
    """Tests for the SOL deposit flow"""

    def _treasury(self, confirmed=True):
        rpc = Mock()
        rpc.get_latest_blockhash.return_value = {"blockhash": ZERO_BLOCKHASH}
        rpc.send_transaction.return_value = "sig123"
        rpc.confirm_transaction.return_value = confirmed
        rpc.get_transaction_slot.return_value = 999
        signer = LocalSigner(Keypair())
        return TreasuryDeposit(rpc, signer, build_config().tx), rpc, signer

    def test_deposit_sol(self):
        treasury, rpc, signer = self._treasury()

        result = treasury.deposit_sol(Decimal("0.25"))

        assert result.network == Network.SOLANA
        assert result.tx_hash == "sig123"
        assert result.block == 999
        assert result.extra["lamports"] == 250_000_000
        assert result.extra["pda_seed"] == "deposit"
        assert result.extra["from"] == signer.address
        assert result.explorer_url == "https://solscan.io/tx/sig123"
        rpc.send_transaction.assert_called_once()
        assert isinstance(rpc.send_transaction.call_args[0][0], bytes)

    def test_slot_lookup_failure_keeps_confirmed_result(self):
        treasury, rpc, _ = self._treasury()
        rpc.get_transaction_slot.side_effect = NetworkTransportError.timeout("https://solana.rpc.test", 5)

        result = treasury.deposit_sol(Decimal("0.25"))

        assert result.status == TxStatus.CONFIRMED
        assert result.tx_hash == "sig123"
        assert result.block is None

    def test_pda_derived_once(self):
        treasury, _, signer = self._treasury()
        with patch(
            "aster_adapter.protocols.aster.treasury.derive_user_pda",
            wraps=derive_user_pda,
        ) as outer, patch(
            "aster_adapter.protocols.aster.instructions.derive_user_pda",
        ) as inner:
            result = treasury.deposit_sol(Decimal("0.25"))

        outer.assert_called_once()
        inner.assert_not_called()
        assert result.extra["user_pda"] == str(derive_user_pda(signer.pubkey)[0])

    def test_failed_on_chain(self):
        treasury, _, _ = self._treasury(confirmed=False)
        with pytest.raises(ChainSubmissionError) as exc_info:
            treasury.deposit_sol(Decimal("0.25"))
        assert exc_info.value.code == ErrorCode.TX_CONFIRMATION_FAILED

    def test_not_confirmed_in_time(self):
        treasury, _, _ = self._treasury(confirmed=None)
        with pytest.raises(ChainSubmissionError) as exc_info:
            treasury.deposit_sol(Decimal("0.25"))
        assert exc_info.value.tx_hash == "sig123"

    def test_dust_rejected(self):
        treasury, rpc, _ = self._treasury()
        with pytest.raises(ValidationError):
            treasury.deposit_sol(Decimal("0.0000000001"))
        rpc.send_transaction.assert_not_called()
