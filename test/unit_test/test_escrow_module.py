"""
Escrow Module Unit Tests

Tests trade setup, take and cancel flows with mocked RPC and
transaction builder.
"""

import sys
import base64
from pathlib import Path
from unittest.mock import Mock

import pytest
from solders.pubkey import Pubkey

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from escrow_client.modules.escrow import EscrowModule
from escrow_client.protocols.escrow import (
    TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    derive_escrow_authority,
    encode_escrow_state,
)
from escrow_client.types import EscrowState, InitEscrowResult
from escrow_client.errors import AccountNotFound, AmountOutOfRange, InvalidAddress, MalformedAccount

PROGRAM_ID = Pubkey.new_unique()
WALLET = Pubkey.new_unique()
MINT = Pubkey.new_unique()
SIGNATURE = "5" * 64


def _escrow_account_info(state: EscrowState) -> dict:
    return {
        "owner": str(PROGRAM_ID),
        "data": [base64.b64encode(encode_escrow_state(state)).decode(), "base64"],
    }


@pytest.fixture
def state():
    return EscrowState(
        is_initialized=True,
        initializer_pubkey=Pubkey.new_unique(),
        temp_token_account_pubkey=Pubkey.new_unique(),
        initializer_token_to_receive_account_pubkey=Pubkey.new_unique(),
        expected_amount=20,
    )


@pytest.fixture
def client():
    client = Mock()
    client.pubkey = str(WALLET)
    client.program_id = PROGRAM_ID
    client.find_program_address = Pubkey.find_program_address
    client.rpc = Mock()
    client.tx_builder = Mock()
    client.tx_builder.submit.return_value = SIGNATURE
    return client


@pytest.fixture
def escrow(client):
    return EscrowModule(client)


class TestAuthority:
    """Tests for escrow authority caching"""

    def test_authority(self, escrow):
        assert escrow.authority() == derive_escrow_authority(PROGRAM_ID)

    def test_authority_derived_once(self, client):
        calls = []

        def fake_find(seeds, program):
            calls.append(program)
            return Pubkey.new_unique(), 254

        client.find_program_address = fake_find
        escrow = EscrowModule(client)
        first = escrow.authority()
        assert escrow.authority() == first
        assert len(calls) == 1


class TestGetEscrowInfo:
    """Tests for get_escrow_info"""

    def test_decodes_state(self, escrow, client, state):
        client.rpc.get_account_info.return_value = _escrow_account_info(state)
        assert escrow.get_escrow_info(Pubkey.new_unique()) == state

    def test_closed_escrow(self, escrow, client):
        client.rpc.get_account_info.return_value = None
        with pytest.raises(AccountNotFound):
            escrow.get_escrow_info(Pubkey.new_unique())


class TestInitEscrow:
    """Tests for init_escrow"""

    def _setup_rpc(self, client):
        client.rpc.get_account_info.return_value = {
            "owner": TOKEN_PROGRAM_ID,
            "data": {"parsed": {"info": {"mint": str(MINT)}, "type": "account"}, "program": "spl-token"},
        }
        client.rpc.get_minimum_balance_for_rent_exemption.side_effect = lambda size: size * 10

    def test_builds_setup_transaction(self, escrow, client):
        self._setup_rpc(client)
        x_account = Pubkey.new_unique()
        y_account = Pubkey.new_unique()

        result = escrow.init_escrow(x_account, y_account, 10, 20)

        assert isinstance(result, InitEscrowResult)
        assert result.signature == SIGNATURE

        instructions = client.tx_builder.submit.call_args.args[0]
        signers = client.tx_builder.submit.call_args.kwargs["additional_signers"]
        temp_pubkey, escrow_pubkey = (kp.pubkey() for kp in signers)

        assert result.temp_token_account == str(temp_pubkey)
        assert result.escrow_account == str(escrow_pubkey)

        program_ids = [ix.program_id for ix in instructions]
        assert program_ids == [
            Pubkey.from_string(SYSTEM_PROGRAM_ID),
            Pubkey.from_string(TOKEN_PROGRAM_ID),
            Pubkey.from_string(TOKEN_PROGRAM_ID),
            Pubkey.from_string(SYSTEM_PROGRAM_ID),
            PROGRAM_ID,
        ]

        create_temp, init_temp, transfer, create_escrow, init_escrow = instructions
        assert create_temp.accounts[1].pubkey == temp_pubkey
        assert init_temp.accounts[1].pubkey == MINT
        assert bytes(transfer.data) == bytes([3, 10, 0, 0, 0, 0, 0, 0, 0])
        assert transfer.accounts[0].pubkey == x_account
        assert create_escrow.accounts[1].pubkey == escrow_pubkey
        assert bytes(create_escrow.data)[-32:] == bytes(PROGRAM_ID)
        assert bytes(init_escrow.data) == bytes([0, 20, 0, 0, 0, 0, 0, 0, 0])
        assert [m.pubkey for m in init_escrow.accounts[:4]] == [
            WALLET, temp_pubkey, y_account, escrow_pubkey,
        ]

    def test_rent_lookups(self, escrow, client):
        self._setup_rpc(client)
        escrow.init_escrow(Pubkey.new_unique(), Pubkey.new_unique(), 10, 20)
        sizes = [c.args[0] for c in client.rpc.get_minimum_balance_for_rent_exemption.call_args_list]
        assert sizes == [165, 105]

    def test_amount_validated_before_network(self, escrow, client):
        with pytest.raises(AmountOutOfRange):
            escrow.init_escrow(Pubkey.new_unique(), Pubkey.new_unique(), -1, 20)
        client.rpc.get_account_info.assert_not_called()
        client.tx_builder.submit.assert_not_called()

    def test_missing_token_account(self, escrow, client):
        client.rpc.get_account_info.return_value = None
        with pytest.raises(AccountNotFound):
            escrow.init_escrow(Pubkey.new_unique(), Pubkey.new_unique(), 10, 20)

    def test_not_a_token_account(self, escrow, client):
        client.rpc.get_account_info.return_value = {"owner": SYSTEM_PROGRAM_ID, "data": ["", "base64"]}
        with pytest.raises(MalformedAccount):
            escrow.init_escrow(Pubkey.new_unique(), Pubkey.new_unique(), 10, 20)


class TestTakeTrade:
    """Tests for take_trade"""

    def test_reads_missing_accounts_from_state(self, escrow, client, state):
        client.rpc.get_account_info.return_value = _escrow_account_info(state)
        escrow_account = Pubkey.new_unique()
        send_account = Pubkey.new_unique()
        receive_account = Pubkey.new_unique()

        assert escrow.take_trade(escrow_account, send_account, receive_account, 10) == SIGNATURE

        (ix,) = client.tx_builder.submit.call_args.args[0]
        keys = [m.pubkey for m in ix.accounts]
        assert bytes(ix.data) == bytes([1, 10, 0, 0, 0, 0, 0, 0, 0])
        assert keys[0] == WALLET
        assert keys[1] == send_account
        assert keys[2] == receive_account
        assert keys[3] == state.temp_token_account_pubkey
        assert keys[4] == state.initializer_pubkey
        assert keys[5] == state.initializer_token_to_receive_account_pubkey
        assert keys[6] == escrow_account
        assert keys[8] == escrow.authority()[0]

    def test_explicit_accounts_skip_fetch(self, escrow, client):
        escrow.take_trade(
            Pubkey.new_unique(),
            Pubkey.new_unique(),
            Pubkey.new_unique(),
            10,
            temp_token_account=Pubkey.new_unique(),
            initializer=Pubkey.new_unique(),
            initializer_receive_account=Pubkey.new_unique(),
        )
        client.rpc.get_account_info.assert_not_called()
        client.tx_builder.submit.assert_called_once()

    def test_taken_escrow(self, escrow, client):
        client.rpc.get_account_info.return_value = None
        with pytest.raises(AccountNotFound):
            escrow.take_trade(Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique(), 10)
        client.tx_builder.submit.assert_not_called()

    def test_amount_out_of_range(self, escrow, client):
        with pytest.raises(AmountOutOfRange):
            escrow.take_trade(Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique(), 2 ** 64)
        client.rpc.get_account_info.assert_not_called()

    @pytest.mark.parametrize("position", [0, 1, 2])
    def test_invalid_address_skips_network(self, escrow, client, position):
        addresses = [Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()]
        addresses[position] = "not-an-address!"
        client.rpc.get_account_info.return_value = None

        with pytest.raises(InvalidAddress):
            escrow.take_trade(*addresses, 10)
        assert client.rpc.get_account_info.call_count == 0
        client.tx_builder.submit.assert_not_called()

    def test_invalid_optional_address(self, escrow, client):
        with pytest.raises(InvalidAddress):
            escrow.take_trade(
                Pubkey.new_unique(),
                Pubkey.new_unique(),
                Pubkey.new_unique(),
                10,
                initializer="bogus",
            )
        assert client.rpc.get_account_info.call_count == 0


class TestCancelEscrow:
    """Tests for cancel_escrow"""

    def test_cancel(self, escrow, client, state):
        client.rpc.get_account_info.return_value = _escrow_account_info(state)
        escrow_account = Pubkey.new_unique()
        refund_account = Pubkey.new_unique()

        assert escrow.cancel_escrow(escrow_account, refund_account) == SIGNATURE

        (ix,) = client.tx_builder.submit.call_args.args[0]
        authority, bump = escrow.authority()
        assert bytes(ix.data) == bytes([2, bump])
        assert [m.pubkey for m in ix.accounts] == [
            WALLET,
            Pubkey.from_string(TOKEN_PROGRAM_ID),
            state.temp_token_account_pubkey,
            refund_account,
            escrow_account,
            authority,
        ]

    def test_cancel_with_temp_account(self, escrow, client):
        escrow.cancel_escrow(Pubkey.new_unique(), Pubkey.new_unique(), temp_token_account=Pubkey.new_unique())
        client.rpc.get_account_info.assert_not_called()

    def test_invalid_refund_account_skips_network(self, escrow, client):
        client.rpc.get_account_info.return_value = None
        with pytest.raises(InvalidAddress):
            escrow.cancel_escrow(Pubkey.new_unique(), "not-an-address!")
        assert client.rpc.get_account_info.call_count == 0
        client.tx_builder.submit.assert_not_called()

    def test_invalid_escrow_account(self, escrow, client):
        with pytest.raises(InvalidAddress):
            escrow.cancel_escrow("1111", Pubkey.new_unique())
        assert client.rpc.get_account_info.call_count == 0
