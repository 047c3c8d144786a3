"""
Escrow Module Integration Tests

Opens a trade and cancels it again against a live cluster, checking
balances and escrow state along the way.

WARNING: These tests use REAL RPC connections and REAL wallets!
"""

import sys
from pathlib import Path

import pytest
from solders.pubkey import Pubkey

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from escrow_client.errors import AccountNotFound

TRADE_AMOUNT = 1
EXPECTED_AMOUNT = 2


class TestEscrowReads:
    """Read-only checks"""

    def test_missing_escrow(self, client):
        with pytest.raises(AccountNotFound):
            client.escrow.get_escrow_info(Pubkey.new_unique())

    def test_lamport_balance(self, client):
        assert client.wallet.lamport_balance() > 0


class TestEscrowLifecycle:
    """Init followed by cancel"""

    def test_init_and_cancel(self, client, token_accounts):
        x_account, y_account = token_accounts

        x_before = client.wallet.token_balance(x_account)
        assert x_before >= TRADE_AMOUNT, "Wallet needs offered tokens for this test"

        result = client.escrow.init_escrow(x_account, y_account, TRADE_AMOUNT, EXPECTED_AMOUNT)
        print(f"\n  Opened: {result}")

        state = client.escrow.get_escrow_info(result.escrow_account)
        assert state.is_initialized is True
        assert state.expected_amount == EXPECTED_AMOUNT
        assert str(state.initializer_pubkey) == client.pubkey
        assert str(state.temp_token_account_pubkey) == result.temp_token_account
        assert str(state.initializer_token_to_receive_account_pubkey) == y_account

        assert client.wallet.token_balance(result.temp_token_account) == TRADE_AMOUNT
        assert client.wallet.token_balance(x_account) == x_before - TRADE_AMOUNT

        signature = client.escrow.cancel_escrow(result.escrow_account, x_account)
        print(f"  Cancelled: {signature}")

        assert client.wallet.token_balance(x_account) == x_before
        with pytest.raises(AccountNotFound):
            client.escrow.get_escrow_info(result.escrow_account)
