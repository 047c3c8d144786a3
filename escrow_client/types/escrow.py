"""
Escrow type definitions
"""

from dataclasses import dataclass
from typing import Union

from solders.pubkey import Pubkey

# Addresses accepted from callers: base58 strings or solders Pubkeys
Address = Union[str, Pubkey]


@dataclass(frozen=True)
class EscrowState:
    """
    Decoded escrow account

    Attributes:
        is_initialized: Whether the program has populated the account
        initializer_pubkey: Main account of the trade initializer
        temp_token_account_pubkey: Token account holding the offered (X) tokens,
            owned by the escrow authority PDA
        initializer_token_to_receive_account_pubkey: Initializer's account that
            receives the requested (Y) tokens
        expected_amount: Amount of Y tokens the initializer expects
    """
    is_initialized: bool
    initializer_pubkey: Pubkey
    temp_token_account_pubkey: Pubkey
    initializer_token_to_receive_account_pubkey: Pubkey
    expected_amount: int

    def __str__(self) -> str:
        state = "initialized" if self.is_initialized else "uninitialized"
        return f"EscrowState({state}, initializer={self.initializer_pubkey}, expected={self.expected_amount})"


@dataclass(frozen=True)
class InitEscrowAccounts:
    """
    Accounts for the Init instruction

    Attributes:
        initializer: Initializer's main account (signer)
        temp_token_account: Token account holding the X tokens being offered
        initializer_receive_account: Initializer's Y token account
        escrow_account: Account the program writes the escrow state into
    """
    initializer: Address
    temp_token_account: Address
    initializer_receive_account: Address
    escrow_account: Address


@dataclass(frozen=True)
class ExchangeAccounts:
    """
    Accounts for the Exchange (take) instruction

    Attributes:
        taker: Taker's main account (signer)
        taker_send_account: Taker's Y token account, debited
        taker_receive_account: Taker's X token account, credited
        temp_token_account: PDA-owned temp account holding the X tokens
        initializer: Initializer's main account, receives the rent refunds
        initializer_receive_account: Initializer's Y token account, credited
        escrow_account: Escrow state account
    """
    taker: Address
    taker_send_account: Address
    taker_receive_account: Address
    temp_token_account: Address
    initializer: Address
    initializer_receive_account: Address
    escrow_account: Address


@dataclass(frozen=True)
class CancelAccounts:
    """
    Accounts for the Cancel instruction

    Attributes:
        initializer: Initializer's main account (signer)
        temp_token_account: PDA-owned temp account holding the X tokens
        initializer_refund_account: Initializer's X token account, refunded
        escrow_account: Escrow state account
    """
    initializer: Address
    temp_token_account: Address
    initializer_refund_account: Address
    escrow_account: Address


@dataclass
class InitEscrowResult:
    """
    Result of opening a trade

    Attributes:
        signature: Transaction signature
        escrow_account: Address of the new escrow state account
        temp_token_account: Address of the new temp token account
    """
    signature: str
    escrow_account: str
    temp_token_account: str

    def __str__(self) -> str:
        return f"InitEscrowResult(escrow={self.escrow_account}, tx={self.signature[:16]}...)"
