"""
Escrow Instruction Builders

Builds the three escrow program instructions (init, exchange, cancel) and the
system / SPL token instructions needed to set up a trade.

All builders are pure: addresses are validated locally and nothing touches
the network.
"""

import struct
from typing import Optional

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from ...types import Address, CancelAccounts, ExchangeAccounts, InitEscrowAccounts
from .constants import (
    TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    RENT_SYSVAR_ID,
    EscrowInstruction,
    SystemInstruction,
    TokenInstruction,
)
from .pda import FindProgramAddress, derive_escrow_authority, to_pubkey
from .state import encode_amount_le64, encode_u8


def _authority(
    program: Pubkey,
    escrow_authority: Optional[Address],
    find_program_address: Optional[FindProgramAddress],
) -> Pubkey:
    if escrow_authority is not None:
        return to_pubkey(escrow_authority, "escrow_authority")
    return derive_escrow_authority(program, find_program_address or Pubkey.find_program_address)[0]


def build_init_escrow_instruction(
    program_id: Address,
    accounts: InitEscrowAccounts,
    amount: int,
) -> Instruction:
    """
    Build the Init instruction

    Args:
        program_id: Escrow program id
        accounts: Initializer, temp token account, receive account and escrow account
        amount: Amount of Y tokens the initializer expects in return

    Returns:
        Init instruction, data [0] + amount (u64 LE)

    Raises:
        InvalidAddress: If any address is malformed
        AmountOutOfRange: If amount does not fit in a u64
    """
    program = to_pubkey(program_id, "program_id")
    initializer = to_pubkey(accounts.initializer, "initializer")
    temp_token_account = to_pubkey(accounts.temp_token_account, "temp_token_account")
    receive_account = to_pubkey(accounts.initializer_receive_account, "initializer_receive_account")
    escrow_account = to_pubkey(accounts.escrow_account, "escrow_account")

    data = bytes([EscrowInstruction.INIT_ESCROW]) + encode_amount_le64(amount)

    metas = [
        AccountMeta(initializer, is_signer=True, is_writable=False),          # 0. initializer
        AccountMeta(temp_token_account, is_signer=False, is_writable=True),   # 1. temp token account
        AccountMeta(receive_account, is_signer=False, is_writable=False),     # 2. initializer Y account
        AccountMeta(escrow_account, is_signer=False, is_writable=True),       # 3. escrow state
        AccountMeta(Pubkey.from_string(RENT_SYSVAR_ID), is_signer=False, is_writable=False),
        AccountMeta(Pubkey.from_string(TOKEN_PROGRAM_ID), is_signer=False, is_writable=False),
    ]

    return Instruction(program, data, metas)


def build_exchange_instruction(
    program_id: Address,
    accounts: ExchangeAccounts,
    amount: int,
    escrow_authority: Optional[Address] = None,
    find_program_address: Optional[FindProgramAddress] = None,
) -> Instruction:
    """
    Build the Exchange (take) instruction

    Args:
        program_id: Escrow program id
        accounts: Taker and initializer accounts of the trade
        amount: Amount of X tokens the taker expects to receive
        escrow_authority: Pre-derived escrow authority PDA; derived if omitted
        find_program_address: PDA derivation capability used when deriving

    Returns:
        Exchange instruction, data [1] + amount (u64 LE)

    Raises:
        InvalidAddress: If any address is malformed
        AmountOutOfRange: If amount does not fit in a u64
        NoValidBump: If the escrow authority cannot be derived
    """
    program = to_pubkey(program_id, "program_id")
    taker = to_pubkey(accounts.taker, "taker")
    taker_send = to_pubkey(accounts.taker_send_account, "taker_send_account")
    taker_receive = to_pubkey(accounts.taker_receive_account, "taker_receive_account")
    temp_token_account = to_pubkey(accounts.temp_token_account, "temp_token_account")
    initializer = to_pubkey(accounts.initializer, "initializer")
    initializer_receive = to_pubkey(accounts.initializer_receive_account, "initializer_receive_account")
    escrow_account = to_pubkey(accounts.escrow_account, "escrow_account")

    data = bytes([EscrowInstruction.EXCHANGE]) + encode_amount_le64(amount)
    authority = _authority(program, escrow_authority, find_program_address)

    metas = [
        AccountMeta(taker, is_signer=True, is_writable=False),                 # 0. taker
        AccountMeta(taker_send, is_signer=False, is_writable=True),            # 1. taker Y account
        AccountMeta(taker_receive, is_signer=False, is_writable=True),         # 2. taker X account
        AccountMeta(temp_token_account, is_signer=False, is_writable=True),    # 3. temp token account
        AccountMeta(initializer, is_signer=False, is_writable=True),           # 4. initializer main
        AccountMeta(initializer_receive, is_signer=False, is_writable=True),   # 5. initializer Y account
        AccountMeta(escrow_account, is_signer=False, is_writable=True),        # 6. escrow state
        AccountMeta(Pubkey.from_string(TOKEN_PROGRAM_ID), is_signer=False, is_writable=False),
        AccountMeta(authority, is_signer=False, is_writable=False),            # 8. escrow authority
    ]

    return Instruction(program, data, metas)


def build_cancel_instruction(
    program_id: Address,
    accounts: CancelAccounts,
    bump: int,
    escrow_authority: Optional[Address] = None,
    find_program_address: Optional[FindProgramAddress] = None,
) -> Instruction:
    """
    Build the Cancel instruction

    Args:
        program_id: Escrow program id
        accounts: Initializer, temp token account, refund account and escrow account
        bump: Bump of the escrow authority PDA
        escrow_authority: Pre-derived escrow authority PDA; derived if omitted
        find_program_address: PDA derivation capability used when deriving

    Returns:
        Cancel instruction, data [2, bump]

    Raises:
        InvalidAddress: If any address is malformed
        AmountOutOfRange: If bump is not a single byte
        NoValidBump: If the escrow authority cannot be derived
    """
    program = to_pubkey(program_id, "program_id")
    initializer = to_pubkey(accounts.initializer, "initializer")
    temp_token_account = to_pubkey(accounts.temp_token_account, "temp_token_account")
    refund_account = to_pubkey(accounts.initializer_refund_account, "initializer_refund_account")
    escrow_account = to_pubkey(accounts.escrow_account, "escrow_account")

    data = bytes([EscrowInstruction.CANCEL]) + encode_u8(bump)
    authority = _authority(program, escrow_authority, find_program_address)

    metas = [
        AccountMeta(initializer, is_signer=True, is_writable=False),          # 0. initializer
        AccountMeta(Pubkey.from_string(TOKEN_PROGRAM_ID), is_signer=False, is_writable=False),
        AccountMeta(temp_token_account, is_signer=False, is_writable=True),   # 2. temp token account
        AccountMeta(refund_account, is_signer=False, is_writable=True),       # 3. initializer X account
        AccountMeta(escrow_account, is_signer=False, is_writable=True),       # 4. escrow state
        AccountMeta(authority, is_signer=False, is_writable=False),           # 5. escrow authority
    ]

    return Instruction(program, data, metas)


# =========================================================================
# Trade setup
# =========================================================================

def build_create_account_instruction(
    payer: Address,
    new_account: Address,
    lamports: int,
    space: int,
    owner: Address,
) -> Instruction:
    """
    Build a system CreateAccount instruction

    Both payer and new_account must sign the transaction.
    """
    from_pubkey = to_pubkey(payer, "payer")
    new_pubkey = to_pubkey(new_account, "new_account")
    owner_pubkey = to_pubkey(owner, "owner")

    data = (
        struct.pack("<I", SystemInstruction.CREATE_ACCOUNT)
        + encode_amount_le64(lamports)
        + encode_amount_le64(space)
        + bytes(owner_pubkey)
    )

    metas = [
        AccountMeta(from_pubkey, is_signer=True, is_writable=True),
        AccountMeta(new_pubkey, is_signer=True, is_writable=True),
    ]

    return Instruction(Pubkey.from_string(SYSTEM_PROGRAM_ID), data, metas)


def build_initialize_token_account_instruction(
    account: Address,
    mint: Address,
    owner: Address,
) -> Instruction:
    """Build an SPL token InitializeAccount instruction"""
    metas = [
        AccountMeta(to_pubkey(account, "token_account"), is_signer=False, is_writable=True),
        AccountMeta(to_pubkey(mint, "mint"), is_signer=False, is_writable=False),
        AccountMeta(to_pubkey(owner, "owner"), is_signer=False, is_writable=False),
        AccountMeta(Pubkey.from_string(RENT_SYSVAR_ID), is_signer=False, is_writable=False),
    ]

    return Instruction(
        Pubkey.from_string(TOKEN_PROGRAM_ID),
        bytes([TokenInstruction.INITIALIZE_ACCOUNT]),
        metas,
    )


def build_token_transfer_instruction(
    source: Address,
    destination: Address,
    owner: Address,
    amount: int,
) -> Instruction:
    """
    Build an SPL token Transfer instruction

    Raises:
        AmountOutOfRange: If amount does not fit in a u64
    """
    data = bytes([TokenInstruction.TRANSFER]) + encode_amount_le64(amount)

    metas = [
        AccountMeta(to_pubkey(source, "source"), is_signer=False, is_writable=True),
        AccountMeta(to_pubkey(destination, "destination"), is_signer=False, is_writable=True),
        AccountMeta(to_pubkey(owner, "owner"), is_signer=True, is_writable=False),
    ]

    return Instruction(Pubkey.from_string(TOKEN_PROGRAM_ID), data, metas)
