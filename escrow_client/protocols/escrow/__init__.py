"""
Escrow Program Protocol

Instruction builders, account state codec and PDA derivation for the
token escrow program.
"""

from .constants import (
    TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    RENT_SYSVAR_ID,
    ESCROW_AUTHORITY_SEED,
    TOKEN_ACCOUNT_SIZE,
    EscrowInstruction,
)
from .pda import derive_escrow_authority, to_pubkey
from .state import (
    ESCROW_ACCOUNT_SIZE,
    encode_amount_le64,
    encode_escrow_state,
    decode_escrow_state,
    fetch_escrow_state,
)
from .instructions import (
    build_init_escrow_instruction,
    build_exchange_instruction,
    build_cancel_instruction,
    build_create_account_instruction,
    build_initialize_token_account_instruction,
    build_token_transfer_instruction,
)

__all__ = [
    # Constants
    "TOKEN_PROGRAM_ID",
    "SYSTEM_PROGRAM_ID",
    "RENT_SYSVAR_ID",
    "ESCROW_AUTHORITY_SEED",
    "TOKEN_ACCOUNT_SIZE",
    "ESCROW_ACCOUNT_SIZE",
    "EscrowInstruction",
    # Addresses
    "derive_escrow_authority",
    "to_pubkey",
    # State
    "encode_amount_le64",
    "encode_escrow_state",
    "decode_escrow_state",
    "fetch_escrow_state",
    # Instructions
    "build_init_escrow_instruction",
    "build_exchange_instruction",
    "build_cancel_instruction",
    "build_create_account_instruction",
    "build_initialize_token_account_instruction",
    "build_token_transfer_instruction",
]
