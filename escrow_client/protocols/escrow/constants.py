"""
Escrow program constants
"""

from enum import IntEnum

# Token Programs
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# System Program
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# Rent Sysvar
RENT_SYSVAR_ID = "SysvarRent111111111111111111111111111111111"

# Seed of the single PDA that owns every escrow's temp token account
ESCROW_AUTHORITY_SEED = b"escrow"

# SPL token account size (spl_token::state::Account::LEN)
TOKEN_ACCOUNT_SIZE = 165


class EscrowInstruction(IntEnum):
    """Leading discriminant byte of escrow instruction data"""
    INIT_ESCROW = 0
    EXCHANGE = 1
    CANCEL = 2


class SystemInstruction(IntEnum):
    """System program instruction indices (u32 LE)"""
    CREATE_ACCOUNT = 0


class TokenInstruction(IntEnum):
    """SPL token instruction tags (u8)"""
    INITIALIZE_ACCOUNT = 1
    TRANSFER = 3
