"""
Type definitions for the escrow client
"""

from .escrow import (
    Address,
    EscrowState,
    InitEscrowAccounts,
    ExchangeAccounts,
    CancelAccounts,
    InitEscrowResult,
)

__all__ = [
    "Address",
    "EscrowState",
    "InitEscrowAccounts",
    "ExchangeAccounts",
    "CancelAccounts",
    "InitEscrowResult",
]
