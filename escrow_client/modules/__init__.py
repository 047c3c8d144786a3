"""
Functional modules for EscrowClient

Provides high-level operations:
- EscrowModule: Open, take and cancel trades
- WalletModule: Balance queries, token account lookup
"""

from .escrow import EscrowModule
from .wallet import WalletModule, TokenAccount

__all__ = [
    "EscrowModule",
    "WalletModule",
    "TokenAccount",
]
