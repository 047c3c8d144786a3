"""
On-chain program protocols

Each protocol package holds the byte-level encoding of one program's
instructions and accounts.
"""

from . import escrow

__all__ = ["escrow"]
