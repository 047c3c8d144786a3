"""
Escrow address helpers

Address parsing and derivation of the program-owned escrow authority.
"""

from typing import Callable, Optional, Sequence, Tuple

from solders.pubkey import Pubkey

from ...errors import InvalidAddress, NoValidBump
from ...types import Address
from .constants import ESCROW_AUTHORITY_SEED

# (seeds, program_id) -> (address, bump), or None when every bump is on-curve
FindProgramAddress = Callable[[Sequence[bytes], Pubkey], Optional[Tuple[Pubkey, int]]]


def to_pubkey(value: Address, role: Optional[str] = None) -> Pubkey:
    """
    Convert a caller-supplied address to a Pubkey

    Args:
        value: Base58 string or Pubkey
        role: Account role, used in the error message

    Raises:
        InvalidAddress: If the value does not decode to 32 bytes
    """
    if isinstance(value, Pubkey):
        return value
    if not isinstance(value, str):
        raise InvalidAddress.for_value(value, role)
    try:
        return Pubkey.from_string(value.strip())
    except Exception as e:
        raise InvalidAddress.for_value(value, role, e) from e


def derive_escrow_authority(
    program_id: Address,
    find_program_address: FindProgramAddress = Pubkey.find_program_address,
) -> Tuple[Pubkey, int]:
    """
    Derive the escrow authority PDA

    One PDA per program owns the temp token accounts of all open trades.

    Args:
        program_id: Escrow program id
        find_program_address: PDA derivation capability; defaults to the
            solders implementation

    Returns:
        (address, bump)

    Raises:
        InvalidAddress: If program_id is malformed
        NoValidBump: If the derivation reports that no bump is usable
    """
    program = to_pubkey(program_id, "program_id")
    result = find_program_address([ESCROW_AUTHORITY_SEED], program)
    if result is None:
        raise NoValidBump(str(program), ESCROW_AUTHORITY_SEED)
    address, bump = result
    return address, bump
