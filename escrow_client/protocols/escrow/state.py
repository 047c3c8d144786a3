"""
Escrow Account State Parser

Encodes and decodes the escrow state account and fetches it from RPC.
"""

import base64
import logging
import struct
from typing import Optional

from solders.pubkey import Pubkey

from ...errors import AccountNotFound, AmountOutOfRange, MalformedAccount
from ...types import Address, EscrowState
from ...infra import RpcClient
from .pda import to_pubkey

logger = logging.getLogger(__name__)

# Layout:
# - u8: is_initialized
# - publicKey(32): initializer_pubkey
# - publicKey(32): temp_token_account_pubkey
# - publicKey(32): initializer_token_to_receive_account_pubkey
# - u64: expected_amount
ESCROW_LAYOUT = struct.Struct("<B32s32s32sQ")
ESCROW_ACCOUNT_SIZE = ESCROW_LAYOUT.size  # 105


def _check_unsigned(value: int, bits: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise AmountOutOfRange.for_width(value, bits)
    if value < 0 or value > 2 ** bits - 1:
        raise AmountOutOfRange.for_width(value, bits)
    return value


def encode_amount_le64(amount: int) -> bytes:
    """
    Encode an amount as 8 little-endian bytes

    Raises:
        AmountOutOfRange: If amount is negative, above 2**64 - 1 or not an int
    """
    return struct.pack("<Q", _check_unsigned(amount, 64))


def encode_u8(value: int) -> bytes:
    """Encode a single unsigned byte"""
    return bytes([_check_unsigned(value, 8)])


def encode_escrow_state(state: EscrowState) -> bytes:
    """
    Serialize escrow state into its 105-byte account layout
    """
    return ESCROW_LAYOUT.pack(
        1 if state.is_initialized else 0,
        bytes(state.initializer_pubkey),
        bytes(state.temp_token_account_pubkey),
        bytes(state.initializer_token_to_receive_account_pubkey),
        _check_unsigned(state.expected_amount, 64),
    )


def decode_escrow_state(account_data: bytes, address: Optional[str] = None) -> EscrowState:
    """
    Parse escrow state account data

    Only the length is validated; the program owns every other invariant.

    Args:
        account_data: Raw account data bytes
        address: Account address, used in error messages

    Raises:
        MalformedAccount: If the data is not exactly 105 bytes
    """
    if len(account_data) != ESCROW_ACCOUNT_SIZE:
        raise MalformedAccount.wrong_length(len(account_data), ESCROW_ACCOUNT_SIZE, address)

    (
        is_initialized,
        initializer,
        temp_token_account,
        receive_account,
        expected_amount,
    ) = ESCROW_LAYOUT.unpack(bytes(account_data))

    return EscrowState(
        is_initialized=is_initialized != 0,
        initializer_pubkey=Pubkey.from_bytes(initializer),
        temp_token_account_pubkey=Pubkey.from_bytes(temp_token_account),
        initializer_token_to_receive_account_pubkey=Pubkey.from_bytes(receive_account),
        expected_amount=expected_amount,
    )


def fetch_escrow_state(
    rpc: RpcClient,
    escrow_address: Address,
    program_id: Optional[Address] = None,
) -> EscrowState:
    """
    Fetch and parse escrow state from RPC

    Args:
        rpc: RPC client
        escrow_address: Escrow state account
        program_id: If given, the account must be owned by this program

    Raises:
        InvalidAddress: If an address is malformed
        AccountNotFound: If the account does not exist (never created or closed)
        MalformedAccount: If the data is not an escrow record
    """
    address = str(to_pubkey(escrow_address, "escrow_account"))
    expected_owner = str(to_pubkey(program_id, "program_id")) if program_id is not None else None

    account = rpc.get_account_info(address, encoding="base64")
    if not account:
        raise AccountNotFound.at(address)

    owner = account.get("owner")
    if expected_owner is not None and owner != expected_owner:
        raise MalformedAccount.wrong_owner(address, owner, expected_owner)

    data = account.get("data")
    if isinstance(data, list):
        data = data[0]
    try:
        raw = base64.b64decode(data or "", validate=True)
    except ValueError as e:
        raise MalformedAccount(
            f"Account data is not valid base64: {e}",
            address=address,
            original_error=e,
        ) from e

    state = decode_escrow_state(raw, address)
    logger.debug(f"Fetched escrow {address}: {state}")
    return state