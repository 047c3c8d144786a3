"""
Escrow Client - Python client for the Solana token escrow program

Provides:
- Instruction builders for init, exchange (take) and cancel
- Escrow account state codec
- Escrow authority PDA derivation
- Transaction submission and confirmation over JSON-RPC
- High-level EscrowClient with escrow and wallet modules
"""

from .client import EscrowClient
from .types import (
    Address,
    EscrowState,
    InitEscrowAccounts,
    ExchangeAccounts,
    CancelAccounts,
    InitEscrowResult,
)
from .errors import (
    ErrorCode,
    EscrowClientError,
    RpcError,
    InvalidAddress,
    AmountOutOfRange,
    NoValidBump,
    AccountNotFound,
    MalformedAccount,
    AmbiguousTokenAccount,
    SubmissionFailed,
    TransactionRejected,
    SignerError,
    ConfigurationError,
)
from .protocols.escrow import (
    ESCROW_ACCOUNT_SIZE,
    derive_escrow_authority,
    encode_amount_le64,
    encode_escrow_state,
    decode_escrow_state,
    fetch_escrow_state,
    build_init_escrow_instruction,
    build_exchange_instruction,
    build_cancel_instruction,
)
from .infra import RpcClient, RpcClientConfig, TxBuilder, TxBuilderConfig, LocalSigner

__version__ = "0.1.0"

__all__ = [
    # Client
    "EscrowClient",
    # Types
    "Address",
    "EscrowState",
    "InitEscrowAccounts",
    "ExchangeAccounts",
    "CancelAccounts",
    "InitEscrowResult",
    # Errors
    "ErrorCode",
    "EscrowClientError",
    "RpcError",
    "InvalidAddress",
    "AmountOutOfRange",
    "NoValidBump",
    "AccountNotFound",
    "MalformedAccount",
    "AmbiguousTokenAccount",
    "SubmissionFailed",
    "TransactionRejected",
    "SignerError",
    "ConfigurationError",
    # Protocol
    "ESCROW_ACCOUNT_SIZE",
    "derive_escrow_authority",
    "encode_amount_le64",
    "encode_escrow_state",
    "decode_escrow_state",
    "fetch_escrow_state",
    "build_init_escrow_instruction",
    "build_exchange_instruction",
    "build_cancel_instruction",
    # Infrastructure
    "RpcClient",
    "RpcClientConfig",
    "TxBuilder",
    "TxBuilderConfig",
    "LocalSigner",
]
