"""
Error definitions for the escrow client
"""

from .exceptions import (
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

__all__ = [
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
]
