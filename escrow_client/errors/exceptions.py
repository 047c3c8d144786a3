"""
Exception definitions for the escrow client
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for escrow operations

    1xxx - RPC errors
    2xxx - Transaction errors
    3xxx - Input validation errors
    4xxx - Account errors
    6xxx - Signer errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Transaction errors
    TX_SUBMISSION_FAILED = "2001"
    TX_REJECTED = "2002"
    TX_CONFIRMATION_TIMEOUT = "2003"

    # Input validation errors
    INVALID_ADDRESS = "3001"
    AMOUNT_OUT_OF_RANGE = "3002"
    NO_VALID_BUMP = "3003"

    # Account errors
    ACCOUNT_NOT_FOUND = "4001"
    ACCOUNT_MALFORMED = "4002"
    ACCOUNT_WRONG_OWNER = "4003"
    ACCOUNT_AMBIGUOUS = "4004"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "6001"
    SIGNER_FAILED = "6002"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class EscrowClientError(Exception):
    """
    Base exception for all escrow client errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context (external payloads land here)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"

    @property
    def should_retry(self) -> bool:
        """Indicate if the caller may reasonably retry"""
        return self.recoverable


class RpcError(EscrowClientError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - The node answers with a JSON-RPC error object
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @property
    def rpc_error_code(self) -> Optional[int]:
        """JSON-RPC error code reported by the node, if any"""
        return self.details.get("rpc_error_code")

    @property
    def rpc_error_data(self):
        """JSON-RPC error data reported by the node, if any"""
        return self.details.get("rpc_error_data")

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )


class InvalidAddress(EscrowClientError):
    """
    An address string could not be decoded into a 32-byte public key

    Raised synchronously by instruction builders and readers before any
    network call is made.
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        role: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            ErrorCode.INVALID_ADDRESS,
            recoverable=False,
            original_error=original_error,
            details={"address": address, "role": role},
        )
        self.address = address
        self.role = role

    @classmethod
    def for_value(cls, value, role: Optional[str] = None, error: Exception = None) -> "InvalidAddress":
        label = f" for {role}" if role else ""
        return cls(
            f"Invalid address{label}: {value!r}",
            address=str(value),
            role=role,
            original_error=error,
        )


class AmountOutOfRange(EscrowClientError):
    """
    An amount does not fit the unsigned integer width it is encoded into
    """

    def __init__(self, message: str, amount=None, bits: int = 64):
        super().__init__(
            message,
            ErrorCode.AMOUNT_OUT_OF_RANGE,
            recoverable=False,
            details={"amount": str(amount), "bits": bits},
        )
        self.amount = amount
        self.bits = bits

    @classmethod
    def for_width(cls, amount, bits: int) -> "AmountOutOfRange":
        return cls(
            f"Amount {amount!r} does not fit in an unsigned {bits}-bit integer",
            amount=amount,
            bits=bits,
        )


class NoValidBump(EscrowClientError):
    """Program address derivation found no off-curve bump seed"""

    def __init__(self, program_id: str, seed: bytes):
        super().__init__(
            f"Unable to find a valid bump seed for program {program_id}",
            ErrorCode.NO_VALID_BUMP,
            recoverable=False,
            details={"program_id": program_id, "seed": seed.hex()},
        )
        self.program_id = program_id
        self.seed = seed


class AccountNotFound(EscrowClientError):
    """
    The RPC node reports no account at the given address

    Raised when:
    - An escrow account was closed by take/cancel, or never existed
    - An owner holds no token account for a mint
    """

    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.ACCOUNT_NOT_FOUND,
            recoverable=False,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def at(cls, address: str) -> "AccountNotFound":
        return cls(f"Account not found: {address}", address=address)

    @classmethod
    def token_account(cls, owner: str, mint: str) -> "AccountNotFound":
        return cls(
            f"No token account for mint {mint} owned by {owner}",
            address=owner,
        )


class MalformedAccount(EscrowClientError):
    """
    Account data cannot be decoded as the expected record

    Raised when:
    - Data length differs from the fixed record size
    - Data is not valid base64
    - Account is not owned by the expected program
    """

    def __init__(
        self,
        message: str,
        address: Optional[str] = None,
        code: ErrorCode = ErrorCode.ACCOUNT_MALFORMED,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            original_error=original_error,
            details={"address": address},
        )
        self.address = address

    @classmethod
    def wrong_length(cls, actual: int, expected: int, address: Optional[str] = None) -> "MalformedAccount":
        return cls(
            f"Account data is {actual} bytes, expected {expected}",
            address=address,
        )

    @classmethod
    def wrong_owner(cls, address: str, owner: str, expected: str) -> "MalformedAccount":
        return cls(
            f"Account {address} is owned by {owner}, expected {expected}",
            address=address,
            code=ErrorCode.ACCOUNT_WRONG_OWNER,
        )


class AmbiguousTokenAccount(EscrowClientError):
    """An owner holds more than one token account for a mint"""

    def __init__(self, owner: str, mint: str, accounts: list):
        super().__init__(
            f"Owner {owner} holds {len(accounts)} token accounts for mint {mint}; pass one explicitly",
            ErrorCode.ACCOUNT_AMBIGUOUS,
            recoverable=False,
            details={"owner": owner, "mint": mint, "accounts": accounts},
        )
        self.owner = owner
        self.mint = mint
        self.accounts = accounts


class SubmissionFailed(EscrowClientError):
    """
    Transport-level failure while submitting or confirming a transaction

    The transaction may or may not have landed; `signature` is set when it
    was accepted by the node but not confirmed in time.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_SUBMISSION_FAILED,
        signature: Optional[str] = None,
        recoverable: bool = True,
        original_error: Optional[Exception] = None,
    ):
        details = {"signature": signature}
        if isinstance(original_error, EscrowClientError):
            details.update(original_error.details)
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details=details,
        )
        self.signature = signature

    @classmethod
    def from_rpc_error(cls, error: RpcError) -> "SubmissionFailed":
        return cls(
            f"Failed to submit transaction: {error.message}",
            recoverable=error.recoverable,
            original_error=error,
        )

    @classmethod
    def confirmation_timeout(cls, signature: str, timeout_seconds: float) -> "SubmissionFailed":
        return cls(
            f"Transaction {signature} not confirmed within {timeout_seconds}s",
            ErrorCode.TX_CONFIRMATION_TIMEOUT,
            signature=signature,
        )


class TransactionRejected(EscrowClientError):
    """
    The escrow program or the runtime rejected the transaction

    The external error payload is attached verbatim as `err` and `logs`.
    """

    def __init__(
        self,
        message: str,
        signature: Optional[str] = None,
        err=None,
        logs: Optional[list] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            ErrorCode.TX_REJECTED,
            recoverable=False,
            original_error=original_error,
            details={"signature": signature, "err": err, "logs": logs},
        )
        self.signature = signature
        self.err = err
        self.logs = logs or []

    @classmethod
    def on_chain(cls, signature: str, err) -> "TransactionRejected":
        return cls(
            f"Transaction {signature} failed on-chain: {err}",
            signature=signature,
            err=err,
        )

    @classmethod
    def preflight(cls, error: RpcError) -> "TransactionRejected":
        data = error.rpc_error_data or {}
        return cls(
            f"Transaction rejected in preflight: {error.message}",
            err=data.get("err"),
            logs=data.get("logs"),
            original_error=error,
        )


class SignerError(EscrowClientError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - Secret key material cannot be parsed
    - A required signer is missing from the transaction
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        recoverable: bool = False,
    ):
        super().__init__(message, code, recoverable=recoverable)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Provide a keypair, keypair file or secret key.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)


class ConfigurationError(EscrowClientError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
