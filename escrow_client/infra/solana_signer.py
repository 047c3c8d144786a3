"""
Transaction signing abstractions

Provides unified signing interface for local signing with keypair.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Optional, Protocol, Tuple, runtime_checkable

import base58
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..errors import SignerError, ConfigurationError
from ..config import config as global_config

logger = logging.getLogger(__name__)


@runtime_checkable
class Signer(Protocol):
    """
    Protocol for transaction signers

    Implementations must provide:
    - pubkey: The signer's public key (base58)
    - sign(): Sign a message
    - sign_transaction(): Sign a serialized transaction
    """

    @property
    def pubkey(self) -> str:
        """Signer's public key (base58)"""
        ...

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message

        Args:
            message: Message bytes to sign

        Returns:
            64-byte signature
        """
        ...

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign a transaction

        Args:
            unsigned_tx: Unsigned transaction bytes

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        ...


def message_bytes_for_signing(message) -> bytes:
    """Serialized message as signed; v0 messages carry the 0x80 version prefix"""
    raw = bytes(message)
    if isinstance(message, MessageV0):
        return bytes([0x80]) + raw
    return raw


class LocalSigner:
    """
    Local signer using Solana keypair

    Usage:
        keypair = Keypair()  # or load from file
        signer = LocalSigner(keypair)

        signed_tx, sig = signer.sign_transaction(unsigned_tx_bytes)
    """

    def __init__(self, keypair: Keypair):
        """
        Initialize with keypair

        Args:
            keypair: solders.keypair.Keypair instance
        """
        self._keypair = keypair

    @property
    def pubkey(self) -> str:
        """Public key as base58 string"""
        return str(self._keypair.pubkey())

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes"""
        return bytes(self._keypair.sign_message(message))

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign versioned transaction

        Only this signer's slot is filled; other required signers keep
        their existing (possibly null) signatures.

        Args:
            unsigned_tx: Unsigned VersionedTransaction bytes

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        tx = VersionedTransaction.from_bytes(unsigned_tx)
        message = tx.message
        signature = self._keypair.sign_message(message_bytes_for_signing(message))

        num_required_signatures = message.header.num_required_signatures
        account_keys = list(message.account_keys)
        our_pubkey = self._keypair.pubkey()

        signer_index = None
        for i in range(min(num_required_signatures, len(account_keys))):
            if account_keys[i] == our_pubkey:
                signer_index = i
                break

        if signer_index is None:
            raise SignerError(
                f"Wallet {our_pubkey} is not in the required signers list. "
                f"Expected signers: {[str(k) for k in account_keys[:num_required_signatures]]}"
            )

        signatures = list(tx.signatures)
        if len(signatures) < num_required_signatures:
            signatures += [Signature.default()] * (num_required_signatures - len(signatures))
        signatures[signer_index] = signature

        signed_tx = VersionedTransaction.populate(message, signatures)
        return bytes(signed_tx), str(signature)

    @classmethod
    def from_bytes(cls, secret_key: bytes) -> "LocalSigner":
        """Create signer from secret key bytes (64 bytes)"""
        if len(secret_key) != 64:
            raise SignerError(f"Secret key must be 64 bytes, got {len(secret_key)}")
        return cls(Keypair.from_bytes(secret_key))

    @classmethod
    def from_base58(cls, secret_key: str) -> "LocalSigner":
        """Create signer from base58 secret key"""
        return cls.from_bytes(base58.b58decode(secret_key))

    @classmethod
    def from_secret_key_string(cls, secret_key: str) -> "LocalSigner":
        """
        Create signer from a textual secret key

        Accepts:
        - Comma-separated byte list: "201,101,147,..."
        - JSON array (Solana CLI format): "[201,101,147,...]"
        - Base58 string
        """
        text = secret_key.strip()
        try:
            if text.startswith("["):
                values = json.loads(text)
            elif "," in text:
                values = [int(part) for part in text.split(",") if part.strip()]
            else:
                return cls.from_base58(text)
            return cls.from_bytes(bytes(values))
        except (ValueError, TypeError) as e:
            raise SignerError(f"Cannot parse secret key: {e}") from e

    @classmethod
    def from_file(cls, path: str) -> "LocalSigner":
        """
        Create signer from keypair file

        Supports:
        - JSON array format (Solana CLI): [1,2,3,...]
        - Raw bytes file (64 bytes)
        """
        with open(path, "rb") as f:
            content = f.read()
        logger.debug(f"Loading keypair from {path}")

        try:
            data = json.loads(content.decode("utf-8"))
            if isinstance(data, list):
                return cls.from_bytes(bytes(data))
        except ValueError:
            pass

        if len(content) == 64:
            return cls.from_bytes(content)

        raise ConfigurationError.invalid("keypair_file", f"Cannot parse keypair file: {path}")


def create_signer(
    keypair: Optional[Keypair] = None,
    keypair_path: Optional[str] = None,
    secret_key: Optional[str] = None,
) -> Signer:
    """
    Create signer based on configuration

    Priority:
    1. keypair: Use LocalSigner with provided keypair
    2. keypair_path: Load keypair from file
    3. secret_key: Parse textual secret key
    4. Environment: SOLANA_KEYPAIR_PATH, then SOLANA_SECRET_KEY

    Raises:
        SignerError: If no valid signer configuration found
    """
    if keypair is not None:
        return LocalSigner(keypair)

    if keypair_path is not None:
        return LocalSigner.from_file(keypair_path)

    if secret_key is not None:
        return LocalSigner.from_secret_key_string(secret_key)

    if global_config.signer.keypair_path and os.path.isfile(global_config.signer.keypair_path):
        return LocalSigner.from_file(global_config.signer.keypair_path)

    if global_config.signer.secret_key:
        return LocalSigner.from_secret_key_string(global_config.signer.secret_key)

    raise SignerError.not_configured()
