"""
Transaction builder and sender

Provides utilities for:
- Building versioned transactions
- Adding optional compute budget instructions
- Signing with the wallet plus extra keypairs
- Sending and confirming transactions (no automatic retry)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .rpc import RpcClient
from .solana_signer import Signer, message_bytes_for_signing
from ..errors import RpcError, SignerError, SubmissionFailed, TransactionRejected
from ..config import config as global_config

logger = logging.getLogger(__name__)

# JSON-RPC code the node returns when preflight simulation fails
PREFLIGHT_FAILURE_CODE = -32002


@dataclass
class TxBuilderConfig:
    """
    Transaction builder runtime configuration

    Per-builder overrides; unset values are pulled from the global config
    (escrow_client.config.TxConfig).

    Usage:
        config = TxBuilderConfig(confirmation_timeout=60, skip_preflight=True)
        builder = TxBuilder(rpc, signer, config=config)
    """
    compute_units: int = None
    compute_unit_price: int = None
    skip_preflight: bool = None
    preflight_commitment: str = None
    confirmation_timeout: float = None
    confirmation_poll_interval: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.compute_units is None:
            self.compute_units = global_config.tx.compute_units
        if self.compute_unit_price is None:
            self.compute_unit_price = global_config.tx.compute_unit_price
        if self.skip_preflight is None:
            self.skip_preflight = global_config.tx.skip_preflight
        if self.preflight_commitment is None:
            self.preflight_commitment = global_config.tx.preflight_commitment
        if self.confirmation_timeout is None:
            self.confirmation_timeout = global_config.tx.confirmation_timeout
        if self.confirmation_poll_interval is None:
            self.confirmation_poll_interval = global_config.tx.confirmation_poll_interval


class TxBuilder:
    """
    Transaction builder and sender

    Handles:
    - Building versioned transactions, instructions kept in caller order
    - Signing via the wallet signer and any additional keypairs
    - Sending once and polling for confirmation

    Usage:
        builder = TxBuilder(rpc, signer)

        # Build, sign, send and confirm
        signature = builder.submit([ix], additional_signers=[new_account])

        # Or step by step
        tx_bytes = builder.build(instructions)
        signed_bytes, sig = builder.sign(tx_bytes)
        signature = builder.send(signed_bytes)
    """

    def __init__(
        self,
        rpc: RpcClient,
        signer: Signer,
        config: Optional[TxBuilderConfig] = None,
    ):
        """
        Initialize transaction builder

        Args:
            rpc: RPC client
            signer: Wallet signer, also the fee payer
            config: Transaction configuration
        """
        self._rpc = rpc
        self._signer = signer
        self._config = config or TxBuilderConfig()

    @property
    def pubkey(self) -> str:
        """Signer's public key"""
        return self._signer.pubkey

    def build(
        self,
        instructions: Sequence[Instruction],
        payer: Optional[str] = None,
        recent_blockhash: Optional[str] = None,
    ) -> bytes:
        """
        Build unsigned versioned transaction

        Args:
            instructions: Instructions, executed in the given order
            payer: Fee payer pubkey (defaults to signer)
            recent_blockhash: Optional blockhash (fetched if not provided)

        Returns:
            Unsigned transaction bytes with null signature placeholders

        Raises:
            SubmissionFailed: If the blockhash cannot be fetched
        """
        all_instructions: List[Instruction] = []

        if self._config.compute_units > 0:
            all_instructions.append(set_compute_unit_limit(self._config.compute_units))
        if self._config.compute_unit_price > 0:
            all_instructions.append(set_compute_unit_price(self._config.compute_unit_price))

        all_instructions.extend(instructions)

        if recent_blockhash is None:
            try:
                recent_blockhash = self._rpc.get_latest_blockhash().get("blockhash")
            except RpcError as e:
                raise SubmissionFailed.from_rpc_error(e) from e

        if not recent_blockhash:
            raise SubmissionFailed("Failed to get recent blockhash")

        message = MessageV0.try_compile(
            Pubkey.from_string(payer or self.pubkey),
            all_instructions,
            [],  # Address lookup tables
            Hash.from_string(recent_blockhash),
        )

        num_signers = message.header.num_required_signatures
        tx = VersionedTransaction.populate(message, [Signature.default()] * num_signers)
        return bytes(tx)

    def sign(
        self,
        unsigned_tx: bytes,
        additional_signers: Optional[Sequence[Keypair]] = None,
    ) -> tuple:
        """
        Sign transaction with the wallet and any additional keypairs

        Args:
            unsigned_tx: Unsigned transaction bytes
            additional_signers: Extra keypairs, e.g. freshly created accounts

        Returns:
            (signed_tx_bytes, signature_base58) where the signature is the
            fee payer's, i.e. the transaction id

        Raises:
            SignerError: If any required signer is left without a signature
        """
        signed_tx, _ = self._signer.sign_transaction(unsigned_tx)
        tx = VersionedTransaction.from_bytes(signed_tx)
        message = tx.message

        num_required = message.header.num_required_signatures
        account_keys = list(message.account_keys)[:num_required]
        signatures = list(tx.signatures)

        if additional_signers:
            message_bytes = message_bytes_for_signing(message)
            for keypair in additional_signers:
                kp_pubkey = keypair.pubkey()
                if kp_pubkey not in account_keys:
                    logger.warning(f"Additional signer {kp_pubkey} not found in required signers")
                    continue
                signatures[account_keys.index(kp_pubkey)] = keypair.sign_message(message_bytes)

        null_sig = Signature.default()
        missing = [str(account_keys[i]) for i, sig in enumerate(signatures) if sig == null_sig]
        if missing:
            raise SignerError(f"Missing signatures for required signers: {', '.join(missing)}")

        signed = VersionedTransaction.populate(message, signatures)
        return bytes(signed), str(signatures[0])

    def send(
        self,
        signed_tx: bytes,
        wait_confirmation: bool = True,
    ) -> str:
        """
        Send a signed transaction once and optionally wait for confirmation

        Returns:
            Transaction signature (base58)

        Raises:
            TransactionRejected: Preflight or on-chain execution failed
            SubmissionFailed: Transport failure or confirmation timeout
        """
        try:
            signature = self._rpc.send_transaction(
                signed_tx,
                skip_preflight=self._config.skip_preflight,
                preflight_commitment=self._config.preflight_commitment,
            )
        except RpcError as e:
            if e.rpc_error_code == PREFLIGHT_FAILURE_CODE:
                logger.warning(f"Transaction rejected in preflight: {e.message}")
                raise TransactionRejected.preflight(e) from e
            raise SubmissionFailed.from_rpc_error(e) from e

        logger.info(f"Transaction sent: {signature}")

        if not wait_confirmation:
            return signature

        try:
            status = self._rpc.confirm_transaction(
                signature,
                commitment=self._config.preflight_commitment,
                timeout_seconds=self._config.confirmation_timeout,
                poll_interval=self._config.confirmation_poll_interval,
            )
        except RpcError as e:
            raise SubmissionFailed(
                f"Failed to confirm transaction {signature}: {e.message}",
                signature=signature,
                recoverable=e.recoverable,
                original_error=e,
            ) from e

        if status is None:
            raise SubmissionFailed.confirmation_timeout(signature, self._config.confirmation_timeout)
        if status.get("err"):
            raise TransactionRejected.on_chain(signature, status["err"])

        logger.info(f"Transaction confirmed: {signature}")
        return signature

    def submit(
        self,
        instructions: Sequence[Instruction],
        additional_signers: Optional[Sequence[Keypair]] = None,
        wait_confirmation: bool = True,
    ) -> str:
        """
        Build, sign, send and confirm in one call

        Args:
            instructions: Instructions, executed in the given order
            additional_signers: Extra keypairs that must co-sign
            wait_confirmation: Wait for the configured commitment

        Returns:
            Transaction signature (base58)
        """
        unsigned_tx = self.build(instructions)
        signed_tx, _ = self.sign(unsigned_tx, additional_signers)
        return self.send(signed_tx, wait_confirmation=wait_confirmation)
