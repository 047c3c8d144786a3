"""
Test Signer Module

Tests for keypair loading and transaction signing.
"""

import sys
import json
from pathlib import Path

import base58
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from escrow_client.infra.solana_signer import (
    LocalSigner,
    Signer,
    create_signer,
    message_bytes_for_signing,
)
from escrow_client.protocols.escrow import build_create_account_instruction
from escrow_client.errors import SignerError, ConfigurationError


def _unsigned_tx(payer: Keypair, *extra: Keypair) -> bytes:
    new_account = extra[0].pubkey() if extra else Pubkey.new_unique()
    ix = build_create_account_instruction(payer.pubkey(), new_account, 1, 0, Pubkey.new_unique())
    message = MessageV0.try_compile(payer.pubkey(), [ix], [], Hash.default())
    num_signers = message.header.num_required_signatures
    return bytes(VersionedTransaction.populate(message, [Signature.default()] * num_signers))


class TestLocalSigner:
    """Tests for LocalSigner"""

    def test_pubkey(self):
        keypair = Keypair()
        signer = LocalSigner(keypair)
        assert signer.pubkey == str(keypair.pubkey())
        assert signer.keypair is keypair
        assert isinstance(signer, Signer)

    def test_sign_message(self):
        keypair = Keypair()
        signer = LocalSigner(keypair)
        signature = signer.sign(b"hello")
        assert len(signature) == 64
        assert Signature.from_bytes(signature).verify(keypair.pubkey(), b"hello")

    def test_sign_transaction_fills_own_slot(self):
        payer = Keypair()
        other = Keypair()
        signer = LocalSigner(payer)

        signed, sig = signer.sign_transaction(_unsigned_tx(payer, other))
        tx = VersionedTransaction.from_bytes(signed)

        assert str(tx.signatures[0]) == sig
        assert tx.signatures[1] == Signature.default()
        assert tx.signatures[0].verify(payer.pubkey(), message_bytes_for_signing(tx.message))

    def test_sign_transaction_not_required_signer(self):
        payer = Keypair()
        stranger = LocalSigner(Keypair())
        with pytest.raises(SignerError):
            stranger.sign_transaction(_unsigned_tx(payer))

    def test_v0_message_prefix(self):
        payer = Keypair()
        tx = VersionedTransaction.from_bytes(_unsigned_tx(payer))
        assert message_bytes_for_signing(tx.message)[0] == 0x80


class TestSecretKeyParsing:
    """Tests for secret key loading"""

    def test_from_bytes(self):
        keypair = Keypair()
        assert LocalSigner.from_bytes(bytes(keypair)).pubkey == str(keypair.pubkey())

    def test_from_bytes_wrong_length(self):
        with pytest.raises(SignerError):
            LocalSigner.from_bytes(bytes(32))

    def test_from_comma_separated(self):
        keypair = Keypair()
        text = ",".join(str(b) for b in bytes(keypair))
        assert LocalSigner.from_secret_key_string(text).pubkey == str(keypair.pubkey())

    def test_from_json_array(self):
        keypair = Keypair()
        text = json.dumps(list(bytes(keypair)))
        assert LocalSigner.from_secret_key_string(text).pubkey == str(keypair.pubkey())

    def test_from_base58(self):
        keypair = Keypair()
        text = base58.b58encode(bytes(keypair)).decode()
        assert LocalSigner.from_secret_key_string(text).pubkey == str(keypair.pubkey())

    def test_invalid_byte_value(self):
        with pytest.raises(SignerError):
            LocalSigner.from_secret_key_string("1,2,300")

    def test_invalid_text(self):
        with pytest.raises(SignerError):
            LocalSigner.from_secret_key_string("1,2,abc")

    def test_from_file_json(self, tmp_path):
        keypair = Keypair()
        path = tmp_path / "id.json"
        path.write_text(json.dumps(list(bytes(keypair))))
        assert LocalSigner.from_file(str(path)).pubkey == str(keypair.pubkey())

    def test_from_file_raw(self, tmp_path):
        keypair = Keypair()
        path = tmp_path / "id.bin"
        path.write_bytes(bytes(keypair))
        assert LocalSigner.from_file(str(path)).pubkey == str(keypair.pubkey())

    def test_from_file_invalid(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not a keypair")
        with pytest.raises(ConfigurationError):
            LocalSigner.from_file(str(path))


class TestCreateSigner:
    """Tests for create_signer priority"""

    def test_keypair_first(self):
        keypair = Keypair()
        signer = create_signer(keypair=keypair, secret_key="ignored")
        assert signer.pubkey == str(keypair.pubkey())

    def test_secret_key(self):
        keypair = Keypair()
        text = ",".join(str(b) for b in bytes(keypair))
        assert create_signer(secret_key=text).pubkey == str(keypair.pubkey())

    def test_not_configured(self, monkeypatch):
        from escrow_client.infra import solana_signer

        monkeypatch.setattr(solana_signer.global_config.signer, "keypair_path", "")
        monkeypatch.setattr(solana_signer.global_config.signer, "secret_key", "")
        with pytest.raises(SignerError):
            create_signer()
