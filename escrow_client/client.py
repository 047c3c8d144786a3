"""
EscrowClient - Unified entry point for escrow operations

Provides high-level interface to the token escrow program through
functional modules (escrow, wallet).
"""

from __future__ import annotations

from typing import Optional, Union, List, TYPE_CHECKING

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .config import config as global_config
from .errors import ConfigurationError
from .infra import RpcClient, RpcClientConfig, TxBuilder, TxBuilderConfig, create_signer, Signer
from .protocols.escrow import to_pubkey
from .protocols.escrow.pda import FindProgramAddress
from .types import Address


class EscrowClient:
    """
    Unified escrow client

    Provides access to escrow operations through functional modules:
    - escrow: Open, take and cancel trades; read escrow state
    - wallet: Balance queries, token account lookup

    Usage:
        # Initialize with RPC URL, keypair file and program id
        client = EscrowClient(
            rpc_url="http://localhost:8899",
            keypair_path="/path/to/keypair.json",
            program_id="Escrow1111...",
        )

        # Or with a comma-separated secret key, as exported by test wallets
        client = EscrowClient(rpc_url, secret_key="201,101,...", program_id=program_id)

        # Access modules
        result = client.escrow.init_escrow(x_account, y_account, 10, 20)
        state = client.escrow.get_escrow_info(result.escrow_account)
        lamports = client.wallet.lamport_balance()
    """

    def __init__(
        self,
        rpc_url: Optional[Union[str, List[str]]] = None,
        keypair: Optional[Keypair] = None,
        keypair_path: Optional[str] = None,
        secret_key: Optional[str] = None,
        program_id: Optional[Address] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        tx_config: Optional[TxBuilderConfig] = None,
        find_program_address: FindProgramAddress = Pubkey.find_program_address,
    ):
        """
        Initialize EscrowClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs for fallback
                (defaults to SOLANA_RPC_URL)
            keypair: Optional Keypair for local signing
            keypair_path: Optional path to keypair file
            secret_key: Optional secret key (byte list, JSON array or base58)
            program_id: Escrow program id (defaults to ESCROW_PROGRAM_ID)
            rpc_config: Optional RPC configuration
            tx_config: Optional transaction configuration
            find_program_address: PDA derivation capability

        Raises:
            ConfigurationError: If no program id is configured
            SignerError: If no signer can be created
        """
        program_id = program_id or global_config.escrow.program_id
        if not program_id:
            raise ConfigurationError.missing("ESCROW_PROGRAM_ID")
        self._program_id = to_pubkey(program_id, "program_id")
        self._find_program_address = find_program_address

        # Initialize RPC client
        self._rpc = RpcClient(rpc_url or global_config.rpc.url, config=rpc_config)

        # Initialize signer
        self._signer = create_signer(
            keypair=keypair,
            keypair_path=keypair_path,
            secret_key=secret_key,
        )

        # Initialize transaction builder
        self._tx_builder = TxBuilder(self._rpc, self._signer, config=tx_config)

        # Lazy-loaded modules
        self._escrow: Optional["EscrowModule"] = None
        self._wallet: Optional["WalletModule"] = None

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def signer(self) -> Signer:
        """Access to signer"""
        return self._signer

    @property
    def tx_builder(self) -> TxBuilder:
        """Access to transaction builder"""
        return self._tx_builder

    @property
    def pubkey(self) -> str:
        """Owner's public key"""
        return self._signer.pubkey

    @property
    def program_id(self) -> Pubkey:
        """Escrow program id"""
        return self._program_id

    @property
    def find_program_address(self) -> FindProgramAddress:
        return self._find_program_address

    @property
    def escrow(self) -> "EscrowModule":
        """
        Escrow module for trades

        Provides:
        - init_escrow(send_account, receive_account, amount, expected_amount)
        - take_trade(escrow_account, send_account, receive_account, amount)
        - cancel_escrow(escrow_account, refund_account)
        - get_escrow_info(escrow_account)
        """
        if self._escrow is None:
            from .modules.escrow import EscrowModule
            self._escrow = EscrowModule(self)
        return self._escrow

    @property
    def wallet(self) -> "WalletModule":
        """
        Wallet module for balance queries

        Provides:
        - lamport_balance(address): Native balance
        - token_balance(token_account): Raw token amount
        - get_token_account(owner, mint): Unique token account lookup
        - owner_token_balance(owner, mint): Sum over the owner's accounts
        """
        if self._wallet is None:
            from .modules.wallet import WalletModule
            self._wallet = WalletModule(self)
        return self._wallet

    def close(self):
        """Close client connections and release resources"""
        self._rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"EscrowClient(endpoint={self._rpc.endpoint}, pubkey={self.pubkey[:8]}...)"


# Type hints for modules (resolved at runtime)
if TYPE_CHECKING:
    from .modules.escrow import EscrowModule
    from .modules.wallet import WalletModule
