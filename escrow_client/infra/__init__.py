"""
Infrastructure layer for the escrow client

Provides:
- RpcClient: HTTP JSON-RPC wrapper with endpoint fallback
- Signer: Transaction signing abstraction (local keypair)
- TxBuilder: Transaction assembly, submission and confirmation
"""

from .rpc import RpcClient, RpcClientConfig
from .solana_signer import (
    Signer,
    LocalSigner,
    create_signer,
)
from .tx_builder import TxBuilder, TxBuilderConfig

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "Signer",
    "LocalSigner",
    "create_signer",
    "TxBuilder",
    "TxBuilderConfig",
]
