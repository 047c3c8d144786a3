"""
Wallet Module

Provides balance and token account lookups.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, TYPE_CHECKING

from ..errors import AccountNotFound, AmbiguousTokenAccount, MalformedAccount
from ..protocols.escrow import to_pubkey
from ..types import Address

if TYPE_CHECKING:
    from ..client import EscrowClient

logger = logging.getLogger(__name__)


@dataclass
class TokenAccount:
    """Token account information"""
    address: str
    mint: str
    owner: str
    amount: int
    decimals: int


class WalletModule:
    """
    Wallet operations module

    Provides:
    - Lamport balance queries
    - Token account balance queries (raw integer units)
    - Token account lookup by owner and mint

    Usage:
        client = EscrowClient(rpc_url, keypair_path="id.json")

        lamports = client.wallet.lamport_balance()
        amount = client.wallet.token_balance("TokenAccount...")

        # Resolve an owner's single token account for a mint
        account = client.wallet.get_token_account(owner, mint)
    """

    def __init__(self, client: "EscrowClient"):
        """
        Initialize wallet module

        Args:
            client: EscrowClient instance
        """
        self._client = client
        self._rpc = client.rpc

    @property
    def address(self) -> str:
        """Wallet address"""
        return self._client.pubkey

    def lamport_balance(self, address: Optional[Address] = None) -> int:
        """
        Get native balance in lamports

        Args:
            address: Account to query (defaults to the wallet)
        """
        target = str(to_pubkey(address, "address")) if address is not None else self.address
        return self._rpc.get_balance(target)

    def token_balance(self, token_account: Address) -> int:
        """
        Get the raw amount held by a token account

        Args:
            token_account: Token account address

        Returns:
            Amount in the mint's smallest unit

        Raises:
            AccountNotFound: If the node returns no balance for the account
        """
        address = str(to_pubkey(token_account, "token_account"))
        balance = self._rpc.get_token_account_balance(address)
        amount = balance.get("amount")
        if amount is None:
            raise AccountNotFound.at(address)
        return int(amount)

    def token_accounts(self, owner: Address, mint: Address) -> List[TokenAccount]:
        """
        List an owner's token accounts for one mint

        Args:
            owner: Account owner
            mint: Token mint

        Returns:
            List of TokenAccount objects, in RPC order
        """
        owner_str = str(to_pubkey(owner, "owner"))
        mint_str = str(to_pubkey(mint, "mint"))

        accounts = self._rpc.get_token_accounts_by_owner(owner_str, mint=mint_str)

        result: List[TokenAccount] = []
        for account in accounts:
            pubkey = account.get("pubkey")
            info = account.get("account", {}).get("data", {}).get("parsed", {}).get("info", {})
            token_amount = info.get("tokenAmount", {})
            amount_str = token_amount.get("amount")

            if not pubkey or amount_str is None:
                raise MalformedAccount(
                    f"Unexpected token account payload for owner {owner_str}",
                    address=pubkey,
                )

            result.append(TokenAccount(
                address=pubkey,
                mint=info.get("mint", mint_str),
                owner=info.get("owner", owner_str),
                amount=int(amount_str),
                decimals=token_amount.get("decimals", 0),
            ))

        return result

    def get_token_account(self, owner: Address, mint: Address) -> str:
        """
        Resolve the owner's token account for a mint

        Exactly one account must exist; with several candidates the caller
        has to choose explicitly.

        Raises:
            AccountNotFound: If the owner holds no account for the mint
            AmbiguousTokenAccount: If the owner holds more than one
        """
        accounts = self.token_accounts(owner, mint)
        if not accounts:
            raise AccountNotFound.token_account(str(owner), str(mint))
        if len(accounts) > 1:
            raise AmbiguousTokenAccount(str(owner), str(mint), [a.address for a in accounts])
        return accounts[0].address

    def owner_token_balance(self, owner: Address, mint: Address) -> int:
        """
        Total raw amount of a mint across all of the owner's token accounts

        Returns 0 when the owner holds no account for the mint.
        """
        accounts = self.token_accounts(owner, mint)
        total = sum(a.amount for a in accounts)
        logger.debug(f"Owner {owner} holds {total} of {mint} across {len(accounts)} account(s)")
        return total
