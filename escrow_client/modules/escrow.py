"""
Escrow Module

Opens, takes and cancels token escrow trades.
"""

import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..errors import AccountNotFound, MalformedAccount
from ..protocols.escrow import (
    TOKEN_PROGRAM_ID,
    TOKEN_ACCOUNT_SIZE,
    ESCROW_ACCOUNT_SIZE,
    derive_escrow_authority,
    encode_amount_le64,
    fetch_escrow_state,
    to_pubkey,
    build_init_escrow_instruction,
    build_exchange_instruction,
    build_cancel_instruction,
    build_create_account_instruction,
    build_initialize_token_account_instruction,
    build_token_transfer_instruction,
)
from ..types import (
    Address,
    EscrowState,
    InitEscrowAccounts,
    ExchangeAccounts,
    CancelAccounts,
    InitEscrowResult,
)

if TYPE_CHECKING:
    from ..client import EscrowClient

logger = logging.getLogger(__name__)


class EscrowModule:
    """
    Escrow operations module

    Provides:
    - Open a trade (escrow X tokens, ask for Y tokens)
    - Take a trade (send Y, receive X)
    - Cancel a trade (refund X to the initializer)
    - Read escrow state

    The wallet signer is the initializer for init/cancel and the taker for
    take_trade.

    Usage:
        client = EscrowClient(rpc_url, keypair_path="id.json", program_id="Escrow...")

        # Offer 10 X for 20 Y
        result = client.escrow.init_escrow(my_x_account, my_y_account, 10, 20)

        # Someone else takes it, expecting the 10 X held in escrow
        signature = taker.escrow.take_trade(result.escrow_account, taker_y, taker_x, 10)

        # Or the initializer cancels
        signature = client.escrow.cancel_escrow(result.escrow_account, my_x_account)
    """

    def __init__(self, client: "EscrowClient"):
        """
        Initialize escrow module

        Args:
            client: EscrowClient instance
        """
        self._client = client
        self._rpc = client.rpc
        self._tx_builder = client.tx_builder
        self._program_id = client.program_id
        self._find_program_address = client.find_program_address
        self._authority: Optional[Tuple[Pubkey, int]] = None

    @property
    def owner(self) -> str:
        """Wallet address"""
        return self._client.pubkey

    @property
    def program_id(self) -> Pubkey:
        """Escrow program id"""
        return self._program_id

    def authority(self) -> Tuple[Pubkey, int]:
        """
        Escrow authority PDA and its bump

        Derived once per module; the result only depends on the program id.
        """
        if self._authority is None:
            self._authority = derive_escrow_authority(self._program_id, self._find_program_address)
            logger.debug(f"Escrow authority: {self._authority[0]} (bump {self._authority[1]})")
        return self._authority

    def get_escrow_info(self, escrow_account: Address) -> EscrowState:
        """
        Fetch escrow state

        Raises:
            AccountNotFound: If the escrow account is closed or never existed
            MalformedAccount: If the account is not an escrow record of this program
        """
        return fetch_escrow_state(self._rpc, escrow_account, self._program_id)

    def _token_account_mint(self, token_account: str) -> str:
        """Mint of a token account, read via jsonParsed encoding"""
        account = self._rpc.get_account_info(token_account, encoding="jsonParsed")
        if not account:
            raise AccountNotFound.at(token_account)

        data = account.get("data")
        mint = data.get("parsed", {}).get("info", {}).get("mint") if isinstance(data, dict) else None
        if not mint:
            raise MalformedAccount(
                f"Account {token_account} is not a token account",
                address=token_account,
            )
        return mint

    def init_escrow(
        self,
        initializer_send_account: Address,
        initializer_receive_account: Address,
        amount: int,
        expected_amount: int,
    ) -> InitEscrowResult:
        """
        Open a trade

        Builds one transaction that creates a temp token account, moves
        `amount` X tokens into it, creates the escrow state account and runs
        the program's Init instruction. The program hands the temp account
        to the escrow authority PDA.

        Args:
            initializer_send_account: Wallet's X token account, debited
            initializer_receive_account: Wallet's Y token account, credited on take
            amount: Amount of X tokens to escrow
            expected_amount: Amount of Y tokens asked for

        Returns:
            InitEscrowResult with signature, escrow account and temp token account

        Raises:
            InvalidAddress: If an address is malformed
            AmountOutOfRange: If an amount does not fit in a u64
            AccountNotFound: If the X token account does not exist
            SubmissionFailed: Transport failure or confirmation timeout
            TransactionRejected: Preflight or program rejection
        """
        send_account = str(to_pubkey(initializer_send_account, "initializer_send_account"))
        receive_account = to_pubkey(initializer_receive_account, "initializer_receive_account")
        encode_amount_le64(amount)
        encode_amount_le64(expected_amount)

        mint = self._token_account_mint(send_account)
        owner = Pubkey.from_string(self.owner)

        temp_token_account = Keypair()
        escrow_account = Keypair()

        token_rent = self._rpc.get_minimum_balance_for_rent_exemption(TOKEN_ACCOUNT_SIZE)
        escrow_rent = self._rpc.get_minimum_balance_for_rent_exemption(ESCROW_ACCOUNT_SIZE)

        instructions: List[Instruction] = [
            build_create_account_instruction(
                owner,
                temp_token_account.pubkey(),
                token_rent,
                TOKEN_ACCOUNT_SIZE,
                TOKEN_PROGRAM_ID,
            ),
            build_initialize_token_account_instruction(temp_token_account.pubkey(), mint, owner),
            build_token_transfer_instruction(send_account, temp_token_account.pubkey(), owner, amount),
            build_create_account_instruction(
                owner,
                escrow_account.pubkey(),
                escrow_rent,
                ESCROW_ACCOUNT_SIZE,
                self._program_id,
            ),
            build_init_escrow_instruction(
                self._program_id,
                InitEscrowAccounts(
                    initializer=owner,
                    temp_token_account=temp_token_account.pubkey(),
                    initializer_receive_account=receive_account,
                    escrow_account=escrow_account.pubkey(),
                ),
                expected_amount,
            ),
        ]

        logger.info(
            f"Opening escrow {escrow_account.pubkey()}: {amount} of {mint} for {expected_amount}"
        )
        signature = self._tx_builder.submit(
            instructions,
            additional_signers=[temp_token_account, escrow_account],
        )

        return InitEscrowResult(
            signature=signature,
            escrow_account=str(escrow_account.pubkey()),
            temp_token_account=str(temp_token_account.pubkey()),
        )

    def take_trade(
        self,
        escrow_account: Address,
        taker_send_account: Address,
        taker_receive_account: Address,
        amount: int,
        temp_token_account: Optional[Address] = None,
        initializer: Optional[Address] = None,
        initializer_receive_account: Optional[Address] = None,
    ) -> str:
        """
        Take a trade

        Addresses not supplied are read from the escrow state account.

        Args:
            escrow_account: Escrow state account
            taker_send_account: Wallet's Y token account, debited
            taker_receive_account: Wallet's X token account, credited
            amount: Amount of X tokens the taker expects; the program
                rejects the trade if the escrowed amount differs
            temp_token_account: Temp token account of the trade
            initializer: Initializer's main account
            initializer_receive_account: Initializer's Y token account

        Returns:
            Transaction signature

        Raises:
            InvalidAddress: If an address is malformed
            AmountOutOfRange: If amount does not fit in a u64
            AccountNotFound: If the escrow was already taken or cancelled
            SubmissionFailed: Transport failure or confirmation timeout
            TransactionRejected: Preflight or program rejection
        """
        escrow_account = to_pubkey(escrow_account, "escrow_account")
        taker_send_account = to_pubkey(taker_send_account, "taker_send_account")
        taker_receive_account = to_pubkey(taker_receive_account, "taker_receive_account")
        if temp_token_account is not None:
            temp_token_account = to_pubkey(temp_token_account, "temp_token_account")
        if initializer is not None:
            initializer = to_pubkey(initializer, "initializer")
        if initializer_receive_account is not None:
            initializer_receive_account = to_pubkey(
                initializer_receive_account, "initializer_receive_account"
            )
        encode_amount_le64(amount)

        if temp_token_account is None or initializer is None or initializer_receive_account is None:
            state = self.get_escrow_info(escrow_account)
            if temp_token_account is None:
                temp_token_account = state.temp_token_account_pubkey
            if initializer is None:
                initializer = state.initializer_pubkey
            if initializer_receive_account is None:
                initializer_receive_account = state.initializer_token_to_receive_account_pubkey

        authority, _ = self.authority()
        instruction = build_exchange_instruction(
            self._program_id,
            ExchangeAccounts(
                taker=self.owner,
                taker_send_account=taker_send_account,
                taker_receive_account=taker_receive_account,
                temp_token_account=temp_token_account,
                initializer=initializer,
                initializer_receive_account=initializer_receive_account,
                escrow_account=escrow_account,
            ),
            amount,
            escrow_authority=authority,
        )

        logger.info(f"Taking escrow {escrow_account}")
        return self._tx_builder.submit([instruction])

    def cancel_escrow(
        self,
        escrow_account: Address,
        initializer_refund_account: Address,
        temp_token_account: Optional[Address] = None,
    ) -> str:
        """
        Cancel a trade and refund the escrowed X tokens

        Args:
            escrow_account: Escrow state account
            initializer_refund_account: Wallet's X token account, refunded
            temp_token_account: Temp token account (read from state if omitted)

        Returns:
            Transaction signature

        Raises:
            InvalidAddress: If an address is malformed
            AccountNotFound: If the escrow was already taken or cancelled
            SubmissionFailed: Transport failure or confirmation timeout
            TransactionRejected: Preflight or program rejection
        """
        escrow_account = to_pubkey(escrow_account, "escrow_account")
        initializer_refund_account = to_pubkey(initializer_refund_account, "initializer_refund_account")
        if temp_token_account is not None:
            temp_token_account = to_pubkey(temp_token_account, "temp_token_account")

        if temp_token_account is None:
            temp_token_account = self.get_escrow_info(escrow_account).temp_token_account_pubkey

        authority, bump = self.authority()
        instruction = build_cancel_instruction(
            self._program_id,
            CancelAccounts(
                initializer=self.owner,
                temp_token_account=temp_token_account,
                initializer_refund_account=initializer_refund_account,
                escrow_account=escrow_account,
            ),
            bump,
            escrow_authority=authority,
        )

        logger.info(f"Cancelling escrow {escrow_account}")
        return self._tx_builder.submit([instruction])
