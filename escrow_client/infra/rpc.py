"""
JSON-RPC transport for the escrow client

Every read the escrow and wallet modules make, and every transaction the
builder sends, goes through RpcClient. Requests carry increasing ids, node
error objects are kept on the raised RpcError, and transactions are sent
with maxRetries 0 so the node never rebroadcasts them.
"""

from __future__ import annotations

import base64
import logging
import time
import threading
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass

import httpx

from ..errors import ErrorCode, RpcError, ConfigurationError
from ..config import config as global_config

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


@dataclass
class RpcClientConfig:
    """
    Transport settings for one RpcClient

    Unset fields fall back to escrow_client.config.RpcConfig. max_retries
    counts attempts per endpoint; the default of 1 means a failed request
    is not repeated against the same node.
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = global_config.rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = global_config.rpc.retry_delay_seconds
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment


class RpcClient:
    """
    Solana JSON-RPC client used by the escrow and wallet modules

    A list of URLs may be given; a node that fails at the transport level
    is skipped in favour of the next one. JSON-RPC error objects are
    raised straight away with the node's code and data attached.

    Usage:
        rpc = RpcClient("http://localhost:8899")
        state = rpc.get_account_info(escrow_account)
        rent = rpc.get_minimum_balance_for_rent_exemption(105)
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: Node URL, or URLs tried in order
            config: Transport settings
        """
        self._endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        if not self._endpoints or not all(self._endpoints):
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        if self._config.max_retries < 1:
            raise ConfigurationError.invalid("max_retries", "must be at least 1")

        self._current_endpoint_idx = 0
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()
        self._request_id = 0
        self._id_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        """Current active endpoint"""
        return self._endpoints[self._current_endpoint_idx]

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client (thread-safe)"""
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._config.timeout_seconds,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    def _next_request_id(self) -> int:
        with self._id_lock:
            self._request_id += 1
            return self._request_id

    def _rotate_endpoint(self):
        """Move on to the next configured node"""
        if len(self._endpoints) > 1:
            self._current_endpoint_idx = (self._current_endpoint_idx + 1) % len(self._endpoints)
            logger.info(f"Rotating to RPC endpoint: {self.endpoint}")

    def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Send one JSON-RPC request

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override

        Returns:
            RPC result

        Raises:
            RpcError: On transport failure or a JSON-RPC error object
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": self._next_request_id(),
            "method": method,
            "params": params,
        }
        timeout_val = timeout or self._config.timeout_seconds

        last_error: Optional[Exception] = None
        endpoints_tried = 0
        max_endpoints = len(self._endpoints)

        while endpoints_tried < max_endpoints:
            for attempt in range(self._config.max_retries):
                try:
                    response = client.post(
                        self.endpoint,
                        json=body,
                        timeout=timeout_val,
                    )

                    if response.status_code == 429:
                        logger.warning(f"Rate limited by {self.endpoint}")
                        last_error = RpcError.rate_limited(self.endpoint)
                        if attempt < self._config.max_retries - 1:
                            time.sleep(self._config.retry_delay_seconds * (attempt + 1))
                        continue

                    response.raise_for_status()
                    result = response.json()

                    if "error" in result:
                        error = result["error"]
                        rpc_error = RpcError(
                            f"RPC error: {error.get('message', str(error))}",
                            ErrorCode.RPC_INVALID_RESPONSE,
                            endpoint=self.endpoint,
                        )
                        # Preserve the node's error payload verbatim
                        rpc_error.details["rpc_error_code"] = error.get("code")
                        rpc_error.details["rpc_error_data"] = error.get("data")
                        raise rpc_error

                    return result.get("result")

                except httpx.TimeoutException:
                    last_error = RpcError.timeout(self.endpoint, timeout_val)
                    logger.warning(f"RPC timeout (attempt {attempt + 1}): {self.endpoint}")

                except httpx.HTTPStatusError as e:
                    last_error = RpcError(
                        f"HTTP error {e.response.status_code}",
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

                except httpx.RequestError as e:
                    last_error = RpcError.connection_failed(self.endpoint, e)
                    logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

                except ValueError as e:
                    last_error = RpcError(
                        f"Invalid JSON-RPC response: {e}",
                        ErrorCode.RPC_INVALID_RESPONSE,
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC invalid response (attempt {attempt + 1}): {e}")

                if attempt < self._config.max_retries - 1:
                    time.sleep(self._config.retry_delay_seconds * (attempt + 1))

            self._rotate_endpoint()
            endpoints_tried += 1

        raise last_error or RpcError("All RPC endpoints failed")

    def get_account_info(
        self,
        address: str,
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get account information

        Args:
            address: Account address (base58)
            encoding: Data encoding ("base64", "jsonParsed", etc.)
            commitment: Commitment level

        Returns:
            Account info or None if not found
        """
        params = [
            address,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = self.call("getAccountInfo", params)
        return result.get("value") if result else None

    def get_latest_blockhash(
        self,
        commitment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Latest blockhash value: {"blockhash", "lastValidBlockHeight"}"""
        params = [{"commitment": commitment or self.commitment}]
        result = self.call("getLatestBlockhash", params)
        return result.get("value", {}) if result else {}

    def get_balance(
        self,
        address: str,
        commitment: Optional[str] = None,
    ) -> int:
        """Lamport balance of `address`, 0 for an unknown account"""
        params = [address, {"commitment": commitment or self.commitment}]
        result = self.call("getBalance", params)
        return result.get("value", 0) if result else 0

    def get_token_account_balance(
        self,
        token_account: str,
        commitment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Raw balance of a token account

        Returns:
            The node's value object (amount as a decimal string, decimals,
            uiAmount); empty when the account does not exist
        """
        params = [token_account, {"commitment": commitment or self.commitment}]
        result = self.call("getTokenAccountBalance", params)
        return result.get("value", {}) if result else {}

    def get_token_accounts_by_owner(
        self,
        owner: str,
        mint: Optional[str] = None,
        program_id: Optional[str] = None,
        encoding: str = "jsonParsed",
        commitment: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Token accounts of `owner`, filtered by mint when one is given

        Returns:
            The node's list of {"pubkey", "account"} entries
        """
        if mint:
            filter_param = {"mint": mint}
        else:
            filter_param = {"programId": program_id or TOKEN_PROGRAM_ID}

        params = [
            owner,
            filter_param,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = self.call("getTokenAccountsByOwner", params)
        return result.get("value", []) if result else []

    def get_minimum_balance_for_rent_exemption(
        self,
        data_length: int,
        commitment: Optional[str] = None,
    ) -> int:
        """Lamports needed for an account of `data_length` bytes to be rent exempt"""
        params = [data_length, {"commitment": commitment or self.commitment}]
        return self.call("getMinimumBalanceForRentExemption", params)

    def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
    ) -> str:
        """
        Send signed transaction

        Args:
            transaction: Signed transaction bytes
            skip_preflight: Skip preflight simulation
            preflight_commitment: Preflight commitment level

        Returns:
            Transaction signature (base58)
        """
        tx_data = base64.b64encode(transaction).decode("ascii")

        params = [
            tx_data,
            {
                "skipPreflight": skip_preflight,
                "preflightCommitment": preflight_commitment or self.commitment,
                "encoding": "base64",
                # The node must not rebroadcast on our behalf
                "maxRetries": 0,
            },
        ]
        return self.call("sendTransaction", params)

    def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        """Status of a single signature, or None if the node has not seen it"""
        result = self.call("getSignatureStatuses", [[signature]])
        if result and result.get("value"):
            return result["value"][0]
        return None

    def confirm_transaction(
        self,
        signature: str,
        commitment: Optional[str] = None,
        timeout_seconds: float = 30.0,
        poll_interval: float = 1.0,
    ) -> Optional[Dict[str, Any]]:
        """
        Wait for transaction confirmation

        Args:
            signature: Transaction signature
            commitment: Commitment level to wait for
            timeout_seconds: Max wait time
            poll_interval: Seconds between status polls

        Returns:
            The signature status once it reached `commitment` or carries an
            error; None on timeout (never landed or status unknown)
        """
        wanted = commitment or self.commitment
        accepted = {
            "processed": ("processed", "confirmed", "finalized"),
            "confirmed": ("confirmed", "finalized"),
            "finalized": ("finalized",),
        }.get(wanted, ("confirmed", "finalized"))

        start_time = time.monotonic()
        last_status = None

        while time.monotonic() - start_time < timeout_seconds:
            status = self.get_signature_status(signature)
            if status:
                last_status = status
                if status.get("err"):
                    logger.warning(f"Transaction {signature} failed on-chain: {status.get('err')}")
                    return status
                if status.get("confirmationStatus") in accepted:
                    return status

            time.sleep(poll_interval)

        if last_status is None:
            logger.warning(f"Transaction {signature} was never seen on chain (dropped/expired)")
        else:
            logger.warning(
                f"Transaction {signature} timeout. Last status: {last_status.get('confirmationStatus', 'unknown')}"
            )

        return None

    def close(self):
        """Close HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
