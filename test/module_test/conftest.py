"""
Shared configuration and fixtures for module integration tests.

WARNING: These tests execute real transactions against a live cluster!
Point them at a local validator with the escrow program deployed.

Environment Variables:
    SOLANA_RPC_URL: RPC endpoint URL (required)
    ESCROW_PROGRAM_ID: Deployed escrow program id (required)
    SOLANA_SECRET_KEY: Secret key as byte list, JSON array or base58
    SOLANA_KEYPAIR_PATH: Path to keypair JSON file (alternative to secret key)
    ESCROW_TEST_X_ACCOUNT: Wallet's token account for the offered mint
    ESCROW_TEST_Y_ACCOUNT: Wallet's token account for the requested mint
"""

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Load .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env_or_fail(key: str) -> str:
    """Get required environment variable or raise error"""
    value = os.getenv(key)
    if not value:
        raise EnvironmentError(
            f"Missing required environment variable: {key}\n"
            f"Please set {key} in your .env file or environment."
        )
    return value


def get_rpc_url() -> str:
    """Get Solana RPC URL from environment"""
    return get_env_or_fail("SOLANA_RPC_URL")


def get_program_id() -> str:
    """Get escrow program id from environment"""
    return get_env_or_fail("ESCROW_PROGRAM_ID")


def check_wallet_config():
    """Require either a secret key or an existing keypair file"""
    if os.getenv("SOLANA_SECRET_KEY"):
        return
    keypair_path = os.getenv("SOLANA_KEYPAIR_PATH")
    if keypair_path:
        if not Path(keypair_path).exists():
            raise FileNotFoundError(f"Keypair file not found: {keypair_path}")
        return
    raise EnvironmentError(
        "No wallet configured. Set either:\n"
        "  SOLANA_SECRET_KEY - secret key bytes or base58\n"
        "  SOLANA_KEYPAIR_PATH - path to keypair JSON file"
    )


def create_client():
    """Create EscrowClient with live RPC and real wallet"""
    from escrow_client import EscrowClient

    return EscrowClient(rpc_url=get_rpc_url(), program_id=get_program_id())


def skip_if_no_config():
    """Check if required config is available, return skip message if not"""
    try:
        get_rpc_url()
        get_program_id()
        check_wallet_config()
        return None
    except (EnvironmentError, FileNotFoundError) as e:
        return str(e)


def skip_if_no_token_accounts():
    """Check if the trade token accounts are configured"""
    try:
        get_env_or_fail("ESCROW_TEST_X_ACCOUNT")
        get_env_or_fail("ESCROW_TEST_Y_ACCOUNT")
        return None
    except EnvironmentError as e:
        return str(e)


# Pytest fixtures
@pytest.fixture(scope="module")
def client():
    """Create EscrowClient fixture for tests"""
    skip_msg = skip_if_no_config()
    if skip_msg:
        pytest.skip(skip_msg)
    client = create_client()
    yield client
    client.close()


@pytest.fixture(scope="module")
def token_accounts():
    """(x_account, y_account) of the wallet"""
    skip_msg = skip_if_no_token_accounts()
    if skip_msg:
        pytest.skip(skip_msg)
    return os.getenv("ESCROW_TEST_X_ACCOUNT"), os.getenv("ESCROW_TEST_Y_ACCOUNT")
