"""All Solana RPC calls. This is the only module that imports from solana.rpc."""

from __future__ import annotations

import logging

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solders.account import Account
from solders.pubkey import Pubkey

from .errors import RpcError

logger = logging.getLogger(__name__)


def open_client(json_rpc_url: str, commitment: str = "confirmed") -> AsyncClient:
    """Client for one invocation. Callers own it: `async with open_client(...)`."""
    return AsyncClient(json_rpc_url, commitment=Commitment(commitment))


async def get_account(client: AsyncClient, address: Pubkey) -> Account | None:
    """Fetch an account, returning None when it does not exist."""
    logger.debug("Fetching account %s", address)
    try:
        resp = await client.get_account_info(address)
    except (SolanaRpcException, httpx.HTTPError) as e:
        raise RpcError(f"Failed to fetch account {address}: {e}") from e
    return resp.value
