"""FastMCP server: token tools wired to the per-invocation Config."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastmcp import FastMCP

from . import rpc
from .account import parse_pubkey
from .config import settings
from .context import Config, build_config
from .errors import TokenAgentError

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "spl-token",
    instructions=(
        "Resolve signers and validate SPL Token mints and token accounts on Solana. "
        "Set sign_only to work offline with caller-supplied mint metadata."
    ),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _args(**kwargs: Any) -> dict[str, Any]:
    """Drop unset tool arguments so they fall through to defaults."""
    return {k: v for k, v in kwargs.items() if v is not None and v is not False}


@asynccontextmanager
async def _config(
    args: dict[str, Any], online: bool = True, resolve_fee_payer: bool = True
) -> AsyncIterator[Config]:
    """Config for one tool call; an RPC client is opened only when needed."""
    if not online or args.get("sign_only") or settings.sign_only:
        yield build_config(settings, args, rpc_client=None, resolve_fee_payer=resolve_fee_payer)
        return
    async with rpc.open_client(settings.json_rpc_url, settings.commitment) as client:
        yield build_config(settings, args, rpc_client=client, resolve_fee_payer=resolve_fee_payer)


def _error(e: TokenAgentError) -> dict:
    return {"error": str(e), "kind": e.kind}


# ---------------------------------------------------------------------------
# Tool handlers (plain async functions: testable without MCP)
# ---------------------------------------------------------------------------


async def _resolve_address(owner: str | None = None, address: str | None = None) -> dict:
    """Resolve the acting address.

    Args:
        owner: Owner keypair path or pubkey; wins over every other source.
        address: Explicit address or keypair path.
    """
    args = _args(owner=owner, address=address)
    try:
        async with _config(args, online=False, resolve_fee_payer=False) as config:
            resolved = config.pubkey_or_default(args, "address")
    except TokenAgentError as e:
        return _error(e)
    return {"address": str(resolved)}


async def _mint_info(
    mint: str,
    decimals: int | None = None,
    program_id: str | None = None,
    sign_only: bool = False,
) -> dict:
    """Resolve and validate a mint.

    Args:
        mint: Mint address.
        decimals: Expected decimals; must match on-chain, assumed when offline.
        program_id: Token program the mint must belong to.
        sign_only: Skip the network and trust `decimals`.
    """
    args = _args(program_id=program_id, sign_only=sign_only)
    try:
        async with _config(args) as config:
            info = await config.get_mint_info(parse_pubkey(mint), decimals)
    except TokenAgentError as e:
        return _error(e)
    return {
        "program_id": str(info.program_id),
        "address": str(info.address),
        "decimals": info.decimals,
    }


async def _check_token_account(
    account: str,
    mint: str | None = None,
    program_id: str | None = None,
    sign_only: bool = False,
) -> dict:
    """Validate a token account and return the mint it holds.

    Args:
        account: Token account address.
        mint: Mint the account is expected to hold.
        program_id: Token program the account must belong to.
        sign_only: Skip the network and echo `mint`.
    """
    args = _args(program_id=program_id, sign_only=sign_only)
    try:
        expected = parse_pubkey(mint) if mint else None
        async with _config(args) as config:
            held = await config.check_account(parse_pubkey(account), expected)
    except TokenAgentError as e:
        return _error(e)
    return {"account": account, "mint": str(held)}


async def _check_token_accounts(
    accounts: list[str],
    mint: str | None = None,
    program_id: str | None = None,
) -> list[dict]:
    """Validate several token accounts; one result per account, failures included.

    Args:
        accounts: Token account addresses.
        mint: Mint every account is expected to hold.
        program_id: Token program the accounts must belong to.
    """
    args = _args(program_id=program_id)
    try:
        addresses = [parse_pubkey(a) for a in accounts]
        expected = parse_pubkey(mint) if mint else None
        async with _config(args) as config:
            results = await config.check_accounts(addresses, expected)
    except TokenAgentError as e:
        return [_error(e)]
    return [r.to_dict() for r in results]


async def _associated_token_address(
    token: str,
    owner: str | None = None,
    address: str | None = None,
) -> dict:
    """Token account for `token`: `address` if given, else the owner's ATA.

    Args:
        token: Mint address.
        owner: Owner keypair path or pubkey (default: configured keypair).
        address: Explicit token account; returned unchanged.
    """
    args = _args(token=token, owner=owner, address=address)
    try:
        async with _config(args, resolve_fee_payer=False) as config:
            resolved = await config.associated_token_address_or_override(args, "address")
    except TokenAgentError as e:
        return _error(e)
    return {"address": str(resolved)}


# ---------------------------------------------------------------------------
# Register tools on the MCP server (thin wrappers preserve docstrings)
# ---------------------------------------------------------------------------


@mcp.tool()
async def token_resolve_address(owner: str | None = None, address: str | None = None) -> dict:
    """Resolve the acting address.

    Args:
        owner: Owner keypair path or pubkey; wins over every other source.
        address: Explicit address or keypair path.
    """
    return await _resolve_address(owner=owner, address=address)


@mcp.tool()
async def token_mint_info(
    mint: str,
    decimals: int | None = None,
    program_id: str | None = None,
    sign_only: bool = False,
) -> dict:
    """Resolve and validate a mint.

    Args:
        mint: Mint address.
        decimals: Expected decimals; must match on-chain, assumed when offline.
        program_id: Token program the mint must belong to.
        sign_only: Skip the network and trust `decimals`.
    """
    return await _mint_info(mint, decimals=decimals, program_id=program_id, sign_only=sign_only)


@mcp.tool()
async def token_check_account(
    account: str,
    mint: str | None = None,
    program_id: str | None = None,
    sign_only: bool = False,
) -> dict:
    """Validate a token account and return the mint it holds.

    Args:
        account: Token account address.
        mint: Mint the account is expected to hold.
        program_id: Token program the account must belong to.
        sign_only: Skip the network and echo `mint`.
    """
    return await _check_token_account(
        account, mint=mint, program_id=program_id, sign_only=sign_only
    )


@mcp.tool()
async def token_check_accounts(
    accounts: list[str],
    mint: str | None = None,
    program_id: str | None = None,
) -> list[dict]:
    """Validate several token accounts; one result per account, failures included.

    Args:
        accounts: Token account addresses.
        mint: Mint every account is expected to hold.
        program_id: Token program the accounts must belong to.
    """
    return await _check_token_accounts(accounts, mint=mint, program_id=program_id)


@mcp.tool()
async def token_associated_address(
    token: str,
    owner: str | None = None,
    address: str | None = None,
) -> dict:
    """Token account for `token`: `address` if given, else the owner's ATA.

    Args:
        token: Mint address.
        owner: Owner keypair path or pubkey (default: configured keypair).
        address: Explicit token account; returned unchanged.
    """
    return await _associated_token_address(token, owner=owner, address=address)
